from bench.config import EngineParams


def validate_params(params: EngineParams) -> None:
    if params['initial_liquidity'] < 0:
        raise ValueError("initial_liquidity must be >=0")
    if not (0 < params['min_payout_probability'] < params['max_payout_probability'] < 1):
        raise ValueError("payout probability bounds must satisfy 0 < min < max < 1")
    if not (0 < params['max_slippage'] < 1):
        raise ValueError("max_slippage must be in (0,1)")
    if params['depth_resolution'] <= 0:
        raise ValueError("depth_resolution must be >0")
    if params['depth_max_iterations'] < 1:
        raise ValueError("depth_max_iterations must be >=1")
    if not (0 <= params['arbitrage_threshold'] < 1):
        raise ValueError("arbitrage_threshold must be in [0,1)")
    if params['starting_balance'] < 0:
        raise ValueError("starting_balance must be >=0")
    if params['max_bet_retries'] < 1:
        raise ValueError("max_bet_retries must be >=1")
