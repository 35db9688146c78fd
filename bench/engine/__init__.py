"""
Pure pricing and settlement core. Nothing in this package performs I/O: callers
hand in a snapshot of pool or position state and persist what comes back.
"""
from .errors import (
    EngineError,
    InvalidAmountError,
    DegeneratePoolError,
    InvalidProbabilityError,
    InvalidSideError,
    InvalidPoolError,
    InvalidPositionError,
    MarketStateError,
)
from .state import LiquidityPool, Position, Market, MarketOption, BetSide, MarketStatus
from .amm_math import (
    initialize_pool,
    seed_pool,
    calculate_probability,
    calculate_price_impact,
    execute_bet,
    calculate_bet_for_target,
    get_odds,
    calculate_liquidity_depth,
    simulate_bets,
    calculate_arbitrage,
    calculate_expected_payout,
)
from .settlement import settle_positions, calculate_payout, calculate_potential_payout
