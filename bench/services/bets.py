import logging
import uuid
from decimal import Decimal
from typing import Any, Dict, List, Optional
from typing_extensions import TypedDict

from bench.db.queries import fetch_market, fetch_option, fetch_user, fetch_positions, commit_bet, load_engine_params
from bench.engine.amm_math import calculate_price_impact, execute_bet, validate_amount, validate_side
from bench.engine.settlement import calculate_potential_payout
from bench.engine.state import Position, assert_market_open, get_pool
from bench.utils import get_current_ms, to_decimal
from bench.services.errors import NotFoundError, InsufficientBalanceError, ConcurrentUpdateError

logger = logging.getLogger(__name__)

class BetQuote(TypedDict):
    old_probability: Decimal
    new_probability: Decimal
    price_impact: Decimal
    shares: Decimal
    avg_price: Decimal
    potential_payout: Decimal

class PlaceBetResult(TypedDict):
    position_id: str
    new_balance: float
    shares: float
    avg_price: float
    probability_at_bet: float
    new_probability: float

def _load_market_and_option(market_id: str, option_id: str) -> tuple[Dict[str, Any], Dict[str, Any]]:
    market = fetch_market(market_id)
    if not market:
        raise NotFoundError('Market', market_id)
    option = fetch_option(market_id, option_id)
    if not option:
        raise NotFoundError('Option', option_id)
    return market, option

def quote_bet(market_id: str, option_id: str, side: str, stake: float | Decimal) -> BetQuote:
    """Price a prospective bet against the current pool without writing anything."""
    params = load_engine_params()
    _, option = _load_market_and_option(market_id, option_id)
    impact = calculate_price_impact(get_pool(option), side, stake)
    potential = calculate_potential_payout(
        stake,
        impact['old_probability'],
        side,
        to_decimal(params['min_payout_probability']),
        to_decimal(params['max_payout_probability']),
    )
    return {**impact, 'potential_payout': potential}

def place_bet(wallet_address: str, market_id: str, option_id: str, side: str, stake: float | Decimal) -> PlaceBetResult:
    """
    Place a bet for wallet_address against the option's pool.

    The pool is read, priced and committed in one guarded write; if another bet
    lands on the same pool in between, the whole read-price-commit cycle is
    retried up to max_bet_retries times.
    """
    if not wallet_address:
        raise ValueError("Wallet not connected or no authentication")
    validate_side(side)
    stake_d = validate_amount(stake)
    params = load_engine_params()

    logger.info(f"placeBet called: wallet={wallet_address} market={market_id} option={option_id} side={side} stake={stake_d}")

    for attempt in range(1, params['max_bet_retries'] + 1):
        market, option = _load_market_and_option(market_id, option_id)
        now_ms = get_current_ms()
        assert_market_open(market, now_ms)

        user = fetch_user(wallet_address)
        if not user:
            raise NotFoundError('User profile', wallet_address)
        balance = to_decimal(user.get('balance') or 0)
        if balance < stake_d:
            raise InsufficientBalanceError(balance, stake_d)

        pool = get_pool(option)
        result = execute_bet(pool, side, stake_d)
        updated_pool = result['updated_pool']

        position: Position = {
            'position_id': uuid.uuid4().hex,
            'user_id': wallet_address,
            'market_id': market_id,
            'option_id': option_id,
            'option_label': option.get('label'),
            'market_title': market.get('title'),
            'side': side,
            'stake': float(stake_d),
            'probability_at_bet': float(result['old_probability']),
            'settled': False,
            'payout': None,
            'created_at_ms': now_ms,
        }

        committed = commit_bet(
            option_id,
            option['liquidity'],
            updated_pool.to_dict(),
            float(result['new_probability']),
            'yes_volume' if side == 'yes' else 'no_volume',
            position,
        )
        if committed:
            new_balance = balance - stake_d
            logger.info(f"Bet {position['position_id']} placed: {result['shares']:.4f} shares at avg price {result['avg_price']:.4f}")
            return {
                'position_id': position['position_id'],
                'new_balance': float(new_balance),
                'shares': float(result['shares']),
                'avg_price': float(result['avg_price']),
                'probability_at_bet': float(result['old_probability']),
                'new_probability': float(result['new_probability']),
            }

        logger.warning(f"Pool for option {option_id} changed during bet (attempt {attempt}), retrying")

    raise ConcurrentUpdateError(f"Could not place bet on option {option_id} after {params['max_bet_retries']} attempts")

def fetch_user_positions(user_id: str, market_id: Optional[str] = None) -> List[Position]:
    return fetch_positions(user_id=user_id, market_id=market_id)
