import logging
from decimal import Decimal
from typing import Any, Dict

from bench.db.queries import fetch_options, fetch_unsettled_positions, update_market, commit_settlement, load_engine_params
from bench.engine.errors import MarketStateError
from bench.engine.settlement import settle_positions
from bench.engine.state import transition_market_status
from bench.utils import get_current_ms
from bench.services.errors import NotFoundError
from bench.services.markets import get_market, require_admin

logger = logging.getLogger(__name__)

def settle_market(uid: str, market_id: str, winning_option_id: str) -> Dict[str, Any]:
    """
    Resolve a market to winning_option_id and pay out every unsettled position.

    An open market is closed first so no bet can be created while the
    position snapshot is taken. Payouts, position flags, balance increments
    and the 'settled' status are committed together.
    """
    require_admin(uid, "settle markets")
    if not market_id or not winning_option_id:
        raise ValueError("Missing required fields")

    market = get_market(market_id)
    if market['status'] == 'settled':
        raise MarketStateError(market_id, 'settled', "be settled again")
    option_ids = {option['option_id'] for option in fetch_options(market_id)}
    if winning_option_id not in option_ids:
        raise NotFoundError('Option', winning_option_id)

    if market['status'] == 'open':
        closed = transition_market_status(market, 'closed', get_current_ms())
        update_market(market_id, {'status': closed['status'], 'updated_at_ms': closed['updated_at_ms']})
        logger.info(f"Closed market {market_id} ahead of settlement")

    params = load_engine_params()
    positions = fetch_unsettled_positions(market_id)
    result = settle_positions(
        positions,
        winning_option_id,
        params['min_payout_probability'],
        params['max_payout_probability'],
    )

    position_payouts = [
        {'position_id': position_id, 'payout': float(payout)}
        for position_id, payout in result['payouts'].items()
    ]
    # Losers leave no balance write behind
    balance_increments = [
        {'user_id': user_id, 'amount': float(amount)}
        for user_id, amount in result['balance_deltas'].items()
        if amount > 0
    ]
    commit_settlement(market_id, winning_option_id, get_current_ms(), position_payouts, balance_increments)

    total_payout = sum(result['payouts'].values(), Decimal(0))
    logger.info(
        f"Settled market {market_id}: winner={winning_option_id}, "
        f"{len(positions)} positions, {len(balance_increments)} users paid, total payout {total_payout}"
    )
    return {
        'settled_positions': len(positions),
        'total_payout': float(total_payout),
    }
