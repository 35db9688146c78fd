import logging
import uuid
from typing import Any, Dict, List, Optional

from bench.config import get_admin_uids
from bench.db.queries import (
    fetch_market, fetch_markets, fetch_options, insert_market, insert_options,
    update_market, load_engine_params
)
from bench.engine.amm_math import seed_pool, pool_summary, calculate_probability
from bench.engine.errors import DegeneratePoolError
from bench.engine.params import validate_params
from bench.engine.state import Market, MarketWithOptions, get_pool, transition_market_status
from bench.utils import get_current_ms
from bench.services.errors import NotFoundError, PermissionDeniedError

logger = logging.getLogger(__name__)

def is_admin(uid: Optional[str]) -> bool:
    if not uid:
        return False
    admin_uids = get_admin_uids()
    # No ADMIN_UIDS configured means a development setup: every authenticated caller is admin
    if not admin_uids:
        logger.warning("No ADMIN_UIDS configured - allowing all authenticated users as admin")
        return True
    return uid in admin_uids

def require_admin(uid: Optional[str], action: str) -> None:
    if not is_admin(uid):
        raise PermissionDeniedError(f"Only admins can {action}")

def get_market(market_id: str) -> Market:
    market = fetch_market(market_id)
    if not market:
        raise NotFoundError('Market', market_id)
    return market

def create_market(uid: str, market_input: Dict[str, Any]) -> str:
    """
    Create an open market with one seeded pool per option.

    market_input: title, description (optional), sport (default 'football'),
    close_at_ms, and options as a list of {'label', 'probability'} where the
    probability is the option's opening price.
    """
    require_admin(uid, "create markets")
    params = load_engine_params()
    validate_params(params)

    title = (market_input.get('title') or '').strip()
    if not title:
        raise ValueError("Market title is required")
    options_input = market_input.get('options') or []
    if len(options_input) < 2:
        raise ValueError("A market needs at least two options")

    now_ms = get_current_ms()
    close_at_ms = int(market_input['close_at_ms'])
    if close_at_ms <= now_ms:
        raise ValueError("close_at_ms must be in the future")

    market_id = uuid.uuid4().hex
    options: List[Dict[str, Any]] = []
    for order, option in enumerate(options_input):
        label = (option.get('label') or '').strip()
        if not label:
            raise ValueError(f"Option {order} has no label")
        pool = seed_pool(params['initial_liquidity'], option['probability'])
        options.append({
            'option_id': uuid.uuid4().hex,
            'market_id': market_id,
            'label': label,
            'order': order,
            'probability': float(calculate_probability(pool)),
            'yes_volume': 0.0,
            'no_volume': 0.0,
            **pool.to_dict(),
        })

    insert_market({
        'market_id': market_id,
        'title': title,
        'description': market_input.get('description'),
        'sport': market_input.get('sport') or 'football',
        'status': 'open',
        'resolution': None,
        'close_at_ms': close_at_ms,
        'created_at_ms': now_ms,
        'updated_at_ms': now_ms,
    })
    insert_options(options)
    logger.info(f"Created market {market_id} '{title}' with {len(options)} options")
    return market_id

def close_market(uid: str, market_id: str) -> Market:
    """Stop accepting bets. Pools are frozen from here on."""
    require_admin(uid, "close markets")
    market = get_market(market_id)
    closed = transition_market_status(market, 'closed', get_current_ms())
    update_market(market_id, {'status': closed['status'], 'updated_at_ms': closed['updated_at_ms']})
    logger.info(f"Closed market {market_id}")
    return closed

def get_market_with_options(market_id: str) -> MarketWithOptions:
    """Market plus its options, each enriched with live odds and liquidity depth."""
    market = get_market(market_id)
    params = load_engine_params()
    enriched = []
    for option in fetch_options(market_id):
        entry = dict(option)
        try:
            summary = pool_summary(
                get_pool(option),
                params['max_slippage'],
                params['depth_resolution'],
                params['depth_max_iterations'],
            )
        except DegeneratePoolError:
            logger.warning(f"Option {option['option_id']} in market {market_id} has an unseeded pool")
            summary = {}
        entry.update({k: float(v) for k, v in summary.items()})
        enriched.append(entry)
    return {**market, 'options': enriched}

def list_markets(status: Optional[str] = None) -> List[Market]:
    return fetch_markets(status)
