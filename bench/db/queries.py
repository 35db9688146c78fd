from typing import List, Dict, Any, Optional
from supabase import Client

from bench.config import get_supabase_client, get_default_engine_params, EngineParams

def get_db() -> Client:
    return get_supabase_client()

# Config queries
def load_config() -> Dict[str, Any]:
    db = get_db()
    result = db.table('config').select('*').limit(1).execute()
    if result.data:
        config = result.data[0]
        config['params'] = config.get('params') or {}  # JSONB
        return config
    return {}

def load_engine_params() -> EngineParams:
    """Defaults overlaid with whatever the config row stores; unknown keys are ignored."""
    params = get_default_engine_params()
    stored = load_config().get('params', {})
    for key, value in stored.items():
        if key in params:
            params[key] = value
    return params

def update_config_params(params: Dict[str, Any]) -> None:
    db = get_db()
    existing = db.table('config').select('config_id').limit(1).execute()
    if existing.data:
        db.table('config').update({'params': params}).eq('config_id', existing.data[0]['config_id']).execute()
    else:
        db.table('config').insert({'params': params}).execute()

# Users queries
def insert_user(user_id: str, balance: float, display_name: Optional[str] = None) -> Dict[str, Any]:
    db = get_db()
    result = db.table('users').insert({
        'user_id': user_id,
        'display_name': display_name,
        'balance': balance
    }).execute()
    return result.data[0] if result.data else {}

def fetch_user(user_id: str) -> Optional[Dict[str, Any]]:
    db = get_db()
    result = db.table('users').select('*').eq('user_id', user_id).execute()
    return result.data[0] if result.data else None

# Markets queries
def insert_market(market: Dict[str, Any]) -> None:
    db = get_db()
    db.table('markets').insert(market).execute()

def fetch_market(market_id: str) -> Optional[Dict[str, Any]]:
    db = get_db()
    result = db.table('markets').select('*').eq('market_id', market_id).execute()
    return result.data[0] if result.data else None

def fetch_markets(status: Optional[str] = None) -> List[Dict[str, Any]]:
    db = get_db()
    query = db.table('markets').select('*')
    if status:
        query = query.eq('status', status)
    return query.order('close_at_ms').execute().data

def update_market(market_id: str, fields: Dict[str, Any]) -> None:
    db = get_db()
    db.table('markets').update(fields).eq('market_id', market_id).execute()

# Options queries
def insert_options(options: List[Dict[str, Any]]) -> None:
    db = get_db()
    db.table('options').insert(options).execute()

def fetch_options(market_id: str) -> List[Dict[str, Any]]:
    db = get_db()
    return db.table('options').select('*').eq('market_id', market_id).order('order').execute().data

def fetch_option(market_id: str, option_id: str) -> Optional[Dict[str, Any]]:
    db = get_db()
    result = db.table('options').select('*').eq('market_id', market_id).eq('option_id', option_id).execute()
    return result.data[0] if result.data else None

# Positions queries
def fetch_unsettled_positions(market_id: str) -> List[Dict[str, Any]]:
    db = get_db()
    return (
        db.table('positions').select('*')
        .eq('market_id', market_id)
        .eq('settled', False)
        .order('created_at_ms')
        .execute().data
    )

def fetch_positions(user_id: Optional[str] = None, market_id: Optional[str] = None) -> List[Dict[str, Any]]:
    db = get_db()
    query = db.table('positions').select('*')
    if user_id:
        query = query.eq('user_id', user_id)
    if market_id:
        query = query.eq('market_id', market_id)
    return query.order('created_at_ms', desc=True).execute().data

# Atomic commits. Each runs as a single Postgres function so either every
# write lands or none does.
def commit_bet(
    option_id: str,
    expected_liquidity: float,
    pool: Dict[str, float],
    probability: float,
    volume_field: str,
    position: Dict[str, Any],
) -> bool:
    """
    Write the updated pool, the new position, the volume increment and the
    stake debit in one transaction. The pool update only applies while the
    stored liquidity still equals expected_liquidity; returns False when
    another bet got there first.
    """
    db = get_db()
    result = db.rpc('apply_bet', {
        'p_option_id': option_id,
        'p_expected_liquidity': expected_liquidity,
        'p_pool': pool,
        'p_probability': probability,
        'p_volume_field': volume_field,
        'p_position': position,
    }).execute()
    return bool(result.data)

def commit_settlement(
    market_id: str,
    winning_option_id: str,
    updated_at_ms: int,
    position_payouts: List[Dict[str, Any]],
    balance_increments: List[Dict[str, Any]],
) -> None:
    db = get_db()
    db.rpc('apply_settlement', {
        'p_market_id': market_id,
        'p_resolution': winning_option_id,
        'p_updated_at_ms': updated_at_ms,
        'p_position_payouts': position_payouts,
        'p_balance_increments': balance_increments,
    }).execute()
