import logging
from typing import Any, Dict, Optional

from bench.db.queries import fetch_user, insert_user, load_engine_params

logger = logging.getLogger(__name__)

def get_or_create_user(wallet_address: str, display_name: Optional[str] = None) -> Dict[str, Any]:
    """Wallet address doubles as user id; first connect creates a profile with the starting balance."""
    if not wallet_address:
        raise ValueError("wallet_address is required")
    user = fetch_user(wallet_address)
    if user:
        return user
    params = load_engine_params()
    logger.info(f"Creating profile for {wallet_address} with {params['starting_balance']} credits")
    return insert_user(wallet_address, params['starting_balance'], display_name)
