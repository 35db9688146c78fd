from typing_extensions import TypedDict
import os
from dotenv import load_dotenv
from supabase import create_client, Client

def load_env() -> dict[str, str]:
    # Picks up a local .env during development; deployed environments set real variables
    load_dotenv()

    required_vars = ['SUPABASE_URL', 'SUPABASE_SERVICE_KEY']
    env_vars = {}

    for key in required_vars:
        value = os.getenv(key)
        if value is None:
            raise ValueError(f"Missing required environment variable: {key}. "
                             f"Please set it as an environment variable or in a .env file.")
        env_vars[key] = value

    return env_vars

def get_supabase_client() -> Client:
    env = load_env()
    return create_client(env['SUPABASE_URL'], env['SUPABASE_SERVICE_KEY'])

def get_admin_uids() -> list[str]:
    """Comma-separated ADMIN_UIDS; empty when unset."""
    load_dotenv()
    raw = os.getenv('ADMIN_UIDS', '')
    return [uid.strip() for uid in raw.split(',') if uid.strip()]

class EngineParams(TypedDict):
    initial_liquidity: float
    min_payout_probability: float
    max_payout_probability: float
    max_slippage: float
    depth_resolution: float
    depth_max_iterations: int
    arbitrage_threshold: float
    starting_balance: float
    max_bet_retries: int

def get_default_engine_params() -> EngineParams:
    return EngineParams(
        initial_liquidity=1000.0,
        min_payout_probability=0.01,  # caps the payout multiplier at 100x
        max_payout_probability=0.99,
        max_slippage=0.05,
        depth_resolution=1.0,
        depth_max_iterations=100,
        arbitrage_threshold=0.05,
        starting_balance=1000.0,
        max_bet_retries=3,
    )
