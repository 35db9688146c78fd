import argparse
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from bench.config import get_default_engine_params
from bench.db.queries import update_config_params
from bench.services.markets import create_market

logger = logging.getLogger(__name__)

def _close_ms(iso_date: str) -> int:
    return int(datetime.fromisoformat(iso_date).replace(tzinfo=timezone.utc).timestamp() * 1000)

SAMPLE_MARKETS: List[Dict[str, Any]] = [
    {
        'title': 'Who retires first, Ronaldo or Messi?',
        'description': 'Predict which football legend will announce their retirement from professional football first.',
        'sport': 'football',
        'close_at': '2027-12-31',
        'options': [
            {'label': 'Ronaldo', 'probability': 0.55},
            {'label': 'Messi', 'probability': 0.45},
        ],
    },
    {
        'title': 'World Cup 2030 Winner',
        'description': 'Which national team will lift the FIFA World Cup trophy in 2030?',
        'sport': 'football',
        'close_at': '2030-07-21',
        'options': [
            {'label': 'Brazil', 'probability': 0.18},
            {'label': 'France', 'probability': 0.16},
            {'label': 'Argentina', 'probability': 0.15},
            {'label': 'England', 'probability': 0.12},
            {'label': 'Spain', 'probability': 0.11},
            {'label': 'Other', 'probability': 0.28},
        ],
    },
    {
        'title': 'Will BTC close the year above $150k?',
        'description': 'Resolves YES on the Dec 31 daily close.',
        'sport': 'crypto',
        'close_at': '2027-12-31',
        'options': [
            {'label': 'Above $150k', 'probability': 0.35},
            {'label': 'At or below $150k', 'probability': 0.65},
        ],
    },
]

def seed_markets(admin_uid: str, initial_liquidity: float | None = None) -> List[str]:
    """
    Writes engine params (defaults plus an optional liquidity override) and
    creates the sample markets. Returns the new market ids.
    """
    if initial_liquidity is not None:
        params = dict(get_default_engine_params())
        params['initial_liquidity'] = initial_liquidity
        update_config_params(params)

    market_ids = []
    for sample in SAMPLE_MARKETS:
        market_input = {k: v for k, v in sample.items() if k != 'close_at'}
        market_input['close_at_ms'] = _close_ms(sample['close_at'])
        market_ids.append(create_market(admin_uid, market_input))
        logger.info(f"Seeded '{sample['title']}'")
    return market_ids


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    parser = argparse.ArgumentParser(description="Seed sample markets into the DB.")
    parser.add_argument("--admin-uid", required=True, help="Admin uid performing the seeding")
    parser.add_argument("--initial-liquidity", type=float, help="Liquidity seeded into each option pool")
    args = parser.parse_args()

    ids = seed_markets(args.admin_uid, args.initial_liquidity)
    print(f"Seeded {len(ids)} markets: {', '.join(ids)}")
