import argparse
import logging
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from bench.engine.amm_math import (
    seed_pool, simulate_bets, get_odds, calculate_liquidity_depth, calculate_arbitrage
)
from bench.utils import format_probability, format_credits

logger = logging.getLogger(__name__)

def generate_bets(n_bets: int, mean_stake: float, yes_bias: float, seed: Optional[int] = None) -> List[Dict[str, Any]]:
    """Random bet flow: side drawn with P(yes) = yes_bias, stakes exponential around mean_stake, at least 1 credit."""
    if n_bets < 0:
        raise ValueError("n_bets must be >=0")
    if mean_stake <= 0:
        raise ValueError("mean_stake must be >0")
    if not (0 <= yes_bias <= 1):
        raise ValueError("yes_bias must be in [0,1]")
    rng = np.random.default_rng(seed)
    sides = np.where(rng.random(n_bets) < yes_bias, 'yes', 'no')
    amounts = np.maximum(np.round(rng.exponential(mean_stake, n_bets), 2), 1.0)
    return [{'side': str(side), 'amount': float(amount)} for side, amount in zip(sides, amounts)]

def run_simulation(
    initial_liquidity: float,
    bets: List[Dict[str, Any]],
    opening_probability: float = 0.5,
) -> pd.DataFrame:
    """One row per state: row 0 is the opening pool, row i the pool after bet i."""
    pool = seed_pool(initial_liquidity, opening_probability)
    result = simulate_bets(pool, bets)

    rows = [{'bet_index': 0, 'side': None, 'amount': 0.0, 'probability': float(result['price_history'][0])}]
    for i, (bet, probability) in enumerate(zip(bets, result['price_history'][1:]), start=1):
        rows.append({
            'bet_index': i,
            'side': bet['side'],
            'amount': float(bet['amount']),
            'probability': float(probability),
        })
    df = pd.DataFrame(rows)
    df['cumulative_volume'] = df['amount'].cumsum()
    df.attrs['final_pool'] = result['final_pool']
    return df

def summarize(df: pd.DataFrame, true_probability: Optional[float] = None) -> Dict[str, Any]:
    pool = df.attrs['final_pool']
    odds = get_odds(pool)
    depth = calculate_liquidity_depth(pool)
    summary = {
        'bets': len(df) - 1,
        'total_volume': float(df['amount'].sum()),
        'final_probability': float(df['probability'].iloc[-1]),
        'max_probability': float(df['probability'].max()),
        'min_probability': float(df['probability'].min()),
        'yes_odds': float(odds['yes_odds']),
        'no_odds': float(odds['no_odds']),
        'yes_depth': float(depth['yes_depth']),
        'no_depth': float(depth['no_depth']),
    }
    if true_probability is not None:
        signal = calculate_arbitrage(summary['final_probability'], true_probability)
        summary['recommendation'] = signal['recommendation']
        summary['expected_value'] = float(signal['expected_value'])
    return summary


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    parser = argparse.ArgumentParser(description="Simulate random bet flow against a single AMM pool.")
    parser.add_argument("--liquidity", type=float, default=1000.0, help="Initial pool liquidity")
    parser.add_argument("--opening-probability", type=float, default=0.5, help="Opening yes probability")
    parser.add_argument("--bets", type=int, default=100, help="Number of bets to simulate")
    parser.add_argument("--mean-stake", type=float, default=25.0, help="Mean stake per bet")
    parser.add_argument("--yes-bias", type=float, default=0.5, help="Probability a bet is on yes")
    parser.add_argument("--true-probability", type=float, help="Reference probability for the arbitrage signal")
    parser.add_argument("--seed", type=int, help="Random seed")
    parser.add_argument("--output", help="CSV file for the price path")
    args = parser.parse_args()

    bets = generate_bets(args.bets, args.mean_stake, args.yes_bias, args.seed)
    df = run_simulation(args.liquidity, bets, args.opening_probability)
    summary = summarize(df, args.true_probability)

    if args.output:
        df.to_csv(args.output, index=False, float_format='%.6f')
        logger.info(f"Wrote {len(df)} rows to {args.output}")

    print(f"Bets: {summary['bets']}  Volume: {format_credits(summary['total_volume'])}")
    print(f"Final probability: {format_probability(summary['final_probability'])} "
          f"(range {format_probability(summary['min_probability'])}-{format_probability(summary['max_probability'])})")
    print(f"Odds: yes {summary['yes_odds']:.2f} / no {summary['no_odds']:.2f}")
    print(f"Depth at 5% slippage: yes {format_credits(summary['yes_depth'])} / no {format_credits(summary['no_depth'])}")
    if 'recommendation' in summary:
        print(f"Arbitrage: {summary['recommendation']} (edge {summary['expected_value']:.4f})")
