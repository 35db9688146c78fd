"""Command-line entry points: seed sample markets, simulate bet flow against a pool.

Run as modules, e.g. ``python -m bench.scripts.simulate_market --bets 200``.
"""
