# bench/services/__init__.py

# Glue between the pure engine and the store: each service loads a snapshot,
# runs the engine, and commits the result through bench.db.queries.
from .users import get_or_create_user
from .markets import is_admin, create_market, close_market, get_market_with_options, list_markets
from .bets import quote_bet, place_bet, fetch_user_positions
from .settlement import settle_market
