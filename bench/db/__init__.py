# bench/db/__init__.py

from .queries import (
    get_db,
    load_config,
    load_engine_params,
    update_config_params,
    insert_user,
    fetch_user,
    insert_market,
    fetch_market,
    fetch_markets,
    update_market,
    insert_options,
    fetch_options,
    fetch_option,
    fetch_unsettled_positions,
    fetch_positions,
    commit_bet,
    commit_settlement,
)
