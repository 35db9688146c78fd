import pytest
from typing import Any, Dict, List
from unittest.mock import patch

from bench.config import get_default_engine_params
from bench.engine.errors import InvalidProbabilityError, MarketStateError
from bench.services.errors import NotFoundError, PermissionDeniedError
from bench.services.settlement import settle_market

@pytest.fixture
def market() -> Dict[str, Any]:
    return {'market_id': 'm1', 'title': 'World Cup Winner', 'status': 'closed', 'close_at_ms': 500,
            'created_at_ms': 0, 'updated_at_ms': 500}

@pytest.fixture
def positions() -> List[Dict[str, Any]]:
    base = {'market_id': 'm1', 'settled': False, 'payout': None}
    return [
        {**base, 'position_id': 'p1', 'user_id': 'alice', 'option_id': 'spain', 'side': 'yes',
         'stake': 100.0, 'probability_at_bet': 0.4},
        {**base, 'position_id': 'p2', 'user_id': 'alice', 'option_id': 'spain', 'side': 'yes',
         'stake': 100.0, 'probability_at_bet': 0.005},
        {**base, 'position_id': 'p3', 'user_id': 'bob', 'option_id': 'brazil', 'side': 'yes',
         'stake': 50.0, 'probability_at_bet': 0.3},
    ]

@pytest.fixture
def store(market, positions):
    options = [{'option_id': 'spain'}, {'option_id': 'brazil'}]
    with patch('bench.services.markets.get_admin_uids', return_value=['admin']), \
         patch('bench.services.markets.fetch_market', return_value=market) as fetch_market, \
         patch('bench.services.settlement.fetch_options', return_value=options), \
         patch('bench.services.settlement.fetch_unsettled_positions', return_value=positions) as fetch_positions, \
         patch('bench.services.settlement.load_engine_params', side_effect=get_default_engine_params), \
         patch('bench.services.settlement.get_current_ms', return_value=9_000), \
         patch('bench.services.settlement.update_market') as update_market, \
         patch('bench.services.settlement.commit_settlement') as commit_settlement:
        yield {
            'fetch_market': fetch_market,
            'fetch_unsettled_positions': fetch_positions,
            'update_market': update_market,
            'commit_settlement': commit_settlement,
        }

def test_settle_closed_market(store):
    result = settle_market('admin', 'm1', 'spain')

    store['update_market'].assert_not_called()
    store['commit_settlement'].assert_called_once()
    market_id, winner, updated_at_ms, position_payouts, balance_increments = store['commit_settlement'].call_args.args
    assert market_id == 'm1'
    assert winner == 'spain'
    assert updated_at_ms == 9_000
    assert position_payouts == [
        {'position_id': 'p1', 'payout': 250.0},
        {'position_id': 'p2', 'payout': 10000.0},
        {'position_id': 'p3', 'payout': 0.0},
    ]
    # bob lost and gets no balance write
    assert balance_increments == [{'user_id': 'alice', 'amount': 10250.0}]
    assert result == {'settled_positions': 3, 'total_payout': 10250.0}

def test_settle_open_market_closes_it_first(store, market):
    market['status'] = 'open'
    settle_market('admin', 'm1', 'spain')
    store['update_market'].assert_called_once_with('m1', {'status': 'closed', 'updated_at_ms': 9_000})
    store['commit_settlement'].assert_called_once()

def test_settle_market_without_positions(store):
    store['fetch_unsettled_positions'].return_value = []
    result = settle_market('admin', 'm1', 'brazil')
    assert result == {'settled_positions': 0, 'total_payout': 0.0}
    assert store['commit_settlement'].call_args.args[3:] == ([], [])

def test_settle_requires_admin(store):
    with pytest.raises(PermissionDeniedError) as exc:
        settle_market('mallory', 'm1', 'spain')
    assert exc.value.code == 'permission-denied'
    store['commit_settlement'].assert_not_called()

def test_settle_twice_rejected(store, market):
    market['status'] = 'settled'
    with pytest.raises(MarketStateError):
        settle_market('admin', 'm1', 'spain')
    store['fetch_unsettled_positions'].assert_not_called()

def test_settle_unknown_market(store):
    store['fetch_market'].return_value = None
    with pytest.raises(NotFoundError, match="Market not found: m1"):
        settle_market('admin', 'm1', 'spain')

def test_settle_unknown_winning_option(store):
    with pytest.raises(NotFoundError, match="Option not found: argentina"):
        settle_market('admin', 'm1', 'argentina')
    store['commit_settlement'].assert_not_called()

def test_settle_missing_fields(store):
    with pytest.raises(ValueError, match="Missing required fields"):
        settle_market('admin', 'm1', '')

def test_bad_position_fails_whole_settlement(store, positions):
    positions[2]['probability_at_bet'] = 1.7
    with pytest.raises(InvalidProbabilityError):
        settle_market('admin', 'm1', 'spain')
    store['commit_settlement'].assert_not_called()
