import pytest
from decimal import Decimal
from typing import List

from bench.engine.errors import (
    InvalidAmountError,
    InvalidPositionError,
    InvalidProbabilityError,
    InvalidSideError,
)
from bench.engine.settlement import (
    calculate_payout,
    calculate_potential_payout,
    position_wins,
    settle_positions,
)
from bench.engine.state import Position


def make_position(position_id: str, user_id: str = 'user1', option_id: str = 'spain', side: str = 'yes',
                  stake: float = 100, probability_at_bet: float = 0.4) -> Position:
    return {
        'position_id': position_id,
        'user_id': user_id,
        'market_id': 'world-cup',
        'option_id': option_id,
        'side': side,
        'stake': stake,
        'probability_at_bet': probability_at_bet,
        'settled': False,
        'payout': None,
    }


@pytest.fixture
def mixed_positions() -> List[Position]:
    return [
        make_position('p1', 'user1', 'spain', 'yes', 100, 0.4),
        make_position('p2', 'user2', 'brazil', 'yes', 50, 0.3),
        make_position('p3', 'user2', 'brazil', 'no', 70, 0.3),
        make_position('p4', 'user3', 'spain', 'no', 80, 0.4),
    ]


@pytest.mark.parametrize("option_id,side,expected", [
    ('spain', 'yes', True),
    ('spain', 'no', False),
    ('brazil', 'yes', False),
    ('brazil', 'no', True),
])
def test_position_wins(option_id, side, expected):
    assert position_wins(option_id, side, 'spain') is expected


def test_winning_yes_payout():
    result = settle_positions([make_position('p1')], 'spain')
    assert result['payouts']['p1'] == Decimal('250')


def test_losing_payout_is_zero():
    result = settle_positions([make_position('p1')], 'brazil')
    assert result['payouts']['p1'] == Decimal('0')
    assert result['balance_deltas']['user1'] == Decimal('0')


def test_low_probability_is_clamped():
    result = settle_positions([make_position('p1', probability_at_bet=0.005)], 'spain')
    assert result['payouts']['p1'] == Decimal('10000')


def test_high_probability_is_clamped():
    # 100 / 0.99 = 101.0101 -> 101
    result = settle_positions([make_position('p1', probability_at_bet=0.999)], 'spain')
    assert result['payouts']['p1'] == Decimal('101')


def test_no_side_uses_complement_probability():
    # no on brazil at 0.3 wins when spain wins: 70 / 0.7 = 100
    result = settle_positions([make_position('p3', 'user2', 'brazil', 'no', 70, 0.3)], 'spain')
    assert result['payouts']['p3'] == Decimal('100')


def test_no_side_clamped_when_option_was_near_certain():
    result = settle_positions([make_position('p1', side='no', option_id='brazil', probability_at_bet=1)], 'spain')
    assert result['payouts']['p1'] == Decimal('10000')


def test_payout_rounds_half_up():
    # 1 / 0.4 = 2.5
    assert calculate_payout(1, Decimal('0.4'), 'yes', won=True) == Decimal('3')
    # 3 / 0.4 = 7.5
    assert calculate_payout(3, Decimal('0.4'), 'yes', won=True) == Decimal('8')


def test_calculate_payout_loser():
    assert calculate_payout(100, Decimal('0.4'), 'yes', won=False) == Decimal('0')


def test_aggregation_per_user():
    positions = [
        make_position('p1', 'user1', probability_at_bet=0.4),
        make_position('p2', 'user1', probability_at_bet=0.005),
    ]
    result = settle_positions(positions, 'spain')
    assert result['payouts'] == {'p1': Decimal('250'), 'p2': Decimal('10000')}
    assert result['balance_deltas'] == {'user1': Decimal('10250')}


def test_mixed_market(mixed_positions):
    result = settle_positions(mixed_positions, 'spain')
    assert result['payouts'] == {
        'p1': Decimal('250'),
        'p2': Decimal('0'),
        'p3': Decimal('100'),
        'p4': Decimal('0'),
    }
    assert result['balance_deltas'] == {
        'user1': Decimal('250'),
        'user2': Decimal('100'),
        'user3': Decimal('0'),
    }
    assert sum(result['balance_deltas'].values()) == sum(result['payouts'].values())


def test_settled_copies_and_inputs_untouched(mixed_positions):
    result = settle_positions(mixed_positions, 'spain')
    assert [p['position_id'] for p in result['settled_positions']] == ['p1', 'p2', 'p3', 'p4']
    for settled in result['settled_positions']:
        assert settled['settled'] is True
        assert settled['payout'] == float(result['payouts'][settled['position_id']])
    for untouched in mixed_positions:
        assert untouched['settled'] is False
        assert untouched['payout'] is None


def test_empty_settlement():
    result = settle_positions([], 'spain')
    assert result == {'payouts': {}, 'balance_deltas': {}, 'settled_positions': []}


@pytest.mark.parametrize("probability", [-0.1, 1.5, float('nan'), None])
def test_invalid_probability_fails_whole_batch(mixed_positions, probability):
    mixed_positions.append(make_position('bad', 'user9', probability_at_bet=probability))
    with pytest.raises(InvalidProbabilityError, match="bad"):
        settle_positions(mixed_positions, 'spain')


@pytest.mark.parametrize("stake", [0, -10, float('inf')])
def test_invalid_stake_rejected(stake):
    with pytest.raises(InvalidAmountError):
        settle_positions([make_position('p1', stake=stake)], 'spain')


def test_invalid_side_rejected():
    with pytest.raises(InvalidSideError):
        settle_positions([make_position('p1', side='maybe')], 'spain')


def test_already_settled_position_rejected():
    position = make_position('p1')
    position['settled'] = True
    with pytest.raises(InvalidPositionError, match="already settled"):
        settle_positions([position], 'spain')


def test_duplicate_position_rejected():
    with pytest.raises(InvalidPositionError, match="more than once"):
        settle_positions([make_position('p1'), make_position('p1')], 'spain')


@pytest.mark.parametrize("field", ['user_id', 'option_id'])
def test_position_missing_owner_or_option_fails_whole_batch(mixed_positions, field):
    broken = make_position('p5')
    del broken[field]
    mixed_positions.append(broken)
    with pytest.raises(InvalidPositionError, match=f"p5 has no {field}"):
        settle_positions(mixed_positions, 'spain')


def test_winning_option_required():
    with pytest.raises(InvalidPositionError):
        settle_positions([make_position('p1')], '')


def test_custom_clamp_bounds():
    result = settle_positions([make_position('p1', probability_at_bet=0.01)], 'spain',
                              min_probability=Decimal('0.05'), max_probability=Decimal('0.95'))
    assert result['payouts']['p1'] == Decimal('2000')


def test_potential_payout_is_unrounded():
    assert calculate_potential_payout(100, Decimal('0.3'), 'yes') == Decimal(100) / Decimal('0.3')
    assert calculate_potential_payout(70, Decimal('0.3'), 'no') == Decimal('100')
    assert calculate_potential_payout(100, Decimal('0.001'), 'yes') == Decimal('10000')


def test_potential_payout_validates_inputs():
    with pytest.raises(InvalidAmountError):
        calculate_potential_payout(0, Decimal('0.3'), 'yes')
    with pytest.raises(InvalidProbabilityError):
        calculate_potential_payout(10, Decimal('1.3'), 'yes')
