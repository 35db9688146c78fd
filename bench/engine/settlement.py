from decimal import Decimal
from typing import Any, Dict, List, Mapping, Sequence

from typing_extensions import TypedDict

from bench.utils import clamp, round_half_up, safe_divide, to_decimal
from .amm_math import validate_amount, validate_probability, validate_side
from .errors import InvalidPositionError
from .state import Position

MIN_PAYOUT_PROBABILITY = Decimal('0.01')
MAX_PAYOUT_PROBABILITY = Decimal('0.99')


class SettlementResult(TypedDict):
    payouts: Dict[str, Decimal]
    balance_deltas: Dict[str, Decimal]
    settled_positions: List[Position]


def position_wins(option_id: str, side: str, winning_option_id: str) -> bool:
    """A yes bet wins when its option wins; a no bet wins when any other option wins."""
    is_winning_option = option_id == winning_option_id
    bet_yes = side == 'yes'
    return (is_winning_option and bet_yes) or (not is_winning_option and not bet_yes)


def effective_probability(probability_at_bet: Decimal, side: str) -> Decimal:
    return probability_at_bet if side == 'yes' else Decimal(1) - probability_at_bet


def calculate_payout(
    stake: float | Decimal,
    probability_at_bet: float | Decimal,
    side: str,
    won: bool,
    min_probability: Decimal = MIN_PAYOUT_PROBABILITY,
    max_probability: Decimal = MAX_PAYOUT_PROBABILITY,
) -> Decimal:
    """stake / clamped effective probability, rounded to whole credits; 0 for a losing position."""
    if not won:
        return Decimal(0)
    p = effective_probability(to_decimal(probability_at_bet), side)
    clamped = clamp(p, to_decimal(min_probability), to_decimal(max_probability))
    return round_half_up(to_decimal(stake) * safe_divide(Decimal(1), clamped))


def calculate_potential_payout(
    stake: float | Decimal,
    probability: float | Decimal,
    side: str,
    min_probability: Decimal = MIN_PAYOUT_PROBABILITY,
    max_probability: Decimal = MAX_PAYOUT_PROBABILITY,
) -> Decimal:
    """Unrounded payout quoted before a bet is placed, with the same clamp as settlement."""
    validate_side(side)
    stake_d = validate_amount(stake)
    p = effective_probability(validate_probability(probability), side)
    clamped = clamp(p, to_decimal(min_probability), to_decimal(max_probability))
    return stake_d / clamped


def _validate_positions(positions: Sequence[Mapping[str, Any]]) -> None:
    seen = set()
    for position in positions:
        position_id = position.get('position_id')
        if position_id is None:
            raise InvalidPositionError("Position without position_id")
        if position_id in seen:
            raise InvalidPositionError(f"Position {position_id} appears more than once")
        seen.add(position_id)
        if position.get('settled'):
            raise InvalidPositionError(f"Position {position_id} is already settled")
        for field in ('user_id', 'option_id'):
            if not position.get(field):
                raise InvalidPositionError(f"Position {position_id} has no {field}")
        validate_side(position.get('side'))
        validate_amount(position.get('stake'))
        validate_probability(position.get('probability_at_bet'), f"probability_at_bet for position {position_id}")


def settle_positions(
    positions: Sequence[Position],
    winning_option_id: str,
    min_probability: float | Decimal = MIN_PAYOUT_PROBABILITY,
    max_probability: float | Decimal = MAX_PAYOUT_PROBABILITY,
) -> SettlementResult:
    """
    Resolve every unsettled position against winning_option_id.

    The whole batch is validated before any payout is computed, so one bad
    position fails the run with nothing settled. Input records are left
    untouched; settled copies are returned in settled_positions.
    """
    if not winning_option_id:
        raise InvalidPositionError("winning_option_id is required")
    _validate_positions(positions)

    min_p = to_decimal(min_probability)
    max_p = to_decimal(max_probability)

    payouts: Dict[str, Decimal] = {}
    balance_deltas: Dict[str, Decimal] = {}
    settled_positions: List[Position] = []

    for position in positions:
        won = position_wins(position['option_id'], position['side'], winning_option_id)
        payout = calculate_payout(
            position['stake'],
            position['probability_at_bet'],
            position['side'],
            won,
            min_p,
            max_p,
        )
        payouts[position['position_id']] = payout

        user_id = position['user_id']
        balance_deltas[user_id] = balance_deltas.get(user_id, Decimal(0)) + payout

        settled = dict(position)
        settled['settled'] = True
        settled['payout'] = float(payout)
        settled_positions.append(settled)

    return {
        'payouts': payouts,
        'balance_deltas': balance_deltas,
        'settled_positions': settled_positions,
    }
