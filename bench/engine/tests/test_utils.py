import pytest
from decimal import Decimal

from bench.utils import (
    clamp,
    decimal_sqrt,
    format_credits,
    format_probability,
    relative_close,
    round_half_up,
    safe_divide,
    to_decimal,
)

def test_to_decimal_uses_shortest_float_repr():
    assert to_decimal(0.1) == Decimal('0.1')
    assert to_decimal('2.50') == Decimal('2.50')
    d = Decimal('3')
    assert to_decimal(d) is d

@pytest.mark.parametrize("value", ['abc', True, None])
def test_to_decimal_rejects_non_numbers(value):
    with pytest.raises(ValueError):
        to_decimal(value)

def test_round_half_up():
    assert round_half_up(Decimal('2.5')) == Decimal('3')
    assert round_half_up(Decimal('3.5')) == Decimal('4')
    assert round_half_up(Decimal('2.49')) == Decimal('2')

def test_clamp():
    assert clamp(Decimal('0.005'), Decimal('0.01'), Decimal('0.99')) == Decimal('0.01')
    assert clamp(Decimal('0.5'), Decimal('0.01'), Decimal('0.99')) == Decimal('0.5')
    assert clamp(Decimal('1'), Decimal('0.01'), Decimal('0.99')) == Decimal('0.99')

def test_safe_divide_zero():
    with pytest.raises(ValueError, match="Division by zero"):
        safe_divide(Decimal(1), Decimal(0))

def test_decimal_sqrt():
    assert decimal_sqrt(Decimal('250000')) == Decimal('500')
    with pytest.raises(ValueError):
        decimal_sqrt(Decimal('-1'))

def test_relative_close():
    assert relative_close(Decimal('250000'), Decimal('250000.0001'))
    assert not relative_close(Decimal('250000'), Decimal('250001'))
    assert relative_close(Decimal(0), Decimal(0))

def test_format_probability():
    assert format_probability(0.25) == "25%"
    assert format_probability(Decimal('0.005')) == "1%"
    assert format_probability(1) == "100%"

def test_format_credits():
    assert format_credits(1000) == "1,000"
    assert format_credits(Decimal('1234567.5')) == "1,234,568"

