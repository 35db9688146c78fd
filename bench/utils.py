import time
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, getcontext

import mpmath as mp

getcontext().prec = 28
mp.mp.dps = 30

def get_current_ms() -> int:
    return int(time.time() * 1000)

def to_decimal(value: float | int | str | Decimal) -> Decimal:
    """Converts via str so float inputs keep their shortest repr, not binary noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid number: {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Invalid number: {value!r}")

def round_half_up(amount: Decimal) -> Decimal:
    """Rounds to a whole credit, halves away from zero."""
    return amount.quantize(Decimal('1'), rounding=ROUND_HALF_UP)

def clamp(value: Decimal, low: Decimal, high: Decimal) -> Decimal:
    return min(max(value, low), high)

def safe_divide(num: Decimal, den: Decimal) -> Decimal:
    if den == Decimal(0):
        raise ValueError("Division by zero.")
    return num / den

def decimal_sqrt(d: Decimal) -> Decimal:
    if d < Decimal(0):
        raise ValueError("Cannot take square root of negative value.")
    return Decimal(str(mp.sqrt(mp.mpf(str(d)))))

def relative_close(a: Decimal, b: Decimal, rel_tol: Decimal = Decimal('1e-6')) -> bool:
    scale = max(abs(a), abs(b))
    if scale == 0:
        return True
    return abs(a - b) <= rel_tol * scale

def format_probability(probability: float | Decimal) -> str:
    """Formats a probability in [0, 1] as a whole percentage, e.g. '25%'."""
    pct = round_half_up(to_decimal(probability) * 100)
    return f"{pct}%"

def format_credits(amount: float | Decimal) -> str:
    """Formats credits rounded to whole units with thousands separators, e.g. '1,000'."""
    return f"{int(round_half_up(to_decimal(amount))):,}"
