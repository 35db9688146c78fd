from decimal import Decimal
from typing import Any, Dict, Iterable, List, Literal, Mapping, Tuple

from typing_extensions import TypedDict

from bench.utils import to_decimal, safe_divide, decimal_sqrt
from .errors import (
    DegeneratePoolError,
    InvalidAmountError,
    InvalidProbabilityError,
    InvalidSideError,
)
from .state import LiquidityPool, SIDES

ONE = Decimal('1')


class PriceImpact(TypedDict):
    new_probability: Decimal
    old_probability: Decimal
    price_impact: Decimal
    shares: Decimal
    avg_price: Decimal


class BetResult(TypedDict):
    updated_pool: LiquidityPool
    shares: Decimal
    avg_price: Decimal
    old_probability: Decimal
    new_probability: Decimal


class Odds(TypedDict):
    yes_odds: Decimal
    no_odds: Decimal
    yes_implied: Decimal
    no_implied: Decimal


class LiquidityDepth(TypedDict):
    yes_depth: Decimal
    no_depth: Decimal


class SimulationResult(TypedDict):
    final_pool: LiquidityPool
    final_probability: Decimal
    total_volume: Decimal
    price_history: List[Decimal]


class ArbitrageSignal(TypedDict):
    has_arbitrage: bool
    expected_value: Decimal
    recommendation: Literal['buy_yes', 'buy_no', 'none']


def validate_side(side: str) -> None:
    if side not in SIDES:
        raise InvalidSideError(side)


def validate_amount(amount: Any) -> Decimal:
    """Coerce a bet or liquidity amount to Decimal, rejecting <= 0 and non-finite values."""
    try:
        d = to_decimal(amount)
    except ValueError:
        raise InvalidAmountError(amount)
    if not d.is_finite() or d <= 0:
        raise InvalidAmountError(amount)
    return d


def validate_probability(probability: Any, context: str = "probability") -> Decimal:
    try:
        p = to_decimal(probability)
    except ValueError:
        raise InvalidProbabilityError(probability, context)
    if not p.is_finite() or not (Decimal(0) <= p <= ONE):
        raise InvalidProbabilityError(probability, context)
    return p


def initialize_pool(initial_liquidity: float | Decimal = 1000) -> LiquidityPool:
    """
    Split initial_liquidity evenly between the two sides.
    Zero liquidity gives a degenerate pool (k == 0) that probability and bet
    operations reject; callers must seed it before use.
    """
    liquidity = to_decimal(initial_liquidity)
    if not liquidity.is_finite() or liquidity < 0:
        raise InvalidAmountError(initial_liquidity)
    shares = liquidity / 2
    return LiquidityPool(yes_shares=shares, no_shares=shares, k=shares * shares, liquidity=liquidity)


def seed_pool(initial_liquidity: float | Decimal, probability: float | Decimal) -> LiquidityPool:
    """Seed a pool whose implied yes probability equals the given opening probability."""
    liquidity = validate_amount(initial_liquidity)
    p = validate_probability(probability, "opening probability")
    if p in (Decimal(0), ONE):
        raise InvalidProbabilityError(probability, "opening probability")
    yes_shares = liquidity * p
    no_shares = liquidity - yes_shares
    return LiquidityPool(yes_shares=yes_shares, no_shares=no_shares, k=yes_shares * no_shares, liquidity=liquidity)


def calculate_probability(pool: LiquidityPool) -> Decimal:
    """Implied yes probability: yes_shares / (yes_shares + no_shares)."""
    total = pool.total_shares
    if total == 0:
        raise DegeneratePoolError()
    return pool.yes_shares / total


def _apply_constant_product(pool: LiquidityPool, side: str, amount: Decimal) -> Tuple[Decimal, Decimal, Decimal]:
    """
    Add amount to the bought side and shrink the other side so the product stays k.
    Returns (new_yes_shares, new_no_shares, shares_received).

    Amounts too small to move the reserves at working precision, or so large
    that the opposite reserve would be drained, are rejected.
    """
    if pool.is_degenerate:
        raise DegeneratePoolError("Pool has zero constant product; seed liquidity before betting.")
    if side == 'yes':
        new_yes = pool.yes_shares + amount
        new_no = safe_divide(pool.k, new_yes)
        shares = pool.no_shares - new_no
        opposite = pool.no_shares
    else:
        new_no = pool.no_shares + amount
        new_yes = safe_divide(pool.k, new_no)
        shares = pool.yes_shares - new_yes
        opposite = pool.yes_shares
    if shares <= 0:
        raise InvalidAmountError(amount, "Too small to move the pool.")
    if shares >= opposite or new_yes == 0 or new_no == 0:
        raise InvalidAmountError(amount, "Would drain the opposite reserve.")
    new_probability = new_yes / (new_yes + new_no)
    if new_probability in (Decimal(0), ONE):
        raise InvalidAmountError(amount, "Would push the probability to 0 or 1.")
    return new_yes, new_no, shares


def calculate_price_impact(pool: LiquidityPool, side: str, amount: float | Decimal) -> PriceImpact:
    """
    Simulate a bet without touching the pool.

    The bettor's shares are the reduction of the opposite reserve; the average
    price is amount / shares.
    """
    validate_side(side)
    amount_d = validate_amount(amount)
    old_probability = calculate_probability(pool)

    new_yes, new_no, shares = _apply_constant_product(pool, side, amount_d)

    new_probability = new_yes / (new_yes + new_no)
    return {
        'new_probability': new_probability,
        'old_probability': old_probability,
        'price_impact': abs(new_probability - old_probability),
        'shares': shares,
        'avg_price': safe_divide(amount_d, shares),
    }


def execute_bet(pool: LiquidityPool, side: str, amount: float | Decimal) -> BetResult:
    """Apply a bet, returning a new pool with k recomputed and liquidity increased by amount."""
    impact = calculate_price_impact(pool, side, amount)
    amount_d = to_decimal(amount)
    new_yes, new_no, _ = _apply_constant_product(pool, side, amount_d)
    return {
        'updated_pool': pool.with_reserves(new_yes, new_no, amount_d),
        'shares': impact['shares'],
        'avg_price': impact['avg_price'],
        'old_probability': impact['old_probability'],
        'new_probability': impact['new_probability'],
    }


def calculate_bet_for_target(pool: LiquidityPool, target_probability: float | Decimal, side: str) -> Decimal:
    """
    Stake needed to move the yes probability to target_probability by betting on side.

    Holding k fixed, a yes bet reaches p when new_yes**2 == k * p / (1 - p);
    a no bet when new_no**2 == k * (1 - p) / p. Returns 0 when the target is
    on the wrong side of the current probability for that side.
    """
    validate_side(side)
    p = validate_probability(target_probability, "target probability")
    if p in (Decimal(0), ONE):
        raise InvalidProbabilityError(target_probability, "target probability")
    current = calculate_probability(pool)

    if (side == 'yes' and p < current) or (side == 'no' and p > current):
        return Decimal(0)
    if pool.is_degenerate:
        raise DegeneratePoolError("Pool has zero constant product; seed liquidity before betting.")

    if side == 'yes':
        target_yes = decimal_sqrt(pool.k * p / (ONE - p))
        bet_amount = target_yes - pool.yes_shares
    else:
        target_no = decimal_sqrt(pool.k * (ONE - p) / p)
        bet_amount = target_no - pool.no_shares
    return max(Decimal(0), bet_amount)


def get_odds(pool: LiquidityPool) -> Odds:
    """Decimal odds (1 / probability) and implied probabilities for both sides."""
    probability = calculate_probability(pool)
    if probability in (Decimal(0), ONE):
        raise DegeneratePoolError("Pool is one-sided; odds are unbounded.")
    return {
        'yes_odds': ONE / probability,
        'no_odds': ONE / (ONE - probability),
        'yes_implied': probability,
        'no_implied': ONE - probability,
    }


def _max_bet_within_slippage(
    pool: LiquidityPool,
    side: str,
    max_slippage: Decimal,
    resolution: Decimal,
    max_iterations: int,
) -> Decimal:
    low = Decimal(0)
    high = pool.liquidity
    max_bet = Decimal(0)
    iterations = 0
    while high - low > resolution and iterations < max_iterations:
        mid = (low + high) / 2
        impact = calculate_price_impact(pool, side, mid)
        if impact['price_impact'] <= max_slippage:
            max_bet = mid
            low = mid
        else:
            high = mid
        iterations += 1
    return max_bet


def calculate_liquidity_depth(
    pool: LiquidityPool,
    max_slippage: float | Decimal = Decimal('0.05'),
    resolution: float | Decimal = Decimal('1'),
    max_iterations: int = 100,
) -> LiquidityDepth:
    """
    Largest bet per side whose price impact stays within max_slippage.

    Bisection over [0, pool.liquidity]; stops once the bracket is no wider than
    resolution or after max_iterations halvings.
    """
    slippage = validate_probability(max_slippage, "max slippage")
    resolution_d = validate_amount(resolution)
    if max_iterations < 1:
        raise ValueError("max_iterations must be >=1")
    calculate_probability(pool)

    return {
        'yes_depth': _max_bet_within_slippage(pool, 'yes', slippage, resolution_d, max_iterations),
        'no_depth': _max_bet_within_slippage(pool, 'no', slippage, resolution_d, max_iterations),
    }


def simulate_bets(initial_pool: LiquidityPool, bets: Iterable[Mapping[str, Any]]) -> SimulationResult:
    """Fold execute_bet over bets in order; price_history starts with the opening probability."""
    pool = initial_pool
    total_volume = Decimal(0)
    price_history: List[Decimal] = [calculate_probability(pool)]

    for bet in bets:
        result = execute_bet(pool, bet['side'], bet['amount'])
        pool = result['updated_pool']
        total_volume += to_decimal(bet['amount'])
        price_history.append(result['new_probability'])

    return {
        'final_pool': pool,
        'final_probability': calculate_probability(pool),
        'total_volume': total_volume,
        'price_history': price_history,
    }


def calculate_arbitrage(
    market_probability: float | Decimal,
    true_probability: float | Decimal,
    threshold: float | Decimal = Decimal('0.05'),
) -> ArbitrageSignal:
    """Flag a mispricing larger than threshold and recommend buying the underpriced side."""
    market_p = validate_probability(market_probability, "market probability")
    true_p = validate_probability(true_probability, "true probability")
    threshold_d = validate_probability(threshold, "arbitrage threshold")
    if threshold_d == ONE:
        raise InvalidProbabilityError(threshold, "arbitrage threshold")
    diff = true_p - market_p

    if diff > threshold_d:
        return {'has_arbitrage': True, 'expected_value': diff, 'recommendation': 'buy_yes'}
    if diff < -threshold_d:
        return {'has_arbitrage': True, 'expected_value': abs(diff), 'recommendation': 'buy_no'}
    return {'has_arbitrage': False, 'expected_value': Decimal(0), 'recommendation': 'none'}


def calculate_expected_payout(shares: float | Decimal, probability: float | Decimal, side: str) -> Decimal:
    """Expected value of holding shares that each pay 1 if the side wins."""
    validate_side(side)
    p = validate_probability(probability)
    win_probability = p if side == 'yes' else ONE - p
    return to_decimal(shares) * win_probability


def pool_summary(
    pool: LiquidityPool,
    max_slippage: float | Decimal = Decimal('0.05'),
    resolution: float | Decimal = Decimal('1'),
    max_iterations: int = 100,
) -> Dict[str, Any]:
    """Probability, odds and depth for display next to an option."""
    odds = get_odds(pool)
    depth = calculate_liquidity_depth(pool, max_slippage, resolution, max_iterations)
    return {
        'probability': odds['yes_implied'],
        'yes_odds': odds['yes_odds'],
        'no_odds': odds['no_odds'],
        'yes_depth': depth['yes_depth'],
        'no_depth': depth['no_depth'],
    }
