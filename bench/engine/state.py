from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from typing_extensions import TypedDict

from bench.utils import to_decimal, relative_close
from .errors import InvalidPoolError, MarketStateError

BetSide = Literal['yes', 'no']
MarketStatus = Literal['open', 'closed', 'settled']

SIDES = ('yes', 'no')

# Allowed forward moves; nothing ever returns to 'open'.
MARKET_TRANSITIONS: Dict[str, tuple] = {
    'open': ('closed', 'settled'),
    'closed': ('settled',),
    'settled': (),
}

K_REL_TOLERANCE = Decimal('1e-6')


@dataclass(frozen=True)
class LiquidityPool:
    """
    Two-sided constant-product reserves for one outcome.

    Construction coerces every field to Decimal and rejects negative or
    non-finite reserves and any k that is not yes_shares * no_shares.
    """
    yes_shares: Decimal
    no_shares: Decimal
    k: Decimal
    liquidity: Decimal

    def __post_init__(self) -> None:
        for name in ('yes_shares', 'no_shares', 'k', 'liquidity'):
            try:
                value = to_decimal(getattr(self, name))
            except ValueError:
                raise InvalidPoolError(f"Pool field {name} is not a number: {getattr(self, name)!r}")
            if not value.is_finite() or value < 0:
                raise InvalidPoolError(f"Pool field {name} must be finite and non-negative, got {value}")
            object.__setattr__(self, name, value)

        product = self.yes_shares * self.no_shares
        if not relative_close(self.k, product, K_REL_TOLERANCE):
            raise InvalidPoolError(
                f"Constant product violated: k={self.k}, yes_shares*no_shares={product}"
            )

    @property
    def total_shares(self) -> Decimal:
        return self.yes_shares + self.no_shares

    @property
    def is_degenerate(self) -> bool:
        return self.k == 0

    @classmethod
    def from_dict(cls, record: Dict[str, Any]) -> 'LiquidityPool':
        try:
            return cls(
                yes_shares=record['yes_shares'],
                no_shares=record['no_shares'],
                k=record['k'],
                liquidity=record['liquidity'],
            )
        except KeyError as e:
            raise InvalidPoolError(f"Pool record missing field {e.args[0]}")

    def to_dict(self) -> Dict[str, float]:
        """JSON-compatible record for the store; floats like the rest of the document."""
        return {
            'yes_shares': float(self.yes_shares),
            'no_shares': float(self.no_shares),
            'k': float(self.k),
            'liquidity': float(self.liquidity),
        }

    def with_reserves(self, yes_shares: Decimal, no_shares: Decimal, added_liquidity: Decimal) -> 'LiquidityPool':
        return replace(
            self,
            yes_shares=yes_shares,
            no_shares=no_shares,
            k=yes_shares * no_shares,
            liquidity=self.liquidity + added_liquidity,
        )


class Position(TypedDict, total=False):
    position_id: str
    user_id: str
    market_id: str
    option_id: str
    option_label: str
    market_title: str
    side: BetSide
    stake: float
    probability_at_bet: float
    settled: bool
    payout: Optional[float]
    created_at_ms: int


class MarketOption(TypedDict, total=False):
    option_id: str
    market_id: str
    label: str
    order: int
    probability: float
    yes_volume: float
    no_volume: float
    yes_shares: float
    no_shares: float
    k: float
    liquidity: float


class Market(TypedDict, total=False):
    market_id: str
    title: str
    description: Optional[str]
    sport: str
    status: MarketStatus
    resolution: Optional[str]
    close_at_ms: int
    created_at_ms: int
    updated_at_ms: int


class MarketWithOptions(Market, total=False):
    options: List[Dict[str, Any]]


def get_pool(option: MarketOption) -> LiquidityPool:
    """Extract the pool stored alongside an option record."""
    return LiquidityPool.from_dict(option)


def transition_market_status(market: Market, new_status: str, now_ms: int) -> Market:
    """
    Return a copy of market moved to new_status.
    Raises MarketStateError for any move the status machine does not allow.
    """
    current = market['status']
    if new_status not in MARKET_TRANSITIONS.get(current, ()):
        raise MarketStateError(market['market_id'], current, f"move to '{new_status}'")
    updated = dict(market)
    updated['status'] = new_status
    updated['updated_at_ms'] = now_ms
    return updated


def assert_market_open(market: Market, now_ms: int) -> None:
    if market['status'] != 'open':
        raise MarketStateError(market['market_id'], market['status'], "accept bets")
    close_at_ms = market.get('close_at_ms')
    if close_at_ms is not None and close_at_ms <= now_ms:
        raise MarketStateError(market['market_id'], market['status'], "accept bets after its close time")
