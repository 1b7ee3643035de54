"""This module contains entity-definitions that constitute the data and state of the market data publisher"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

EQUITY_IDS = range(0, 1000)
BOND_IDS = range(1000, 2000)
FREE_QUOTA = 100
INVALID_REQUEST = "invalid_request"


class Domain(Enum):
    """
    Instrument domain served by a registry.
    The value names the domain-specific metric carried next to the last traded price.
    """
    EQUITY = "lastDayVolume"
    BOND = "bondYield"


class SubscriberType(Enum):
    """Type tag of a subscriber variant as it appears in commands and output lines"""
    PAID = "P"
    FREE = "F"


@dataclass(frozen=True)
class InstrumentRecord:
    """
    InstrumentRecord holds the latest published state of one instrument:
    its last traded price and one domain metric (volume for equities, yield for bonds).
    It is immutable: a price update replaces the whole record.
    """
    last_traded_price: float
    metric: float
    domain: Domain

    @property
    def metric_name(self) -> str:
        return self.domain.value


@dataclass(frozen=True)
class QueryResult:
    """Outcome of a data query. record is set only when success is True"""
    success: bool
    record: Optional[InstrumentRecord] = field(default=None)


QUERY_REJECTED = QueryResult(success=False)


@dataclass(frozen=False)
class Config:
    """
    Config models the tunables of the publisher: quota granted to each free subscriber
    and the instrument id ranges owned by the equity and bond registries.
    """
    free_quota: int = field(default=FREE_QUOTA)
    equity_ids: range = field(default=EQUITY_IDS)
    bond_ids: range = field(default=BOND_IDS)
