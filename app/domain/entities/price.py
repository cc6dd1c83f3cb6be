from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class PriceBreakdown:
    base_price: Decimal
    travel_fee: Decimal
    platform_fee: Decimal
    total: Decimal
