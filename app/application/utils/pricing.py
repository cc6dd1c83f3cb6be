from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from app.domain.entities.price import PriceBreakdown
from app.domain.entities.service import ServiceRef

CENT = Decimal("0.01")


def calculate_total_price(
    service: ServiceRef | None,
    travel_fee: float = 10.0,
    platform_fee_rate: float = 0.10,
) -> PriceBreakdown:
    """Base price plus a flat travel fee and a percentage platform fee."""
    base = Decimal(str(service.base_price if service else 0)).quantize(CENT)
    travel = Decimal(str(travel_fee)).quantize(CENT)
    platform = (base * Decimal(str(platform_fee_rate))).quantize(CENT, rounding=ROUND_HALF_UP)
    return PriceBreakdown(
        base_price=base,
        travel_fee=travel,
        platform_fee=platform,
        total=base + travel + platform,
    )
