from __future__ import annotations

from abc import ABC, abstractmethod

from app.domain.entities.appointment import SearchRequest
from app.domain.entities.stylist import CandidateStylist


class StylistSearchPort(ABC):
    @abstractmethod
    async def search_stylists(self, request: SearchRequest) -> list[CandidateStylist]:
        """
        Find stylists offering the service near the given coordinates.

        Results are fresh instances on every call; ranking fields are unset.
        Raises MarketplaceUpstreamError when the source is unreachable.
        """
        raise NotImplementedError
