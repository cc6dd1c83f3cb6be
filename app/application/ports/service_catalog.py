from __future__ import annotations

from abc import ABC, abstractmethod

from app.domain.entities.service import Category, ServiceRef


class ServiceCatalogPort(ABC):
    @abstractmethod
    async def get_service_categories(self) -> list[Category]:
        raise NotImplementedError

    @abstractmethod
    async def get_services_by_category(self, category: str) -> list[ServiceRef]:
        """Services offered in a category. Empty list for unknown categories."""
        raise NotImplementedError
