from __future__ import annotations

from abc import ABC, abstractmethod


class NotifierPort(ABC):
    @abstractmethod
    def notify(self, session_id: str, message: str, level: str = "info") -> None:
        """Surface a user-visible notice. Level is one of info, success, warning, error."""
        raise NotImplementedError
