"""Interface for AI profile persistence."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from domain.models import AIProfile


class ProfileStore(ABC):
    """Repository for reusable AI personas used by the planning aid."""

    @abstractmethod
    def get(self, profile_id: int) -> Optional[AIProfile]:
        pass

    @abstractmethod
    def get_by_name(self, name: str) -> Optional[AIProfile]:
        pass

    @abstractmethod
    def list(self) -> List[AIProfile]:
        pass

    @abstractmethod
    def upsert(self, profile: AIProfile) -> AIProfile:
        """
        Insert a profile, or update the existing one with the same id or name.

        Returns:
            The stored profile.
        """
        pass

    @abstractmethod
    def delete(self, profile_id: int) -> bool:
        pass
