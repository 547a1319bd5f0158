"""Interface for YouTube account persistence."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from domain.models import YoutubeAccount


class AccountStore(ABC):
    """
    Repository for per-channel OAuth credential bundles.

    The lifecycle engine only reads accounts; create and delete back the
    user-facing account management.
    """

    @abstractmethod
    def get(self, account_id: int) -> Optional[YoutubeAccount]:
        """
        Fetch an account by id.

        Returns:
            The account, or None if it does not exist.
        """
        pass

    @abstractmethod
    def list(self) -> List[YoutubeAccount]:
        """Fetch all accounts in insertion order."""
        pass

    @abstractmethod
    def create(self, account: YoutubeAccount) -> YoutubeAccount:
        """Persist a new account and return it with its assigned id."""
        pass

    @abstractmethod
    def delete(self, account_id: int) -> bool:
        """
        Delete an account.

        Tasks referencing it keep the dangling id and will fail with
        missing credentials when executed.

        Returns:
            True if an account was deleted.
        """
        pass
