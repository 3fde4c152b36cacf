"""Persistence store for users, assets, compliance records, transactions and regulatory updates.

``Storage`` is the repository interface the managers are written against.
Two adapters implement it:

- ``storage.memory.MemStorage``: dicts keyed by integer id, for tests and demos
- ``storage.postgres.PostgresStorage``: asyncpg-backed tables

Every ``create_*`` fills absent optional fields with their defaults and stamps
timestamps; every ``update_*`` takes a snake_case mapping of the fields to
overwrite and returns the merged record, or None when the id is unknown.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from models import (
    Asset, AssetCreate, Compliance, ComplianceCreate, RegulatoryUpdate,
    RegulatoryUpdateCreate, Transaction, TransactionCreate, User, UserCreate
)

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Base exception for storage errors."""
    pass


class DuplicateKeyError(StorageError):
    """Raised when a write would break a uniqueness constraint."""

    def __init__(self, field: str, value: Any):
        self.field = field
        self.value = value
        super().__init__(f"Duplicate value for {field}: {value!r}")


class Storage(ABC):
    """Repository interface over the five entity collections."""

    backend_name = "unknown"

    # Users

    @abstractmethod
    async def get_user(self, user_id: int) -> Optional[User]:
        pass

    @abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[User]:
        pass

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[User]:
        pass

    @abstractmethod
    async def get_all_users(self) -> List[User]:
        pass

    @abstractmethod
    async def create_user(self, data: UserCreate) -> User:
        """Create a user.

        Raises:
            DuplicateKeyError: If the username or email is taken
        """

    @abstractmethod
    async def update_user(self, user_id: int, changes: Dict[str, Any]) -> Optional[User]:
        pass

    # Assets

    @abstractmethod
    async def get_asset(self, asset_id: int) -> Optional[Asset]:
        pass

    @abstractmethod
    async def get_all_assets(self) -> List[Asset]:
        pass

    @abstractmethod
    async def get_assets_by_user_id(self, user_id: int) -> List[Asset]:
        pass

    @abstractmethod
    async def create_asset(self, data: AssetCreate) -> Asset:
        pass

    @abstractmethod
    async def update_asset(self, asset_id: int, changes: Dict[str, Any]) -> Optional[Asset]:
        pass

    @abstractmethod
    async def delete_asset(self, asset_id: int) -> bool:
        """Delete an asset together with its compliance record and transactions.

        Returns:
            Whether the asset existed
        """

    # Compliance

    @abstractmethod
    async def get_compliance(self, compliance_id: int) -> Optional[Compliance]:
        pass

    @abstractmethod
    async def get_compliance_by_asset_id(self, asset_id: int) -> Optional[Compliance]:
        pass

    @abstractmethod
    async def create_compliance(self, data: ComplianceCreate) -> Compliance:
        """Create a compliance record.

        Raises:
            DuplicateKeyError: If the asset already has one
        """

    @abstractmethod
    async def update_compliance(self, compliance_id: int, changes: Dict[str, Any]) -> Optional[Compliance]:
        pass

    # Transactions

    @abstractmethod
    async def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        pass

    @abstractmethod
    async def get_all_transactions(self) -> List[Transaction]:
        pass

    @abstractmethod
    async def get_transactions_by_asset_id(self, asset_id: int) -> List[Transaction]:
        pass

    @abstractmethod
    async def get_transactions_by_user_id(self, user_id: int) -> List[Transaction]:
        """Transactions where the user is either buyer or seller."""

    @abstractmethod
    async def create_transaction(self, data: TransactionCreate) -> Transaction:
        pass

    @abstractmethod
    async def update_transaction(self, transaction_id: int, changes: Dict[str, Any]) -> Optional[Transaction]:
        pass

    # Regulatory updates

    @abstractmethod
    async def get_regulatory_update(self, update_id: int) -> Optional[RegulatoryUpdate]:
        pass

    @abstractmethod
    async def get_all_regulatory_updates(self) -> List[RegulatoryUpdate]:
        pass

    @abstractmethod
    async def get_regulatory_updates_by_jurisdiction(self, jurisdiction: str) -> List[RegulatoryUpdate]:
        pass

    @abstractmethod
    async def create_regulatory_update(self, data: RegulatoryUpdateCreate) -> RegulatoryUpdate:
        pass

    async def close(self) -> None:
        """Release any resources held by the store."""
        pass


def create_storage(settings: Dict[str, Any]) -> Storage:
    """Build the store selected by the ``storage_backend`` setting.

    Args:
        settings: Validated settings, see config.load_settings_conf

    Returns:
        A MemStorage or PostgresStorage instance

    Raises:
        StorageError: If the backend name is unknown
    """
    backend = settings.get('storage_backend', 'memory')
    if backend == 'memory':
        from .memory import MemStorage
        logger.info("Using in-memory storage")
        return MemStorage()
    if backend == 'postgres':
        from .postgres import PostgresStorage
        logger.info("Using PostgreSQL storage")
        return PostgresStorage(db_url=settings.get('db_url'))
    raise StorageError(f"Unknown storage backend: {backend}")


__all__ = ['Storage', 'StorageError', 'DuplicateKeyError', 'create_storage']
