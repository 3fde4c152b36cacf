"""Regulatory updates module.

Updates are read-only through the API. Expiry is advisory: the manager
returns expired updates too, callers filter with ``active_updates``.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

from errors import DomainError, NotFoundError, parse_model
from models import RegulatoryUpdate, RegulatoryUpdateCreate
from storage import Storage

logger = logging.getLogger(__name__)


class RegulatoryUpdateError(DomainError):
    """Base exception for regulatory update operations."""
    pass


class RegulatoryUpdateNotFoundError(RegulatoryUpdateError, NotFoundError):
    """Raised when a regulatory update is not found."""

    def __init__(self, message: str = "Regulatory update not found"):
        super().__init__(message)


def active_updates(updates: Iterable[RegulatoryUpdate],
                   now: Optional[datetime] = None) -> List[RegulatoryUpdate]:
    """Drop updates whose expiry date has passed.

    Args:
        updates: Updates to filter
        now: Reference time, defaults to the current UTC time

    Returns:
        Updates without an expiry date or expiring after ``now``
    """
    now = now or datetime.now(timezone.utc)
    active = []
    for update in updates:
        expiry = update.expiry_date
        if expiry is not None and expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=timezone.utc)
        if expiry is None or expiry > now:
            active.append(update)
    return active


class RegulatoryUpdateManager:
    """Manager class for handling regulatory updates."""

    def __init__(self, storage: Storage):
        self.storage = storage

    async def get_all(self) -> List[RegulatoryUpdate]:
        return await self.storage.get_all_regulatory_updates()

    async def get(self, update_id: int) -> RegulatoryUpdate:
        update = await self.storage.get_regulatory_update(update_id)
        if update is None:
            raise RegulatoryUpdateNotFoundError()
        return update

    async def get_by_jurisdiction(self, jurisdiction: str) -> List[RegulatoryUpdate]:
        return await self.storage.get_regulatory_updates_by_jurisdiction(jurisdiction)

    async def create(self, data: Union[RegulatoryUpdateCreate, Dict[str, Any]]) -> RegulatoryUpdate:
        """Publish a regulatory update.

        Raises:
            ValidationError: If the data is malformed
        """
        update_data = parse_model(RegulatoryUpdateCreate, data, "Invalid regulatory update data")
        update = await self.storage.create_regulatory_update(update_data)
        logger.info(f"Published regulatory update {update.id} for {update.jurisdiction}")
        return update


__all__ = [
    'RegulatoryUpdateManager', 'RegulatoryUpdateError',
    'RegulatoryUpdateNotFoundError', 'active_updates'
]
