"""Compliance module for the regulatory record attached to each asset.

An asset has at most one compliance record. Creating a second one for the
same asset fails with ComplianceAlreadyExistsError.
"""

import logging
from typing import Any, Dict, Union

from assets import AssetNotFoundError
from errors import ConflictError, DomainError, NotFoundError, parse_model, reject_nulls
from models import (
    COMPLIANCE_REQUIRED_FIELDS, Compliance, ComplianceCreate, ComplianceUpdate
)
from storage import DuplicateKeyError, Storage

from .templates import (
    CUSTOM_TEMPLATE, JURISDICTIONS, estimated_readiness, guidance_for,
    template_catalog, templates_for
)

logger = logging.getLogger(__name__)

INVALID_COMPLIANCE = "Invalid compliance data"


class ComplianceError(DomainError):
    """Base exception for compliance operations."""
    pass


class ComplianceNotFoundError(ComplianceError, NotFoundError):
    """Raised when a compliance record is not found."""

    def __init__(self, message: str = "Compliance record not found"):
        super().__init__(message)


class ComplianceAlreadyExistsError(ComplianceError, ConflictError):
    """Raised when the asset already has a compliance record."""

    def __init__(self, message: str = "Compliance record already exists for this asset"):
        super().__init__(message)


class ComplianceManager:
    """Manager class for handling compliance operations."""

    def __init__(self, storage: Storage):
        self.storage = storage

    async def get_compliance_for_asset(self, asset_id: int) -> Compliance:
        """Get the compliance record of an asset.

        Raises:
            ComplianceNotFoundError: If the asset has no record
        """
        record = await self.storage.get_compliance_by_asset_id(asset_id)
        if record is None:
            raise ComplianceNotFoundError()
        return record

    async def create_compliance(self, data: Union[ComplianceCreate, Dict[str, Any]]) -> Compliance:
        """Create the compliance record for an asset.

        Args:
            data: ComplianceCreate or raw camelCase mapping

        Returns:
            The stored record

        Raises:
            ValidationError: If the data is malformed
            AssetNotFoundError: If assetId does not resolve
            ComplianceAlreadyExistsError: If the asset already has a record
        """
        record_data = parse_model(ComplianceCreate, data, INVALID_COMPLIANCE)

        if await self.storage.get_asset(record_data.asset_id) is None:
            raise AssetNotFoundError()
        if await self.storage.get_compliance_by_asset_id(record_data.asset_id):
            raise ComplianceAlreadyExistsError()

        try:
            record = await self.storage.create_compliance(record_data)
        except DuplicateKeyError as e:
            raise ComplianceAlreadyExistsError() from e

        logger.info(f"Created compliance record {record.id} for asset {record.asset_id}")
        return record

    async def update_compliance(self, compliance_id: int,
                                data: Union[ComplianceUpdate, Dict[str, Any]]) -> Compliance:
        """Apply a partial update to a compliance record.

        Raises:
            ValidationError: If the changes are malformed
            ComplianceNotFoundError: If the record does not exist
        """
        update = parse_model(ComplianceUpdate, data, INVALID_COMPLIANCE)
        changes = update.model_dump(exclude_unset=True)
        reject_nulls(changes, COMPLIANCE_REQUIRED_FIELDS, INVALID_COMPLIANCE)

        if await self.storage.get_compliance(compliance_id) is None:
            raise ComplianceNotFoundError()

        record = await self.storage.update_compliance(compliance_id, changes)
        if record is None:
            raise ComplianceNotFoundError()
        logger.info(f"Updated compliance record {compliance_id}")
        return record


__all__ = [
    'ComplianceManager', 'ComplianceError', 'ComplianceNotFoundError',
    'ComplianceAlreadyExistsError', 'CUSTOM_TEMPLATE', 'JURISDICTIONS',
    'estimated_readiness', 'guidance_for', 'template_catalog', 'templates_for'
]
