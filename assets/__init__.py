"""Assets module for managing tokenized assets.

This module provides functionality for:
- Creating assets for existing users
- Keeping tokenizedValue consistent with value and tokenized
- Validating per-type metadata
- Searching the asset list the way the marketplace filters it
"""

import logging
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError as SchemaValidationError

from errors import (
    DomainError, NotFoundError, UnexpectedError, ValidationError, field_errors,
    parse_model, reject_nulls
)
from models import (
    ASSET_REQUIRED_FIELDS, Asset, AssetCreate, AssetUpdate,
    derive_tokenized_value, tokenized_value_matches, validate_metadata
)
from storage import Storage, StorageError
from users import UserNotFoundError

logger = logging.getLogger(__name__)

INVALID_ASSET = "Invalid asset data"


class AssetError(DomainError):
    """Base exception for asset operations."""
    pass


class AssetNotFoundError(AssetError, NotFoundError):
    """Raised when an asset is not found."""

    def __init__(self, message: str = "Asset not found"):
        super().__init__(message)


def _checked_metadata(asset_type: str, metadata: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    try:
        return validate_metadata(asset_type, metadata)
    except SchemaValidationError as e:
        problems = field_errors(e)
        for problem in problems:
            problem['field'] = f"metadata.{problem['field']}" if problem['field'] else 'metadata'
        raise ValidationError(INVALID_ASSET, problems)


def _mismatch(tokenized_value: float, expected: float) -> ValidationError:
    return ValidationError(INVALID_ASSET, [{
        'field': 'tokenizedValue',
        'message': f"tokenizedValue {tokenized_value} does not equal value x tokenized / 100 ({expected})",
        'type': 'tokenized_value_mismatch'
    }])


class AssetManager:
    """Manager class for handling asset operations."""

    def __init__(self, storage: Storage):
        self.storage = storage

    async def get_asset(self, asset_id: int) -> Asset:
        asset = await self.storage.get_asset(asset_id)
        if asset is None:
            raise AssetNotFoundError()
        return asset

    async def get_all_assets(self) -> List[Asset]:
        return await self.storage.get_all_assets()

    async def get_assets_by_user(self, user_id: int) -> List[Asset]:
        return await self.storage.get_assets_by_user_id(user_id)

    async def create_asset(self, data: Union[AssetCreate, Dict[str, Any]]) -> Asset:
        """Create a new asset.

        tokenizedValue is derived from value and tokenized when absent; a
        supplied tokenizedValue must agree with them.

        Args:
            data: AssetCreate or raw camelCase mapping

        Returns:
            The stored asset

        Raises:
            ValidationError: If the data is malformed, the metadata does not
                fit the asset type or tokenizedValue is inconsistent
            UserNotFoundError: If userId does not resolve
        """
        asset_data = parse_model(AssetCreate, data, INVALID_ASSET)

        if await self.storage.get_user(asset_data.user_id) is None:
            raise UserNotFoundError()

        metadata = _checked_metadata(asset_data.type, asset_data.metadata)

        tokenized = asset_data.tokenized if asset_data.tokenized is not None else 0
        expected = derive_tokenized_value(asset_data.value, tokenized)
        if asset_data.tokenized_value is not None and not tokenized_value_matches(
            asset_data.value, tokenized, asset_data.tokenized_value
        ):
            raise _mismatch(asset_data.tokenized_value, expected)

        asset = await self.storage.create_asset(asset_data.model_copy(update={
            'tokenized': tokenized,
            'tokenized_value': expected,
            'metadata': metadata
        }))
        logger.info(f"Created asset {asset.id} ({asset.name}) for user {asset.user_id}")
        return asset

    async def update_asset(self, asset_id: int, data: Union[AssetUpdate, Dict[str, Any]]) -> Asset:
        """Apply a partial update, then recompute tokenizedValue.

        Args:
            asset_id: Asset to update
            data: AssetUpdate or raw camelCase mapping of the fields to change

        Returns:
            The merged asset

        Raises:
            ValidationError: If the changes are malformed or inconsistent
            AssetNotFoundError: If the asset does not exist
            UnexpectedError: If the store rejects the change
        """
        update = parse_model(AssetUpdate, data, INVALID_ASSET)
        changes = update.model_dump(exclude_unset=True)
        reject_nulls(changes, ASSET_REQUIRED_FIELDS, INVALID_ASSET)

        existing = await self.get_asset(asset_id)

        if 'metadata' in changes or 'type' in changes:
            asset_type = changes.get('type', existing.type)
            metadata = changes['metadata'] if 'metadata' in changes else existing.metadata
            changes['metadata'] = _checked_metadata(asset_type, metadata)

        value = changes.get('value', existing.value)
        tokenized = changes.get('tokenized', existing.tokenized)
        expected = derive_tokenized_value(value, tokenized)
        if 'tokenized_value' in changes and not tokenized_value_matches(
            value, tokenized, changes['tokenized_value']
        ):
            raise _mismatch(changes['tokenized_value'], expected)
        changes['tokenized_value'] = expected

        try:
            asset = await self.storage.update_asset(asset_id, changes)
        except StorageError as e:
            logger.error(f"Store rejected update of asset {asset_id}: {e}")
            raise UnexpectedError("Failed to update asset") from e
        if asset is None:
            raise AssetNotFoundError()
        logger.info(f"Updated asset {asset_id}: {', '.join(sorted(changes))}")
        return asset

    async def delete_asset(self, asset_id: int) -> None:
        """Delete an asset with its compliance record and transactions.

        Raises:
            AssetNotFoundError: If the asset does not exist
        """
        if not await self.storage.delete_asset(asset_id):
            raise AssetNotFoundError()
        logger.info(f"Deleted asset {asset_id}")

    async def search_assets(
        self,
        asset_type: Optional[str] = None,
        min_value: Optional[float] = None,
        max_value: Optional[float] = None,
        search: Optional[str] = None
    ) -> List[Asset]:
        """Filter assets by type, value range and name.

        Args:
            asset_type: Keep only this type; None or "all" keeps every type
            min_value: Inclusive lower bound on value
            max_value: Inclusive upper bound on value
            search: Case-insensitive substring of the asset name

        Returns:
            Matching assets in id order
        """
        needle = search.lower() if search else None
        matches = []
        for asset in await self.storage.get_all_assets():
            if asset_type and asset_type != 'all' and asset.type != asset_type:
                continue
            if min_value is not None and asset.value < min_value:
                continue
            if max_value is not None and asset.value > max_value:
                continue
            if needle and needle not in asset.name.lower():
                continue
            matches.append(asset)
        return matches


__all__ = ['AssetManager', 'AssetError', 'AssetNotFoundError']
