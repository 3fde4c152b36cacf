"""Asset metadata variants.

Metadata is an open bag of scalar values. The keys each asset type is known
to carry are typed; any other key is kept as long as its value is a string,
a number or a date.
"""
import math
from datetime import date, datetime
from typing import Any, Dict, Optional, Type

from pydantic import BaseModel, ConfigDict, NonNegativeInt, model_validator

from .enums import AssetType


def _is_scalar(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, float) and not math.isfinite(value):
        return False
    return isinstance(value, (str, int, float, date, datetime))


class AssetMetadata(BaseModel):
    """Base for the per-type metadata schemas."""
    model_config = ConfigDict(extra='allow')

    @model_validator(mode='after')
    def _extras_are_scalars(self):
        for key, value in (self.model_extra or {}).items():
            if not _is_scalar(value):
                raise ValueError(
                    f"metadata value for '{key}' must be a string, number or date"
                )
        return self


class RealEstateMetadata(AssetMetadata):
    sqft: Optional[NonNegativeInt] = None
    year_built: Optional[int] = None
    floors: Optional[NonNegativeInt] = None


class InvoiceMetadata(AssetMetadata):
    invoice_count: Optional[NonNegativeInt] = None
    due_date: Optional[date] = None


class EquipmentMetadata(AssetMetadata):
    manufacturer: Optional[str] = None
    year: Optional[int] = None
    machine_count: Optional[NonNegativeInt] = None


METADATA_MODELS: Dict[str, Type[AssetMetadata]] = {
    AssetType.REAL_ESTATE.value: RealEstateMetadata,
    AssetType.INVOICE.value: InvoiceMetadata,
    AssetType.EQUIPMENT.value: EquipmentMetadata,
}


def validate_metadata(asset_type: str, metadata: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Validate a metadata bag against the schema of its asset type.

    Args:
        asset_type: One of the AssetType values
        metadata: Raw metadata mapping, None meaning empty

    Returns:
        JSON-ready metadata with dates rendered as ISO strings

    Raises:
        pydantic.ValidationError: If a known key has the wrong type or an
            unknown key holds a non-scalar value
        KeyError: If asset_type is not a known asset type
    """
    model = METADATA_MODELS[str(asset_type)]
    parsed = model.model_validate(metadata or {})
    return parsed.model_dump(mode='json', exclude_none=True)
