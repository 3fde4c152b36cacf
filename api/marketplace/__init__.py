"""Marketplace browsing endpoint."""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from assets import AssetManager
from storage import Storage
from ..deps import get_storage, server_error

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/marketplace",
    tags=["Marketplace"]
)


@router.get("")
async def browse_marketplace(
    asset_type: Optional[str] = Query(None, alias="type"),
    min_value: Optional[float] = Query(None, alias="minValue", ge=0),
    max_value: Optional[float] = Query(None, alias="maxValue", ge=0),
    search: Optional[str] = Query(None),
    storage: Storage = Depends(get_storage)
) -> List[Dict[str, Any]]:
    """Filter assets by type tab, value range and name.

    ``type=all`` or no type shows every asset.
    """
    if min_value is not None and max_value is not None and min_value > max_value:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="minValue cannot exceed maxValue"
        )
    try:
        assets = await AssetManager(storage).search_assets(asset_type, min_value, max_value, search)
        return [asset.to_json() for asset in assets]
    except Exception as e:
        raise server_error(e, "Error fetching marketplace")
