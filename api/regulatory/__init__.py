"""Regulatory update API endpoints."""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query

from errors import DomainError
from regulatory import RegulatoryUpdateManager, active_updates
from storage import Storage
from ..deps import get_storage, http_error, parse_id, server_error

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/regulatory-updates",
    tags=["Regulatory"]
)


@router.get("")
async def get_regulatory_updates(
    active: bool = Query(False, description="Only updates that have not expired"),
    storage: Storage = Depends(get_storage)
) -> List[Dict[str, Any]]:
    try:
        updates = await RegulatoryUpdateManager(storage).get_all()
        if active:
            updates = active_updates(updates)
        return [update.to_json() for update in updates]
    except Exception as e:
        raise server_error(e, "Error fetching regulatory updates")


@router.get("/jurisdiction/{jurisdiction}")
async def get_regulatory_updates_by_jurisdiction(
    jurisdiction: str,
    active: bool = Query(False),
    storage: Storage = Depends(get_storage)
) -> List[Dict[str, Any]]:
    """Updates for one jurisdiction, matched exactly."""
    try:
        updates = await RegulatoryUpdateManager(storage).get_by_jurisdiction(jurisdiction)
        if active:
            updates = active_updates(updates)
        return [update.to_json() for update in updates]
    except Exception as e:
        raise server_error(e, "Error fetching regulatory updates")


@router.get("/{update_id}")
async def get_regulatory_update(update_id: str, storage: Storage = Depends(get_storage)) -> Dict[str, Any]:
    uid = parse_id(update_id, "regulatory update")
    try:
        update = await RegulatoryUpdateManager(storage).get(uid)
        return update.to_json()
    except DomainError as e:
        raise http_error(e, "Error fetching regulatory update")
    except Exception as e:
        raise server_error(e, "Error fetching regulatory update")
