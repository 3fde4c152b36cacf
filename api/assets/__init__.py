"""Asset API endpoints."""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, Response, status

from assets import AssetManager
from compliance import ComplianceManager
from errors import DomainError
from storage import Storage
from transactions import TransactionManager
from ..deps import get_storage, http_error, parse_id, server_error

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/assets",
    tags=["Assets"]
)


@router.get("")
async def get_assets(storage: Storage = Depends(get_storage)) -> List[Dict[str, Any]]:
    """List all assets."""
    try:
        assets = await AssetManager(storage).get_all_assets()
        return [asset.to_json() for asset in assets]
    except Exception as e:
        raise server_error(e, "Error fetching assets")


@router.get("/{asset_id}")
async def get_asset(asset_id: str, storage: Storage = Depends(get_storage)) -> Dict[str, Any]:
    aid = parse_id(asset_id, "asset")
    try:
        asset = await AssetManager(storage).get_asset(aid)
        return asset.to_json()
    except DomainError as e:
        raise http_error(e, "Error fetching asset")
    except Exception as e:
        raise server_error(e, "Error fetching asset")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_asset(
    body: Any = Body(...),
    storage: Storage = Depends(get_storage)
) -> Dict[str, Any]:
    """Create an asset for an existing user.

    The tokenizedValue sent must equal value * tokenized / 100; when it is
    omitted it is derived.
    """
    try:
        asset = await AssetManager(storage).create_asset(body)
        return asset.to_json()
    except DomainError as e:
        raise http_error(e, "Error creating asset")
    except Exception as e:
        raise server_error(e, "Error creating asset")


@router.patch("/{asset_id}")
async def update_asset(
    asset_id: str,
    body: Any = Body(...),
    storage: Storage = Depends(get_storage)
) -> Dict[str, Any]:
    """Partially update an asset; tokenizedValue is recomputed."""
    aid = parse_id(asset_id, "asset")
    try:
        asset = await AssetManager(storage).update_asset(aid, body)
        return asset.to_json()
    except DomainError as e:
        raise http_error(e, "Error updating asset")
    except Exception as e:
        raise server_error(e, "Error updating asset")


@router.delete("/{asset_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_asset(asset_id: str, storage: Storage = Depends(get_storage)) -> Response:
    """Delete an asset together with its compliance record and transactions."""
    aid = parse_id(asset_id, "asset")
    try:
        await AssetManager(storage).delete_asset(aid)
    except DomainError as e:
        raise http_error(e, "Error deleting asset")
    except Exception as e:
        raise server_error(e, "Error deleting asset")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{asset_id}/compliance")
async def get_asset_compliance(asset_id: str, storage: Storage = Depends(get_storage)) -> Dict[str, Any]:
    aid = parse_id(asset_id, "asset")
    try:
        record = await ComplianceManager(storage).get_compliance_for_asset(aid)
        return record.to_json()
    except DomainError as e:
        raise http_error(e, "Error fetching compliance")
    except Exception as e:
        raise server_error(e, "Error fetching compliance")


@router.get("/{asset_id}/transactions")
async def get_asset_transactions(asset_id: str, storage: Storage = Depends(get_storage)) -> List[Dict[str, Any]]:
    aid = parse_id(asset_id, "asset")
    try:
        transactions = await TransactionManager(storage).get_transactions_by_asset(aid)
        return [tx.to_json() for tx in transactions]
    except Exception as e:
        raise server_error(e, "Error fetching transactions")
