"""User API endpoints."""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, status

from assets import AssetManager
from errors import DomainError
from storage import Storage
from transactions import TransactionManager
from users import UserManager
from ..deps import get_storage, http_error, parse_id, server_error

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/users",
    tags=["Users"]
)


@router.get("/{user_id}")
async def get_user(user_id: str, storage: Storage = Depends(get_storage)) -> Dict[str, Any]:
    """Get a user; the password is never returned."""
    uid = parse_id(user_id, "user")
    try:
        user = await UserManager(storage).get_user(uid)
        return user.to_json()
    except DomainError as e:
        raise http_error(e, "Error fetching user")
    except Exception as e:
        raise server_error(e, "Error fetching user")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    body: Any = Body(...),
    storage: Storage = Depends(get_storage)
) -> Dict[str, Any]:
    """Register a user."""
    try:
        user = await UserManager(storage).create_user(body)
        return user.to_json()
    except DomainError as e:
        raise http_error(e, "Error creating user")
    except Exception as e:
        raise server_error(e, "Error creating user")


@router.get("/{user_id}/assets")
async def get_user_assets(user_id: str, storage: Storage = Depends(get_storage)) -> List[Dict[str, Any]]:
    """Assets owned by a user."""
    uid = parse_id(user_id, "user")
    try:
        assets = await AssetManager(storage).get_assets_by_user(uid)
        return [asset.to_json() for asset in assets]
    except Exception as e:
        raise server_error(e, "Error fetching assets")


@router.get("/{user_id}/transactions")
async def get_user_transactions(user_id: str, storage: Storage = Depends(get_storage)) -> List[Dict[str, Any]]:
    """Transactions where the user is buyer or seller."""
    uid = parse_id(user_id, "user")
    try:
        transactions = await TransactionManager(storage).get_transactions_by_user(uid)
        return [tx.to_json() for tx in transactions]
    except Exception as e:
        raise server_error(e, "Error fetching transactions")
