"""Portfolio metrics endpoints."""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends

from assets import AssetManager
from errors import DomainError
from metrics import portfolio_summary
from storage import Storage
from users import UserManager
from ..deps import get_storage, http_error, parse_id, server_error

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Portfolio"])


@router.get("/portfolio")
async def get_portfolio(storage: Storage = Depends(get_storage)) -> Dict[str, Any]:
    """Totals and distribution by type over every asset."""
    try:
        assets = await AssetManager(storage).get_all_assets()
        return portfolio_summary(assets)
    except Exception as e:
        raise server_error(e, "Error calculating portfolio")


@router.get("/users/{user_id}/portfolio")
async def get_user_portfolio(user_id: str, storage: Storage = Depends(get_storage)) -> Dict[str, Any]:
    """Totals and distribution by type over one user's assets."""
    uid = parse_id(user_id, "user")
    try:
        await UserManager(storage).get_user(uid)
        assets = await AssetManager(storage).get_assets_by_user(uid)
        return portfolio_summary(assets)
    except DomainError as e:
        raise http_error(e, "Error calculating portfolio")
    except Exception as e:
        raise server_error(e, "Error calculating portfolio")
