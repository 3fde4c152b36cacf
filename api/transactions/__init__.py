"""Transaction API endpoints."""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, status

from errors import DomainError
from storage import Storage
from transactions import TransactionManager
from ..deps import get_storage, http_error, parse_id, server_error

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/transactions",
    tags=["Transactions"]
)


@router.get("")
async def get_transactions(storage: Storage = Depends(get_storage)) -> List[Dict[str, Any]]:
    """All transactions, oldest first."""
    try:
        transactions = await TransactionManager(storage).get_all_transactions()
        return [tx.to_json() for tx in transactions]
    except Exception as e:
        raise server_error(e, "Error fetching transactions")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_transaction(
    body: Any = Body(...),
    storage: Storage = Depends(get_storage)
) -> Dict[str, Any]:
    """Record a transaction against an existing asset."""
    try:
        transaction = await TransactionManager(storage).create_transaction(body)
        return transaction.to_json()
    except DomainError as e:
        raise http_error(e, "Error creating transaction")
    except Exception as e:
        raise server_error(e, "Error creating transaction")


@router.patch("/{transaction_id}")
async def update_transaction(
    transaction_id: str,
    body: Any = Body(...),
    storage: Storage = Depends(get_storage)
) -> Dict[str, Any]:
    """Update status, amounts or parties; assetId and transactionType are fixed."""
    tid = parse_id(transaction_id, "transaction")
    try:
        transaction = await TransactionManager(storage).update_transaction(tid, body)
        return transaction.to_json()
    except DomainError as e:
        raise http_error(e, "Error updating transaction")
    except Exception as e:
        raise server_error(e, "Error updating transaction")
