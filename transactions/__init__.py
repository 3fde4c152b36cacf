"""Transactions module for token offers, sales, purchases and listings."""

import logging
from typing import Any, Dict, List, Union

from assets import AssetNotFoundError
from errors import DomainError, NotFoundError, ValidationError, parse_model, reject_nulls
from models import (
    TRANSACTION_REQUIRED_FIELDS, Transaction, TransactionCreate, TransactionUpdate
)
from storage import Storage

logger = logging.getLogger(__name__)

INVALID_TRANSACTION = "Invalid transaction data"

# fixed once the transaction exists
IMMUTABLE_FIELDS = {
    'assetId': 'asset_id',
    'transactionType': 'transaction_type',
}


class TransactionError(DomainError):
    """Base exception for transaction operations."""
    pass


class TransactionNotFoundError(TransactionError, NotFoundError):
    """Raised when a transaction is not found."""

    def __init__(self, message: str = "Transaction not found"):
        super().__init__(message)


def _check_immutable(data: Any) -> None:
    if not isinstance(data, dict):
        return
    touched = [
        alias for alias, name in IMMUTABLE_FIELDS.items()
        if alias in data or name in data
    ]
    if touched:
        raise ValidationError(INVALID_TRANSACTION, [
            {'field': alias, 'message': 'Field cannot be changed after creation', 'type': 'immutable'}
            for alias in touched
        ])


class TransactionManager:
    """Manager class for handling transaction operations."""

    def __init__(self, storage: Storage):
        self.storage = storage

    async def get_transaction(self, transaction_id: int) -> Transaction:
        transaction = await self.storage.get_transaction(transaction_id)
        if transaction is None:
            raise TransactionNotFoundError()
        return transaction

    async def get_all_transactions(self) -> List[Transaction]:
        return await self.storage.get_all_transactions()

    async def get_transactions_by_asset(self, asset_id: int) -> List[Transaction]:
        return await self.storage.get_transactions_by_asset_id(asset_id)

    async def get_transactions_by_user(self, user_id: int) -> List[Transaction]:
        """Transactions where the user is buyer or seller."""
        return await self.storage.get_transactions_by_user_id(user_id)

    async def create_transaction(self, data: Union[TransactionCreate, Dict[str, Any]]) -> Transaction:
        """Record a transaction against an existing asset.

        Args:
            data: TransactionCreate or raw camelCase mapping

        Returns:
            The stored transaction

        Raises:
            ValidationError: If the data is malformed, tokenAmount is not
                positive or both buyerId and sellerId are set
            AssetNotFoundError: If assetId does not resolve
        """
        tx_data = parse_model(TransactionCreate, data, INVALID_TRANSACTION)

        if await self.storage.get_asset(tx_data.asset_id) is None:
            raise AssetNotFoundError()

        transaction = await self.storage.create_transaction(tx_data)
        logger.info(
            f"Created {transaction.transaction_type} transaction {transaction.id} "
            f"for asset {transaction.asset_id}"
        )
        return transaction

    async def update_transaction(self, transaction_id: int,
                                 data: Union[TransactionUpdate, Dict[str, Any]]) -> Transaction:
        """Apply a partial update to a transaction.

        assetId and transactionType cannot be changed.

        Raises:
            ValidationError: If the changes are malformed or would set both parties
            TransactionNotFoundError: If the transaction does not exist
        """
        _check_immutable(data)
        update = parse_model(TransactionUpdate, data, INVALID_TRANSACTION)
        changes = update.model_dump(exclude_unset=True)
        reject_nulls(changes, TRANSACTION_REQUIRED_FIELDS, INVALID_TRANSACTION)

        existing = await self.get_transaction(transaction_id)
        buyer_id = changes.get('buyer_id', existing.buyer_id)
        seller_id = changes.get('seller_id', existing.seller_id)
        if buyer_id is not None and seller_id is not None:
            raise ValidationError(INVALID_TRANSACTION, [{
                'field': 'buyerId',
                'message': 'only one of buyerId and sellerId may be set',
                'type': 'value_error'
            }])

        transaction = await self.storage.update_transaction(transaction_id, changes)
        if transaction is None:
            raise TransactionNotFoundError()
        logger.info(f"Updated transaction {transaction_id}")
        return transaction


__all__ = ['TransactionManager', 'TransactionError', 'TransactionNotFoundError']
