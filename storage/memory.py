"""In-memory store.

Each entity lives in its own table: a dict keyed by id, an id counter and a
lock. Every read and write takes the table lock, so ids stay unique and
records stay whole when the store is shared between threads.
"""
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from models import (
    Asset, AssetCreate, Compliance, ComplianceCreate, RegulatoryUpdate,
    RegulatoryUpdateCreate, Transaction, TransactionCreate, User, UserCreate,
    derive_tokenized_value
)

from . import DuplicateKeyError, Storage


def _now() -> datetime:
    return datetime.now(timezone.utc)


class _Table:
    """Rows of one entity type plus the lock guarding them."""

    def __init__(self):
        self.rows: Dict[int, Any] = {}
        self.lock = threading.Lock()
        self._next_id = 1

    def next_id(self) -> int:
        # caller holds self.lock
        row_id = self._next_id
        self._next_id += 1
        return row_id

    def get(self, row_id: int):
        with self.lock:
            return self.rows.get(row_id)

    def find(self, predicate: Callable[[Any], bool]):
        with self.lock:
            return next((row for row in self.rows.values() if predicate(row)), None)

    def filter(self, predicate: Callable[[Any], bool] = None) -> List[Any]:
        with self.lock:
            return [row for row in self.rows.values() if predicate is None or predicate(row)]

    def update(self, row_id: int, changes: Dict[str, Any]):
        with self.lock:
            existing = self.rows.get(row_id)
            if existing is None:
                return None
            merged = existing.model_copy(update=changes)
            self.rows[row_id] = merged
            return merged


class MemStorage(Storage):
    """Store backed by plain dicts."""

    backend_name = "memory"

    def __init__(self):
        self._users = _Table()
        self._assets = _Table()
        self._compliance = _Table()
        self._transactions = _Table()
        self._regulatory_updates = _Table()

    # Users

    async def get_user(self, user_id: int) -> Optional[User]:
        return self._users.get(user_id)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        return self._users.find(lambda user: user.username == username)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        return self._users.find(lambda user: user.email == email)

    async def get_all_users(self) -> List[User]:
        return self._users.filter()

    async def create_user(self, data: UserCreate) -> User:
        with self._users.lock:
            for existing in self._users.rows.values():
                if existing.username == data.username:
                    raise DuplicateKeyError('username', data.username)
                if existing.email == data.email:
                    raise DuplicateKeyError('email', data.email)
            user = User(
                id=self._users.next_id(),
                username=data.username,
                password=data.password,
                email=data.email,
                full_name=data.full_name,
                company=data.company,
                plan=data.plan or 'Starter',
                created_at=_now()
            )
            self._users.rows[user.id] = user
            return user

    async def update_user(self, user_id: int, changes: Dict[str, Any]) -> Optional[User]:
        return self._users.update(user_id, changes)

    # Assets

    async def get_asset(self, asset_id: int) -> Optional[Asset]:
        return self._assets.get(asset_id)

    async def get_all_assets(self) -> List[Asset]:
        return self._assets.filter()

    async def get_assets_by_user_id(self, user_id: int) -> List[Asset]:
        return self._assets.filter(lambda asset: asset.user_id == user_id)

    async def create_asset(self, data: AssetCreate) -> Asset:
        fields = data.model_dump()
        tokenized = fields['tokenized'] if fields['tokenized'] is not None else 0
        if fields['tokenized_value'] is None:
            fields['tokenized_value'] = derive_tokenized_value(fields['value'], tokenized)
        fields.update(
            tokenized=tokenized,
            liquidity=fields['liquidity'] or 'low',
            status=fields['status'] or 'draft',
            metadata=fields['metadata'] or {}
        )
        with self._assets.lock:
            stamp = _now()
            asset = Asset(id=self._assets.next_id(), created_at=stamp, updated_at=stamp, **fields)
            self._assets.rows[asset.id] = asset
            return asset

    async def update_asset(self, asset_id: int, changes: Dict[str, Any]) -> Optional[Asset]:
        return self._assets.update(asset_id, {**changes, 'updated_at': _now()})

    async def delete_asset(self, asset_id: int) -> bool:
        # lock order: assets, compliance, transactions
        with self._assets.lock, self._compliance.lock, self._transactions.lock:
            if self._assets.rows.pop(asset_id, None) is None:
                return False
            for table in (self._compliance, self._transactions):
                stale = [row_id for row_id, row in table.rows.items() if row.asset_id == asset_id]
                for row_id in stale:
                    del table.rows[row_id]
            return True

    # Compliance

    async def get_compliance(self, compliance_id: int) -> Optional[Compliance]:
        return self._compliance.get(compliance_id)

    async def get_compliance_by_asset_id(self, asset_id: int) -> Optional[Compliance]:
        return self._compliance.find(lambda record: record.asset_id == asset_id)

    async def create_compliance(self, data: ComplianceCreate) -> Compliance:
        with self._compliance.lock:
            if any(row.asset_id == data.asset_id for row in self._compliance.rows.values()):
                raise DuplicateKeyError('asset_id', data.asset_id)
            record = Compliance(
                id=self._compliance.next_id(),
                asset_id=data.asset_id,
                jurisdiction=data.jurisdiction,
                kyc_required=True if data.kyc_required is None else data.kyc_required,
                kyc_completed=False if data.kyc_completed is None else data.kyc_completed,
                template_used=data.template_used,
                regulatory_notes=data.regulatory_notes,
                compliance_score=data.compliance_score,
                updated_at=_now()
            )
            self._compliance.rows[record.id] = record
            return record

    async def update_compliance(self, compliance_id: int, changes: Dict[str, Any]) -> Optional[Compliance]:
        return self._compliance.update(compliance_id, {**changes, 'updated_at': _now()})

    # Transactions

    async def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        return self._transactions.get(transaction_id)

    async def get_all_transactions(self) -> List[Transaction]:
        return self._transactions.filter()

    async def get_transactions_by_asset_id(self, asset_id: int) -> List[Transaction]:
        return self._transactions.filter(lambda tx: tx.asset_id == asset_id)

    async def get_transactions_by_user_id(self, user_id: int) -> List[Transaction]:
        return self._transactions.filter(
            lambda tx: tx.buyer_id == user_id or tx.seller_id == user_id
        )

    async def create_transaction(self, data: TransactionCreate) -> Transaction:
        with self._transactions.lock:
            transaction = Transaction(
                id=self._transactions.next_id(),
                created_at=_now(),
                **data.model_dump()
            )
            self._transactions.rows[transaction.id] = transaction
            return transaction

    async def update_transaction(self, transaction_id: int, changes: Dict[str, Any]) -> Optional[Transaction]:
        return self._transactions.update(transaction_id, changes)

    # Regulatory updates

    async def get_regulatory_update(self, update_id: int) -> Optional[RegulatoryUpdate]:
        return self._regulatory_updates.get(update_id)

    async def get_all_regulatory_updates(self) -> List[RegulatoryUpdate]:
        return self._regulatory_updates.filter()

    async def get_regulatory_updates_by_jurisdiction(self, jurisdiction: str) -> List[RegulatoryUpdate]:
        return self._regulatory_updates.filter(lambda update: update.jurisdiction == jurisdiction)

    async def create_regulatory_update(self, data: RegulatoryUpdateCreate) -> RegulatoryUpdate:
        fields = data.model_dump()
        fields['publish_date'] = fields['publish_date'] or _now()
        with self._regulatory_updates.lock:
            update = RegulatoryUpdate(id=self._regulatory_updates.next_id(), **fields)
            self._regulatory_updates.rows[update.id] = update
            return update
