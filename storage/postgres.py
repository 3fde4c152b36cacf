"""PostgreSQL store.

One statement per operation against the tables created by schema v1.
Uniqueness of usernames, emails and one compliance record per asset is left
to the database's UNIQUE constraints.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import asyncpg

from database import init_db
from models import (
    Asset, AssetCreate, Compliance, ComplianceCreate, RegulatoryUpdate,
    RegulatoryUpdateCreate, Transaction, TransactionCreate, User, UserCreate,
    derive_tokenized_value
)

from . import DuplicateKeyError, Storage, StorageError

logger = logging.getLogger(__name__)

# constraint name -> field reported on conflict
_UNIQUE_FIELDS = {
    'users_username_key': 'username',
    'users_email_key': 'email',
    'compliance_asset_id_key': 'asset_id',
}


def _decode_json(value: Any) -> Dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, str):
        return json.loads(value)
    return dict(value)


def row_to_asset(row) -> Asset:
    data = dict(row)
    data['metadata'] = _decode_json(data.get('metadata'))
    return Asset(**data)


def row_to_regulatory_update(row) -> RegulatoryUpdate:
    data = dict(row)
    data['asset_types_affected'] = list(data.get('asset_types_affected') or [])
    return RegulatoryUpdate(**data)


def build_update(table: str, changes: Dict[str, Any], allowed: Iterable[str],
                 stamp_column: Optional[str] = None):
    """Build an UPDATE ... RETURNING * statement for the given changes.

    Args:
        table: Table name
        changes: Column values to write, snake_case
        allowed: Columns callers may write
        stamp_column: Column set to now() on every update

    Returns:
        Tuple of (query, args); the row id is the last positional argument

    Raises:
        StorageError: If a change names a column outside ``allowed``
    """
    allowed = set(allowed)
    unknown = set(changes) - allowed
    if unknown:
        raise StorageError(f"Cannot update {table} columns: {', '.join(sorted(unknown))}")

    assignments = []
    args = []
    for column, value in changes.items():
        args.append(json.dumps(value) if column == 'metadata' else value)
        cast = '::jsonb' if column == 'metadata' else ''
        assignments.append(f"{column} = ${len(args)}{cast}")
    if stamp_column:
        assignments.append(f"{stamp_column} = now()")

    if not assignments:
        return f"SELECT * FROM {table} WHERE id = $1", args

    query = (
        f"UPDATE {table} SET {', '.join(assignments)} "
        f"WHERE id = ${len(args) + 1} RETURNING *"
    )
    return query, args


def _duplicate_key(error: asyncpg.exceptions.UniqueViolationError, values: Dict[str, Any]) -> DuplicateKeyError:
    field = _UNIQUE_FIELDS.get(getattr(error, 'constraint_name', None), 'id')
    return DuplicateKeyError(field, values.get(field))


USER_COLUMNS = ('username', 'password', 'email', 'full_name', 'company', 'plan')
ASSET_COLUMNS = (
    'name', 'type', 'subtype', 'description', 'location', 'company', 'value',
    'tokenized', 'tokenized_value', 'liquidity', 'blockchain', 'status',
    'ipfs_hash', 'contract_address', 'metadata'
)
COMPLIANCE_COLUMNS = (
    'jurisdiction', 'kyc_required', 'kyc_completed', 'template_used',
    'regulatory_notes', 'compliance_score'
)
TRANSACTION_COLUMNS = (
    'buyer_id', 'seller_id', 'token_amount', 'value_amount', 'status',
    'transaction_hash'
)


class PostgresStorage(Storage):
    """Store backed by an asyncpg pool."""

    backend_name = "postgres"

    def __init__(self, pool: Optional[asyncpg.Pool] = None, db_url: Optional[str] = None):
        self.pool = pool
        self.db_url = db_url

    async def ensure_pool(self) -> asyncpg.Pool:
        """Ensure database pool is initialized."""
        if not self.pool:
            self.pool = await init_db(self.db_url)
        return self.pool

    async def _fetchrow(self, query: str, *args):
        pool = await self.ensure_pool()
        async with pool.acquire() as conn:
            return await conn.fetchrow(query, *args)

    async def _fetch(self, query: str, *args):
        pool = await self.ensure_pool()
        async with pool.acquire() as conn:
            return await conn.fetch(query, *args)

    async def close(self) -> None:
        from database import close
        await close()
        self.pool = None

    # Users

    async def get_user(self, user_id: int) -> Optional[User]:
        row = await self._fetchrow('SELECT * FROM users WHERE id = $1', user_id)
        return User(**dict(row)) if row else None

    async def get_user_by_username(self, username: str) -> Optional[User]:
        row = await self._fetchrow('SELECT * FROM users WHERE username = $1', username)
        return User(**dict(row)) if row else None

    async def get_user_by_email(self, email: str) -> Optional[User]:
        row = await self._fetchrow('SELECT * FROM users WHERE email = $1', email)
        return User(**dict(row)) if row else None

    async def get_all_users(self) -> List[User]:
        rows = await self._fetch('SELECT * FROM users ORDER BY id')
        return [User(**dict(row)) for row in rows]

    async def create_user(self, data: UserCreate) -> User:
        try:
            row = await self._fetchrow(
                '''
                INSERT INTO users (username, password, email, full_name, company, plan)
                VALUES ($1, $2, $3, $4, $5, $6)
                RETURNING *
                ''',
                data.username, data.password, data.email, data.full_name,
                data.company, data.plan or 'Starter'
            )
        except asyncpg.exceptions.UniqueViolationError as e:
            raise _duplicate_key(e, {'username': data.username, 'email': data.email}) from e
        return User(**dict(row))

    async def update_user(self, user_id: int, changes: Dict[str, Any]) -> Optional[User]:
        query, args = build_update('users', changes, USER_COLUMNS)
        row = await self._fetchrow(query, *args, user_id)
        return User(**dict(row)) if row else None

    # Assets

    async def get_asset(self, asset_id: int) -> Optional[Asset]:
        row = await self._fetchrow('SELECT * FROM assets WHERE id = $1', asset_id)
        return row_to_asset(row) if row else None

    async def get_all_assets(self) -> List[Asset]:
        rows = await self._fetch('SELECT * FROM assets ORDER BY id')
        return [row_to_asset(row) for row in rows]

    async def get_assets_by_user_id(self, user_id: int) -> List[Asset]:
        rows = await self._fetch('SELECT * FROM assets WHERE user_id = $1 ORDER BY id', user_id)
        return [row_to_asset(row) for row in rows]

    async def create_asset(self, data: AssetCreate) -> Asset:
        tokenized = data.tokenized if data.tokenized is not None else 0
        tokenized_value = data.tokenized_value
        if tokenized_value is None:
            tokenized_value = derive_tokenized_value(data.value, tokenized)
        now = datetime.now(timezone.utc)
        row = await self._fetchrow(
            '''
            INSERT INTO assets (
                name, user_id, type, subtype, description, location, company,
                value, tokenized, tokenized_value, liquidity, blockchain, status,
                ipfs_hash, contract_address, metadata, created_at, updated_at
            ) VALUES (
                $1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13,
                $14, $15, $16::jsonb, $17, $17
            )
            RETURNING *
            ''',
            data.name, data.user_id, data.type, data.subtype, data.description,
            data.location, data.company, data.value, tokenized, tokenized_value,
            data.liquidity or 'low', data.blockchain, data.status or 'draft',
            data.ipfs_hash, data.contract_address, json.dumps(data.metadata or {}),
            now
        )
        return row_to_asset(row)

    async def update_asset(self, asset_id: int, changes: Dict[str, Any]) -> Optional[Asset]:
        query, args = build_update('assets', changes, ASSET_COLUMNS, stamp_column='updated_at')
        row = await self._fetchrow(query, *args, asset_id)
        return row_to_asset(row) if row else None

    async def delete_asset(self, asset_id: int) -> bool:
        pool = await self.ensure_pool()
        async with pool.acquire() as conn:
            async with conn.transaction():
                await conn.execute('DELETE FROM compliance WHERE asset_id = $1', asset_id)
                await conn.execute('DELETE FROM transactions WHERE asset_id = $1', asset_id)
                deleted = await conn.fetchval(
                    'DELETE FROM assets WHERE id = $1 RETURNING id', asset_id
                )
        return deleted is not None

    # Compliance

    async def get_compliance(self, compliance_id: int) -> Optional[Compliance]:
        row = await self._fetchrow('SELECT * FROM compliance WHERE id = $1', compliance_id)
        return Compliance(**dict(row)) if row else None

    async def get_compliance_by_asset_id(self, asset_id: int) -> Optional[Compliance]:
        row = await self._fetchrow('SELECT * FROM compliance WHERE asset_id = $1', asset_id)
        return Compliance(**dict(row)) if row else None

    async def create_compliance(self, data: ComplianceCreate) -> Compliance:
        try:
            row = await self._fetchrow(
                '''
                INSERT INTO compliance (
                    asset_id, jurisdiction, kyc_required, kyc_completed,
                    template_used, regulatory_notes, compliance_score
                ) VALUES ($1, $2, $3, $4, $5, $6, $7)
                RETURNING *
                ''',
                data.asset_id, data.jurisdiction,
                True if data.kyc_required is None else data.kyc_required,
                False if data.kyc_completed is None else data.kyc_completed,
                data.template_used, data.regulatory_notes, data.compliance_score
            )
        except asyncpg.exceptions.UniqueViolationError as e:
            raise _duplicate_key(e, {'asset_id': data.asset_id}) from e
        return Compliance(**dict(row))

    async def update_compliance(self, compliance_id: int, changes: Dict[str, Any]) -> Optional[Compliance]:
        query, args = build_update(
            'compliance', changes, COMPLIANCE_COLUMNS, stamp_column='updated_at'
        )
        row = await self._fetchrow(query, *args, compliance_id)
        return Compliance(**dict(row)) if row else None

    # Transactions

    async def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        row = await self._fetchrow('SELECT * FROM transactions WHERE id = $1', transaction_id)
        return Transaction(**dict(row)) if row else None

    async def get_all_transactions(self) -> List[Transaction]:
        rows = await self._fetch('SELECT * FROM transactions ORDER BY id')
        return [Transaction(**dict(row)) for row in rows]

    async def get_transactions_by_asset_id(self, asset_id: int) -> List[Transaction]:
        rows = await self._fetch(
            'SELECT * FROM transactions WHERE asset_id = $1 ORDER BY id', asset_id
        )
        return [Transaction(**dict(row)) for row in rows]

    async def get_transactions_by_user_id(self, user_id: int) -> List[Transaction]:
        rows = await self._fetch(
            'SELECT * FROM transactions WHERE buyer_id = $1 OR seller_id = $1 ORDER BY id',
            user_id
        )
        return [Transaction(**dict(row)) for row in rows]

    async def create_transaction(self, data: TransactionCreate) -> Transaction:
        row = await self._fetchrow(
            '''
            INSERT INTO transactions (
                asset_id, buyer_id, seller_id, token_amount, value_amount,
                transaction_type, status, transaction_hash
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
            RETURNING *
            ''',
            data.asset_id, data.buyer_id, data.seller_id, data.token_amount,
            data.value_amount, data.transaction_type, data.status, data.transaction_hash
        )
        return Transaction(**dict(row))

    async def update_transaction(self, transaction_id: int, changes: Dict[str, Any]) -> Optional[Transaction]:
        query, args = build_update('transactions', changes, TRANSACTION_COLUMNS)
        row = await self._fetchrow(query, *args, transaction_id)
        return Transaction(**dict(row)) if row else None

    # Regulatory updates

    async def get_regulatory_update(self, update_id: int) -> Optional[RegulatoryUpdate]:
        row = await self._fetchrow('SELECT * FROM regulatory_updates WHERE id = $1', update_id)
        return row_to_regulatory_update(row) if row else None

    async def get_all_regulatory_updates(self) -> List[RegulatoryUpdate]:
        rows = await self._fetch('SELECT * FROM regulatory_updates ORDER BY id')
        return [row_to_regulatory_update(row) for row in rows]

    async def get_regulatory_updates_by_jurisdiction(self, jurisdiction: str) -> List[RegulatoryUpdate]:
        rows = await self._fetch(
            'SELECT * FROM regulatory_updates WHERE jurisdiction = $1 ORDER BY id',
            jurisdiction
        )
        return [row_to_regulatory_update(row) for row in rows]

    async def create_regulatory_update(self, data: RegulatoryUpdateCreate) -> RegulatoryUpdate:
        row = await self._fetchrow(
            '''
            INSERT INTO regulatory_updates (
                title, description, jurisdiction, severity, asset_types_affected,
                action_required, action_description, publish_date, expiry_date
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, COALESCE($8, now()), $9)
            RETURNING *
            ''',
            data.title, data.description, data.jurisdiction, data.severity,
            list(data.asset_types_affected), data.action_required,
            data.action_description, data.publish_date, data.expiry_date
        )
        return row_to_regulatory_update(row)
