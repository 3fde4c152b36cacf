"""Database module for managing connections to PostgreSQL.

This module handles:
- Database connection pool initialization
- Schema management
- Connection lifecycle
"""

import logging
import ssl
from typing import Optional, Dict, Any
from urllib.parse import urlparse, parse_qs

import asyncpg
import backoff

from .exceptions import DatabaseError, DatabaseConnectionError, DatabaseSchemaError
from .lib.schema_manager import SchemaManager

logger = logging.getLogger(__name__)

_pool: Optional[asyncpg.Pool] = None
_schema_manager: Optional[SchemaManager] = None

RETRYABLE_ERRORS = (
    asyncpg.exceptions.PostgresConnectionError,
    asyncpg.exceptions.CannotConnectNowError,
    ConnectionRefusedError,
    OSError
)


def _get_connection_kwargs(db_url: str) -> Dict[str, Any]:
    """Get connection kwargs from database URL.

    TLS is only set up when the URL asks for it with ``sslmode=require``
    or ``sslmode=verify-full``.

    Args:
        db_url: Database connection URL

    Returns:
        Dict of connection parameters
    """
    params = parse_qs(urlparse(db_url).query)
    kwargs: Dict[str, Any] = {
        'server_settings': {
            'statement_timeout': '60000',  # 1 minute
        }
    }

    sslmode = params.get('sslmode', [None])[0]
    if sslmode in ('require', 'verify-ca', 'verify-full'):
        ssl_context = ssl.create_default_context()
        if sslmode == 'require':
            ssl_context.check_hostname = False
            ssl_context.verify_mode = ssl.CERT_NONE
        kwargs['ssl'] = ssl_context

    return kwargs


def _strip_query(db_url: str) -> str:
    return db_url.split('?', 1)[0]


def _database_name(db_url: str) -> str:
    return urlparse(db_url).path.strip('/') or 'postgres'


@backoff.on_exception(backoff.expo, RETRYABLE_ERRORS, max_tries=5)
async def create_database_if_not_exists(db_url: str) -> None:
    """Create the database if it doesn't exist.

    Args:
        db_url: Database connection URL

    Raises:
        Exception: If database creation fails after retries
    """
    db_name = _database_name(db_url)
    parsed = urlparse(_strip_query(db_url))
    base_url = parsed._replace(path='/postgres').geturl()
    logger.info(f"Connecting to postgres to create {db_name} if needed")

    conn = await asyncpg.connect(base_url, **_get_connection_kwargs(db_url))
    try:
        exists = await conn.fetchval(
            'SELECT EXISTS(SELECT 1 FROM pg_database WHERE datname = $1)',
            db_name
        )
        if not exists:
            await conn.execute(f'CREATE DATABASE "{db_name}"')
            logger.info(f"Created database {db_name}")
    finally:
        await conn.close()


@backoff.on_exception(backoff.expo, RETRYABLE_ERRORS, max_tries=5)
async def init_db(db_url: Optional[str] = None) -> asyncpg.Pool:
    """Initialize the database connection pool and schema.

    Args:
        db_url: Optional database URL. If not provided, will use settings.

    Returns:
        The connection pool

    Raises:
        DatabaseConnectionError: If no database URL is available
        DatabaseSchemaError: If the schema cannot be brought up to date
    """
    global _pool, _schema_manager

    if _pool:
        return _pool

    if db_url is None:
        # Import here to avoid circular imports
        from config import settings_conf
        db_url = settings_conf.get('db_url')
    if not db_url:
        raise DatabaseConnectionError("Database URL not provided")

    try:
        await create_database_if_not_exists(db_url)

        pool = await asyncpg.create_pool(
            _strip_query(db_url),
            min_size=1,
            max_size=10,
            max_inactive_connection_lifetime=300.0,
            command_timeout=60.0,
            **_get_connection_kwargs(db_url)
        )

        _schema_manager = SchemaManager(pool)
        await _schema_manager.initialize()
        _pool = pool
        return _pool

    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise


async def get_pool() -> asyncpg.Pool:
    """Get the database connection pool.

    Returns:
        The connection pool

    Raises:
        DatabaseConnectionError: If pool hasn't been initialized
    """
    if not _pool:
        await init_db()
    if not _pool:
        raise DatabaseConnectionError("Failed to initialize database pool")
    return _pool


async def close() -> None:
    """Close the database connection pool."""
    global _pool, _schema_manager

    if _pool:
        await _pool.close()
        _pool = None
        _schema_manager = None


__all__ = [
    'init_db', 'get_pool', 'close',
    'DatabaseError', 'DatabaseConnectionError', 'DatabaseSchemaError',
    'SchemaManager'
]
