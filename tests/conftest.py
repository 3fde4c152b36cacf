"""Shared fixtures for the test suite."""

from typing import Any, Dict

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from ipfs import SimulatedContentStore
from ledger import SimulatedLedger
from storage import StorageError
from storage.memory import MemStorage
from users import UserManager

# Test data
SAMPLE_USER = {
    "username": "alice",
    "password": "x",
    "email": "a@x.com",
    "fullName": "Alice"
}


def asset_payload(user_id: int, **overrides: Any) -> Dict[str, Any]:
    """A valid asset create body."""
    payload = {
        "name": "Harbour Warehouse",
        "userId": user_id,
        "type": "real_estate",
        "subtype": "commercial",
        "value": 200000,
        "tokenized": 50,
        "blockchain": "polygon",
        "metadata": {"sqft": 12000, "floors": 2}
    }
    payload.update(overrides)
    return payload


class RejectingStorage(MemStorage):
    """MemStorage whose asset updates always fail."""

    async def update_asset(self, asset_id, changes):
        raise StorageError("connection reset")


@pytest.fixture
def storage() -> MemStorage:
    """Create an empty in-memory store."""
    return MemStorage()


@pytest_asyncio.fixture
async def user(storage):
    """Create and return a sample user."""
    return await UserManager(storage).create_user(SAMPLE_USER)


@pytest.fixture
def settings() -> Dict[str, Any]:
    return {
        'storage_backend': 'memory',
        'seed_sample_data': False,
        'cors_origins': ['*'],
        'content_store': 'simulated',
        'ipfs_gateway_url': 'https://gw.test/ipfs/',
        'ledger': 'simulated',
        'external_call_timeout': 5.0,
        'simulated_delay': 0.0,
        'log_level': 'INFO'
    }


@pytest.fixture
def client(storage, settings) -> TestClient:
    """TestClient for an app serving from the test store."""
    from api import create_app
    app = create_app(
        storage=storage,
        settings=settings,
        content_store=SimulatedContentStore(0),
        minter=SimulatedLedger(0)
    )
    return TestClient(app)
