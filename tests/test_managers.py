"""Tests for the domain managers."""

from datetime import datetime, timedelta, timezone

import pytest

from assets import AssetManager, AssetNotFoundError
from compliance import (
    ComplianceAlreadyExistsError, ComplianceManager, ComplianceNotFoundError,
    estimated_readiness, guidance_for, templates_for
)
from errors import ConflictError, NotFoundError, UnexpectedError, ValidationError
from regulatory import RegulatoryUpdateManager, RegulatoryUpdateNotFoundError, active_updates
from transactions import TransactionManager, TransactionNotFoundError
from users import DuplicateEmailError, DuplicateUsernameError, UserManager, UserNotFoundError

from conftest import SAMPLE_USER, RejectingStorage, asset_payload


def _fields(error: ValidationError):
    return {problem['field'] for problem in error.errors}


# Users

@pytest.mark.asyncio
async def test_create_user(storage):
    """Test registering a user."""
    user = await UserManager(storage).create_user(SAMPLE_USER)

    assert user.id == 1
    assert user.full_name == "Alice"
    assert "password" not in user.to_json()
    assert user.to_json()["fullName"] == "Alice"


@pytest.mark.asyncio
async def test_create_user_conflicts(storage, user):
    manager = UserManager(storage)

    with pytest.raises(DuplicateUsernameError):
        await manager.create_user({**SAMPLE_USER, "email": "other@x.com"})
    with pytest.raises(DuplicateEmailError) as exc_info:
        await manager.create_user({**SAMPLE_USER, "username": "alice2"})
    assert isinstance(exc_info.value, ConflictError)


@pytest.mark.asyncio
async def test_create_user_invalid(storage):
    with pytest.raises(ValidationError) as exc_info:
        await UserManager(storage).create_user({"username": "bob", "password": "x", "email": "nope"})
    assert exc_info.value.message == "Invalid user data"
    assert {"email", "fullName"} <= _fields(exc_info.value)


@pytest.mark.asyncio
async def test_get_missing_user(storage):
    with pytest.raises(UserNotFoundError) as exc_info:
        await UserManager(storage).get_user(7)
    assert str(exc_info.value) == "User not found"
    assert isinstance(exc_info.value, NotFoundError)


# Assets

@pytest.mark.asyncio
async def test_create_asset_derives_tokenized_value(storage, user):
    asset = await AssetManager(storage).create_asset(asset_payload(user.id))

    assert asset.tokenized_value == pytest.approx(100000)
    assert asset.metadata == {"sqft": 12000, "floors": 2}
    assert asset.status == "draft"


@pytest.mark.asyncio
async def test_create_asset_for_unknown_user(storage):
    """Test the asset collection is untouched when the owner is missing."""
    manager = AssetManager(storage)
    with pytest.raises(UserNotFoundError):
        await manager.create_asset(asset_payload(99))
    assert await manager.get_all_assets() == []


@pytest.mark.asyncio
async def test_create_asset_rejects_inconsistent_tokenized_value(storage, user):
    with pytest.raises(ValidationError) as exc_info:
        await AssetManager(storage).create_asset(asset_payload(user.id, tokenizedValue=5))
    assert _fields(exc_info.value) == {"tokenizedValue"}


@pytest.mark.asyncio
async def test_create_asset_accepts_consistent_tokenized_value(storage, user):
    asset = await AssetManager(storage).create_asset(
        asset_payload(user.id, value=0.3, tokenized=10, tokenizedValue=0.03)
    )
    assert asset.tokenized_value == pytest.approx(0.03)


@pytest.mark.asyncio
@pytest.mark.parametrize("overrides,field", [
    ({"value": "200000"}, "value"),
    ({"value": float("inf")}, "value"),
    ({"tokenized": 101}, "tokenized"),
    ({"type": "boat"}, "type"),
    ({"userId": "1"}, "userId"),
    ({"metadata": {"sqft": "big"}}, "metadata.sqft"),
    ({"metadata": {"tags": ["a", "b"]}}, "metadata"),
    ({"metadata": {"rentYield": float("nan")}}, "metadata"),
])
async def test_create_asset_validation(storage, user, overrides, field):
    with pytest.raises(ValidationError) as exc_info:
        await AssetManager(storage).create_asset(asset_payload(user.id, **overrides))
    assert exc_info.value.message == "Invalid asset data"
    assert field in _fields(exc_info.value)


@pytest.mark.asyncio
async def test_update_asset_recomputes_tokenized_value(storage, user):
    manager = AssetManager(storage)
    asset = await manager.create_asset(asset_payload(user.id))

    updated = await manager.update_asset(asset.id, {"tokenized": 25})
    assert updated.tokenized_value == pytest.approx(50000)

    updated = await manager.update_asset(asset.id, {"value": 400000})
    assert updated.tokenized_value == pytest.approx(100000)
    assert updated.name == asset.name
    assert updated.updated_at >= asset.updated_at


@pytest.mark.asyncio
async def test_update_asset_store_failure():
    storage = RejectingStorage()
    user = await UserManager(storage).create_user(SAMPLE_USER)
    manager = AssetManager(storage)
    asset = await manager.create_asset(asset_payload(user.id))

    with pytest.raises(UnexpectedError):
        await manager.update_asset(asset.id, {"name": "Renamed"})
    assert (await manager.get_asset(asset.id)).name == asset.name


@pytest.mark.asyncio
async def test_update_asset_rejects_bad_changes(storage, user):
    manager = AssetManager(storage)
    asset = await manager.create_asset(asset_payload(user.id))

    with pytest.raises(ValidationError):
        await manager.update_asset(asset.id, {"tokenizedValue": 1})
    with pytest.raises(ValidationError) as exc_info:
        await manager.update_asset(asset.id, {"name": None})
    assert _fields(exc_info.value) == {"name"}
    with pytest.raises(ValidationError):
        await manager.update_asset(asset.id, {"type": "invoice", "metadata": {"dueDate": [1]}})
    with pytest.raises(AssetNotFoundError):
        await manager.update_asset(999, {"name": "Nope"})


@pytest.mark.asyncio
async def test_delete_asset(storage, user):
    manager = AssetManager(storage)
    asset = await manager.create_asset(asset_payload(user.id))

    await manager.delete_asset(asset.id)

    with pytest.raises(AssetNotFoundError):
        await manager.get_asset(asset.id)
    with pytest.raises(AssetNotFoundError):
        await manager.delete_asset(asset.id)


@pytest.mark.asyncio
async def test_search_assets(storage, user):
    manager = AssetManager(storage)
    await manager.create_asset(asset_payload(user.id, name="Harbour Warehouse", value=200000))
    await manager.create_asset(asset_payload(user.id, name="Invoice Pack", type="invoice",
                                             value=5000, metadata={}))
    await manager.create_asset(asset_payload(user.id, name="City Loft", value=900000))

    assert [a.name for a in await manager.search_assets("real_estate")] == ["Harbour Warehouse", "City Loft"]
    assert len(await manager.search_assets("all")) == 3
    assert [a.name for a in await manager.search_assets(min_value=6000, max_value=500000)] == ["Harbour Warehouse"]
    assert [a.name for a in await manager.search_assets(search="LOFT")] == ["City Loft"]


# Compliance

@pytest.mark.asyncio
async def test_compliance_lifecycle(storage, user):
    asset = await AssetManager(storage).create_asset(asset_payload(user.id))
    manager = ComplianceManager(storage)

    with pytest.raises(ComplianceNotFoundError):
        await manager.get_compliance_for_asset(asset.id)

    record = await manager.create_compliance({"assetId": asset.id, "jurisdiction": "UK"})
    assert record.kyc_required is True
    assert (await manager.get_compliance_for_asset(asset.id)).id == record.id

    with pytest.raises(ComplianceAlreadyExistsError):
        await manager.create_compliance({"assetId": asset.id, "jurisdiction": "US"})

    updated = await manager.update_compliance(record.id, {"kycCompleted": True, "complianceScore": 80})
    assert updated.kyc_completed is True
    assert updated.compliance_score == 80
    assert updated.jurisdiction == "UK"


@pytest.mark.asyncio
async def test_compliance_errors(storage):
    manager = ComplianceManager(storage)
    with pytest.raises(AssetNotFoundError):
        await manager.create_compliance({"assetId": 5, "jurisdiction": "US"})
    with pytest.raises(ComplianceNotFoundError):
        await manager.update_compliance(5, {"kycCompleted": True})
    with pytest.raises(ValidationError):
        await manager.create_compliance({"assetId": 5, "jurisdiction": "US", "kycRequired": "yes"})


def test_compliance_templates():
    ids = [t["id"] for t in templates_for("US")]
    assert ids[-1] == "CUSTOM"
    assert "US_RE_STD_1" in ids
    assert templates_for("Mars") == [{"id": "CUSTOM", "name": "Custom Template"}]
    assert "MiCA" in guidance_for("EU")
    assert estimated_readiness(True, "US_RE_STD_1") == 90
    assert estimated_readiness(True, None) == 50
    assert estimated_readiness(False, "US_RE_STD_1") == 50


# Transactions

@pytest.mark.asyncio
async def test_create_transaction(storage, user):
    asset = await AssetManager(storage).create_asset(asset_payload(user.id))
    manager = TransactionManager(storage)

    tx = await manager.create_transaction({
        "assetId": asset.id, "buyerId": user.id, "tokenAmount": 3,
        "valueAmount": 1500, "transactionType": "purchase", "status": "completed"
    })

    assert tx.buyer_id == user.id
    assert [t.id for t in await manager.get_transactions_by_asset(asset.id)] == [tx.id]
    assert [t.id for t in await manager.get_transactions_by_user(user.id)] == [tx.id]


@pytest.mark.asyncio
async def test_create_transaction_validation(storage, user):
    asset = await AssetManager(storage).create_asset(asset_payload(user.id))
    manager = TransactionManager(storage)
    base = {"assetId": asset.id, "tokenAmount": 1, "valueAmount": 10,
            "transactionType": "sale", "status": "pending"}

    with pytest.raises(ValidationError):
        await manager.create_transaction({**base, "tokenAmount": 0})
    with pytest.raises(ValidationError):
        await manager.create_transaction({**base, "tokenAmount": float("nan")})
    with pytest.raises(ValidationError):
        await manager.create_transaction({**base, "valueAmount": float("inf")})
    with pytest.raises(ValidationError):
        await manager.create_transaction({**base, "buyerId": 1, "sellerId": 1})
    with pytest.raises(AssetNotFoundError):
        await manager.create_transaction({**base, "assetId": 404})


@pytest.mark.asyncio
async def test_update_transaction(storage, user):
    asset = await AssetManager(storage).create_asset(asset_payload(user.id))
    manager = TransactionManager(storage)
    tx = await manager.create_transaction({
        "assetId": asset.id, "sellerId": user.id, "tokenAmount": 1, "valueAmount": 10,
        "transactionType": "listing", "status": "active"
    })

    updated = await manager.update_transaction(tx.id, {"status": "completed", "transactionHash": "0xabc"})
    assert updated.status == "completed"
    assert updated.transaction_type == "listing"

    with pytest.raises(ValidationError) as exc_info:
        await manager.update_transaction(tx.id, {"transactionType": "sale"})
    assert _fields(exc_info.value) == {"transactionType"}
    with pytest.raises(ValidationError):
        await manager.update_transaction(tx.id, {"buyerId": 2})
    with pytest.raises(TransactionNotFoundError):
        await manager.update_transaction(99, {"status": "failed"})


# Regulatory updates

@pytest.mark.asyncio
async def test_regulatory_updates(storage):
    manager = RegulatoryUpdateManager(storage)
    created = await manager.create({
        "title": "MiCA", "description": "New rules", "jurisdiction": "EU",
        "severity": "warning", "assetTypesAffected": ["real_estate", "real_estate", "invoice"]
    })

    assert created.asset_types_affected == ["real_estate", "invoice"]
    assert (await manager.get(created.id)).title == "MiCA"
    assert [u.id for u in await manager.get_by_jurisdiction("EU")] == [created.id]
    assert await manager.get_by_jurisdiction("US") == []
    with pytest.raises(RegulatoryUpdateNotFoundError):
        await manager.get(42)
    with pytest.raises(ValidationError):
        await manager.create({"title": "x", "description": "y", "jurisdiction": "US", "severity": "panic"})


@pytest.mark.asyncio
async def test_active_updates_drops_expired(storage):
    manager = RegulatoryUpdateManager(storage)
    now = datetime(2024, 6, 1, tzinfo=timezone.utc)
    base = {"title": "t", "description": "d", "jurisdiction": "US", "severity": "info"}
    expired = await manager.create({**base, "expiryDate": now - timedelta(days=1)})
    current = await manager.create({**base, "expiryDate": now + timedelta(days=1)})
    open_ended = await manager.create(base)
    naive = await manager.create({**base, "expiryDate": datetime(2024, 7, 1)})

    active = active_updates(await manager.get_all(), now)

    assert [u.id for u in active] == [current.id, open_ended.id, naive.id]
    assert expired.id not in [u.id for u in active]
