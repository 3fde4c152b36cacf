"""Tests for the tokenization wizard."""

import asyncio

import pytest
import pytest_asyncio

from assets import AssetManager
from compliance import ComplianceManager
from ipfs import ContentStore, ContentStoreError, Document, SimulatedContentStore
from ledger import MintResult, SimulatedLedger, TokenMinter
from wizard import (
    PipelineError, Step, StepValidationError, SubmissionInProgressError,
    TokenizationWizard, WizardError
)


class RecordingStore(ContentStore):
    """Content store that remembers what it was given."""

    def __init__(self, fail: bool = False):
        self.files = []
        self.metadata = []
        self.fail = fail

    async def store_file(self, document):
        self.files.append(document)
        return "ipfs://QmDocument"

    async def store_metadata(self, metadata):
        if self.fail:
            raise ContentStoreError("node unavailable")
        self.metadata.append(metadata)
        return "ipfs://QmMetadata"


class RecordingMinter(TokenMinter):
    def __init__(self, fail: bool = False, delay: float = 0):
        self.calls = []
        self.fail = fail
        self.delay = delay

    async def mint(self, chain, name, symbol, supply):
        self.calls.append((chain, name, symbol, supply))
        await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError("deployment reverted")
        return MintResult(contract_address="0xcontract", transaction_hash="0xhash")


class FailingComplianceManager(ComplianceManager):
    async def create_compliance(self, data):
        raise RuntimeError("compliance store down")


@pytest_asyncio.fixture
async def make_wizard(storage, user):
    """Factory for wizards bound to the test store and user."""
    def factory(content_store=None, minter=None, compliance=None, call_timeout=5.0):
        return TokenizationWizard(
            AssetManager(storage),
            compliance or ComplianceManager(storage),
            content_store or RecordingStore(),
            minter or RecordingMinter(),
            user_id=user.id,
            call_timeout=call_timeout
        )
    return factory


def _fill(wizard: TokenizationWizard) -> TokenizationWizard:
    """Walk a wizard to the Deploy step with valid drafts."""
    wizard.select_type("equipment")
    wizard.select_subtype("manufacturing")
    wizard.next_step()
    wizard.update_asset(name="Press Line", value=80000, tokenized=25, company="Acme",
                        metadata={"manufacturer": "Acme", "machine_count": 3})
    wizard.next_step()
    wizard.update_compliance(jurisdiction="EU", template_used="EU_RE_STD_1")
    wizard.next_step()
    return wizard


@pytest.mark.asyncio
async def test_step_gates(make_wizard):
    """Test each step only advances once its fields are filled."""
    wizard = make_wizard()

    wizard.select_type(None)
    assert not wizard.can_proceed()
    with pytest.raises(StepValidationError):
        wizard.next_step()

    wizard.select_type("invoice")
    assert wizard.next_step() == Step.ASSET_DETAILS

    assert not wizard.can_proceed()
    wizard.update_asset(name="Receivables", value=1000)
    assert not wizard.can_proceed()
    wizard.update_asset(tokenized=0)
    assert not wizard.can_proceed()
    wizard.update_asset(tokenized=40)
    assert wizard.next_step() == Step.COMPLIANCE

    wizard.update_compliance(jurisdiction="")
    assert not wizard.can_proceed()
    wizard.update_compliance(jurisdiction="UK")
    assert wizard.next_step() == Step.DEPLOY

    with pytest.raises(StepValidationError):
        wizard.next_step()


@pytest.mark.asyncio
async def test_previous_step(make_wizard):
    wizard = make_wizard()
    with pytest.raises(WizardError):
        wizard.previous_step()
    wizard.next_step()
    assert wizard.previous_step() == Step.ASSET_SELECTION


@pytest.mark.asyncio
async def test_draft_editing(make_wizard):
    wizard = make_wizard()

    wizard.select_type("real_estate")
    wizard.select_subtype("residential")
    assert wizard.subtype_choices() == ("commercial", "residential")
    wizard.select_type("invoice")
    assert wizard.asset_draft["subtype"] == ""

    wizard.update_asset(value=5000, tokenized=20)
    assert wizard.asset_draft["tokenized_value"] == pytest.approx(1000)
    wizard.update_asset(value=10000)
    assert wizard.asset_draft["tokenized_value"] == pytest.approx(2000)

    with pytest.raises(WizardError):
        wizard.update_asset(colour="red")
    for bad in (True, "100", float("inf")):
        with pytest.raises(WizardError):
            wizard.update_asset(value=bad)
    assert wizard.asset_draft["value"] == 10000
    wizard.update_asset(tokenized=None)
    assert wizard.asset_draft["tokenized_value"] == 0
    with pytest.raises(WizardError):
        wizard.select_type("boat")


@pytest.mark.asyncio
async def test_review(make_wizard):
    wizard = _fill(make_wizard())
    review = wizard.review()

    assert review["token"]["symbol"] == "TOKPRE"
    assert review["token"]["supply"] == 80000
    assert review["token"]["network"] == "polygon"
    assert review["token"]["estimatedGasFee"] == "$0.1-0.5"
    assert review["compliance"]["estimatedReadiness"] == 90
    assert review["asset"]["tokenizedValue"] == pytest.approx(20000)
    assert review["documents"] == []


@pytest.mark.asyncio
async def test_submit_creates_asset_and_compliance(make_wizard, storage):
    store = RecordingStore()
    minter = RecordingMinter()
    wizard = _fill(make_wizard(content_store=store, minter=minter))
    wizard.attach_document(Document(filename="deed.pdf", content=b"%PDF"))

    asset, record = await wizard.submit()

    assert asset.status == "active"
    assert asset.ipfs_hash == "ipfs://QmDocument"
    assert asset.contract_address == "0xcontract"
    assert asset.tokenized_value == pytest.approx(20000)
    assert asset.company == "Acme"
    assert asset.location is None
    assert record.asset_id == asset.id
    assert record.jurisdiction == "EU"
    assert record.template_used == "EU_RE_STD_1"

    assert minter.calls == [("polygon", "Press Line", "TOKPRE", 80000)]
    assert [d.filename for d in store.files] == ["deed.pdf"]
    assert store.metadata[0]["manufacturer"] == "Acme"
    assert "createdAt" in store.metadata[0]
    assert wizard.notifications[-1].title == "Asset Created"
    assert not wizard.submitting


@pytest.mark.asyncio
async def test_submit_without_document_uses_metadata_reference(make_wizard):
    wizard = _fill(make_wizard())
    asset, _ = await wizard.submit()
    assert asset.ipfs_hash == "ipfs://QmMetadata"


@pytest.mark.asyncio
async def test_submit_only_from_deploy(make_wizard):
    with pytest.raises(WizardError):
        await make_wizard().submit()


@pytest.mark.asyncio
async def test_mint_failure_creates_nothing(make_wizard, storage):
    wizard = _fill(make_wizard(minter=RecordingMinter(fail=True)))

    with pytest.raises(PipelineError) as exc_info:
        await wizard.submit()

    assert exc_info.value.stage == "mint"
    assert await storage.get_all_assets() == []
    assert wizard.notifications[-1].variant == "destructive"
    assert not wizard.submitting


@pytest.mark.asyncio
async def test_metadata_failure_stops_before_mint(make_wizard, storage):
    minter = RecordingMinter()
    wizard = _fill(make_wizard(content_store=RecordingStore(fail=True), minter=minter))

    with pytest.raises(PipelineError) as exc_info:
        await wizard.submit()

    assert exc_info.value.stage == "metadata"
    assert isinstance(exc_info.value.cause, ContentStoreError)
    assert minter.calls == []


@pytest.mark.asyncio
async def test_mint_timeout(make_wizard, storage):
    wizard = _fill(make_wizard(minter=RecordingMinter(delay=1), call_timeout=0.05))

    with pytest.raises(PipelineError) as exc_info:
        await wizard.submit()

    assert exc_info.value.stage == "mint"
    assert isinstance(exc_info.value.cause, asyncio.TimeoutError)
    assert await storage.get_all_assets() == []


@pytest.mark.asyncio
async def test_compliance_failure_removes_asset(make_wizard, storage):
    """Test a submission either creates both records or neither."""
    wizard = _fill(make_wizard(compliance=FailingComplianceManager(storage)))

    with pytest.raises(PipelineError) as exc_info:
        await wizard.submit()

    assert exc_info.value.stage == "compliance"
    assert await storage.get_all_assets() == []


@pytest.mark.asyncio
async def test_one_submission_at_a_time(make_wizard, storage):
    wizard = _fill(make_wizard(minter=RecordingMinter(delay=0.05)))

    first = asyncio.create_task(wizard.submit())
    await asyncio.sleep(0)
    assert wizard.submitting
    with pytest.raises(SubmissionInProgressError):
        await wizard.submit()

    await first
    assert len(await storage.get_all_assets()) == 1


@pytest.mark.asyncio
async def test_simulated_collaborators(make_wizard):
    wizard = _fill(make_wizard(content_store=SimulatedContentStore(0), minter=SimulatedLedger(0)))
    asset, _ = await wizard.submit()

    assert asset.ipfs_hash.startswith("ipfs://Qm")
    assert asset.contract_address.startswith("0x")
    assert len(asset.contract_address) == 42
