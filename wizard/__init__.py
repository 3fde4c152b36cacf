"""Tokenization wizard.

Walks a single asset through four steps, collecting an asset draft and a
compliance draft, then runs the submission pipeline:

1. store the uploaded document, if any
2. store the metadata bundle
3. mint the token
4. create the asset (status active)
5. create its compliance record

Every external call gets its own deadline. A failure stops the pipeline
and is raised as PipelineError naming the stage. If the compliance record
cannot be created the asset from step 4 is deleted again, so a submission
either creates both records or neither.
"""
import asyncio
import logging
import math
from datetime import datetime, timezone
from enum import IntEnum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel

from assets import AssetManager
from compliance import ComplianceManager, estimated_readiness, guidance_for
from errors import DomainError
from ipfs import ContentStore, Document
from ledger import TokenMinter, token_symbol
from models import Asset, AssetType, Compliance

logger = logging.getLogger(__name__)


class Step(IntEnum):
    ASSET_SELECTION = 0
    ASSET_DETAILS = 1
    COMPLIANCE = 2
    DEPLOY = 3


STEP_TITLES = ["Asset Selection", "Asset Details", "Compliance", "Deploy"]

SUBTYPES = {
    'real_estate': ('commercial', 'residential'),
    'invoice': ('individual', 'bundle'),
    'equipment': ('manufacturing', 'vehicles'),
}

GAS_FEE_ESTIMATES = {
    'ethereum': '$15-25',
    'polygon': '$0.1-0.5',
}

TOKEN_STANDARD = 'ERC-3643'

ASSET_FIELDS = (
    'name', 'subtype', 'description', 'location', 'company', 'value',
    'tokenized', 'liquidity', 'blockchain', 'metadata'
)
COMPLIANCE_FIELDS = (
    'jurisdiction', 'kyc_required', 'kyc_completed', 'template_used',
    'regulatory_notes', 'compliance_score'
)


class WizardError(Exception):
    """Base exception for wizard operations."""
    pass


class StepValidationError(WizardError):
    """Raised when the current step's requirements are not met."""
    pass


class SubmissionInProgressError(WizardError):
    """Raised when a submission is already running."""
    pass


class PipelineError(WizardError):
    """Raised when a submission stage fails.

    Attributes:
        stage: One of document, metadata, mint, asset, compliance
        cause: The underlying exception, if any
    """

    def __init__(self, stage: str, message: str, cause: Optional[BaseException] = None):
        self.stage = stage
        self.cause = cause
        super().__init__(message)


class Notification(BaseModel):
    title: str
    description: str
    variant: str = 'default'


def default_asset_draft(user_id: int) -> Dict[str, Any]:
    return {
        'name': '',
        'user_id': user_id,
        'type': AssetType.REAL_ESTATE.value,
        'subtype': '',
        'description': '',
        'location': '',
        'company': '',
        'value': 0.0,
        'tokenized': 0.0,
        'tokenized_value': 0.0,
        'liquidity': 'medium',
        'blockchain': 'polygon',
        'metadata': {},
    }


def default_compliance_draft() -> Dict[str, Any]:
    return {
        'jurisdiction': 'US',
        'kyc_required': True,
        'kyc_completed': False,
        'template_used': '',
        'regulatory_notes': '',
        'compliance_score': 0,
    }


def _blank_to_none(value: Any) -> Any:
    return None if value == '' else value


def _draft_number(name: str, value: Any) -> float:
    """A numeric draft field; None clears it to zero."""
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise WizardError(f"{name} must be a number")
    if not math.isfinite(value):
        raise WizardError(f"{name} must be a finite number")
    return float(value)


class TokenizationWizard:
    """Step-by-step creation of a tokenized asset."""

    def __init__(
        self,
        assets: AssetManager,
        compliance: ComplianceManager,
        content_store: ContentStore,
        minter: TokenMinter,
        user_id: int = 1,
        call_timeout: float = 30.0
    ):
        self.assets = assets
        self.compliance = compliance
        self.content_store = content_store
        self.minter = minter
        self.call_timeout = call_timeout

        self.step = Step.ASSET_SELECTION
        self.asset_draft = default_asset_draft(user_id)
        self.compliance_draft = default_compliance_draft()
        self.document: Optional[Document] = None
        self.notifications: List[Notification] = []
        self._submitting = False

    @property
    def submitting(self) -> bool:
        return self._submitting

    # Draft editing

    def select_type(self, asset_type: Optional[str]) -> None:
        """Pick the asset type; clears the subtype."""
        if asset_type is not None and asset_type not in SUBTYPES:
            raise WizardError(f"Unknown asset type: {asset_type}")
        self.asset_draft['type'] = asset_type
        self.asset_draft['subtype'] = ''

    def select_subtype(self, subtype: str) -> None:
        self.asset_draft['subtype'] = subtype

    def subtype_choices(self) -> Tuple[str, ...]:
        return SUBTYPES.get(self.asset_draft['type'], ())

    def update_asset(self, **fields: Any) -> None:
        """Set asset draft fields; tokenizedValue follows value and tokenized."""
        unknown = set(fields) - set(ASSET_FIELDS)
        if unknown:
            raise WizardError(f"Unknown asset fields: {', '.join(sorted(unknown))}")
        for name in ('value', 'tokenized'):
            if name in fields:
                fields[name] = _draft_number(name, fields[name])
        self.asset_draft.update(fields)
        if 'value' in fields or 'tokenized' in fields:
            self.asset_draft['tokenized_value'] = (
                self.asset_draft['value'] * self.asset_draft['tokenized'] / 100
            )

    def update_compliance(self, **fields: Any) -> None:
        unknown = set(fields) - set(COMPLIANCE_FIELDS)
        if unknown:
            raise WizardError(f"Unknown compliance fields: {', '.join(sorted(unknown))}")
        self.compliance_draft.update(fields)

    def attach_document(self, document: Optional[Document]) -> None:
        self.document = document

    # Navigation

    def can_proceed(self) -> bool:
        """Whether the current step's requirements are met."""
        draft = self.asset_draft
        if self.step == Step.ASSET_SELECTION:
            return bool(draft['type'])
        if self.step == Step.ASSET_DETAILS:
            return bool(draft['name']) and draft['value'] > 0 and draft['tokenized'] > 0
        if self.step == Step.COMPLIANCE:
            return bool(self.compliance_draft['jurisdiction'])
        return True

    def next_step(self) -> Step:
        """Advance one step.

        Raises:
            StepValidationError: If the current step is incomplete or already the last one
        """
        if self.step == Step.DEPLOY:
            raise StepValidationError("Already at the final step")
        if not self.can_proceed():
            raise StepValidationError(f"Complete the {STEP_TITLES[self.step]} step first")
        self.step = Step(self.step + 1)
        return self.step

    def previous_step(self) -> Step:
        """Go back one step.

        Raises:
            WizardError: If already at the first step
        """
        if self.step == Step.ASSET_SELECTION:
            raise WizardError("Already at the first step")
        self.step = Step(self.step - 1)
        return self.step

    def review(self) -> Dict[str, Any]:
        """Summary shown on the Deploy step."""
        draft = self.asset_draft
        compliance = self.compliance_draft
        return {
            'asset': {
                'name': draft['name'],
                'type': draft['type'],
                'subtype': draft['subtype'],
                'value': draft['value'],
                'tokenized': draft['tokenized'],
                'tokenizedValue': draft['tokenized_value'],
                'liquidity': draft['liquidity'],
            },
            'token': {
                'symbol': token_symbol(draft['name']),
                'supply': int(draft['value']),
                'network': draft['blockchain'],
                'standard': TOKEN_STANDARD,
                'estimatedGasFee': GAS_FEE_ESTIMATES.get(draft['blockchain']),
            },
            'compliance': {
                'jurisdiction': compliance['jurisdiction'],
                'template': compliance['template_used'] or None,
                'kycRequired': compliance['kyc_required'],
                'kycCompleted': compliance['kyc_completed'],
                'guidance': guidance_for(compliance['jurisdiction']),
                'estimatedReadiness': estimated_readiness(
                    compliance['kyc_required'], compliance['template_used']
                ),
            },
            'documents': [self.document.filename] if self.document else [],
        }

    # Submission

    def _notify(self, title: str, description: str, variant: str = 'default') -> None:
        self.notifications.append(Notification(title=title, description=description, variant=variant))

    async def _call(self, stage: str, awaitable) -> Any:
        try:
            return await asyncio.wait_for(awaitable, timeout=self.call_timeout)
        except asyncio.TimeoutError as e:
            raise PipelineError(stage, f"{stage} step timed out after {self.call_timeout}s", e) from e
        except Exception as e:
            raise PipelineError(stage, f"{stage} step failed: {e}", e) from e

    def _final_asset(self, ipfs_hash: str, contract_address: str,
                     metadata: Dict[str, Any]) -> Dict[str, Any]:
        draft = self.asset_draft
        return dict(
            name=draft['name'],
            user_id=draft['user_id'],
            type=draft['type'],
            subtype=_blank_to_none(draft['subtype']),
            description=_blank_to_none(draft['description']),
            location=_blank_to_none(draft['location']),
            company=_blank_to_none(draft['company']),
            value=draft['value'],
            tokenized=draft['tokenized'],
            tokenized_value=draft['tokenized_value'],
            liquidity=draft['liquidity'],
            blockchain=draft['blockchain'],
            status='active',
            ipfs_hash=ipfs_hash,
            contract_address=contract_address,
            metadata=metadata
        )

    async def submit(self) -> Tuple[Asset, Compliance]:
        """Run the submission pipeline.

        Returns:
            The created asset and compliance record

        Raises:
            WizardError: If not on the Deploy step
            SubmissionInProgressError: If a submission is already running
            PipelineError: If any stage fails
        """
        if self.step != Step.DEPLOY:
            raise WizardError("Submission is only possible from the Deploy step")
        if self._submitting:
            raise SubmissionInProgressError("A submission is already in progress")
        self._submitting = True

        try:
            self._notify("Processing", "Uploading files to IPFS...")
            draft = self.asset_draft

            document_ref = None
            if self.document is not None:
                document_ref = await self._call(
                    'document', self.content_store.store_file(self.document)
                )

            metadata = {
                **draft['metadata'],
                'description': draft['description'],
                'createdAt': datetime.now(timezone.utc).isoformat()
            }
            metadata_ref = await self._call(
                'metadata', self.content_store.store_metadata(metadata)
            )

            minted = await self._call('mint', self.minter.mint(
                draft['blockchain'],
                draft['name'],
                token_symbol(draft['name']),
                int(draft['value'])
            ))

            try:
                asset = await self.assets.create_asset(
                    self._final_asset(document_ref or metadata_ref, minted.contract_address, metadata)
                )
            except DomainError as e:
                raise PipelineError('asset', f"Failed to create asset: {e}", e) from e

            asset, record = await self._attach_compliance(asset)

        except PipelineError as e:
            logger.error(f"Tokenization failed at {e.stage}: {e}")
            self._notify("Error", f"Failed to tokenize asset: {e}", 'destructive')
            raise
        finally:
            self._submitting = False

        self._notify("Asset Created", "Your asset has been successfully tokenized.")
        logger.info(f"Tokenized asset {asset.id} ({asset.name}) at {asset.contract_address}")
        return asset, record

    async def _attach_compliance(self, asset: Asset) -> Tuple[Asset, Compliance]:
        draft = self.compliance_draft
        try:
            record = await self.compliance.create_compliance(dict(
                asset_id=asset.id,
                jurisdiction=draft['jurisdiction'],
                kyc_required=draft['kyc_required'],
                kyc_completed=draft['kyc_completed'],
                template_used=_blank_to_none(draft['template_used']),
                regulatory_notes=_blank_to_none(draft['regulatory_notes']),
                compliance_score=draft['compliance_score']
            ))
        except Exception as e:
            await self._discard(asset)
            raise PipelineError('compliance', f"Compliance record creation failed: {e}", e) from e
        return asset, record

    async def _discard(self, asset: Asset) -> None:
        try:
            await self.assets.delete_asset(asset.id)
            logger.info(f"Removed asset {asset.id} after compliance failure")
        except DomainError as e:
            logger.error(f"Could not remove asset {asset.id}: {e}")


__all__ = [
    'TokenizationWizard', 'Step', 'STEP_TITLES', 'SUBTYPES', 'Notification',
    'WizardError', 'StepValidationError', 'SubmissionInProgressError', 'PipelineError'
]
