"""Server-side tokenization endpoint.

Drives a ``TokenizationWizard`` through all four steps with the drafts sent
in one request, then runs the submission pipeline.
"""

import base64
import binascii
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, ConfigDict, Field, StrictInt
from pydantic.alias_generators import to_camel, to_snake

from assets import AssetManager
from compliance import ComplianceManager
from errors import DomainError, NotFoundError, ValidationError
from ipfs import DEFAULT_GATEWAY, Document, format_ipfs_uri
from storage import Storage
from users import UserManager
from wizard import PipelineError, TokenizationWizard, WizardError
from ..deps import get_storage, http_error, server_error

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/tokenize",
    tags=["Tokenization"]
)


class DocumentUpload(BaseModel):
    """A document sent inline as base64."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    filename: str = Field(..., min_length=1)
    content_base64: str
    content_type: str = 'application/octet-stream'


class TokenizeRequest(BaseModel):
    """Drafts collected by the wizard.

    ``asset`` and ``compliance`` use the camelCase field names of the asset
    and compliance records.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: StrictInt = 1
    asset: Dict[str, Any]
    compliance: Dict[str, Any] = Field(default_factory=dict)
    document: Optional[DocumentUpload] = None


def _snake_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    return {to_snake(key): value for key, value in data.items()}


def _decode_document(upload: DocumentUpload) -> Document:
    try:
        content = base64.b64decode(upload.content_base64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise WizardError(f"Document content is not valid base64: {e}") from e
    return Document(filename=upload.filename, content=content, content_type=upload.content_type)


def _fill_wizard(wizard: TokenizationWizard, request: TokenizeRequest) -> None:
    """Walk the wizard to the Deploy step, enforcing every step gate."""
    asset = _snake_keys(request.asset)
    asset_type = asset.pop('type', None)
    subtype = asset.pop('subtype', '')
    # derived by the wizard
    asset.pop('tokenized_value', None)

    wizard.select_type(asset_type)
    if subtype:
        wizard.select_subtype(subtype)
    wizard.next_step()

    wizard.update_asset(**asset)
    wizard.next_step()

    wizard.update_compliance(**_snake_keys(request.compliance))
    wizard.next_step()

    if request.document is not None:
        wizard.attach_document(_decode_document(request.document))


def _pipeline_error(error: PipelineError) -> HTTPException:
    if isinstance(error.cause, (ValidationError, NotFoundError)):
        return http_error(error.cause, "Error tokenizing asset")
    logger.error(f"Tokenization failed at {error.stage}: {error}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={'message': "Error tokenizing asset", 'stage': error.stage}
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def tokenize_asset(
    body: TokenizeRequest,
    request: Request,
    storage: Storage = Depends(get_storage)
) -> Dict[str, Any]:
    """Tokenize an asset in one call.

    Stores the document and metadata, mints the token, then creates the
    asset and its compliance record. Either both records are created or
    neither is.
    """
    state = request.app.state
    wizard = TokenizationWizard(
        AssetManager(storage),
        ComplianceManager(storage),
        state.content_store,
        state.minter,
        user_id=body.user_id,
        call_timeout=state.call_timeout
    )

    try:
        await UserManager(storage).get_user(body.user_id)
        _fill_wizard(wizard, body)
        review = wizard.review()
        asset, record = await wizard.submit()
    except PipelineError as e:
        raise _pipeline_error(e)
    except (WizardError, ValueError, TypeError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DomainError as e:
        raise http_error(e, "Error tokenizing asset")
    except Exception as e:
        raise server_error(e, "Error tokenizing asset")

    return {
        'asset': asset.to_json(),
        'compliance': record.to_json(),
        'notifications': [n.model_dump() for n in wizard.notifications],
        'review': review,
        'documentUrl': format_ipfs_uri(
            asset.ipfs_hash, state.settings.get('ipfs_gateway_url', DEFAULT_GATEWAY)
        )
    }
