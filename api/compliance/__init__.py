"""Compliance API endpoints."""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from compliance import ComplianceManager, guidance_for, template_catalog, templates_for
from errors import DomainError
from storage import Storage
from ..deps import get_storage, http_error, parse_id, server_error

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/compliance",
    tags=["Compliance"]
)


@router.get("/templates")
async def get_templates(jurisdiction: Optional[str] = Query(None)) -> Dict[str, Any]:
    """Legal templates and guidance.

    With a jurisdiction the templates offered there are returned, otherwise
    the whole catalog keyed by jurisdiction.
    """
    if jurisdiction:
        return {
            'jurisdiction': jurisdiction,
            'templates': templates_for(jurisdiction),
            'guidance': guidance_for(jurisdiction)
        }
    return {'templates': template_catalog()}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_compliance(
    body: Any = Body(...),
    storage: Storage = Depends(get_storage)
) -> Dict[str, Any]:
    """Create the compliance record of an asset; one per asset."""
    try:
        record = await ComplianceManager(storage).create_compliance(body)
        return record.to_json()
    except DomainError as e:
        raise http_error(e, "Error creating compliance")
    except Exception as e:
        raise server_error(e, "Error creating compliance")


@router.patch("/{compliance_id}")
async def update_compliance(
    compliance_id: str,
    body: Any = Body(...),
    storage: Storage = Depends(get_storage)
) -> Dict[str, Any]:
    cid = parse_id(compliance_id, "compliance")
    try:
        record = await ComplianceManager(storage).update_compliance(cid, body)
        return record.to_json()
    except DomainError as e:
        raise http_error(e, "Error updating compliance")
    except Exception as e:
        raise server_error(e, "Error updating compliance")
