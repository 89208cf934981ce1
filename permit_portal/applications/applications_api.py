"""
applications_api.py - Water Permit Applications API
===================================================
FastAPI router wrapping the application record codec and the application
store.

Endpoints:
  POST   /applications/encode           -> form -> storage patch (no write)
  POST   /applications/decode           -> storage row -> form (no read)
  POST   /applications                  -> create a draft or submitted application
  GET    /applications                  -> list stored applications (repeatable
                                           filters, created_at range)
  GET    /applications/{id}             -> stored row
  GET    /applications/{id}/form        -> reopen a draft as a form
  PUT    /applications/{id}             -> save a draft / submit a draft
  DELETE /applications/{id}             -> remove an application

Status selection:
  ?status=draft      -> "Save as draft"
  ?status=submitted  -> "Submit application"
Only applications still in draft can be reopened or updated.

Every encode/decode response carries an "issues" list (fallbacks, ignored
fragments, unreadable numbers) so the UI can highlight fields to re-check.
"""

from __future__ import annotations

import logging
from typing import Any, Literal, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request, Response

from .application_store import ApplicationStore, StatusConflictError
from .codec import decode_application, encode_application
from .config import CodecConfig
from .models import ApplicationForm, ApplicationStatus, CodecIssue, UserContext

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/applications", tags=["Applications - Record Codec"])

SaveStatus = Literal["draft", "submitted"]

DRAFT_ONLY_DETAIL = "Only draft applications can be edited"


# ==================================================================
# Dependencies
# ==================================================================

def get_store(request: Request) -> ApplicationStore:
    """
    Shared ApplicationStore from app.state.
    main.py sets app.state.store at startup.
    """
    return request.app.state.store


def get_codec_config(request: Request) -> CodecConfig:
    return getattr(request.app.state, "codec_config", None) or CodecConfig()


def get_user_context(request: Request) -> Optional[UserContext]:
    """Signed-in applicant. Authentication is handled upstream and may leave this unset."""
    return getattr(request.app.state, "user_context", None)


# ==================================================================
# Internal helpers
# ==================================================================

def _issues_payload(issues: list[CodecIssue]) -> list[dict[str, str]]:
    return [issue.as_dict() for issue in issues]


def _load_draft(store: ApplicationStore, application_id: str) -> dict[str, Any]:
    try:
        row = store.get_application(application_id)
    except ValueError as exc:
        logger.exception("Failed to load application %s", application_id)
        raise HTTPException(status_code=500, detail=str(exc))
    if row is None:
        raise HTTPException(status_code=404, detail="Application not found")
    if row.get("status") != ApplicationStatus.DRAFT.value:
        raise HTTPException(status_code=409, detail=DRAFT_ONLY_DETAIL)
    return row


# ==================================================================
# Pure transforms
# ==================================================================

@router.post("/encode", summary="Encode a form into a storage patch (nothing is saved)")
def encode_form(
    form: ApplicationForm,
    status: SaveStatus = Query(default="draft"),
    config: CodecConfig = Depends(get_codec_config),
) -> dict:
    issues: list[CodecIssue] = []
    record = encode_application(form, status, config, issues)
    return {"record": record, "issues": _issues_payload(issues)}


@router.post("/decode", summary="Decode a storage row into a form (nothing is read)")
def decode_record(
    record: dict[str, Any] = Body(...),
    user: Optional[UserContext] = Depends(get_user_context),
) -> dict:
    issues: list[CodecIssue] = []
    form = decode_application(record, user, issues)
    return {
        "form": form.model_dump(by_alias=True, exclude_none=True),
        "issues": _issues_payload(issues),
    }


# ==================================================================
# Stored applications
# ==================================================================

@router.post("", status_code=201, summary="Create an application from a form")
def create_application(
    form: ApplicationForm,
    status: SaveStatus = Query(default="draft"),
    store: ApplicationStore = Depends(get_store),
    config: CodecConfig = Depends(get_codec_config),
) -> dict:
    issues: list[CodecIssue] = []
    patch = encode_application(form, status, config, issues)
    row = store.create_application(patch)
    return {"record": row, "issues": _issues_payload(issues)}


@router.get("", summary="List stored applications")
def list_applications(
    status: Optional[list[str]] = Query(default=None, description="Accepted statuses, e.g. ?status=draft&status=submitted"),
    application_type: Optional[list[str]] = Query(default=None, description="Accepted application types"),
    province: Optional[list[str]] = Query(default=None, description="Accepted stored provinces, e.g. 'Kigali'"),
    district: Optional[list[str]] = Query(default=None),
    water_source: Optional[list[str]] = Query(default=None),
    sla_status: Optional[list[str]] = Query(default=None),
    applicant_id: Optional[str] = Query(default=None, description="Only this applicant's applications"),
    assigned_reviewer_id: Optional[str] = Query(default=None),
    assigned_inspector_id: Optional[str] = Query(default=None),
    created_from: Optional[str] = Query(default=None, description="ISO date or timestamp, inclusive"),
    created_to: Optional[str] = Query(default=None, description="ISO date or timestamp, inclusive"),
    store: ApplicationStore = Depends(get_store),
) -> dict:
    rows = store.list_applications(
        created_from=created_from,
        created_to=created_to,
        status=status,
        application_type=application_type,
        province=province,
        district=district,
        water_source=water_source,
        sla_status=sla_status,
        applicant_id=applicant_id,
        assigned_reviewer_id=assigned_reviewer_id,
        assigned_inspector_id=assigned_inspector_id,
    )
    return {"applications": rows, "total": len(rows)}


@router.get("/{application_id}", summary="Fetch a stored application row")
def get_application(
    application_id: str,
    store: ApplicationStore = Depends(get_store),
) -> dict:
    try:
        row = store.get_application(application_id)
    except ValueError as exc:
        logger.exception("Failed to load application %s", application_id)
        raise HTTPException(status_code=500, detail=str(exc))
    if row is None:
        raise HTTPException(status_code=404, detail="Application not found")
    return row


@router.get("/{application_id}/form", summary="Reopen a draft application for editing")
def get_application_form(
    application_id: str,
    store: ApplicationStore = Depends(get_store),
    user: Optional[UserContext] = Depends(get_user_context),
) -> dict:
    row = _load_draft(store, application_id)
    issues: list[CodecIssue] = []
    form = decode_application(row, user, issues)
    logger.info("Application %s loaded for editing (%d issues)", application_id, len(issues))
    return {
        "id": application_id,
        "form": form.model_dump(by_alias=True, exclude_none=True),
        "issues": _issues_payload(issues),
    }


@router.put("/{application_id}", summary="Save a draft or submit it")
def update_application(
    application_id: str,
    form: ApplicationForm,
    status: SaveStatus = Query(default="draft"),
    store: ApplicationStore = Depends(get_store),
    config: CodecConfig = Depends(get_codec_config),
) -> dict:
    issues: list[CodecIssue] = []
    patch = encode_application(form, status, config, issues)
    try:
        row = store.update_application(
            application_id, patch, expected_status=ApplicationStatus.DRAFT.value
        )
    except StatusConflictError as exc:
        logger.info("Refused update: %s", exc)
        raise HTTPException(status_code=409, detail=DRAFT_ONLY_DETAIL)
    except ValueError as exc:
        logger.exception("Failed to load application %s", application_id)
        raise HTTPException(status_code=500, detail=str(exc))
    if row is None:
        raise HTTPException(status_code=404, detail="Application not found")
    return {"record": row, "issues": _issues_payload(issues)}


@router.delete("/{application_id}", status_code=204, summary="Delete an application")
def delete_application(
    application_id: str,
    store: ApplicationStore = Depends(get_store),
) -> Response:
    if not store.delete_application(application_id):
        raise HTTPException(status_code=404, detail="Application not found")
    return Response(status_code=204)
