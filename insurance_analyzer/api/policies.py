"""
Policy management API routes: upload, list, detail, download and soft delete.
"""
import re
import uuid
import logging
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from fastapi.concurrency import run_in_threadpool
from sqlalchemy import extract
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from insurance_analyzer.config import settings
from insurance_analyzer.constants import DATE_FORMAT_PATTERN, PDF_MIME_TYPE, PolicyStatus
from insurance_analyzer.db.base import utcnow
from insurance_analyzer.dependencies import get_current_user, get_db
from insurance_analyzer.models.policy import Policy
from insurance_analyzer.models.user import User
from insurance_analyzer.schemas.base import MessageResponse
from insurance_analyzer.schemas.policy_schema import (
    DownloadUrlResponse,
    PolicyAnalysisSummary,
    PolicyDetailOut,
    PolicyListResponse,
    PolicyOut,
    UploadedPolicyOut,
    UploadPolicyResponse,
)
from insurance_analyzer.services import s3_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/policies", tags=["Policies"])

_VALID_STATUSES = [s.value for s in PolicyStatus]


def sanitize_file_name(name: str) -> str:
    """Replace everything outside [a-zA-Z0-9.-] with an underscore."""
    return re.sub(r"[^a-zA-Z0-9.\-]", "_", name)


def build_s3_key(user_id: str, file_id: str, original_file_name: str) -> str:
    return f"policies/{user_id}/{file_id}/{sanitize_file_name(original_file_name)}"


def default_coverage_end(start: date) -> date:
    """One year after ``start``; Feb 29 rolls back to Feb 28."""
    try:
        return start.replace(year=start.year + 1)
    except ValueError:
        return start.replace(year=start.year + 1, day=28)


def _parse_date(value: str, field: str) -> date:
    if not re.match(DATE_FORMAT_PATTERN, value):
        raise HTTPException(status_code=400, detail=f"{field} must be in YYYY-MM-DD format")
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {field} date")


def _get_owned_policy(db: Session, policy_id: str, user: User, include_deleted: bool = False) -> Policy:
    query = db.query(Policy).filter(Policy.id == policy_id, Policy.user_id == user.id)
    if not include_deleted:
        query = query.filter(Policy.is_deleted.is_(False))
    policy = query.first()
    if not policy:
        raise HTTPException(status_code=404, detail="Policy not found")
    return policy


@router.get("", response_model=PolicyListResponse)
async def list_policies(
    year: Optional[int] = Query(None, description="Filter by coverage start year"),
    status: Optional[str] = Query(None, description="Filter by policy status"),
    limit: int = Query(50, description="Max policies to return (1-100)"),
    offset: int = Query(0, description="Number of policies to skip"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if limit < 1 or limit > 100:
        raise HTTPException(status_code=400, detail="limit must be between 1 and 100")
    if offset < 0:
        raise HTTPException(status_code=400, detail="offset must be >= 0")
    if year is not None and (year < 1900 or year > 2100):
        raise HTTPException(status_code=400, detail="year must be a valid year")
    if status is not None and status not in _VALID_STATUSES:
        raise HTTPException(status_code=400, detail=f"status must be one of: {', '.join(_VALID_STATUSES)}")

    query = db.query(Policy).filter(Policy.user_id == current_user.id, Policy.is_deleted.is_(False))
    if status:
        query = query.filter(Policy.status == PolicyStatus(status))
    if year is not None:
        query = query.filter(extract("year", Policy.coverage_start) == year)

    total = query.count()
    policies = query.order_by(Policy.uploaded_at.desc()).offset(offset).limit(limit).all()

    return PolicyListResponse(
        policies=[PolicyOut.model_validate(p) for p in policies],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.post("/upload", response_model=UploadPolicyResponse, status_code=201)
async def upload_policy(
    file: Optional[UploadFile] = File(None),
    coverage_start: Optional[str] = Form(None, alias="coverageStart"),
    coverage_end: Optional[str] = Form(None, alias="coverageEnd"),
    description: Optional[str] = Form(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    # ── Validate file ──
    if file is None:
        raise HTTPException(status_code=400, detail="No file provided")
    if file.content_type != PDF_MIME_TYPE:
        raise HTTPException(status_code=400, detail="File must be a PDF")

    file_bytes = await file.read()
    max_bytes = settings.MAX_FILE_SIZE_MB * 1024 * 1024
    if len(file_bytes) > max_bytes:
        raise HTTPException(
            status_code=400, detail=f"File size must be less than {settings.MAX_FILE_SIZE_MB}MB"
        )

    # ── Validate coverage window ──
    if not coverage_start:
        raise HTTPException(status_code=400, detail="coverageStart is required")
    start_date = _parse_date(coverage_start, "coverageStart")
    end_date = _parse_date(coverage_end, "coverageEnd") if coverage_end else None
    if end_date is not None and end_date <= start_date:
        raise HTTPException(status_code=400, detail="coverageEnd must be after coverageStart")

    # ── Upload to S3 ──
    file_id = str(uuid.uuid4())
    original_file_name = file.filename or "policy.pdf"
    s3_key = build_s3_key(current_user.id, file_id, original_file_name)
    bucket = settings.S3_BUCKET_NAME
    uploaded_at = utcnow()

    try:
        await run_in_threadpool(
            s3_storage.upload_file,
            file_bytes,
            s3_key,
            PDF_MIME_TYPE,
            {
                "userId": current_user.id,
                "originalFileName": original_file_name,
                "uploadedAt": uploaded_at.isoformat(),
            },
        )
    except Exception as e:
        logger.error(f"Failed to upload to S3: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to upload file to storage")

    # ── Save metadata to DB ──
    policy = Policy(
        user_id=current_user.id,
        file_name=file_id,
        original_file_name=original_file_name,
        s3_key=s3_key,
        s3_bucket=bucket,
        file_size=len(file_bytes),
        mime_type=PDF_MIME_TYPE,
        coverage_start=start_date,
        coverage_end=end_date or default_coverage_end(start_date),
        description=description,
        status=PolicyStatus.UPLOADED,
        uploaded_at=uploaded_at,
    )
    try:
        db.add(policy)
        db.commit()
        db.refresh(policy)
    except SQLAlchemyError as e:
        db.rollback()
        # The S3 object is left in place.
        logger.error(f"Failed to save policy metadata for {s3_key}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to save policy metadata")

    logger.info(f"Policy uploaded: {original_file_name} -> {s3_key}")

    return UploadPolicyResponse(
        policy=UploadedPolicyOut(
            id=policy.id,
            file_name=policy.original_file_name,
            coverage_start=policy.coverage_start,
            coverage_end=policy.coverage_end,
            description=policy.description,
            status=policy.status,
            uploaded_at=policy.uploaded_at,
        )
    )


@router.get("/{policy_id}", response_model=PolicyDetailOut)
async def get_policy(
    policy_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get a single policy, with its analysis summary when one exists."""
    policy = _get_owned_policy(db, policy_id, current_user)
    detail = PolicyDetailOut.model_validate(policy)
    if policy.analysis is not None:
        detail.analysis = PolicyAnalysisSummary.model_validate(policy.analysis)
    return detail


@router.get("/{policy_id}/download", response_model=DownloadUrlResponse)
async def download_policy(
    policy_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Presigned S3 URL for the original PDF."""
    policy = _get_owned_policy(db, policy_id, current_user)
    expires_in = settings.S3_PRESIGNED_URL_EXPIRES
    try:
        url = await run_in_threadpool(s3_storage.get_signed_url, policy.s3_key, expires_in, policy.s3_bucket)
    except Exception as e:
        logger.error(f"Could not presign {policy.s3_key}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to generate download URL")
    return DownloadUrlResponse(url=url, expires_in=expires_in)


@router.delete("/{policy_id}", response_model=MessageResponse)
async def delete_policy(
    policy_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Soft delete: the row and the S3 object stay, the policy disappears from listings."""
    policy = _get_owned_policy(db, policy_id, current_user, include_deleted=True)
    if policy.is_deleted:
        raise HTTPException(status_code=400, detail="Policy already deleted")

    policy.is_deleted = True
    db.commit()
    logger.info(f"Policy {policy_id} soft deleted by user {current_user.id}")

    return MessageResponse(message="Policy deleted successfully")
