"""
Pydantic schemas for policy responses.
"""
from datetime import date, datetime
from typing import List, Optional

from insurance_analyzer.constants import PolicyStatus
from insurance_analyzer.schemas.base import CamelModel


class PolicyOut(CamelModel):
    id: str
    file_name: str
    original_file_name: str
    coverage_start: date
    coverage_end: Optional[date] = None
    description: Optional[str] = None
    status: PolicyStatus
    file_size: int
    uploaded_at: datetime
    processed_at: Optional[datetime] = None


class PolicyListResponse(CamelModel):
    policies: List[PolicyOut]
    total: int
    limit: int
    offset: int


class UploadedPolicyOut(CamelModel):
    id: str
    file_name: str          # the user's original file name
    coverage_start: date
    coverage_end: Optional[date] = None
    description: Optional[str] = None
    status: PolicyStatus
    uploaded_at: datetime


class UploadPolicyResponse(CamelModel):
    success: bool = True
    policy: UploadedPolicyOut


class PolicyAnalysisSummary(CamelModel):
    id: str
    ai_model: str
    ai_tokens_used: int
    created_at: datetime


class PolicyDetailOut(PolicyOut):
    analysis: Optional[PolicyAnalysisSummary] = None


class DownloadUrlResponse(CamelModel):
    url: str
    expires_in: int
