"""
Pydantic schemas for analysis request / response models.
"""
from datetime import date, datetime
from typing import List, Optional

from insurance_analyzer.constants import PolicyStatus
from insurance_analyzer.schemas.base import CamelModel


class CreateAnalysisRequest(CamelModel):
    # Optional so a missing id gets the route's own message.
    policy_id: Optional[str] = None


class CreatedAnalysisOut(CamelModel):
    id: str
    contract_id: str
    ai_model: str
    ai_tokens_used: int
    created_at: datetime


class CreateAnalysisResponse(CamelModel):
    success: bool = True
    analysis: CreatedAnalysisOut


class AnalysisPolicyOut(CamelModel):
    id: str
    original_file_name: str
    coverage_start: date
    coverage_end: Optional[date] = None
    status: PolicyStatus


class AnalysisOut(CamelModel):
    id: str
    contract_id: str
    ai_model: str
    ai_tokens_used: int
    analysis_result: str
    created_at: datetime
    updated_at: datetime
    policy: AnalysisPolicyOut


class AnalysisListResponse(CamelModel):
    analyses: List[AnalysisOut]
    total: int
