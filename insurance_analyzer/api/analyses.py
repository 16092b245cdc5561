"""
Policy analysis API routes.
"""
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlalchemy.orm import Session

from insurance_analyzer.dependencies import get_current_user, get_db
from insurance_analyzer.models.analysis import Analysis
from insurance_analyzer.models.policy import Policy
from insurance_analyzer.models.user import User
from insurance_analyzer.schemas.analysis_schema import (
    AnalysisListResponse,
    AnalysisOut,
    AnalysisPolicyOut,
    CreateAnalysisRequest,
    CreateAnalysisResponse,
    CreatedAnalysisOut,
)
from insurance_analyzer.services import email_service
from insurance_analyzer.workers.analysis_worker import run_policy_analysis

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/analyses", tags=["Analysis"])


def _analysis_out(analysis: Analysis) -> AnalysisOut:
    return AnalysisOut(
        id=analysis.id,
        contract_id=analysis.policy_id,
        ai_model=analysis.ai_model,
        ai_tokens_used=analysis.ai_tokens_used,
        analysis_result=analysis.analysis_result,
        created_at=analysis.created_at,
        updated_at=analysis.updated_at,
        policy=AnalysisPolicyOut.model_validate(analysis.policy),
    )


def _owned_analyses(db: Session, user: User):
    return (
        db.query(Analysis)
        .join(Policy, Analysis.policy_id == Policy.id)
        .filter(Policy.user_id == user.id, Policy.is_deleted.is_(False))
    )


@router.post("", response_model=CreateAnalysisResponse, status_code=201)
def create_analysis(
    body: CreateAnalysisRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Run the analysis pipeline for one policy.

    Synchronous: the response is sent once the report is stored. The
    "analysis ready" e-mail goes out after the response.
    """
    if not body.policy_id:
        raise HTTPException(status_code=400, detail="policyId is required")

    policy = (
        db.query(Policy)
        .filter(Policy.id == body.policy_id, Policy.user_id == current_user.id, Policy.is_deleted.is_(False))
        .first()
    )
    if not policy:
        raise HTTPException(status_code=404, detail="Policy not found")

    # Advisory only; the unique constraint on analyses.contract_id backs it up.
    existing = db.query(Analysis.id).filter(Analysis.policy_id == policy.id).first()
    if existing:
        raise HTTPException(status_code=400, detail="Analysis already exists for this policy")

    try:
        analysis = run_policy_analysis(db, policy)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Analysis failed: {e}")

    background_tasks.add_task(
        email_service.send_analysis_complete_email,
        current_user.id,
        current_user.email,
        current_user.name,
        policy.original_file_name,
        analysis.id,
        policy.id,
    )

    return CreateAnalysisResponse(
        analysis=CreatedAnalysisOut(
            id=analysis.id,
            contract_id=analysis.policy_id,
            ai_model=analysis.ai_model,
            ai_tokens_used=analysis.ai_tokens_used,
            created_at=analysis.created_at,
        )
    )


@router.get("", response_model=AnalysisListResponse)
async def list_analyses(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    analyses = _owned_analyses(db, current_user).order_by(Analysis.created_at.desc()).all()
    items = [_analysis_out(a) for a in analyses]
    return AnalysisListResponse(analyses=items, total=len(items))


@router.get("/{analysis_id}", response_model=AnalysisOut)
async def get_analysis(
    analysis_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    analysis = _owned_analyses(db, current_user).filter(Analysis.id == analysis_id).first()
    if not analysis:
        raise HTTPException(status_code=404, detail="Analysis not found")
    return _analysis_out(analysis)
