"""
Human review API routes: paid expert review of a policy or analysis.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from insurance_analyzer.constants import HumanReviewStatus
from insurance_analyzer.dependencies import get_current_user, get_db
from insurance_analyzer.models.analysis import Analysis
from insurance_analyzer.models.comparison import Comparison
from insurance_analyzer.models.human_review import HumanReview
from insurance_analyzer.models.policy import Policy
from insurance_analyzer.models.user import User
from insurance_analyzer.schemas.billing_schema import (
    HumanReviewCreateResponse,
    HumanReviewListResponse,
    HumanReviewOut,
    HumanReviewRequest,
    PaymentIntentOut,
)
from insurance_analyzer.services import billing_service
from insurance_analyzer.services.billing_service import BillingError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/human-reviews", tags=["Billing"])


def _check_targets(db: Session, body: HumanReviewRequest, user: User) -> None:
    """404 unless every referenced object belongs to the user."""
    if body.policy_id:
        found = db.query(Policy.id).filter(
            Policy.id == body.policy_id, Policy.user_id == user.id, Policy.is_deleted.is_(False)
        ).first()
        if not found:
            raise HTTPException(status_code=404, detail="Policy not found")
    if body.analysis_id:
        found = (
            db.query(Analysis.id)
            .join(Policy, Analysis.policy_id == Policy.id)
            .filter(Analysis.id == body.analysis_id, Policy.user_id == user.id)
            .first()
        )
        if not found:
            raise HTTPException(status_code=404, detail="Analysis not found")
    if body.comparison_id:
        found = db.query(Comparison.id).filter(
            Comparison.id == body.comparison_id, Comparison.user_id == user.id
        ).first()
        if not found:
            raise HTTPException(status_code=404, detail="Comparison not found")


@router.post("", response_model=HumanReviewCreateResponse, status_code=201)
def request_human_review(
    body: HumanReviewRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not (body.policy_id or body.analysis_id or body.comparison_id):
        raise HTTPException(
            status_code=400, detail="One of policyId, analysisId or comparisonId is required"
        )
    _check_targets(db, body, current_user)

    review = HumanReview(
        user_id=current_user.id,
        policy_id=body.policy_id,
        analysis_id=body.analysis_id,
        comparison_id=body.comparison_id,
        status=HumanReviewStatus.PENDING,
    )
    db.add(review)
    db.commit()
    db.refresh(review)

    try:
        client_secret, payment = billing_service.create_human_review_payment(db, current_user, review)
    except BillingError as e:
        logger.error(f"Payment setup failed for human review {review.id}: {e}")
        review.status = HumanReviewStatus.CANCELLED
        db.commit()
        raise HTTPException(status_code=500, detail="Failed to create payment")

    logger.info(f"Human review {review.id} requested by user {current_user.id}")

    return HumanReviewCreateResponse(
        review_id=review.id,
        payment_intent=PaymentIntentOut(client_secret=client_secret, amount=payment.amount),
        message="Complete the payment to start your human review",
    )


@router.get("", response_model=HumanReviewListResponse)
async def list_human_reviews(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    reviews = (
        db.query(HumanReview)
        .filter(HumanReview.user_id == current_user.id)
        .order_by(HumanReview.requested_at.desc())
        .all()
    )
    return HumanReviewListResponse(reviews=[HumanReviewOut.model_validate(r) for r in reviews])
