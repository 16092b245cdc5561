"""Analysis pipeline: S3 PDF -> text -> LLM markdown report -> Analysis row."""
import logging

from sqlalchemy.orm import Session

from insurance_analyzer.constants import PolicyStatus
from insurance_analyzer.db.base import utcnow
from insurance_analyzer.models.analysis import Analysis
from insurance_analyzer.models.policy import Policy
from insurance_analyzer.services import openai_service, s3_storage
from insurance_analyzer.utils.text_extractor import extract_text_from_pdf

logger = logging.getLogger(__name__)


def _mark_failed(db: Session, policy_id: str) -> None:
    try:
        policy = db.query(Policy).filter(Policy.id == policy_id).first()
        if policy:
            policy.status = PolicyStatus.FAILED
            db.commit()
    except Exception as inner_e:
        db.rollback()
        logger.error(f"Could not update status to failed for policy {policy_id}: {inner_e}")


def run_policy_analysis(db: Session, policy: Policy) -> Analysis:
    """
    Analyze one policy synchronously.

    Moves the policy to ``processing``, downloads and parses the PDF, asks
    the LLM for the markdown report and stores it. On success the policy is
    ``analyzed``; on any failure it is ``failed`` and the error propagates.
    """
    policy_id = policy.id
    policy.status = PolicyStatus.PROCESSING
    db.commit()
    logger.info(f"Policy {policy_id} moved to processing")

    try:
        logger.info(f"Downloading PDF from S3: bucket={policy.s3_bucket}, key={policy.s3_key}")
        pdf_bytes = s3_storage.download_file(policy.s3_key, bucket=policy.s3_bucket)

        policy_text = extract_text_from_pdf(pdf_bytes)
        logger.info(f"PDF parsed for policy {policy_id}, {len(policy_text)} characters")

        completion = openai_service.generate_policy_analysis(policy_text)

        analysis = Analysis(
            policy_id=policy_id,
            ai_model=completion.model,
            ai_tokens_used=completion.tokens_used,
            analysis_prompt=completion.prompt,
            analysis_result=completion.markdown,
        )
        db.add(analysis)
        policy.status = PolicyStatus.ANALYZED
        policy.processed_at = utcnow()
        db.commit()
        db.refresh(analysis)
    except Exception as e:
        logger.error(f"Error analyzing policy {policy_id}: {e}", exc_info=True)
        db.rollback()
        _mark_failed(db, policy_id)
        raise

    logger.info(f"Analysis {analysis.id} created for policy {policy_id}")
    return analysis
