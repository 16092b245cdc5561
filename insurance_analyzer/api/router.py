"""
Master API router: aggregates all sub-routers.
"""
from fastapi import APIRouter

from insurance_analyzer.api.analyses import router as analyses_router
from insurance_analyzer.api.auth import router as auth_router
from insurance_analyzer.api.human_reviews import router as human_reviews_router
from insurance_analyzer.api.policies import router as policies_router
from insurance_analyzer.api.subscriptions import router as subscriptions_router
from insurance_analyzer.api.user import router as user_router
from insurance_analyzer.api.webhooks import router as webhooks_router

api_router = APIRouter()

api_router.include_router(auth_router)
api_router.include_router(user_router)
api_router.include_router(policies_router)
api_router.include_router(analyses_router)
api_router.include_router(subscriptions_router)
api_router.include_router(human_reviews_router)
api_router.include_router(webhooks_router)
