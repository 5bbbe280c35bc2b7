# api/v1/router.py
from fastapi import APIRouter

from . import metrics, plans

api_router = APIRouter()

api_router.include_router(metrics.router, prefix="/metrics", tags=["Metrics"])
# plans live *under* the user resource, suggestions are stateless
api_router.include_router(plans.router, tags=["Plans"])
