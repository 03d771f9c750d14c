from fastapi import APIRouter

from localdeals.api.deals import router as deals_router

api_router = APIRouter()
api_router.include_router(deals_router)
