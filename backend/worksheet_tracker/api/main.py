from fastapi import APIRouter

from worksheet_tracker.api.routes import worksheets

api_router = APIRouter()
api_router.include_router(worksheets.router)
