from fastapi import APIRouter

from deadline_push.api.schedules import router as schedules_router

api_router = APIRouter()
api_router.include_router(schedules_router)
