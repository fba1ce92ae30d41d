from fastapi import APIRouter

from src.app.api.v1 import gyms, trainers, users

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(users.router)
api_router.include_router(gyms.router)
api_router.include_router(trainers.router)
