from fastapi import APIRouter
from src.api.v1.endpoints import matches, faces


api_router = APIRouter()

api_router.include_router(matches.router, prefix="/matches", tags=["matches"])
api_router.include_router(faces.router, prefix="/faces", tags=["faces"])
