"""
Controlador de salud - Endpoint de comprobación del servicio
"""

from fastapi import APIRouter
from pydantic import BaseModel

from app.core.config import get_settings
from app.database import Database


router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Respuesta del chequeo de estado."""
    status: str
    database: str
    environment: str


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Comprueba que la API responde y si hay conexión a MongoDB."""
    return HealthResponse(
        status="ok",
        database="connected" if Database.db is not None else "disconnected",
        environment=get_settings().app_env,
    )
