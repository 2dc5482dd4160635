from fastapi import HTTPException

from app.core.errors import TipovackaError, TransientStorageError, status_code_for


def http_error(error: TipovackaError) -> HTTPException:
    """Traduce un error de dominio al HTTPException equivalente"""
    headers = {"Retry-After": "1"} if isinstance(error, TransientStorageError) else None
    return HTTPException(status_code=status_code_for(error), detail=str(error), headers=headers)
