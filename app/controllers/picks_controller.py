"""
Controlador de picks - Endpoints para las predicciones de los participantes
"""

from typing import Any

from fastapi import APIRouter, Body, HTTPException, Response, status
from pydantic import ValidationError as PayloadValidationError

from app.controllers.errors import http_error
from app.core.dependencies import CurrentUser, Database, require_league_membership
from app.core.errors import TipovackaError
from app.models.event import EventCategory
from app.models.pick import PAYLOAD_MODELS, FriendPredictions, ParticipantPicks, PickResult
from app.services.pick_service import PickService


router = APIRouter(prefix="/leagues/{league_id}", tags=["picks"])


@router.post("/picks/{category}/{event_id}", response_model=PickResult)
async def submit_pick(
    league_id: int,
    category: EventCategory,
    event_id: int,
    user: CurrentUser,
    db: Database,
    response: Response,
    body: dict[str, Any] = Body(...)
):
    """
    Crear o actualizar un pick.

    El participante puede cambiar su pick hasta el deadline del evento;
    desde ese momento queda bloqueado.
    """
    try:
        payload = PAYLOAD_MODELS[category].model_validate(body)
    except PayloadValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.errors(include_url=False, include_context=False)
        )

    try:
        result = await PickService(db).submit_pick(user.id, league_id, category, event_id, payload)
    except TipovackaError as e:
        raise http_error(e)

    response.status_code = status.HTTP_201_CREATED if result.created else status.HTTP_200_OK
    return result


@router.delete("/picks/{category}/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_pick(
    league_id: int,
    category: EventCategory,
    event_id: int,
    user: CurrentUser,
    db: Database
):
    """Retirar el pick propio (solo antes del deadline)"""
    try:
        await PickService(db).delete_pick(user.id, league_id, category, event_id)
    except TipovackaError as e:
        raise http_error(e)


@router.get("/picks/{category}/{event_id}/friends", response_model=FriendPredictions)
async def get_friend_predictions(
    league_id: int,
    category: EventCategory,
    event_id: int,
    user: CurrentUser,
    db: Database
):
    """
    Picks de los demás participantes.

    Mientras el evento esté abierto retorna is_locked=false y una lista vacía.
    """
    try:
        return await PickService(db).get_friend_predictions(user.id, league_id, category, event_id)
    except TipovackaError as e:
        raise http_error(e)


@router.get("/participants/{league_user_id}/picks", response_model=ParticipantPicks)
async def get_participant_picks(
    league_id: int,
    league_user_id: int,
    user: CurrentUser,
    db: Database
):
    """Historial de picks de un participante de la liga"""
    try:
        await require_league_membership(db, league_id, user)
        return await PickService(db).get_participant_picks(league_id, league_user_id)
    except TipovackaError as e:
        raise http_error(e)
