"""
Controlador de Admin - Endpoints exclusivos para administradores
"""

from fastapi import APIRouter, Query, status
from pydantic import BaseModel

from app.controllers.errors import http_error
from app.core.dependencies import CurrentAdmin, Database
from app.core.errors import TipovackaError
from app.models.evaluator import EvaluatorRule, EvaluatorRuleInput
from app.models.event import (
    EventCategory,
    MatchResultUpdate,
    QuestionResultUpdate,
    SeriesResultUpdate,
    SpecialBetResultUpdate,
)
from app.models.league import PrizeTier, PrizeTierInput
from app.services.evaluators import EvaluatorService
from app.services.points_service import EvaluationSummary, PointsService
from app.services.prize_service import PrizeService
from app.services.result_service import ResultService


router = APIRouter(prefix="/admin", tags=["admin"])


# ============================================
# REQUEST / RESPONSE SCHEMAS
# ============================================

class PrizesRequest(BaseModel):
    """Configuración completa de premios y multas de una liga"""
    prizes: list[PrizeTierInput] = []
    fines: list[PrizeTierInput] = []


class PrizesResponse(BaseModel):
    prizes: list[PrizeTier]
    fines: list[PrizeTier]


# ============================================
# RESULTADOS
# ============================================

def _result_response(category: EventCategory, event_id: int, event) -> dict:
    return {
        "success": True,
        "message": f"Resultado de {category.value} {event_id} registrado correctamente",
        "event": event.model_dump(),
    }


@router.put("/matches/{match_id}/result")
async def set_match_result(
    match_id: int,
    request: MatchResultUpdate,
    admin: CurrentAdmin,
    db: Database
):
    """
    Registrar resultado de un partido.
    Solo administradores.

    No evalúa: los puntos se calculan con POST /admin/match/{id}/evaluate.
    """
    try:
        event = await ResultService(db).set_match_result(match_id, request)
    except TipovackaError as e:
        raise http_error(e)
    return _result_response(EventCategory.MATCH, match_id, event)


@router.put("/series/{series_id}/result")
async def set_series_result(
    series_id: int,
    request: SeriesResultUpdate,
    admin: CurrentAdmin,
    db: Database
):
    try:
        event = await ResultService(db).set_series_result(series_id, request)
    except TipovackaError as e:
        raise http_error(e)
    return _result_response(EventCategory.SERIES, series_id, event)


@router.put("/special-bets/{bet_id}/result")
async def set_special_bet_result(
    bet_id: int,
    request: SpecialBetResultUpdate,
    admin: CurrentAdmin,
    db: Database
):
    try:
        event = await ResultService(db).set_special_bet_result(bet_id, request)
    except TipovackaError as e:
        raise http_error(e)
    return _result_response(EventCategory.SPECIAL_BET, bet_id, event)


@router.put("/questions/{question_id}/result")
async def set_question_result(
    question_id: int,
    request: QuestionResultUpdate,
    admin: CurrentAdmin,
    db: Database
):
    try:
        event = await ResultService(db).set_question_result(question_id, request)
    except TipovackaError as e:
        raise http_error(e)
    return _result_response(EventCategory.QUESTION, question_id, event)


# ============================================
# EVALUACIÓN
# ============================================

@router.post("/{category}/{event_id}/evaluate", response_model=EvaluationSummary)
async def evaluate_event(
    category: EventCategory,
    event_id: int,
    admin: CurrentAdmin,
    db: Database
):
    """
    Calcular los puntos de todos los picks de un evento.

    Se puede evaluar una sola vez; un segundo intento responde 409.
    """
    try:
        return await PointsService(db).evaluate_event(category, event_id)
    except TipovackaError as e:
        raise http_error(e)


# ============================================
# PREMIOS Y MULTAS
# ============================================

@router.get("/leagues/{league_id}/prizes", response_model=PrizesResponse)
async def get_prizes(league_id: int, admin: CurrentAdmin, db: Database):
    try:
        prizes, fines = await PrizeService(db).get_prizes(league_id)
    except TipovackaError as e:
        raise http_error(e)
    return PrizesResponse(prizes=prizes, fines=fines)


@router.put("/leagues/{league_id}/prizes", response_model=PrizesResponse)
async def replace_prizes(
    league_id: int,
    request: PrizesRequest,
    admin: CurrentAdmin,
    db: Database
):
    """Reemplaza todos los tiers de la liga (rank 1..10, único por tipo)"""
    try:
        prizes, fines = await PrizeService(db).replace_prizes(league_id, request.prizes, request.fines)
    except TipovackaError as e:
        raise http_error(e)
    return PrizesResponse(prizes=prizes, fines=fines)


# ============================================
# EVALUADORES
# ============================================

@router.get("/leagues/{league_id}/evaluators", response_model=list[EvaluatorRule])
async def list_evaluators(league_id: int, admin: CurrentAdmin, db: Database):
    try:
        return await EvaluatorService(db).list_rules(league_id)
    except TipovackaError as e:
        raise http_error(e)


@router.put("/leagues/{league_id}/evaluators", response_model=EvaluatorRule)
async def upsert_evaluator(
    league_id: int,
    request: EvaluatorRuleInput,
    admin: CurrentAdmin,
    db: Database
):
    try:
        return await EvaluatorService(db).upsert_rule(league_id, request)
    except TipovackaError as e:
        raise http_error(e)


@router.delete("/leagues/{league_id}/evaluators", status_code=status.HTTP_204_NO_CONTENT)
async def delete_evaluator(
    league_id: int,
    admin: CurrentAdmin,
    db: Database,
    entity: EventCategory = Query(...),
    type: str = Query(..., description="Criterion name, e.g. exact_score")
):
    try:
        await EvaluatorService(db).delete_rule(league_id, entity, type)
    except TipovackaError as e:
        raise http_error(e)
