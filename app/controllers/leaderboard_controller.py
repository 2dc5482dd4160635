"""
Controlador de leaderboard - Tabla de posiciones de una liga
"""

from fastapi import APIRouter

from app.controllers.errors import http_error
from app.core.dependencies import CurrentUser, Database, require_league_membership
from app.core.errors import NotFoundError, TipovackaError
from app.models.leaderboard import LeaderboardData
from app.repositories.league_repository import LeagueRepository
from app.services.leaderboard_service import LeaderboardService


router = APIRouter(prefix="/leagues", tags=["leaderboard"])


@router.get("/{league_id}/leaderboard", response_model=LeaderboardData)
async def get_leaderboard(
    league_id: int,
    user: CurrentUser,
    db: Database
):
    """
    Leaderboard de la liga con premios y multas.

    Empates reciben posiciones consecutivas (20, 20, 10 -> 1, 2, 3).
    Solo los participantes activos de la liga pueden verla.
    """
    try:
        if await LeagueRepository(db).get_by_id(league_id) is None:
            raise NotFoundError(f"League {league_id} not found")
        participant = await require_league_membership(db, league_id, user)
        return await LeaderboardService(db).get_leaderboard(
            league_id,
            current_league_user_id=participant.id
        )
    except TipovackaError as e:
        raise http_error(e)
