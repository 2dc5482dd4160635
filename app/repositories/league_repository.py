"""
LeagueRepository - ligas, participantes, equipos, jugadores y fases.
"""

from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.database import active
from app.models.league import League, LeagueUser, LeagueTeam, LeaguePlayer, MatchPhase


class LeagueRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.leagues = db["leagues"]
        self.league_users = db["league_users"]
        self.teams = db["league_teams"]
        self.players = db["league_players"]
        self.phases = db["match_phases"]

    async def get_by_id(self, league_id: int, session: Any = None) -> Optional[League]:
        doc = await self.leagues.find_one(active({"id": league_id}), session=session)
        return League(**doc) if doc else None

    async def get_league_user(self, league_user_id: int) -> Optional[LeagueUser]:
        doc = await self.league_users.find_one(active({"id": league_user_id}))
        return LeagueUser(**doc) if doc else None

    async def get_membership(self, league_id: int, user_id: str) -> Optional[LeagueUser]:
        """Participante activo de un usuario en una liga"""
        doc = await self.league_users.find_one(active({
            "league_id": league_id,
            "user_id": user_id,
            "active": True
        }))
        return LeagueUser(**doc) if doc else None

    async def get_active_participants(self, league_id: int) -> list[LeagueUser]:
        """Participantes que cuentan en el leaderboard"""
        cursor = self.league_users.find(active({"league_id": league_id, "active": True})).sort("id", 1)
        docs = await cursor.to_list(length=None)
        return [LeagueUser(**doc) for doc in docs]

    async def get_team(self, team_id: int, session: Any = None) -> Optional[LeagueTeam]:
        doc = await self.teams.find_one(active({"id": team_id}), session=session)
        return LeagueTeam(**doc) if doc else None

    async def get_player(self, player_id: int, session: Any = None) -> Optional[LeaguePlayer]:
        doc = await self.players.find_one(active({"id": player_id}), session=session)
        return LeaguePlayer(**doc) if doc else None

    async def get_phase(self, phase_id: int, session: Any = None) -> Optional[MatchPhase]:
        doc = await self.phases.find_one(active({"id": phase_id}), session=session)
        return MatchPhase(**doc) if doc else None
