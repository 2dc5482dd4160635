from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class League(BaseModel):
    id: int
    name: str

    deleted_at: Optional[datetime] = None

    class Config:
        populate_by_name = True


class LeagueUser(BaseModel):
    """Participante: un usuario dentro de una liga"""

    id: int
    league_id: int
    user_id: str

    active: bool = True  # Solo los activos cuentan en el leaderboard
    admin: bool = False

    deleted_at: Optional[datetime] = None

    class Config:
        populate_by_name = True


class LeagueTeam(BaseModel):
    id: int
    league_id: int
    name: str

    deleted_at: Optional[datetime] = None


class LeaguePlayer(BaseModel):
    id: int
    league_id: int
    league_team_id: int
    name: str

    deleted_at: Optional[datetime] = None


class MatchPhase(BaseModel):
    """Fase de la competición (grupos, cuartos, final...)"""

    id: int
    league_id: int
    name: str
    best_of: Optional[int] = None  # Serie "al mejor de N" (playoffs)

    deleted_at: Optional[datetime] = None


class PrizeType(str, Enum):
    PRIZE = "prize"
    FINE = "fine"


class PrizeTierInput(BaseModel):
    """Tier configurado por el admin (premio desde arriba, multa desde abajo)"""

    rank: int = Field(..., ge=1, le=10)
    amount: int = Field(..., ge=0)  # En unidades menores (centavos)
    currency: str = Field("CZK", min_length=3, max_length=3)
    label: Optional[str] = None


class PrizeTier(PrizeTierInput):
    id: str
    league_id: int
    type: PrizeType

    created_at: datetime
    deleted_at: Optional[datetime] = None

    class Config:
        populate_by_name = True
        use_enum_values = True
