from typing import Optional
from pydantic import BaseModel

from app.models.league import PrizeTierInput


class TierAward(BaseModel):
    """Premio o multa asignada a una posición"""

    amount: int
    currency: str
    label: Optional[str] = None


class LeaderboardEntry(BaseModel):
    """Entrada de la tabla de clasificación (calculada, no se persiste)"""

    league_user_id: int
    user_id: str
    username: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    match_points: int = 0
    series_points: int = 0
    special_bet_points: int = 0
    question_points: int = 0
    total_points: int = 0

    rank: int
    position_from_bottom: int

    prize: Optional[TierAward] = None
    fine: Optional[TierAward] = None

    is_current_user: bool = False

    class Config:
        populate_by_name = True


class LeaderboardData(BaseModel):
    entries: list[LeaderboardEntry]
    prizes: list[PrizeTierInput] = []
    fines: list[PrizeTierInput] = []
