from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class EventCategory(str, Enum):
    """Las cuatro categorías de apuesta; cada una tiene su colección de eventos"""

    MATCH = "match"
    SERIES = "series"
    SPECIAL_BET = "special_bet"
    QUESTION = "question"


class Event(BaseModel):
    """Campos comunes de todo evento apostable"""

    id: int
    league_id: Optional[int] = None

    date_time: datetime  # Deadline: después de esto no se aceptan picks

    is_evaluated: bool = False  # false -> true una sola vez

    deleted_at: Optional[datetime] = None

    class Config:
        populate_by_name = True


class MatchScorer(BaseModel):
    """Goleador real de un partido. El orden en la lista es el orden de anotación"""

    player_id: int
    goals: int = 1


class Match(Event):
    home_team_id: int
    away_team_id: int

    is_doubled: bool = False  # Puntos x2
    is_playoff_game: bool = False
    phase_id: Optional[int] = None
    game_number: Optional[int] = None

    # Resultado (None hasta que el admin lo carga)
    home_regular_score: Optional[int] = None
    away_regular_score: Optional[int] = None
    home_final_score: Optional[int] = None
    away_final_score: Optional[int] = None
    is_overtime: Optional[bool] = None
    is_shootout: Optional[bool] = None
    home_advanced: Optional[bool] = None

    scorers: list[MatchScorer] = []

    def has_result(self) -> bool:
        return self.home_regular_score is not None and self.away_regular_score is not None


class Series(Event):
    name: Optional[str] = None
    home_team_id: int
    away_team_id: int
    best_of: int = 7

    home_team_score: Optional[int] = None
    away_team_score: Optional[int] = None

    def has_result(self) -> bool:
        return self.home_team_score is not None and self.away_team_score is not None


class SpecialBet(Event):
    name: str
    criterion: str  # exact_team | exact_player | exact_value | closest_value

    team_result_id: Optional[int] = None
    player_result_id: Optional[int] = None
    value: Optional[int] = None

    def has_result(self) -> bool:
        return (
            self.team_result_id is not None
            or self.player_result_id is not None
            or self.value is not None
        )


class Question(Event):
    text: str
    result: Optional[bool] = None

    def has_result(self) -> bool:
        return self.result is not None


EVENT_MODELS: dict[EventCategory, type[Event]] = {
    EventCategory.MATCH: Match,
    EventCategory.SERIES: Series,
    EventCategory.SPECIAL_BET: SpecialBet,
    EventCategory.QUESTION: Question,
}


# ============================================
# RESULTADOS (admin)
# ============================================

class MatchResultUpdate(BaseModel):
    home_regular_score: int = Field(..., ge=0)
    away_regular_score: int = Field(..., ge=0)
    home_final_score: Optional[int] = Field(None, ge=0)
    away_final_score: Optional[int] = Field(None, ge=0)
    is_overtime: bool = False
    is_shootout: bool = False
    home_advanced: Optional[bool] = None
    game_number: Optional[int] = Field(None, ge=1)
    scorers: list[MatchScorer] = []


class SeriesResultUpdate(BaseModel):
    home_team_score: int = Field(..., ge=0)
    away_team_score: int = Field(..., ge=0)


class SpecialBetResultUpdate(BaseModel):
    team_result_id: Optional[int] = None
    player_result_id: Optional[int] = None
    value: Optional[int] = None


class QuestionResultUpdate(BaseModel):
    result: bool
