from datetime import datetime
from typing import Optional, Union
from pydantic import BaseModel, Field

from app.models.event import EventCategory


class Pick(BaseModel):
    """Predicción de un participante para un evento"""

    id: str

    league_id: int
    league_user_id: int
    event_id: int
    category: EventCategory

    total_points: int = 0  # Solo lo escribe el motor de puntuación

    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    class Config:
        populate_by_name = True
        use_enum_values = True


class MatchPick(Pick):
    home_score: int
    away_score: int
    scorer_id: Optional[int] = None
    no_scorer: Optional[bool] = None
    overtime: bool = False
    home_advanced: Optional[bool] = None


class SeriesPick(Pick):
    home_team_score: int
    away_team_score: int


class SpecialBetPick(Pick):
    team_result_id: Optional[int] = None
    player_result_id: Optional[int] = None
    value: Optional[int] = None


class QuestionPick(Pick):
    answer: Optional[bool] = None  # legacy picks may not carry one


PICK_MODELS: dict[EventCategory, type[Pick]] = {
    EventCategory.MATCH: MatchPick,
    EventCategory.SERIES: SeriesPick,
    EventCategory.SPECIAL_BET: SpecialBetPick,
    EventCategory.QUESTION: QuestionPick,
}


# ============================================
# PAYLOADS (lo que manda el cliente)
# ============================================

class MatchPickCreate(BaseModel):
    home_score: int = Field(..., ge=0)
    away_score: int = Field(..., ge=0)
    scorer_id: Optional[int] = Field(None, gt=0)
    no_scorer: Optional[bool] = None
    overtime: bool = False
    home_advanced: Optional[bool] = None


class SeriesPickCreate(BaseModel):
    home_team_score: int = Field(..., ge=0)  # El tope depende del best_of de la serie
    away_team_score: int = Field(..., ge=0)


class SpecialBetPickCreate(BaseModel):
    team_result_id: Optional[int] = Field(None, gt=0)
    player_result_id: Optional[int] = Field(None, gt=0)
    value: Optional[int] = None


class QuestionPickCreate(BaseModel):
    answer: bool


PAYLOAD_MODELS: dict[EventCategory, type[BaseModel]] = {
    EventCategory.MATCH: MatchPickCreate,
    EventCategory.SERIES: SeriesPickCreate,
    EventCategory.SPECIAL_BET: SpecialBetPickCreate,
    EventCategory.QUESTION: QuestionPickCreate,
}


class PickResult(BaseModel):
    """Resultado de submit_pick"""

    pick: Union[MatchPick, SeriesPick, SpecialBetPick, QuestionPick]
    created: bool  # True si fue insert, False si fue update


class FriendPredictions(BaseModel):
    """Picks de los demás; solo visibles cuando el evento ya está cerrado"""

    is_locked: bool
    predictions: list[Union[MatchPick, SeriesPick, SpecialBetPick, QuestionPick]] = []


class ParticipantPicks(BaseModel):
    matches: list[MatchPick] = []
    series: list[SeriesPick] = []
    special_bets: list[SpecialBetPick] = []
    questions: list[QuestionPick] = []
