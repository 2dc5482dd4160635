from datetime import datetime
from typing import Annotated, Literal, Optional, Union
from pydantic import BaseModel, Field, field_serializer, field_validator

from app.models.event import EventCategory


class FlatPoints(BaseModel):
    """Puntos fijos por acertar el criterio"""

    kind: Literal["flat"] = "flat"
    value: int


class RankedPoints(BaseModel):
    """
    Puntos según el orden del goleador acertado.

    Ejemplo guardado en Mongo:
        {"kind": "ranked", "ranked_points": {"1": 3, "2": 2}, "unranked_points": 1}
    """

    kind: Literal["ranked"] = "ranked"
    ranked_points: dict[int, int] = {}
    unranked_points: int = 0

    @field_validator("ranked_points")
    @classmethod
    def ranks_are_positive(cls, value: dict[int, int]) -> dict[int, int]:
        if any(rank < 1 for rank in value):
            raise ValueError("Ranks start at 1")
        return value

    @field_serializer("ranked_points")
    def serialize_ranked_points(self, value: dict[int, int]) -> dict[str, int]:
        # BSON solo acepta keys string
        return {str(rank): points for rank, points in value.items()}

    def points_for(self, rank: Optional[int]) -> int:
        if rank is not None and rank in self.ranked_points:
            return self.ranked_points[rank]
        return self.unranked_points


PointsConfig = Annotated[Union[FlatPoints, RankedPoints], Field(discriminator="kind")]


class EvaluatorRule(BaseModel):
    """Regla de puntuación de una liga para una categoría de apuesta"""

    id: str
    league_id: int
    entity: EventCategory
    type: str  # exact_score | winner | goal_difference | total_goals | scorer | ...

    points: PointsConfig

    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    class Config:
        populate_by_name = True
        use_enum_values = True


class EvaluatorRuleInput(BaseModel):
    entity: EventCategory
    type: str
    points: PointsConfig
