"""
PickService - Business logic for picks.

Handles membership, the betting lock, payload rules and the
create-or-update of the single active pick per (participant, event).
"""

import logging
from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import BaseModel
from pymongo.errors import DuplicateKeyError

from app.core.clock import Clock, SystemClock
from app.core.errors import (
    AuthError,
    BettingClosedError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from app.database import TransactionRunner
from app.models.event import Event, EventCategory, Match, Series, SpecialBet
from app.models.league import LeagueUser
from app.models.pick import (
    FriendPredictions,
    MatchPickCreate,
    ParticipantPicks,
    PickResult,
    QuestionPickCreate,
    SeriesPickCreate,
    SpecialBetPickCreate,
)
from app.repositories.event_repository import EventRepository
from app.repositories.league_repository import LeagueRepository
from app.repositories.pick_repository import PickRepository
from app.services import evaluators as ev
from app.services.betting_lock import is_betting_open, is_locked
from app.services.cache import invalidate_tag, leaderboard_tag, picks_cache, picks_tag

logger = logging.getLogger(__name__)


class PickService:
    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        clock: Optional[Clock] = None,
        transactions: Optional[TransactionRunner] = None
    ):
        self.pick_repo = PickRepository(db)
        self.event_repo = EventRepository(db)
        self.league_repo = LeagueRepository(db)
        self.clock = clock or SystemClock()
        self.transactions = transactions or TransactionRunner.for_database(db)

    async def resolve_participant(self, league_id: int, user_id: str) -> LeagueUser:
        """The participant always comes from the caller's identity, never from the payload."""
        participant = await self.league_repo.get_membership(league_id, user_id)
        if participant is None:
            raise AuthError("You are not a member of this league")
        return participant

    # ============================================
    # 📌 SUBMIT
    # ============================================

    async def submit_pick(
        self,
        user_id: str,
        league_id: int,
        category: EventCategory,
        event_id: int,
        payload: BaseModel
    ) -> PickResult:
        """
        Create or update a pick.

        Validates inside one transaction:
        - Event exists, is active and belongs to the league
        - Betting is still open
        - Payload rules (scorer vs no scorer, one special bet answer, ...)
        - Referenced scorer/team/player belongs to the event

        A concurrent insert that wins the unique index makes this call rerun
        once as an update.
        """
        category = EventCategory(category)
        participant = await self.resolve_participant(league_id, user_id)
        fields = payload.model_dump()

        async def work(session: Any) -> PickResult:
            event = await self._get_event(category, event_id, league_id, session)

            if not is_betting_open(event.date_time, self.clock.now()):
                raise BettingClosedError("Betting is closed for this event")

            await self._validate(category, event, fields, session)

            now = self.clock.now()
            existing = await self.pick_repo.get_active_for(participant.id, category, event_id, session=session)
            if existing:
                pick = await self.pick_repo.update_payload(existing.id, fields, now, session=session)
                return PickResult(pick=pick, created=False)

            pick = await self.pick_repo.create(
                league_id, participant.id, category, event_id, fields, now, session=session
            )
            return PickResult(pick=pick, created=True)

        try:
            result = await self.transactions.run(work)
        except DuplicateKeyError:
            logger.info(
                "Concurrent insert for participant %s on %s %s, retrying as update",
                participant.id, category.value, event_id,
            )
            try:
                result = await self.transactions.run(work)
            except DuplicateKeyError as e:
                raise ConflictError("Pick was changed concurrently, please refresh") from e

        logger.info(
            "Pick %s for participant %s on %s %s",
            "created" if result.created else "updated", participant.id, category.value, event_id,
        )
        invalidate_tag(picks_tag(category.value, event_id))
        invalidate_tag(leaderboard_tag(league_id))
        return result

    async def save_match_pick(self, user_id: str, league_id: int, match_id: int, payload: MatchPickCreate) -> PickResult:
        return await self.submit_pick(user_id, league_id, EventCategory.MATCH, match_id, payload)

    async def save_series_pick(self, user_id: str, league_id: int, series_id: int, payload: SeriesPickCreate) -> PickResult:
        return await self.submit_pick(user_id, league_id, EventCategory.SERIES, series_id, payload)

    async def save_special_bet_pick(self, user_id: str, league_id: int, bet_id: int, payload: SpecialBetPickCreate) -> PickResult:
        return await self.submit_pick(user_id, league_id, EventCategory.SPECIAL_BET, bet_id, payload)

    async def save_question_pick(self, user_id: str, league_id: int, question_id: int, payload: QuestionPickCreate) -> PickResult:
        return await self.submit_pick(user_id, league_id, EventCategory.QUESTION, question_id, payload)

    # ============================================
    # 📌 DELETE
    # ============================================

    async def delete_pick(
        self,
        user_id: str,
        league_id: int,
        category: EventCategory,
        event_id: int
    ) -> None:
        """Retire the caller's own pick while betting is still open."""
        category = EventCategory(category)
        participant = await self.resolve_participant(league_id, user_id)

        async def work(session: Any) -> None:
            event = await self._get_event(category, event_id, league_id, session)
            if not is_betting_open(event.date_time, self.clock.now()):
                raise BettingClosedError("Betting is closed for this event")

            existing = await self.pick_repo.get_active_for(participant.id, category, event_id, session=session)
            if existing is None:
                raise NotFoundError("Pick not found")
            await self.pick_repo.soft_delete(existing.id, self.clock.now(), session=session)

        await self.transactions.run(work)

        invalidate_tag(picks_tag(category.value, event_id))
        invalidate_tag(leaderboard_tag(league_id))

    # ============================================
    # 📌 READ
    # ============================================

    async def get_participant_picks(self, league_id: int, league_user_id: int) -> ParticipantPicks:
        """All active picks of a participant on active events of the league."""
        participant = await self.league_repo.get_league_user(league_user_id)
        if participant is None or participant.league_id != league_id:
            raise NotFoundError(f"Participant {league_user_id} not found")

        lists = {}
        for category in EventCategory:
            event_ids = await self.event_repo.get_active_ids_for_league(category, league_id)
            lists[category] = await self.pick_repo.list_for_participant(league_user_id, category, event_ids)

        return ParticipantPicks(
            matches=lists[EventCategory.MATCH],
            series=lists[EventCategory.SERIES],
            special_bets=lists[EventCategory.SPECIAL_BET],
            questions=lists[EventCategory.QUESTION],
        )

    async def get_friend_predictions(
        self,
        user_id: str,
        league_id: int,
        category: EventCategory,
        event_id: int
    ) -> FriendPredictions:
        """Other participants' picks, revealed only once the event is locked."""
        category = EventCategory(category)
        participant = await self.resolve_participant(league_id, user_id)
        event = await self._get_event(category, event_id, league_id)

        if not is_locked(event.date_time, self.clock.now()):
            return FriendPredictions(is_locked=False, predictions=[])

        key = (category.value, event_id, participant.id)
        cached = picks_cache.get(key)
        if cached is not None:
            return cached

        picks = await self.pick_repo.list_friends(category, event_id, participant.id)
        result = FriendPredictions(is_locked=True, predictions=picks)
        picks_cache.set(key, result, tags=[picks_tag(category.value, event_id)])
        return result

    # ============================================
    # 📌 VALIDATION
    # ============================================

    async def _get_event(
        self,
        category: EventCategory,
        event_id: int,
        league_id: int,
        session: Any = None
    ) -> Event:
        event = await self.event_repo.get_by_id(category, event_id, session=session)
        if event is None or event.league_id != league_id:
            raise NotFoundError(f"{category.value.capitalize()} {event_id} not found")
        if await self.league_repo.get_by_id(league_id, session=session) is None:
            raise NotFoundError(f"League {league_id} not found")
        return event

    async def _validate(self, category: EventCategory, event: Event, fields: dict, session: Any) -> None:
        if category == EventCategory.MATCH:
            await self._validate_match(event, fields, session)
        elif category == EventCategory.SERIES:
            self._validate_series(event, fields)
        elif category == EventCategory.SPECIAL_BET:
            await self._validate_special_bet(event, fields, session)

    async def _validate_match(self, match: Match, fields: dict, session: Any) -> None:
        scorer_id = fields.get("scorer_id")

        if fields.get("no_scorer") and scorer_id is not None:
            raise ValidationError("Pick either a scorer or no scorer, not both")

        if scorer_id is not None:
            player = await self.league_repo.get_player(scorer_id, session=session)
            if player is None:
                raise NotFoundError("Scorer not found")
            if player.league_team_id not in (match.home_team_id, match.away_team_id):
                raise ValidationError("Scorer must belong to one of the teams playing")

        if fields.get("home_advanced") is not None and not match.is_playoff_game:
            raise ValidationError("Advancing team can only be picked for playoff games")

    def _validate_series(self, series: Series, fields: dict) -> None:
        home, away = fields["home_team_score"], fields["away_team_score"]
        wins_needed = series.best_of // 2 + 1
        if max(home, away) != wins_needed or min(home, away) >= wins_needed:
            raise ValidationError(f"Series result must be a finished best of {series.best_of}")

    async def _validate_special_bet(self, bet: SpecialBet, fields: dict, session: Any) -> None:
        answers = [
            name for name in ("team_result_id", "player_result_id", "value")
            if fields.get(name) is not None
        ]
        if len(answers) != 1:
            raise ValidationError("Pick exactly one of team, player or value")

        expected = {
            ev.EXACT_TEAM: "team_result_id",
            ev.EXACT_PLAYER: "player_result_id",
            ev.EXACT_VALUE: "value",
            ev.CLOSEST_VALUE: "value",
        }.get(bet.criterion)
        if expected is not None and answers[0] != expected:
            raise ValidationError(f"This special bet expects {expected}")

        if fields.get("team_result_id") is not None:
            team = await self.league_repo.get_team(fields["team_result_id"], session=session)
            if team is None:
                raise NotFoundError("Team not found")
            if team.league_id != bet.league_id:
                raise ValidationError("Team must belong to this league")

        if fields.get("player_result_id") is not None:
            player = await self.league_repo.get_player(fields["player_result_id"], session=session)
            if player is None:
                raise NotFoundError("Player not found")
            if player.league_id != bet.league_id:
                raise ValidationError("Player must belong to this league")
