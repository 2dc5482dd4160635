"""
Unit tests for PickService
"""

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from pymongo.errors import DuplicateKeyError

from app.core.errors import (
    AuthError,
    BettingClosedError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from app.models.pick import MatchPickCreate, QuestionPickCreate, SeriesPickCreate, SpecialBetPickCreate
from app.repositories.pick_repository import PickRepository
from app.services import cache
from app.services.pick_service import PickService


NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
async def match_db(league_db, sample_match_data):
    await league_db["matches"].insert_one(sample_match_data)
    return league_db


@pytest.fixture
def service(match_db, clock, transactions):
    return PickService(match_db, clock=clock, transactions=transactions)


class TestSubmitPick:
    """Create-or-update of the single active pick."""

    @pytest.mark.asyncio
    async def test_create_pick_success(self, service, match_db):
        result = await service.save_match_pick("user-a", 1, 500, MatchPickCreate(home_score=2, away_score=1))

        assert result.created is True
        assert result.pick.league_user_id == 10
        assert result.pick.total_points == 0
        assert result.pick.home_score == 2
        assert await match_db["picks"].count_documents({}) == 1

    @pytest.mark.asyncio
    async def test_update_keeps_identity_and_created_at(self, service, match_db, clock):
        first = await service.save_match_pick("user-a", 1, 500, MatchPickCreate(home_score=2, away_score=1))
        clock.advance(minutes=30)

        second = await service.save_match_pick("user-a", 1, 500, MatchPickCreate(home_score=0, away_score=0))

        assert second.created is False
        assert second.pick.id == first.pick.id
        stored = await match_db["picks"].find_one({"id": first.pick.id})
        assert stored["home_score"] == 0
        assert stored["created_at"] == NOW.replace(tzinfo=None)
        assert stored["updated_at"] == (NOW + timedelta(minutes=30)).replace(tzinfo=None)

    @pytest.mark.asyncio
    async def test_exactly_one_active_pick_after_many_submissions(self, service, match_db):
        for home in range(5):
            await service.save_match_pick("user-a", 1, 500, MatchPickCreate(home_score=home, away_score=1))

        assert await match_db["picks"].count_documents({"league_user_id": 10, "deleted_at": None}) == 1

    @pytest.mark.asyncio
    async def test_betting_closed_after_deadline(self, service, match_db, clock):
        """Scenario F: no pick is created or modified after the deadline."""
        await service.save_match_pick("user-a", 1, 500, MatchPickCreate(home_score=2, away_score=1))
        clock.advance(hours=2)

        with pytest.raises(BettingClosedError):
            await service.save_match_pick("user-a", 1, 500, MatchPickCreate(home_score=5, away_score=5))
        with pytest.raises(BettingClosedError):
            await service.save_match_pick("user-b", 1, 500, MatchPickCreate(home_score=5, away_score=5))

        picks = await match_db["picks"].find({}).to_list(length=None)
        assert len(picks) == 1
        assert picks[0]["home_score"] == 2

    @pytest.mark.asyncio
    async def test_event_not_found(self, service):
        with pytest.raises(NotFoundError):
            await service.save_match_pick("user-a", 1, 404, MatchPickCreate(home_score=1, away_score=0))

    @pytest.mark.asyncio
    async def test_event_from_other_league(self, service, match_db):
        await match_db["leagues"].insert_one({"id": 2, "name": "Other", "deleted_at": None})
        await match_db["league_users"].insert_one({"id": 20, "league_id": 2, "user_id": "user-a", "active": True, "deleted_at": None})

        with pytest.raises(NotFoundError):
            await service.save_match_pick("user-a", 2, 500, MatchPickCreate(home_score=1, away_score=0))

    @pytest.mark.asyncio
    async def test_soft_deleted_league(self, service, match_db):
        await match_db["leagues"].update_one({"id": 1}, {"$set": {"deleted_at": NOW}})

        with pytest.raises(NotFoundError):
            await service.save_match_pick("user-a", 1, 500, MatchPickCreate(home_score=1, away_score=0))

    @pytest.mark.asyncio
    async def test_non_member_is_rejected(self, service):
        with pytest.raises(AuthError):
            await service.save_match_pick("outsider", 1, 500, MatchPickCreate(home_score=1, away_score=0))

    @pytest.mark.asyncio
    async def test_scorer_and_no_scorer_are_exclusive(self, service, match_db):
        with pytest.raises(ValidationError):
            await service.save_match_pick(
                "user-a", 1, 500, MatchPickCreate(home_score=1, away_score=0, scorer_id=1000, no_scorer=True)
            )
        assert await match_db["picks"].count_documents({}) == 0

    @pytest.mark.asyncio
    async def test_scorer_must_play_in_the_match(self, service):
        with pytest.raises(ValidationError, match="must belong to one of the teams playing"):
            await service.save_match_pick(
                "user-a", 1, 500, MatchPickCreate(home_score=1, away_score=0, scorer_id=1002)
            )

    @pytest.mark.asyncio
    async def test_unknown_scorer(self, service):
        with pytest.raises(NotFoundError, match="Scorer not found"):
            await service.save_match_pick(
                "user-a", 1, 500, MatchPickCreate(home_score=1, away_score=0, scorer_id=9999)
            )

    @pytest.mark.asyncio
    async def test_away_scorer_is_accepted(self, service):
        result = await service.save_match_pick(
            "user-a", 1, 500, MatchPickCreate(home_score=1, away_score=2, scorer_id=1001)
        )
        assert result.pick.scorer_id == 1001

    @pytest.mark.asyncio
    async def test_home_advanced_only_for_playoffs(self, service):
        with pytest.raises(ValidationError):
            await service.save_match_pick(
                "user-a", 1, 500, MatchPickCreate(home_score=1, away_score=1, home_advanced=True)
            )

    @pytest.mark.asyncio
    async def test_concurrent_insert_becomes_update(self, service, match_db):
        """The unique index caught a concurrent insert: the call reruns as an update."""
        original_create = PickRepository.create
        calls = {"count": 0}

        async def racing_create(repo, league_id, league_user_id, category, event_id, payload, now, session=None):
            calls["count"] += 1
            if calls["count"] == 1:
                # Otra request inserta primero
                await original_create(repo, league_id, league_user_id, category, event_id,
                                      {"home_score": 9, "away_score": 9}, now)
                raise DuplicateKeyError("E11000 duplicate key error")
            return await original_create(repo, league_id, league_user_id, category, event_id, payload, now, session)

        with patch.object(PickRepository, "create", racing_create):
            result = await service.save_match_pick("user-a", 1, 500, MatchPickCreate(home_score=2, away_score=1))

        assert result.created is False
        picks = await match_db["picks"].find({"league_user_id": 10}).to_list(length=None)
        assert len(picks) == 1
        assert picks[0]["home_score"] == 2

    @pytest.mark.asyncio
    async def test_repeated_duplicate_is_a_conflict(self, service):
        async def always_duplicate(*args, **kwargs):
            raise DuplicateKeyError("E11000 duplicate key error")

        with patch.object(PickRepository, "create", always_duplicate):
            with pytest.raises(ConflictError):
                await service.save_match_pick("user-a", 1, 500, MatchPickCreate(home_score=2, away_score=1))

    @pytest.mark.asyncio
    async def test_unique_index_blocks_second_active_pick(self, match_db):
        repo = PickRepository(match_db)
        await repo.create(1, 10, "match", 500, {"home_score": 1, "away_score": 0}, NOW)

        with pytest.raises(DuplicateKeyError):
            await repo.create(1, 10, "match", 500, {"home_score": 2, "away_score": 0}, NOW)

    @pytest.mark.asyncio
    async def test_submission_invalidates_tags(self, service):
        cache.leaderboard_cache.set((1,), "stale", tags=["leaderboard:1"])
        cache.picks_cache.set(("match", 500, 11), "stale", tags=["picks:match:500"])

        await service.save_match_pick("user-a", 1, 500, MatchPickCreate(home_score=2, away_score=1))

        assert cache.leaderboard_cache.get((1,)) is None
        assert cache.picks_cache.get(("match", 500, 11)) is None


class TestOtherPickKinds:
    @pytest.mark.asyncio
    async def test_series_pick_must_be_finished_series(self, league_db, sample_series_data, clock, transactions):
        await league_db["series"].insert_one(sample_series_data)
        service = PickService(league_db, clock=clock, transactions=transactions)

        result = await service.save_series_pick("user-a", 1, 600, SeriesPickCreate(home_team_score=4, away_team_score=3))
        assert result.created is True

        with pytest.raises(ValidationError):
            await service.save_series_pick("user-a", 1, 600, SeriesPickCreate(home_team_score=3, away_team_score=2))
        with pytest.raises(ValidationError):
            await service.save_series_pick("user-a", 1, 600, SeriesPickCreate(home_team_score=4, away_team_score=4))

    @pytest.mark.asyncio
    async def test_long_series_accepts_more_than_seven_wins(self, league_db, sample_series_data, clock, transactions):
        await league_db["series"].insert_one({**sample_series_data, "best_of": 15})
        service = PickService(league_db, clock=clock, transactions=transactions)

        result = await service.save_series_pick("user-a", 1, 600, SeriesPickCreate(home_team_score=8, away_team_score=6))
        assert (result.pick.home_team_score, result.pick.away_team_score) == (8, 6)

        with pytest.raises(ValidationError):
            await service.save_series_pick("user-a", 1, 600, SeriesPickCreate(home_team_score=9, away_team_score=6))

    @pytest.mark.asyncio
    async def test_special_bet_needs_exactly_one_answer(self, league_db, sample_special_bet_data, clock, transactions):
        await league_db["special_bets"].insert_one(sample_special_bet_data)
        service = PickService(league_db, clock=clock, transactions=transactions)

        with pytest.raises(ValidationError):
            await service.save_special_bet_pick("user-a", 1, 700, SpecialBetPickCreate())
        with pytest.raises(ValidationError):
            await service.save_special_bet_pick("user-a", 1, 700, SpecialBetPickCreate(team_result_id=100, value=3))
        with pytest.raises(ValidationError):
            await service.save_special_bet_pick("user-a", 1, 700, SpecialBetPickCreate(value=3))

        result = await service.save_special_bet_pick("user-a", 1, 700, SpecialBetPickCreate(team_result_id=102))
        assert result.pick.team_result_id == 102

    @pytest.mark.asyncio
    async def test_special_bet_team_from_other_league(self, league_db, sample_special_bet_data, clock, transactions):
        await league_db["special_bets"].insert_one(sample_special_bet_data)
        service = PickService(league_db, clock=clock, transactions=transactions)

        with pytest.raises(ValidationError):
            await service.save_special_bet_pick("user-a", 1, 700, SpecialBetPickCreate(team_result_id=200))

    @pytest.mark.asyncio
    async def test_question_pick(self, league_db, sample_question_data, clock, transactions):
        await league_db["questions"].insert_one(sample_question_data)
        service = PickService(league_db, clock=clock, transactions=transactions)

        result = await service.save_question_pick("user-b", 1, 800, QuestionPickCreate(answer=True))

        assert result.pick.answer is True
        assert result.pick.league_user_id == 11


class TestDeleteAndRead:
    @pytest.mark.asyncio
    async def test_delete_pick_soft_deletes(self, service, match_db):
        await service.save_match_pick("user-a", 1, 500, MatchPickCreate(home_score=2, away_score=1))

        await service.delete_pick("user-a", 1, "match", 500)

        assert await match_db["picks"].count_documents({"deleted_at": None}) == 0
        assert await match_db["picks"].count_documents({}) == 1

        again = await service.save_match_pick("user-a", 1, 500, MatchPickCreate(home_score=0, away_score=0))
        assert again.created is True

    @pytest.mark.asyncio
    async def test_delete_after_deadline(self, service, clock):
        await service.save_match_pick("user-a", 1, 500, MatchPickCreate(home_score=2, away_score=1))
        clock.advance(hours=3)

        with pytest.raises(BettingClosedError):
            await service.delete_pick("user-a", 1, "match", 500)

    @pytest.mark.asyncio
    async def test_delete_missing_pick(self, service):
        with pytest.raises(NotFoundError):
            await service.delete_pick("user-a", 1, "match", 500)

    @pytest.mark.asyncio
    async def test_friend_predictions_hidden_while_open(self, service):
        await service.save_match_pick("user-b", 1, 500, MatchPickCreate(home_score=2, away_score=1))

        friends = await service.get_friend_predictions("user-a", 1, "match", 500)

        assert friends.is_locked is False
        assert friends.predictions == []

    @pytest.mark.asyncio
    async def test_friend_predictions_revealed_after_lock(self, service, match_db, clock):
        await service.save_match_pick("user-a", 1, 500, MatchPickCreate(home_score=1, away_score=1))
        await service.save_match_pick("user-b", 1, 500, MatchPickCreate(home_score=2, away_score=1))
        clock.advance(hours=2)

        friends = await service.get_friend_predictions("user-a", 1, "match", 500)

        assert friends.is_locked is True
        assert [p.league_user_id for p in friends.predictions] == [11]

    @pytest.mark.asyncio
    async def test_participant_picks_skip_deleted_events(self, service, match_db, sample_question_data):
        await match_db["questions"].insert_one(sample_question_data)
        await service.save_match_pick("user-a", 1, 500, MatchPickCreate(home_score=2, away_score=1))
        await service.save_question_pick("user-a", 1, 800, QuestionPickCreate(answer=False))
        await match_db["questions"].update_one({"id": 800}, {"$set": {"deleted_at": NOW}})

        picks = await service.get_participant_picks(1, 10)

        assert [p.event_id for p in picks.matches] == [500]
        assert picks.questions == []
        assert picks.series == []

    @pytest.mark.asyncio
    async def test_participant_from_other_league(self, service):
        with pytest.raises(NotFoundError):
            await service.get_participant_picks(2, 10)
