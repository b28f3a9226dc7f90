"""Integration tests for the DB-backed engine services."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from lectern.ai.breakdown_generator import stub_lecture
from lectern.engines.ingestion import LectureService
from lectern.engines.progression import ProgressService
from lectern.engines.quiz import QuizService
from lectern.engines.quiz.quiz_service import REQUIRED_QUESTIONS
from lectern.engines.social import ProfileConflictError, SocialService, fetch_leaderboard
from lectern.engines.usage import TokenUsageReporter, parse_range, record_token_usage
from lectern.kernel.models import EloEvent, QuizAttempt, User
from lectern.kernel.models.user import DEFAULT_ELO


async def _user(session, email=None, **fields) -> User:
    user = User(email=email or f"svc-{uuid.uuid4().hex[:8]}@example.com", password_hash="x", **fields)
    session.add(user)
    await session.flush()
    return user


async def _lecture(session, user, text):
    lecture = LectureService.build_lecture(user.id, text, stub_lecture(text))
    session.add(lecture)
    await session.flush()
    return await ProgressService(session).get_owned_lecture(user.id, lecture.id, with_questions=True)


class TestProgressService:
    """Mastery, unlocking and lecture completion."""

    @pytest.mark.asyncio
    async def test_mastery_advances_unlocked_index(self, db_session, lecture_text):
        user = await _user(db_session)
        lecture = await _lecture(db_session, user, lecture_text)
        progress = ProgressService(db_session)
        subs = lecture.subtopics

        assert await progress.unlocked_index(user.id, lecture) == 0
        assert await progress.record_mastery(user, subs[0].id) == 1
        assert await progress.record_mastery(user, subs[2].id) == 2
        # already at the last subtopic
        assert await progress.record_mastery(user, subs[1].id) == 2

    @pytest.mark.asyncio
    async def test_repeat_mastery_awards_elo_but_one_row(self, db_session, lecture_text):
        user = await _user(db_session)
        lecture = await _lecture(db_session, user, lecture_text)
        progress = ProgressService(db_session)
        sid = lecture.subtopics[0].id

        await progress.record_mastery(user, sid, elo_delta=5)
        await progress.record_mastery(user, sid, elo_delta=5)

        assert user.elo == DEFAULT_ELO + 10
        assert await progress.mastered_ids(user.id, [sid]) == {sid}
        events = (await db_session.execute(select(func.count(EloEvent.id)).where(EloEvent.user_id == user.id))).scalar_one()
        assert events == 2

    @pytest.mark.asyncio
    async def test_mastery_of_foreign_subtopic_rejected(self, db_session, lecture_text):
        owner = await _user(db_session)
        intruder = await _user(db_session)
        lecture = await _lecture(db_session, owner, lecture_text)

        with pytest.raises(LookupError):
            await ProgressService(db_session).record_mastery(intruder, lecture.subtopics[0].id)
        assert intruder.elo == DEFAULT_ELO

    @pytest.mark.asyncio
    async def test_mastery_is_per_user(self, db_session, lecture_text):
        user = await _user(db_session)
        other = await _user(db_session)
        lecture = await _lecture(db_session, user, lecture_text)
        progress = ProgressService(db_session)
        await progress.record_mastery(user, lecture.subtopics[0].id)

        assert await progress.unlocked_index(other.id, lecture) == 0

    @pytest.mark.asyncio
    async def test_complete_lecture_awards_once(self, db_session, lecture_text):
        user = await _user(db_session)
        lecture = await _lecture(db_session, user, lecture_text)
        progress = ProgressService(db_session)

        first = await progress.complete_lecture(user, lecture.id)
        second = await progress.complete_lecture(user, lecture.id)

        assert first.elo_incremented is True
        assert first.elo == DEFAULT_ELO + 300
        assert second.elo_incremented is False
        assert second.elo == DEFAULT_ELO + 300

    @pytest.mark.asyncio
    async def test_complete_unknown_lecture(self, db_session):
        user = await _user(db_session)
        with pytest.raises(LookupError):
            await ProgressService(db_session).complete_lecture(user, uuid.uuid4())


class TestQuizService:
    """Attempts, progress visibility and resets."""

    @pytest.mark.asyncio
    async def test_attempt_starts_streak(self, db_session, lecture_text):
        user = await _user(db_session)
        lecture = await _lecture(db_session, user, lecture_text)
        question = lecture.subtopics[0].questions[0]
        quiz = QuizService(db_session)
        now = datetime(2026, 10, 17, 8, tzinfo=timezone.utc)

        assert await quiz.record_attempt(user, question.id, 0, True, now=now) == 1
        assert await quiz.record_attempt(user, question.id, 1, False, now=now + timedelta(hours=2)) == 1
        assert await quiz.record_attempt(user, question.id, 0, True, now=now + timedelta(days=1)) == 2

        attempts = (await db_session.execute(select(func.count(QuizAttempt.id)))).scalar_one()
        assert attempts == 3

    @pytest.mark.asyncio
    async def test_attempt_on_missing_question(self, db_session):
        user = await _user(db_session)
        with pytest.raises(LookupError):
            await QuizService(db_session).record_attempt(user, uuid.uuid4(), 0, True)

    @pytest.mark.asyncio
    async def test_progress_save_and_reset(self, db_session, lecture_text):
        user = await _user(db_session)
        lecture = await _lecture(db_session, user, lecture_text)
        sub = lecture.subtopics[0]
        question = sub.questions[0]
        quiz = QuizService(db_session)

        applied = await quiz.save_progress(
            user.id,
            sub.id,
            [
                {"question_id": question.id, "selected_index": 2},
                {"question_id": uuid.uuid4(), "selected_index": 1},
            ],
        )
        assert applied == 1

        await quiz.save_progress(user.id, sub.id, [{"question_id": question.id, "revealed": True}])
        rows = await quiz.get_progress(user.id, sub.id)
        assert len(rows) == 1
        assert rows[0].selected_index == 2
        assert rows[0].revealed is True

        await quiz.save_progress(user.id, sub.id, [{"question_id": question.id, "selected_index": None}])
        assert (await quiz.get_progress(user.id, sub.id))[0].selected_index is None

        await quiz.reset(user.id, sub.id)
        assert await quiz.get_progress(user.id, sub.id) == []

        await quiz.save_progress(user.id, sub.id, [{"question_id": question.id, "selected_index": 3}])
        rows = await quiz.get_progress(user.id, sub.id)
        assert [r.selected_index for r in rows] == [3]

    @pytest.mark.asyncio
    async def test_progress_on_foreign_subtopic(self, db_session, lecture_text):
        owner = await _user(db_session)
        other = await _user(db_session)
        lecture = await _lecture(db_session, owner, lecture_text)
        with pytest.raises(LookupError):
            await QuizService(db_session).get_progress(other.id, lecture.subtopics[0].id)

    @pytest.mark.asyncio
    async def test_top_up_fills_to_required(self, db_session, lecture_text):
        user = await _user(db_session)
        lecture = await _lecture(db_session, user, lecture_text)
        sub = lecture.subtopics[1]
        good = {
            "question": "How many edges does a tree with n vertices have?",
            "options": ["n", "n minus one", "n plus one", "2n"],
            "answerIndex": 1,
            "explanation": "A tree with n vertices always has exactly n minus one edges.",
        }

        stored = await QuizService(db_session).top_up_questions(
            user.id, sub.id, [{"prompt": "bad"}, "junk", good, dict(good, answerIndex=2)]
        )
        assert len(stored) == REQUIRED_QUESTIONS
        assert sorted(q.answer_index for q in stored) == [0, 1]

        again = await QuizService(db_session).top_up_questions(user.id, sub.id, [good])
        assert len(again) == REQUIRED_QUESTIONS


class TestLectureService:
    """Listing, renaming and deleting lectures."""

    @pytest.mark.asyncio
    async def test_create_list_rename_delete(self, db_session, lecture_text):
        user = await _user(db_session)
        service = LectureService(db_session)
        lecture = await service.create_from_text(user, lecture_text)
        await ProgressService(db_session).record_mastery(user, lecture.subtopics[0].id)

        [summary] = await service.list_for_user(user.id)
        assert summary.subtopic_count == 3
        assert summary.mastered_count == 1

        with pytest.raises(ValueError):
            await service.rename(user.id, lecture.id, "  x ")
        renamed = await service.rename(user.id, lecture.id, "  Graph basics  ")
        assert renamed.title == "Graph basics"

        other = await _user(db_session)
        with pytest.raises(LookupError):
            await service.delete(other.id, lecture.id)

        await service.delete(user.id, lecture.id)
        assert await service.list_for_user(user.id) == []


class TestSocialService:
    """Profiles, follows and the leaderboard."""

    @pytest.mark.asyncio
    async def test_profile_update_and_conflict(self, db_session):
        ada = await _user(db_session, username="ada")
        bob = await _user(db_session)
        social = SocialService(db_session)

        with pytest.raises(ProfileConflictError):
            await social.update_profile(bob, {"username": "ADA"})
        with pytest.raises(ValueError):
            await social.update_profile(bob, {"unknown": 1})

        await social.update_profile(bob, {"username": "Bob", "bio": "hi"})
        assert (await social.get_by_username("BOB")).id == bob.id
        await social.update_profile(ada, {"username": ""})
        assert ada.username is None

    @pytest.mark.asyncio
    async def test_follow_is_idempotent(self, db_session):
        ada = await _user(db_session)
        bob = await _user(db_session)
        social = SocialService(db_session)

        await social.follow(ada.id, bob.id)
        await social.follow(ada.id, bob.id)
        assert await social.following_ids(ada.id) == [bob.id]
        assert await social.follow_counts(bob.id) == {"followers": 1, "following": 0}

        await social.unfollow(ada.id, bob.id)
        await social.unfollow(ada.id, bob.id)
        assert await social.following_ids(ada.id) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("target", ["self", "missing", "none"])
    async def test_follow_rejects_bad_targets(self, db_session, target):
        ada = await _user(db_session)
        target_id = {"self": ada.id, "missing": uuid.uuid4(), "none": None}[target]
        with pytest.raises(ValueError):
            await SocialService(db_session).follow(ada.id, target_id)

    @pytest.mark.asyncio
    async def test_stats(self, db_session, lecture_text):
        user = await _user(db_session)
        lecture = await _lecture(db_session, user, lecture_text)
        question = lecture.subtopics[0].questions[0]
        quiz = QuizService(db_session)
        for correct in (True, True, False):
            await quiz.record_attempt(user, question.id, 0, correct)
        await ProgressService(db_session).record_mastery(user, lecture.subtopics[0].id)

        stats = await SocialService(db_session).stats(user.id)
        assert stats.mastered_count == 1
        assert stats.total_attempts == 3
        assert stats.correct_attempts == 2
        assert stats.quiz_accuracy == 67

    @pytest.mark.asyncio
    async def test_leaderboard_scopes(self, db_session, lecture_text):
        now = datetime.now(timezone.utc)
        viewer = await _user(db_session, elo=1100)
        friend = await _user(db_session, elo=1300)
        stranger = await _user(db_session, elo=1500)
        await _user(db_session, elo=9999, leaderboard_opt_out=True)
        await SocialService(db_session).follow(viewer.id, friend.id)

        everyone = await fetch_leaderboard(db_session, viewer.id)
        assert [r.id for r in everyone] == [stranger.id, friend.id, viewer.id]

        friends = await fetch_leaderboard(db_session, viewer.id, scope="friends")
        assert [r.id for r in friends] == [friend.id, viewer.id]

        assert len(await fetch_leaderboard(db_session, viewer.id, limit=1)) == 1

        lecture = await _lecture(db_session, friend, lecture_text)
        await QuizService(db_session).record_attempt(friend, lecture.subtopics[0].questions[0].id, 0, True, now=now)
        recent = await fetch_leaderboard(db_session, viewer.id, timeframe="30d", now=now + timedelta(minutes=1))
        assert [r.id for r in recent] == [friend.id]


class TestTokenUsage:
    """Best-effort recording and admin aggregation."""

    @pytest.mark.asyncio
    async def test_record_and_report(self, db_session):
        ada = await _user(db_session, email="ada@example.com", username="ada")
        bob = await _user(db_session, email="bob@example.com", username="bob")
        await record_token_usage(db_session, user_id=ada.id, route="lectures", model="openai:gpt-4o-mini",
                                 tokens_input=100, tokens_output=50)
        await record_token_usage(db_session, user_id=ada.id, route="lectures", model="gpt-4o-mini",
                                 tokens_input=10, tokens_output=5)
        await record_token_usage(db_session, user_id=bob.id, route="quiz", model="gpt-4o-mini",
                                 tokens_input=1, tokens_output=1, total_tokens=7)
        await record_token_usage(db_session, user_id=None, route="quiz", model="gpt-4o-mini", tokens_input=999)
        await db_session.flush()

        reporter = TokenUsageReporter(db_session)
        report = await reporter.report(parse_range("all"))
        assert report.summary.requests == 3
        assert report.summary.total_tokens == 172
        assert [r.username for r in report.rows] == ["ada", "bob"]
        assert report.rows[0].requests == 2

        filtered = await reporter.report(parse_range("all"), route="quiz")
        assert [r.username for r in filtered.rows] == ["bob"]

        searched = await reporter.report(parse_range("all"), search="AD")
        assert searched.total_users == 1

        paged = await reporter.report(parse_range("all"), per_page=1, page=2, sort="user", order="asc")
        assert paged.total_pages == 2
        assert [r.username for r in paged.rows] == ["bob"]

        detail = await reporter.user_detail(ada.id, parse_range("24h"))
        assert detail.summary.total_tokens == 165
        assert detail.bucket == "hour"
        assert detail.by_model == {"gpt-4o-mini": 165}
        assert sum(b.requests for b in detail.series) == 2

    @pytest.mark.asyncio
    async def test_user_detail_unknown_user(self, db_session):
        with pytest.raises(LookupError):
            await TokenUsageReporter(db_session).user_detail(uuid.uuid4(), parse_range("all"))
