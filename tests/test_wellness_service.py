"""
MindVault Backend — Wellness Service Unit Tests
=================================================

What we test:
    ✅ analysis and every answer value are stored as tokens
    ✅ One check per UTC day (ConflictError, also when two submissions race)
    ✅ Streak counting, including gaps and a not-yet-done today
    ✅ Undecryptable answers raise instead of leaking ciphertext
"""

import uuid
from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from mindvault.exceptions import ConflictError, DecryptionError
from mindvault.models.wellness_check import WellnessCheck
from mindvault.schemas.wellness import WellnessCheckCreate
from mindvault.services.field_cipher import FieldCipher, is_protected
from mindvault.services.wellness_service import WellnessService, count_streak, utc_day_bounds


def _check(cipher, user_id, analysis="Steady week.", answers=None, completed_at=None):
    now = completed_at or datetime.now(timezone.utc)
    return WellnessCheck(
        id=uuid.uuid4(),
        user_id=user_id,
        mood=7,
        analysis=cipher.protect(analysis),
        answers={k: cipher.protect(v) for k, v in (answers or {}).items()},
        completed_at=now,
        created_at=now,
    )


def _at(day: date, hour: int = 12) -> datetime:
    return datetime(day.year, day.month, day.day, hour, tzinfo=timezone.utc)


class TestCountStreak:
    today = date(2026, 3, 10)

    def test_no_checks(self):
        assert count_streak([], self.today) == 0

    def test_consecutive_days_ending_today(self):
        days = [self.today - timedelta(days=i) for i in range(4)]
        assert count_streak([_at(d) for d in days], self.today) == 4

    def test_today_not_done_yet_keeps_streak(self):
        days = [self.today - timedelta(days=i) for i in range(1, 4)]
        assert count_streak([_at(d) for d in days], self.today) == 3

    def test_gap_breaks_streak(self):
        days = [self.today, self.today - timedelta(days=1), self.today - timedelta(days=3)]
        assert count_streak([_at(d) for d in days], self.today) == 2

    def test_last_check_two_days_ago(self):
        assert count_streak([_at(self.today - timedelta(days=2))], self.today) == 0

    def test_multiple_checks_same_day_count_once(self):
        checks = [_at(self.today, 8), _at(self.today, 20), _at(self.today - timedelta(days=1))]
        assert count_streak(checks, self.today) == 2

    def test_naive_datetimes_are_treated_as_utc(self):
        naive = datetime(2026, 3, 10, 23, 30)
        assert count_streak([naive], self.today) == 1


def test_utc_day_bounds():
    start, end = utc_day_bounds(datetime(2026, 3, 10, 15, 45, tzinfo=timezone.utc))
    assert start == datetime(2026, 3, 10, tzinfo=timezone.utc)
    assert end - start == timedelta(days=1)


class TestCreateCheck:
    @pytest.mark.asyncio
    async def test_protects_analysis_and_each_answer(
        self, cipher, mock_db_session, make_result, user_id
    ):
        mock_db_session.execute.return_value = make_result(one=None)
        data = WellnessCheckCreate(
            mood=6,
            analysis="You seem a little tired.",
            answers={"sleep": "Poorly", "energy": "Low"},
        )

        result = await WellnessService(cipher).create_check(mock_db_session, user_id, data)

        stored = mock_db_session.add.call_args.args[0]
        assert is_protected(stored.analysis)
        assert set(stored.answers) == {"sleep", "energy"}
        assert all(is_protected(v) for v in stored.answers.values())
        assert result.analysis == "You seem a little tired."
        assert result.answers == {"sleep": "Poorly", "energy": "Low"}

    @pytest.mark.asyncio
    async def test_second_check_same_day_conflicts(
        self, cipher, mock_db_session, make_result, user_id
    ):
        mock_db_session.execute.return_value = make_result(one=_check(cipher, user_id))

        with pytest.raises(ConflictError):
            await WellnessService(cipher).create_check(
                mock_db_session, user_id, WellnessCheckCreate(mood=5, analysis="again")
            )
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_racing_insert_rejected_by_unique_day_index(
        self, cipher, mock_db_session, make_result, user_id
    ):
        mock_db_session.execute.return_value = make_result(one=None)
        mock_db_session.flush.side_effect = IntegrityError(
            "INSERT INTO wellness_checks", {}, Exception("uq_wellness_checks_user_day")
        )

        with pytest.raises(ConflictError):
            await WellnessService(cipher).create_check(
                mock_db_session, user_id, WellnessCheckCreate(mood=5, analysis="raced")
            )


class TestReadChecks:
    @pytest.mark.asyncio
    async def test_today_check_none(self, cipher, mock_db_session, make_result, user_id):
        mock_db_session.execute.return_value = make_result(one=None)

        assert await WellnessService(cipher).get_today_check(mock_db_session, user_id) is None

    @pytest.mark.asyncio
    async def test_history_reveals_answers(self, cipher, mock_db_session, make_result, user_id):
        checks = [_check(cipher, user_id, answers={"q1": "Better"})]
        mock_db_session.execute.return_value = make_result(many=checks)

        result = await WellnessService(cipher).get_history(mock_db_session, user_id)

        assert result.checks[0].answers == {"q1": "Better"}
        assert result.checks[0].analysis == "Steady week."

    @pytest.mark.asyncio
    async def test_legacy_plaintext_answers_pass_through(
        self, cipher, mock_db_session, make_result, user_id
    ):
        check = _check(cipher, user_id)
        check.answers = {"q1": "written before encryption"}
        mock_db_session.execute.return_value = make_result(one=check)

        result = await WellnessService(cipher).get_today_check(mock_db_session, user_id)

        assert result.answers == {"q1": "written before encryption"}

    @pytest.mark.asyncio
    async def test_undecryptable_answer_is_surfaced(
        self, cipher, mock_db_session, make_result, user_id
    ):
        check = _check(cipher, user_id, answers={"q1": "fine"})
        check.answers = {
            "q1": check.answers["q1"],
            "q2": FieldCipher("some-other-key").protect("hidden"),
        }
        mock_db_session.execute.return_value = make_result(many=[check])

        with pytest.raises(DecryptionError):
            await WellnessService(cipher).get_history(mock_db_session, user_id)

    @pytest.mark.asyncio
    async def test_streak_from_database(self, cipher, mock_db_session, make_result, user_id):
        now = datetime.now(timezone.utc)
        mock_db_session.execute.return_value = make_result(
            many=[now, now - timedelta(days=1), now - timedelta(days=2)]
        )

        assert await WellnessService(cipher).get_streak(mock_db_session, user_id) == 3
