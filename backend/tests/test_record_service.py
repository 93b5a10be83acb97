"""
Mindtrail Backend - Record Service Unit Tests
==============================================

What:  Form saves against an in-memory database, plus the muscle vocabulary
       check and driver-failure translation.

What we test:
    ✅ Muscle tokens are trimmed/uppercased; every invalid token is reported
    ✅ Records are stamped with the caller's id and email
    ✅ Journey rejects a body email naming someone else
    ✅ saveAudio stores 'completed' or 'degraded' records
    ✅ saveAudio ends the request transaction before calling the provider
    ✅ A failed insert becomes DatabaseError
"""

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from app.exceptions import DatabaseError, ValidationError
from app.models.records import Audio, Journey, Muscle, MuscleSelection
from app.schemas.records import (
    JournalRequest,
    SaveAnswersRequest,
    SaveAudioRequest,
    SaveMusclesRequest,
    SavePostExperienceRequest,
    StoryAnswersRequest,
)
from app.services.record_service import RecordService, parse_muscles
from app.services.summary_service import SummaryService

from conftest import FakeChatClient


class TestParseMuscles:

    def test_normalizes_case_and_whitespace(self):
        assert parse_muscles([" chest ", "Lower_Back", "ABS"]) == [
            Muscle.CHEST,
            Muscle.LOWER_BACK,
            Muscle.ABS,
        ]

    def test_reports_exactly_the_invalid_tokens(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_muscles(["chest", "INVALID_MUSCLE"])
        assert exc_info.value.message == "Invalid muscles: INVALID_MUSCLE"
        assert exc_info.value.context["invalid"] == ["INVALID_MUSCLE"]
        assert exc_info.value.fields == ["selectedMuscles"]

    def test_reports_all_invalid_tokens_together(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_muscles(["wing", "ABS", "tail"])
        assert exc_info.value.context["invalid"] == ["WING", "TAIL"]

    def test_vocabulary_size(self):
        assert len(Muscle) == 21


class TestRecordSaves:

    def setup_method(self):
        self.service = RecordService()

    @pytest.mark.asyncio
    async def test_save_answers_stamps_owner(self, db_session, identity):
        payload = SaveAnswersRequest.model_validate(
            {"responses": [{"question": "Why are you here?", "answer": "Curiosity"}]}
        )
        record = await self.service.save_answers(db_session, identity, payload)

        assert record.user_id == identity.user_id
        assert record.email == identity.email
        assert record.responses[0].answer == "Curiosity"
        assert record.created_at is not None

    @pytest.mark.asyncio
    async def test_save_journal_normalizes_date(self, db_session, identity):
        payload = JournalRequest.model_validate({
            "journalEntry": {
                "medicine": "Psilocybin",
                "intention": "Let go",
                "experienceDate": "2024-03-05T10:00:00Z",
                "currentState": "Nervous",
            }
        })
        record = await self.service.save_journal(db_session, identity, payload)
        assert record.experience_date == "2024-03-05"
        assert record.post_experience is None

    @pytest.mark.asyncio
    async def test_save_muscles_stores_normalized_tokens(self, db_session, identity):
        payload = SaveMusclesRequest.model_validate(
            {"selectedMuscles": [" chest", "abs "], "date": "2024-03-05"}
        )
        record = await self.service.save_muscles(db_session, identity, payload)
        assert record.selected_muscles == ["CHEST", "ABS"]

    @pytest.mark.asyncio
    async def test_invalid_muscles_persist_nothing(self, db_session, identity):
        payload = SaveMusclesRequest.model_validate(
            {"selectedMuscles": ["chest", "INVALID_MUSCLE"], "date": "2024-03-05"}
        )
        with pytest.raises(ValidationError):
            await self.service.save_muscles(db_session, identity, payload)

        count = await db_session.scalar(select(func.count()).select_from(MuscleSelection))
        assert count == 0

    @pytest.mark.asyncio
    async def test_save_journey_accepts_own_email(self, db_session, identity):
        payload = StoryAnswersRequest.model_validate({
            "email": "RIVER@example.com",
            "date": "2024-03-05",
            "levels": [
                {"title": "Arrival", "questionAnswers": [{"question": "Q1", "answer": "A1"}]},
            ],
        })
        record = await self.service.save_journey(db_session, identity, payload)
        assert record.levels[0].title == "Arrival"
        assert record.levels[0].question_answers[0].answer == "A1"

    @pytest.mark.asyncio
    async def test_save_journey_rejects_foreign_email(self, db_session, identity):
        payload = StoryAnswersRequest.model_validate({
            "email": "someone.else@example.com",
            "date": "2024-03-05",
            "levels": [{"title": "Arrival"}],
        })
        with pytest.raises(ValidationError) as exc_info:
            await self.service.save_journey(db_session, identity, payload)
        assert exc_info.value.fields == ["email"]

        count = await db_session.scalar(select(func.count()).select_from(Journey))
        assert count == 0

    @pytest.mark.asyncio
    async def test_save_post_experience(self, db_session, identity):
        payload = SavePostExperienceRequest.model_validate(
            {"journalEntry": {"postExperience": "Felt grounded."}, "date": "2024-03-06"}
        )
        record = await self.service.save_post_experience(db_session, identity, payload)
        assert record.post_experience == "Felt grounded."
        assert record.date == "2024-03-06"


class TestSaveAudio:

    def setup_method(self):
        self.service = RecordService()
        self.payload = SaveAudioRequest.model_validate(
            {"postExperience": "Cried, then laughed.", "date": "2024-03-06"}
        )

    @pytest.mark.asyncio
    async def test_completed_summary(self, db_session, identity):
        summarizer = SummaryService(FakeChatClient())
        record = await self.service.save_audio(db_session, identity, self.payload, summarizer)

        assert record.status == "completed"
        assert record.audio == "Summary: Cried, then laughed."
        assert record.error_message is None

    @pytest.mark.asyncio
    async def test_upstream_failure_stores_degraded_record(self, db_session, identity):
        summarizer = SummaryService(FakeChatClient(fail_reason="timeout after 60s"))
        record = await self.service.save_audio(db_session, identity, self.payload, summarizer)

        assert record.status == "degraded"
        assert record.audio is None
        assert record.error_message == "timeout after 60s"

        stored = await db_session.get(Audio, record.id)
        assert stored.status == "degraded"

    @pytest.mark.asyncio
    async def test_transaction_ended_before_summary(self, db_session, identity):
        in_transaction = []

        class RecordingClient(FakeChatClient):
            async def complete(self, messages):
                in_transaction.append(db_session.in_transaction())
                return await super().complete(messages)

        summarizer = SummaryService(RecordingClient())
        record = await self.service.save_audio(db_session, identity, self.payload, summarizer)

        assert in_transaction == [False]
        stored = await db_session.get(Audio, record.id)
        assert stored.audio == "Summary: Cried, then laughed."


class TestDatabaseFailures:

    @pytest.mark.asyncio
    async def test_flush_failure_becomes_database_error(self, mock_db_session, identity):
        mock_db_session.flush.side_effect = OperationalError("INSERT", {}, Exception("disk full"))
        payload = SavePostExperienceRequest.model_validate(
            {"journalEntry": {"postExperience": "x"}, "date": "2024-03-06"}
        )
        with pytest.raises(DatabaseError):
            await RecordService().save_post_experience(mock_db_session, identity, payload)

    @pytest.mark.asyncio
    async def test_commit_failure_before_summary(self, mock_db_session, identity):
        mock_db_session.commit.side_effect = OperationalError("COMMIT", {}, Exception("gone"))
        client = FakeChatClient()
        payload = SaveAudioRequest.model_validate({"postExperience": "x", "date": "2024-03-06"})

        with pytest.raises(DatabaseError):
            await RecordService().save_audio(mock_db_session, identity, payload, SummaryService(client))
        assert client.calls == []
        mock_db_session.add.assert_not_called()
