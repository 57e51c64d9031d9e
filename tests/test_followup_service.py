"""Tests for follow-up scheduling."""

from datetime import UTC, date, datetime, timedelta

import pytest
import pytest_asyncio

from reapply.core.exceptions import NotFoundError
from reapply.schemas.application import JobDetails
from reapply.schemas.followup import (
    FollowUpItem,
    FollowUpScheduleRequest,
    FollowUpTiming,
)
from reapply.services.application_service import ApplicationService
from reapply.services.followup_service import (
    FollowUpScheduler,
    compute_scheduled_date,
    substitute_placeholders,
)


class TestComputeScheduledDate:
    """Tests for compute_scheduled_date."""

    def test_immediate(self, now):
        assert compute_scheduled_date(FollowUpTiming.IMMEDIATE, None, now) == now

    def test_tomorrow(self, now):
        """Test tomorrow is exactly one day after creation."""
        scheduled = compute_scheduled_date(FollowUpTiming.TOMORROW, None, now)
        assert scheduled == now + timedelta(days=1)
        assert scheduled.date() == date(2026, 3, 2)

    def test_custom(self, now):
        scheduled = compute_scheduled_date(FollowUpTiming.CUSTOM, "2026-04-10", now)
        assert scheduled == datetime(2026, 4, 10, tzinfo=UTC)

    @pytest.mark.parametrize(
        "value",
        [None, "", "whenever", "31/12/2026", "9999-12-31T23:00:00-05:00"],
    )
    def test_unparsable_custom_falls_back_to_now(self, now, value):
        assert compute_scheduled_date(FollowUpTiming.CUSTOM, value, now) == now

    def test_custom_date_ignored_for_other_timings(self, now):
        scheduled = compute_scheduled_date(FollowUpTiming.IMMEDIATE, "2030-01-01", now)
        assert scheduled == now


class TestSubstitutePlaceholders:
    """Tests for substitute_placeholders."""

    def test_braces(self):
        text = substitute_placeholders(
            "Re: {Position} at {Company}", "Engineer", "Acme"
        )
        assert text == "Re: Engineer at Acme"

    def test_brackets_and_repeats(self):
        text = substitute_placeholders(
            "[Position] / [Company] / {Company}", "Engineer", "Acme"
        )
        assert text == "Engineer / Acme / Acme"

    def test_other_placeholders_kept(self):
        text = substitute_placeholders("Best,\n[Your Name]", "Engineer", "Acme")
        assert text == "Best,\n[Your Name]"

    def test_values_with_special_characters(self):
        text = substitute_placeholders("{Company}", "Engineer", r"A\1 & {Position}")
        assert text == r"A\1 & {Position}"


class TestFollowUpScheduler:
    """Tests for FollowUpScheduler against the database."""

    @pytest.fixture
    def scheduler(self):
        return FollowUpScheduler()

    @pytest_asyncio.fixture
    async def application(self, db):
        return await ApplicationService().create_application(
            "google-user-1",
            JobDetails(
                company="Acme",
                position="Engineer",
                location="Berlin",
                recruiter_email="recruiter@acme.example",
            ),
        )

    @pytest.mark.asyncio
    async def test_three_follow_ups(self, scheduler, application, session_context, now):
        """Test immediate, tomorrow and custom follow-ups for Acme/Engineer."""
        request = FollowUpScheduleRequest(
            count=3,
            items=[
                FollowUpItem(timing=FollowUpTiming.IMMEDIATE),
                FollowUpItem(timing=FollowUpTiming.TOMORROW),
                FollowUpItem(timing=FollowUpTiming.CUSTOM, custom_date="2024-01-01"),
            ],
        )

        follow_ups = await scheduler.schedule(
            session_context, application.id, request, now=now
        )

        assert len(follow_ups) == 3
        for follow_up in follow_ups:
            assert "Acme" in follow_up.email_body
            assert "Engineer" in follow_up.email_body
            assert "{Company}" not in follow_up.email_body
            assert follow_up.status == "pending"
        assert [f.timing for f in follow_ups] == ["immediate", "tomorrow", "custom"]
        assert follow_ups[0].scheduled_date == datetime(2026, 3, 1, 12, 0)
        assert follow_ups[1].scheduled_date == datetime(2026, 3, 2, 12, 0)
        assert follow_ups[2].scheduled_date == datetime(2024, 1, 1)

        updated = await ApplicationService().get_application(
            "google-user-1", application.id
        )
        assert updated.follow_up_count == 3

        stored = await scheduler.list_follow_ups(session_context, application.id)
        assert len(stored) == 3

    @pytest.mark.asyncio
    async def test_count_clamped_and_defaults_used(
        self, scheduler, application, session_context, now
    ):
        follow_ups = await scheduler.schedule(
            session_context, application.id, FollowUpScheduleRequest(count=9), now=now
        )

        assert len(follow_ups) == 5
        assert all(f.timing == "tomorrow" for f in follow_ups)
        assert all(f.email_subject == "Following up on my application" for f in follow_ups)

    @pytest.mark.asyncio
    async def test_count_below_minimum(self, scheduler, application, session_context):
        follow_ups = await scheduler.schedule(
            session_context, application.id, FollowUpScheduleRequest(count=0)
        )
        assert len(follow_ups) == 1

    @pytest.mark.asyncio
    async def test_reconfiguring_overwrites_count(
        self, scheduler, application, session_context
    ):
        await scheduler.schedule(
            session_context, application.id, FollowUpScheduleRequest(count=3)
        )
        await scheduler.schedule(
            session_context, application.id, FollowUpScheduleRequest(count=2)
        )

        updated = await ApplicationService().get_application(
            "google-user-1", application.id
        )
        assert updated.follow_up_count == 2

    @pytest.mark.asyncio
    async def test_unknown_application(self, scheduler, db, session_context):
        with pytest.raises(NotFoundError):
            await scheduler.schedule(session_context, 999, FollowUpScheduleRequest())

    @pytest.mark.asyncio
    async def test_other_users_application(
        self, scheduler, application, session_context
    ):
        stranger = session_context.model_copy(update={"user_id": "someone-else"})

        with pytest.raises(NotFoundError):
            await scheduler.schedule(stranger, application.id, FollowUpScheduleRequest())
        assert await scheduler.list_follow_ups(stranger, application.id) == []
