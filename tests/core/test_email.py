"""
Unit tests for the notification dispatcher and email templates.
"""

import asyncio
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from app.core import email as email_module
from app.core.email import (
    NotificationDispatcher,
    NotificationKind,
    NotificationRequest,
    NotificationResult,
    render_decision_notice,
    render_review_request,
    render_submission_confirmation,
    send_email,
)


@pytest.fixture
def review_data():
    return {
        "startup_name": "Loop & <Co>",
        "founder_name": "Asha Rao",
        "email": "asha@greenloop.in",
        "phone": "+919876543210",
        "company_type": "Pvt Ltd",
        "team_size": "2-5",
        "incubation_centre": "Bangalore Hub",
        "idea_description": "<script>alert(1)</script>",
        "expectations": ["Mentorship", "Funding Support"],
        "challenges": None,
        "approve_url": "http://localhost:8000/handle-approval?token=aaa",
        "reject_url": "http://localhost:8000/handle-approval?token=rrr",
        "expires_at": datetime(2026, 1, 8, tzinfo=UTC),
    }


def _request(kind=NotificationKind.SUBMISSION_CONFIRMATION, data=None):
    return NotificationRequest(
        application_id=uuid4(),
        kind=kind,
        recipient_address="asha@greenloop.in",
        template_data=data
        or {
            "application_id": "abc",
            "founder_name": "Asha Rao",
            "startup_name": "GreenLoop",
            "incubation_centre": "Bangalore Hub",
        },
    )


class TestTemplates:
    def test_review_request_carries_both_links(self, review_data):
        subject, html = render_review_request(review_data)

        assert subject == "New Application Review Required - Loop & <Co>"
        assert 'href="http://localhost:8000/handle-approval?token=aaa"' in html
        assert 'href="http://localhost:8000/handle-approval?token=rrr"' in html
        assert "January 08, 2026" in html
        assert "Not provided" in html

    def test_review_request_escapes_applicant_text(self, review_data):
        _, html = render_review_request(review_data)

        assert "<script>" not in html
        assert "&lt;script&gt;" in html
        assert "Loop &amp; &lt;Co&gt;" in html

    def test_submission_confirmation(self):
        subject, html = render_submission_confirmation(
            {
                "application_id": "abc-123",
                "founder_name": "Asha Rao",
                "startup_name": "GreenLoop",
                "incubation_centre": "Bangalore Hub",
            }
        )

        assert "Submitted" in subject
        assert "abc-123" in html
        assert "Bangalore Hub" in html

    @pytest.mark.parametrize(
        ("decision", "headline"),
        [
            ("approved", "Your Application Has Been Approved"),
            ("rejected", "Application Status Update"),
        ],
    )
    def test_decision_notice(self, decision, headline):
        _, html = render_decision_notice(
            {
                "decision": decision,
                "founder_name": "Asha Rao",
                "startup_name": "GreenLoop",
                "incubation_centre": "Bangalore Hub",
                "decided_at": datetime(2026, 1, 2, tzinfo=UTC),
            }
        )

        assert headline in html
        assert "January 02, 2026" in html


class TestSendEmail:
    @pytest.mark.asyncio
    async def test_without_api_key_logs_and_succeeds(self):
        with patch.object(email_module.resend, "api_key", None):
            result = await send_email("a@b.com", "Subject", "<p>Hi</p>")

        assert result.success is True
        assert result.provider_message_id is None

    @pytest.mark.asyncio
    async def test_returns_provider_id(self):
        with (
            patch.object(email_module.resend, "api_key", "re_test"),
            patch.object(
                email_module.resend.Emails, "send", MagicMock(return_value={"id": "msg_1"})
            ) as mock_send,
        ):
            result = await send_email("a@b.com", "Subject", "<p>Hi</p>")

        assert result == NotificationResult(success=True, provider_message_id="msg_1")
        params = mock_send.call_args.args[0]
        assert params["to"] == ["a@b.com"]
        assert params["subject"] == "Subject"

    @pytest.mark.asyncio
    async def test_provider_error_becomes_failed_result(self):
        with (
            patch.object(email_module.resend, "api_key", "re_test"),
            patch.object(
                email_module.resend.Emails, "send", MagicMock(side_effect=RuntimeError("rejected"))
            ),
        ):
            result = await send_email("a@b.com", "Subject", "<p>Hi</p>")

        assert result.success is False
        assert result.error == "rejected"


class TestNotificationDispatcher:
    @pytest.mark.asyncio
    async def test_send_renders_and_sends(self):
        dispatcher = NotificationDispatcher()
        with patch(
            "app.core.email.send_email",
            new_callable=AsyncMock,
            return_value=NotificationResult(success=True, provider_message_id="msg_1"),
        ) as mock_send:
            result = await dispatcher.send(_request())

        assert result.success is True
        to_email, subject, html = mock_send.call_args.args
        assert to_email == "asha@greenloop.in"
        assert "GreenLoop" in html

    @pytest.mark.asyncio
    async def test_send_never_raises_on_provider_exception(self):
        dispatcher = NotificationDispatcher()
        with patch(
            "app.core.email.send_email",
            new_callable=AsyncMock,
            side_effect=ConnectionError("smtp down"),
        ):
            result = await dispatcher.send(_request())

        assert result.success is False
        assert result.error == "ConnectionError: smtp down"

    @pytest.mark.asyncio
    async def test_send_never_raises_on_bad_template_data(self):
        dispatcher = NotificationDispatcher()
        request = _request(kind=NotificationKind.DECISION_NOTICE, data={"decision": "approved"})

        result = await dispatcher.send(request)

        assert result.success is False
        assert result.error.startswith("KeyError")

    @pytest.mark.asyncio
    async def test_send_times_out(self):
        async def slow_send(*args):
            await asyncio.sleep(1)
            return NotificationResult(success=True)

        dispatcher = NotificationDispatcher(timeout_seconds=0.01)
        with patch("app.core.email.send_email", side_effect=slow_send):
            result = await dispatcher.send(_request())

        assert result.success is False
        assert result.error == "Timed out after 0.01s"

    @pytest.mark.asyncio
    async def test_dispatch_runs_in_background_and_drains(self):
        started = asyncio.Event()
        release = asyncio.Event()

        async def gated_send(*args):
            started.set()
            await release.wait()
            return NotificationResult(success=True)

        dispatcher = NotificationDispatcher()
        with patch("app.core.email.send_email", side_effect=gated_send):
            task = dispatcher.dispatch(_request())

            await started.wait()
            assert dispatcher.pending_count == 1
            assert not task.done()

            release.set()
            await dispatcher.drain()

        assert task.result().success is True
        assert dispatcher.pending_count == 0

    @pytest.mark.asyncio
    async def test_drain_with_nothing_pending(self):
        await NotificationDispatcher().drain()
