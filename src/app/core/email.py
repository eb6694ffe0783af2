"""
Notification Dispatcher (Resend)

Sends the three transactional emails of the application workflow:
- submission confirmation (to the applicant)
- review request with approve/reject links (to the incubation centre admin)
- decision notice (to the applicant)

Sending never raises. Every outcome is reported as a NotificationResult
and failures are logged. `dispatch()` schedules a send in the background
so request handlers never wait on the email provider.
"""

import asyncio
import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime
from html import escape
from typing import Any
from uuid import UUID

import resend

from app.core.config import settings

logger = logging.getLogger(__name__)

resend.api_key = settings.resend_api_key

BRAND_NAME = "Dreamers Incubation"


class NotificationKind(str, enum.Enum):
    """Email templates known to the dispatcher."""

    SUBMISSION_CONFIRMATION = "submission_confirmation"
    REVIEW_REQUEST = "review_request"
    DECISION_NOTICE = "decision_notice"


@dataclass
class NotificationRequest:
    application_id: UUID
    kind: NotificationKind
    recipient_address: str
    template_data: dict[str, Any] = field(default_factory=dict)


@dataclass
class NotificationResult:
    success: bool
    provider_message_id: str | None = None
    error: str | None = None


async def send_email(
    to_email: str,
    subject: str,
    html_content: str,
) -> NotificationResult:
    """
    Send an email using Resend.

    When no API key is configured the email is logged instead of sent
    and reported as successful.

    Args:
        to_email: Recipient email address
        subject: Email subject line
        html_content: HTML content of the email

    Returns:
        NotificationResult with the provider message id on success
    """
    if not resend.api_key:
        logger.warning("RESEND_API_KEY not set - logging email instead of sending")
        logger.info(f"EMAIL TO: {to_email} | SUBJECT: {subject}")
        return NotificationResult(success=True)

    try:
        params: resend.Emails.SendParams = {
            "from": settings.email_from,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }

        # Resend's client is synchronous
        email = await asyncio.to_thread(resend.Emails.send, params)
        logger.info(f"Email sent successfully to {to_email}, id: {email['id']}")
        return NotificationResult(success=True, provider_message_id=email["id"])
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return NotificationResult(success=False, error=str(e))


# ============================================
# Templates
# ============================================

_BASE_STYLE = """
            body { font-family: system-ui, -apple-system, sans-serif; line-height: 1.6; color: #1f2937; background: #f5f3ff; }
            .container { max-width: 600px; margin: 0 auto; padding: 40px 20px; }
            .card { background: #ffffff; border-radius: 16px; padding: 32px; }
            .header { color: #4c1d95; margin-bottom: 24px; }
            .details { background-color: #f9fafb; border: 1px solid #e5e7eb; padding: 16px; border-radius: 8px; margin: 16px 0; }
            .details li { margin-bottom: 4px; }
            .button { display: inline-block; color: white; padding: 14px 28px; text-decoration: none; border-radius: 8px; margin: 12px 8px 12px 0; font-weight: 600; }
            .approve { background-color: #10b981; }
            .reject { background-color: #ef4444; }
            .primary { background-color: #667eea; }
            .footer { margin-top: 40px; padding-top: 20px; border-top: 1px solid #e5e7eb; color: #6b7280; font-size: 14px; }
"""


def _page(title: str, body: str) -> str:
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="utf-8">
        <title>{title}</title>
        <style>{_BASE_STYLE}</style>
    </head>
    <body>
        <div class="container">
            <div class="card">
                {body}
                <div class="footer">
                    <p>Questions? Contact us at {escape(settings.support_email)}.</p>
                    <p>{BRAND_NAME}</p>
                </div>
            </div>
        </div>
    </body>
    </html>
    """


def _format_date(value: Any) -> str:
    if isinstance(value, datetime):
        return value.strftime("%B %d, %Y")
    return escape(str(value)) if value else ""


def render_submission_confirmation(data: dict[str, Any]) -> tuple[str, str]:
    """Subject and HTML for the applicant's submission confirmation."""
    founder_name = escape(data["founder_name"])
    startup_name = escape(data["startup_name"])
    centre = escape(data.get("incubation_centre") or "")

    body = f"""
                <h1 class="header">Application Received</h1>

                <p>Hello {founder_name},</p>

                <p>Thank you for applying to the {BRAND_NAME} programme with <strong>{startup_name}</strong>.</p>

                <div class="details">
                    <ul>
                        <li><strong>Startup:</strong> {startup_name}</li>
                        <li><strong>Incubation Centre:</strong> {centre}</li>
                        <li><strong>Reference:</strong> {escape(str(data.get("application_id", "")))}</li>
                    </ul>
                </div>

                <p>Our team will review your application and you will receive an email as soon as a decision is made.</p>
    """
    return (
        f"Your Application Submitted Successfully - {BRAND_NAME}",
        _page("Application Received", body),
    )


def render_review_request(data: dict[str, Any]) -> tuple[str, str]:
    """Subject and HTML for the reviewer email carrying the approve/reject links."""
    startup_name = escape(data["startup_name"])
    approve_url = escape(data["approve_url"], quote=True)
    reject_url = escape(data["reject_url"], quote=True)
    expectations = ", ".join(escape(item) for item in data.get("expectations") or [])
    challenges = escape(data.get("challenges") or "Not provided")

    body = f"""
                <h1 class="header">New Application Review Required</h1>

                <p>A new application has been submitted to your incubation centre.</p>

                <div class="details">
                    <ul>
                        <li><strong>Startup:</strong> {startup_name}</li>
                        <li><strong>Founder:</strong> {escape(data["founder_name"])}</li>
                        <li><strong>Email:</strong> {escape(data["email"])}</li>
                        <li><strong>Phone:</strong> {escape(data["phone"])}</li>
                        <li><strong>Company Type:</strong> {escape(data["company_type"])}</li>
                        <li><strong>Team Size:</strong> {escape(data["team_size"])}</li>
                        <li><strong>Incubation Centre:</strong> {escape(data["incubation_centre"])}</li>
                    </ul>
                </div>

                <p><strong>Startup Idea</strong></p>
                <p>{escape(data["idea_description"])}</p>

                <p><strong>Expectations:</strong> {expectations}</p>
                <p><strong>Challenges:</strong> {challenges}</p>

                <a href="{approve_url}" class="button approve">APPROVE</a>
                <a href="{reject_url}" class="button reject">REJECT</a>

                <p><strong>These links expire on {_format_date(data.get("expires_at"))} and can be used only once.</strong></p>
    """
    return (
        f"New Application Review Required - {data['startup_name']}",
        _page("Application Review", body),
    )


def render_decision_notice(data: dict[str, Any]) -> tuple[str, str]:
    """Subject and HTML for the applicant's approved/rejected notice."""
    approved = data["decision"] == "approved"
    founder_name = escape(data["founder_name"])
    startup_name = escape(data["startup_name"])
    centre = escape(data.get("incubation_centre") or "")

    if approved:
        subject = f"Congratulations! Your application has been approved - {BRAND_NAME}"
        headline = "Your Application Has Been Approved"
        message = (
            f"We are delighted to welcome <strong>{startup_name}</strong> to the "
            f"{BRAND_NAME} programme. Our team will reach out with onboarding details."
        )
        action = (
            f'<a href="{escape(settings.frontend_url, quote=True)}" '
            f'class="button primary">Visit {BRAND_NAME}</a>'
        )
    else:
        subject = f"Application Status Update - {BRAND_NAME}"
        headline = "Application Status Update"
        message = (
            f"Thank you for your interest in {BRAND_NAME}. After careful review, we are "
            f"unable to offer <strong>{startup_name}</strong> a place at this time."
        )
        action = (
            f'<a href="mailto:{escape(settings.support_email, quote=True)}" '
            f'class="button primary">Contact Support</a>'
        )

    body = f"""
                <h1 class="header">{headline}</h1>

                <p>Dear {founder_name},</p>

                <p>{message}</p>

                <div class="details">
                    <ul>
                        <li><strong>Startup:</strong> {startup_name}</li>
                        <li><strong>Founder:</strong> {founder_name}</li>
                        <li><strong>Incubation Centre:</strong> {centre}</li>
                        <li><strong>Decision Date:</strong> {_format_date(data.get("decided_at"))}</li>
                    </ul>
                </div>

                {action}
    """
    return subject, _page(headline, body)


_RENDERERS = {
    NotificationKind.SUBMISSION_CONFIRMATION: render_submission_confirmation,
    NotificationKind.REVIEW_REQUEST: render_review_request,
    NotificationKind.DECISION_NOTICE: render_decision_notice,
}


# ============================================
# Dispatcher
# ============================================


class NotificationDispatcher:
    """
    Fire-and-forget email sender for the application workflow.

    Injected into the service layer (see get_notifier) so tests can
    substitute a fake.
    """

    def __init__(self, timeout_seconds: float | None = None):
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else settings.email_send_timeout_seconds
        )
        self._pending: set[asyncio.Task] = set()

    async def send(self, request: NotificationRequest) -> NotificationResult:
        """Render and send one notification. Never raises."""
        try:
            subject, html_content = _RENDERERS[request.kind](request.template_data)
            result = await asyncio.wait_for(
                send_email(request.recipient_address, subject, html_content),
                timeout=self.timeout_seconds,
            )
        except TimeoutError:
            result = NotificationResult(
                success=False, error=f"Timed out after {self.timeout_seconds}s"
            )
        except Exception as e:
            result = NotificationResult(success=False, error=f"{type(e).__name__}: {e}")

        if result.success:
            logger.info(
                f"Notification {request.kind.value} sent for application {request.application_id}"
            )
        else:
            logger.error(
                f"Notification {request.kind.value} failed for application "
                f"{request.application_id}: {result.error}"
            )

        return result

    def dispatch(self, request: NotificationRequest) -> asyncio.Task:
        """Schedule `send` in the background and return the task."""
        task = asyncio.create_task(self.send(request))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for in-flight notifications. Called on shutdown."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)


notification_dispatcher = NotificationDispatcher()


def get_notifier() -> NotificationDispatcher:
    """FastAPI dependency returning the process-wide dispatcher."""
    return notification_dispatcher


__all__ = [
    "NotificationDispatcher",
    "NotificationKind",
    "NotificationRequest",
    "NotificationResult",
    "get_notifier",
    "notification_dispatcher",
    "send_email",
]
