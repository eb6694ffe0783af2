"""
Approval Result Pages

HTML pages returned to a reviewer who clicks an approve/reject link.
"""

from html import escape

from app.core.email import BRAND_NAME
from app.modules.applications.models import ApplicationStatus

_PAGE_STYLE = """
            body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; margin: 0; padding: 40px 20px; background: linear-gradient(135deg, #667eea, #764ba2); min-height: 100vh; display: flex; align-items: center; justify-content: center; }
            .container { background: #fff; padding: 40px; border-radius: 20px; text-align: center; max-width: 520px; box-shadow: 0 20px 40px rgba(0,0,0,0.1); }
            .badge { display: inline-block; padding: 8px 20px; border-radius: 25px; color: white; font-weight: 600; margin: 20px 0; }
            .approved { background: #10b981; }
            .rejected { background: #ef4444; }
            .error { background: #6b7280; }
            .footer { margin-top: 24px; color: #6b7280; font-size: 14px; }
"""

# Titles for the user-facing token errors, keyed by service error code
ERROR_TITLES = {
    "INVALID_TOKEN": "Invalid Link",
    "TOKEN_ALREADY_USED": "Link Already Used",
    "TOKEN_EXPIRED": "Link Expired",
    "APPLICATION_NOT_FOUND": "Application Not Found",
    "APPLICATION_ALREADY_DECIDED": "Application Already Decided",
    "RATE_LIMIT_EXCEEDED": "Too Many Requests",
}


def _render(title: str, badge: str, badge_class: str, body: str) -> str:
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="utf-8">
        <meta name="viewport" content="width=device-width">
        <title>{escape(title)} - {BRAND_NAME}</title>
        <style>{_PAGE_STYLE}</style>
    </head>
    <body>
        <div class="container">
            <h1>{escape(title)}</h1>
            <div class="badge {badge_class}">{escape(badge)}</div>
            {body}
            <div class="footer">{BRAND_NAME}</div>
        </div>
    </body>
    </html>
    """


def render_decision_page(
    status: ApplicationStatus,
    startup_name: str,
    applicant_email: str,
) -> str:
    """Confirmation page after a successful approve/reject."""
    status_text = "Approved" if status == ApplicationStatus.APPROVED else "Rejected"
    body = f"""
            <p><strong>{escape(startup_name)}</strong> has been marked as {status_text.lower()}.</p>
            <p>A notification is being sent to the applicant at <strong>{escape(applicant_email)}</strong>.</p>
    """
    return _render(f"Application {status_text}", status_text.upper(), status.value, body)


def render_error_page(error_code: str, message: str) -> str:
    """Page shown when a link cannot be redeemed."""
    title = ERROR_TITLES.get(error_code, "Something Went Wrong")
    body = f"<p>{escape(message)}</p>"
    return _render(title, "NO CHANGES MADE", "error", body)
