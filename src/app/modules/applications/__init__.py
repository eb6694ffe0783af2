"""
Applications Module

Handles the incubation application workflow:
1. Application submission (status starts as pending)
2. Approve/reject token pair issued per submission (7-day expiry, single use)
3. Reviewer redeems one link, which records the decision exactly once
4. Applicant is notified of submission and decision by email

API Endpoints:
- POST /applications - Submit new application
- GET /applications/{id}/status - Applicant status lookup
- GET /handle-approval?token= - Redeem an approval link
- /admin/applications/... - Admin dashboard (see admin_router)

Security Features:
- SHA-256 token hashing (tokens never stored in plain text)
- Conditional token claim so concurrent redemptions cannot both succeed
- Rate limiting on public endpoints
- No token values in logs
"""

from .router import approval_router, router

__all__ = ["router", "approval_router"]
