"""
Issue Admin Token

Prints a signed admin JWT for the dashboard endpoints, using
JWT_SECRET_KEY from the environment.

Usage:
    python scripts/issue_admin_token.py admin@example.com [--hours 12]
"""

import argparse
import sys
import uuid
from datetime import timedelta
from pathlib import Path

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from app.core.auth import ADMIN_ROLE
from app.core.security import create_access_token


def main() -> None:
    parser = argparse.ArgumentParser(description="Issue an admin access token")
    parser.add_argument("email", help="Admin email address")
    parser.add_argument("--hours", type=int, default=12, help="Token lifetime in hours")
    args = parser.parse_args()

    # Stable id per email so logs attribute actions consistently
    admin_id = uuid.uuid5(uuid.NAMESPACE_URL, f"mailto:{args.email.lower()}")

    token = create_access_token(
        str(admin_id),
        email=args.email,
        role=ADMIN_ROLE,
        expires_delta=timedelta(hours=args.hours),
    )
    print(token)


if __name__ == "__main__":
    main()
