#!/usr/bin/env python3
"""Issue a JWT for a user, e.g. for the MCP HTTP transport or API calls."""

import argparse
import sys
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()

from backend.src.services.auth import AuthError, AuthService
from backend.src.services.config import get_config


def generate_token(user_id: str = "local-dev", days: int = 90):
    """Generate a JWT token for the specified user."""
    try:
        token, expires_at = AuthService(config=get_config()).issue_token_response(
            user_id, expires_in=timedelta(days=days)
        )
    except (AuthError, ValueError) as e:
        print(f"Error generating token: {e}", file=sys.stderr)
        print("Make sure JWT_SECRET_KEY is set (at least 16 characters)", file=sys.stderr)
        return None

    print(f"Token for '{user_id}' (expires {expires_at.isoformat()}):")
    print(f"Authorization: Bearer {token}")
    return token


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("user_id", nargs="?", default="local-dev")
    parser.add_argument("--days", type=int, default=90, help="Token lifetime in days")
    args = parser.parse_args()
    sys.exit(0 if generate_token(args.user_id, args.days) else 1)
