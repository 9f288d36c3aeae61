"""Issue a long-lived access token for an existing user.

Usage:
    python create_token.py user@example.com [days]
"""
import sys

from places_api.app.core.db import get_connection
from places_api.app.core.security import create_access_token


def main() -> int:
    if len(sys.argv) < 2:
        print(__doc__)
        return 1
    email = sys.argv[1].strip().lower()
    days = int(sys.argv[2]) if len(sys.argv) > 2 else 365
    conn = get_connection()
    try:
        row = conn.execute("SELECT id, email FROM users WHERE email = ?", (email,)).fetchone()
    finally:
        conn.close()
    if not row:
        print(f"No user with email {email}", file=sys.stderr)
        return 1
    # срок действия в секундах
    print(create_access_token({"sub": row["id"], "email": row["email"]}, expires_delta=days * 24 * 60 * 60))
    return 0


if __name__ == "__main__":
    sys.exit(main())
