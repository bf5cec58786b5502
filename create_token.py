"""Print a long-lived access token for a user id (for scripts and API clients).

Usage:
    python create_token.py <user_id> [days]
"""
import sys

from social_feed_api.app.core.security import create_access_token

if len(sys.argv) < 2:
    sys.exit("usage: python create_token.py <user_id> [days]")
days = int(sys.argv[2]) if len(sys.argv) > 2 else 365
print(create_access_token({"sub": sys.argv[1]}, expires_delta=days * 24 * 60 * 60))
