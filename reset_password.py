#!/usr/bin/env python3
"""
Reset a user's password in the Social Feed SQLite database.

This script DOES NOT read or reveal any existing passwords. It simply sets
a new password hash (PBKDF2-HMAC-SHA256, format "salthex$hashhex") for the
user with the given username.

Usage:
    python reset_password.py --db ./social_feed_api/social_feed.db --username janedoe --password "NewStrongPass!234"

If --password is omitted, you will be prompted to enter it securely.
"""

import argparse
import getpass
import os
import sqlite3
import sys

from social_feed_api.app.core.db import utcnow
from social_feed_api.app.core.security import hash_password


def main():
    ap = argparse.ArgumentParser(description="Reset a Social Feed user password (SQLite).")
    ap.add_argument("--db", required=True, help="Path to SQLite DB file (e.g., ./social_feed_api/social_feed.db)")
    ap.add_argument("--username", required=True, help="Username to update")
    ap.add_argument("--password", help="New password. If omitted, you'll be prompted securely.")
    args = ap.parse_args()

    if not os.path.exists(args.db):
        print(f"[!] DB not found: {args.db}", file=sys.stderr)
        sys.exit(1)

    new_password = args.password or getpass.getpass("Enter NEW password: ")
    if not new_password:
        print("[!] Empty password is not allowed.", file=sys.stderr)
        sys.exit(1)

    conn = sqlite3.connect(args.db)
    try:
        cur = conn.cursor()
        cur.execute("SELECT id FROM users WHERE username = ?", (args.username,))
        if not cur.fetchone():
            print(f"[!] No user found with username: {args.username}", file=sys.stderr)
            sys.exit(2)

        cur.execute(
            "UPDATE users SET password = ?, updated_at = ? WHERE username = ?",
            (hash_password(new_password), utcnow(), args.username),
        )
        conn.commit()
        print(f"[+] Password updated for user: {args.username}")
    finally:
        conn.close()


if __name__ == "__main__":
    main()
