"""
Mint a bearer token for operator tooling or manual API testing.

Usage:
  python -m bizhub.scripts.issue_token --admin-id 1 --username admin
  python -m bizhub.scripts.issue_token --user-id 5 --email test@example.com --hours 1
"""
from __future__ import annotations

import argparse
import datetime as dt

from bizhub.auth import create_access_token


def main():
    ap = argparse.ArgumentParser()
    group = ap.add_mutually_exclusive_group(required=True)
    group.add_argument("--admin-id", type=int)
    group.add_argument("--user-id", type=int)
    ap.add_argument("--username", default="admin")
    ap.add_argument("--email", default=None)
    ap.add_argument("--hours", type=float, default=24)
    args = ap.parse_args()

    if args.admin_id is not None:
        claims = {"id": args.admin_id, "username": args.username, "role": "admin", "isAdmin": True}
    else:
        claims = {"id": args.user_id, "email": args.email, "isAdmin": False}
    print(create_access_token(claims, dt.timedelta(hours=args.hours)))


if __name__ == "__main__":
    main()
