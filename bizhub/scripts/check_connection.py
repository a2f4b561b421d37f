"""
Check that the configured database is reachable and print what was used.

Usage:
  python -m bizhub.scripts.check_connection
  python -m bizhub.scripts.check_connection --url mysql+pymysql://user:pw@host:3306/db
"""
from __future__ import annotations

import argparse
import sys

from bizhub.services.diagnostics_svc import check_connection


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--url", default=None, help="SQLAlchemy URL, defaults to the configured database")
    args = ap.parse_args()

    res = check_connection(args.url)
    for k, v in res["target"].items():
        print(f"{k}: {v}")
    for issue in res["env_issues"]:
        print(f"warning: {issue}")
    if res["ok"]:
        print(f"connected, server version {res['server_version']}")
        return
    print(f"connection failed: {res['error']} ({res.get('code') or 'unknown'})")
    if res.get("hint"):
        print(f"hint: {res['hint']}")
    sys.exit(1)


if __name__ == "__main__":
    main()
