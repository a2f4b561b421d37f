"""
Reconcile raw table counts with what a running API reports: dashboard stats
and the pagination totals (and ids, when a table fits on one page) of every
list endpoint. Exits 1 when anything differs.

Usage:
  python -m bizhub.scripts.verify_counts --base-url http://localhost:3000 --token <admin jwt>
  python -m bizhub.scripts.verify_counts --base-url http://localhost:3000 --admin-id 1
"""
from __future__ import annotations

import argparse
import sys

import requests

from bizhub.auth import admin_token
from bizhub.services.consistency_svc import run_consistency_check


class TimeoutSession(requests.Session):
    def __init__(self, timeout: float):
        super().__init__()
        self.timeout = timeout

    def request(self, method, url, **kwargs):
        kwargs.setdefault("timeout", self.timeout)
        return super().request(method, url, **kwargs)


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--base-url", default="http://localhost:3000")
    ap.add_argument("--token", default=None, help="admin bearer token")
    ap.add_argument("--admin-id", type=int, default=None, help="mint an admin token for this id instead")
    ap.add_argument("--timeout", type=float, default=15.0)
    args = ap.parse_args()

    token = args.token
    if token is None and args.admin_id is not None:
        token = admin_token(args.admin_id, "verify_counts")

    with TimeoutSession(args.timeout) as http:
        res = run_consistency_check(http, token=token, base_url=args.base_url)

    for m in res["mismatches"]:
        print(f"MISMATCH {m['name']}: db={m['db']} api={m['api']}")
    for s in res["skipped"]:
        print(f"skipped {s}")
    print({"ok": res["ok"], "checked": res["checked"], "mismatches": len(res["mismatches"])})
    if not res["ok"]:
        sys.exit(1)


if __name__ == "__main__":
    main()
