"""
Create the schema, seed default settings and add the directory unique indexes.

Optionally creates the first admin account (skipped when the username exists).

Usage:
  python -m bizhub.scripts.init_db
  python -m bizhub.scripts.init_db --admin-username admin --admin-password '...'
"""
from __future__ import annotations

import argparse
import os

from bizhub.logs import LogContext
from bizhub.schema import ensure_schema
from bizhub.services.duplicate_svc import apply_unique_constraints
from bizhub.services.seed_svc import ensure_admin
from bizhub.services.settings_svc import ensure_default_settings


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--admin-username", default=None)
    ap.add_argument("--admin-password", default=os.environ.get("ADMIN_PASSWORD"))
    ap.add_argument("--admin-email", default=None)
    ap.add_argument("--skip-constraints", action="store_true")
    args = ap.parse_args()

    created = ensure_schema()
    ensure_default_settings()
    res = {"message": "ok", **created}
    if not args.skip_constraints:
        res["constraints"] = {k: v["status"] for k, v in apply_unique_constraints().items()}
    if args.admin_username:
        if not args.admin_password:
            ap.error("--admin-password (or ADMIN_PASSWORD) is required with --admin-username")
        admin = ensure_admin(args.admin_username, args.admin_password, args.admin_email)
        res["admin"] = admin

    log = LogContext("INIT_DB")
    log.set_after(res)
    log.write("OK")
    print(res)


if __name__ == "__main__":
    main()
