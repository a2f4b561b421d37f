"""
Load development data (admin, test user, events, posts, directory entries).

WARNING: creates accounts with known passwords. Never run against production.

Usage:
  python -m bizhub.scripts.seed_test_data --file seeds/test_data.yaml
"""
from __future__ import annotations

import argparse
import os

from bizhub.config import PROJECT_ROOT
from bizhub.logs import LogContext
from bizhub.schema import ensure_schema
from bizhub.services.seed_svc import seed_test_data


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--file", default=os.path.join(PROJECT_ROOT, "seeds", "test_data.yaml"))
    args = ap.parse_args()

    ensure_schema()
    res = seed_test_data(args.file)
    log = LogContext("SEED_TEST_DATA")
    log.set_payload({"file": args.file})
    log.set_after(res)
    log.write("OK")
    print({"message": "ok", **res})


if __name__ == "__main__":
    main()
