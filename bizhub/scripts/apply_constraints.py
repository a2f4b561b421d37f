"""
Add the unique indexes that stop duplicate directory entries. A table that
still holds duplicates is skipped; run remove_duplicates first.

Usage:
  python -m bizhub.scripts.apply_constraints
"""
from __future__ import annotations

import argparse
import sys

from bizhub.logs import LogContext
from bizhub.repository.duplicate_repo import RULES_BY_NAME
from bizhub.services.duplicate_svc import apply_unique_constraints


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--rule", action="append", choices=sorted(RULES_BY_NAME))
    args = ap.parse_args()

    res = apply_unique_constraints(args.rule)
    failed = [k for k, v in res.items() if v["status"] in ("skipped", "error")]
    log = LogContext("CONSTRAINTS_APPLY")
    log.set_after(res)
    log.write("ERROR" if failed else "OK", ", ".join(failed) or None)
    for name, r in res.items():
        print(f"{name}: {r['status']} ({r['index']})")
    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
