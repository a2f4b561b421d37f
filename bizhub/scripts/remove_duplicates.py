"""
Remove duplicate directory entries and user businesses, keeping the lowest id
of every duplicate group.

Usage:
  python -m bizhub.scripts.remove_duplicates --dry-run
  python -m bizhub.scripts.remove_duplicates --rule members --rule partners
"""
from __future__ import annotations

import argparse

from bizhub.logs import LogContext
from bizhub.repository.duplicate_repo import RULES_BY_NAME
from bizhub.services.duplicate_svc import remove_duplicates


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--dry-run", action="store_true", help="report what would be deleted")
    ap.add_argument("--rule", action="append", choices=sorted(RULES_BY_NAME))
    args = ap.parse_args()

    res = remove_duplicates(dry_run=args.dry_run, names=args.rule)
    if not args.dry_run:
        log = LogContext("DUPLICATES_REMOVE")
        log.set_after(res)
        log.write("ERROR" if any("error" in r for r in res.values()) else "OK")
    for name, r in res.items():
        if "error" in r:
            print(f"{name}: ERROR {r['error']}")
        else:
            verb = "would delete" if args.dry_run else "deleted"
            n = len(r["delete_ids"]) if args.dry_run else r["deleted"]
            print(f"{name}: {r['groups']} group(s), {verb} {n} row(s), kept {r['kept_ids']}")


if __name__ == "__main__":
    main()
