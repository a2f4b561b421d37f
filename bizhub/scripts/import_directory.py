"""
Bulk import directory entries from CSV. Rows that duplicate an existing entry
(same member name + organization, partner email, or business name) are skipped.

Usage:
  python -m bizhub.scripts.import_directory --type members --csv members.csv
"""
from __future__ import annotations

import argparse

from bizhub.logs import LogContext
from bizhub.repository.directory_repo import DIRECTORIES
from bizhub.services.directory_svc import import_csv


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--type", required=True, choices=sorted(DIRECTORIES))
    ap.add_argument("--csv", required=True)
    args = ap.parse_args()

    log = LogContext("DIRECTORY_IMPORT")
    try:
        res = import_csv(args.type, args.csv, log)
    except Exception as e:
        log.write("ERROR", str(e))
        raise
    log.write("OK")
    print({"message": "ok", **res})


if __name__ == "__main__":
    main()
