"""
Move events to the status their date implies: past -> Historical,
today -> Live Now, future -> Upcoming (Featured and Live Now are kept).

Usage:
  python -m bizhub.scripts.update_event_statuses
"""
from __future__ import annotations

import argparse
import datetime as dt

from bizhub.logs import LogContext
from bizhub.services.event_svc import apply_status_rules


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--today", default=None, help="YYYY-MM-DD, defaults to the current date")
    args = ap.parse_args()

    today = dt.date.fromisoformat(args.today) if args.today else None
    res = apply_status_rules(today)
    log = LogContext("EVENT_STATUS_BULK")
    log.set_after(res["summary"])
    log.write("OK")
    for u in res["updates"]:
        print(f"{u['id']} {u['title']}: {u['oldStatus']} -> {u['newStatus']}")
    print(res["summary"])


if __name__ == "__main__":
    main()
