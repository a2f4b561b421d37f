"""
Load the template and built-in tool catalogues from CSV. Existing rows are
refreshed in place, so the script is safe to re-run.

Usage:
  python -m bizhub.scripts.seed_catalogue \
      --templates seeds/templates.csv \
      --tools seeds/builtin_tools.csv
"""
from __future__ import annotations

import argparse
import os

from bizhub.config import PROJECT_ROOT
from bizhub.logs import LogContext
from bizhub.services.template_svc import seed_catalogue


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--templates", default=os.path.join(PROJECT_ROOT, "seeds", "templates.csv"))
    ap.add_argument("--tools", default=os.path.join(PROJECT_ROOT, "seeds", "builtin_tools.csv"))
    args = ap.parse_args()

    log = LogContext("SEED_CATALOGUE")
    res = seed_catalogue(args.templates, args.tools, log)
    log.write("OK")
    print({"message": "ok", **res})


if __name__ == "__main__":
    main()
