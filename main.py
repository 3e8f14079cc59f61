#!/usr/bin/env python3
"""Scan Check-In launcher.

Command to run:
    python3 -m venv .venv && . .venv/bin/activate
    python -m pip install -e ".[test]"
    python main.py checkin --name "Ada Lovelace"

Environment variables (.env). `python main.py init` writes this template:
  CHECKIN_SERVICE_URL=""   # recording service endpoint
  CHECKIN_STORAGE_DIR=".checkin"
  SUBMIT_TIMEOUT_MS=10000

Commands:
    init                  write a .env template
    checkin --name/--id   submit one check-in (queued until the service answers)
    scan [DATA ...]       submit decoded QR strings (stdin when no DATA)
    checkout --name       undo a check-in
    retry                 resend pending check-ins
    queue                 show pending check-ins
    names                 list names known to the service
"""

import pathlib
import sys

SRC_PATH = pathlib.Path(__file__).resolve().parent / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from scan_checkin.main import main  # noqa: E402

if __name__ == "__main__":
    raise SystemExit(main())
