"""Utilities for loading environment variables from .env files."""

from __future__ import annotations

import os

from dotenv import load_dotenv

ENV_TEMPLATE = """# Scan Check-In Configuration
# Recording service endpoint (POST records, GET names)
CHECKIN_SERVICE_URL=""

# Where the pending queue is persisted
CHECKIN_STORAGE_DIR=".checkin"
CHECKIN_QUEUE_KEY="scanQueue"

# Submission time bound in milliseconds
SUBMIT_TIMEOUT_MS=10000

# Notice display durations in milliseconds
NOTICE_DURATION_MS=2000
NOTICE_EXTENDED_DURATION_MS=4000

# Window in seconds during which repeated scans of the same person are ignored
SCAN_DEBOUNCE_SECONDS=3
"""


def load_env(path: str = ".env") -> None:
    """Populate :data:`os.environ` with values from a ``.env`` file.

    Existing environment variables are not overridden. A missing file is not an
    error.
    """
    if not os.path.exists(path):
        return
    load_dotenv(path, override=False)


def ensure_env_file(env_file: str = ".env", template: str = ENV_TEMPLATE) -> bool:
    """Create ``env_file`` from ``template`` when it does not exist yet.

    Returns True when a new file was written.
    """
    if os.path.exists(env_file):
        return False
    directory = os.path.dirname(env_file)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(env_file, "w", encoding="utf-8") as f:
        f.write(template)
    return True


__all__ = ["ENV_TEMPLATE", "ensure_env_file", "load_env"]
