"""
Runtime configuration for the fetching layer and CLI.

Values come from environment variables with local defaults. The analysis
functions never import this module; callers pass these values in.
"""

import os

DEFAULT_FETCH_TIMEOUT_MS = 30000
DEFAULT_WAIT_STRATEGY = "network_idle"
DEFAULT_SNAPSHOT_INDENT = 2
DEFAULT_HIDDEN_HIGH_THRESHOLD = 10.0
DEFAULT_MAX_CONCURRENCY = 3
DEFAULT_LOG_LEVEL = "WARNING"

HYDRADIFF_FETCH_TIMEOUT_MS = int(
    os.getenv("HYDRADIFF_FETCH_TIMEOUT_MS", str(DEFAULT_FETCH_TIMEOUT_MS))
)
HYDRADIFF_WAIT_STRATEGY = os.getenv("HYDRADIFF_WAIT_STRATEGY", DEFAULT_WAIT_STRATEGY)
HYDRADIFF_USER_AGENT = os.getenv("HYDRADIFF_USER_AGENT") or None
HYDRADIFF_SNAPSHOT_INDENT = int(
    os.getenv("HYDRADIFF_SNAPSHOT_INDENT", str(DEFAULT_SNAPSHOT_INDENT))
)
HYDRADIFF_HIDDEN_HIGH_THRESHOLD = float(
    os.getenv("HYDRADIFF_HIDDEN_HIGH_THRESHOLD", str(DEFAULT_HIDDEN_HIGH_THRESHOLD))
)
HYDRADIFF_MAX_CONCURRENCY = int(
    os.getenv("HYDRADIFF_MAX_CONCURRENCY", str(DEFAULT_MAX_CONCURRENCY))
)
HYDRADIFF_LOG_LEVEL = os.getenv("HYDRADIFF_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()
