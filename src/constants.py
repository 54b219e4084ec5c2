#!/usr/bin/env python3
"""
Centralized constants for the advisory-feed project.

This module contains the endpoint, paging, backoff and snapshot constants
used throughout the codebase to avoid duplication.
"""

# Remote API
GITHUB_ADVISORIES_URL = "https://api.github.com/advisories"
GITHUB_API_VERSION = "2022-11-28"
GITHUB_ACCEPT = "application/vnd.github+json"
USER_AGENT = "advisory-feed/1.0"
DEFAULT_ECOSYSTEM = "npm"
DEFAULT_ADVISORY_TYPE = "malware"

# Pagination
PER_PAGE = 100
SORT_FIELD = "published"
SORT_DIRECTION = "desc"
MAX_PAGES = 500  # runaway-loop ceiling
PAGE_DELAY_SECONDS = 1.0
REQUEST_TIMEOUT_SECONDS = 30
LOOKBACK_YEARS = 1

# Rate limiting
RATE_LIMIT_STATUSES = frozenset({403, 429})
DEFAULT_RATE_LIMIT_WAIT_SECONDS = 60
MIN_RATE_LIMIT_WAIT_SECONDS = 1
MAX_RATE_LIMIT_WAIT_SECONDS = 3600
MAX_RATE_LIMIT_RETRIES = 10

# Snapshot
DATA_DIR = "data"
SNAPSHOT_FILE = f"{DATA_DIR}/advisories.json"
SCHEMA_VERSION = "1.0"
SOURCE_NAME = "github"
ADVISORY_KIND = "malware"
UNKNOWN_PACKAGE = "unknown"

# Logging
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
LOG_FILE = "logs/advisory-feed.log"
