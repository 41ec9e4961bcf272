# Copyright 2024 Heinrich Krupp
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Configuration for Agent Memories.

All settings are read from the environment once, at import time. Malformed
numeric values fall back to their defaults instead of failing startup;
validate_config() reports settings that are missing for the selected backends.
"""

import logging
import os
from typing import List, Optional

logger = logging.getLogger(__name__)


def safe_get_int_env(
    env_name: str,
    default: int,
    min_value: Optional[int] = None,
    max_value: Optional[int] = None
) -> int:
    """
    Read an integer environment variable.

    Returns the default when the variable is unset, not an integer, or
    outside [min_value, max_value].
    """
    raw = os.environ.get(env_name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Invalid integer for {env_name}: {raw!r}, using default {default}")
        return default
    if min_value is not None and value < min_value:
        logger.warning(f"{env_name}={value} is below minimum {min_value}, using default {default}")
        return default
    if max_value is not None and value > max_value:
        logger.warning(f"{env_name}={value} is above maximum {max_value}, using default {default}")
        return default
    return value


def safe_get_float_env(env_name: str, default: float, min_value: Optional[float] = None) -> float:
    """Read a float environment variable, falling back to the default on bad input."""
    raw = os.environ.get(env_name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Invalid float for {env_name}: {raw!r}, using default {default}")
        return default
    if min_value is not None and value < min_value:
        return default
    return value


# =============================================================================
# Authentication
# =============================================================================

# Bearer token required on every route except /health
API_KEY = os.environ.get("API_KEY") or None

# =============================================================================
# Durable store
# =============================================================================

SUPPORTED_STORAGE_BACKENDS = ("memory", "sqlite", "r2")

STORAGE_BACKEND = os.environ.get("STORAGE_BACKEND", "sqlite").strip().lower()
if STORAGE_BACKEND not in SUPPORTED_STORAGE_BACKENDS:
    logger.warning(f"Unknown STORAGE_BACKEND {STORAGE_BACKEND!r}, using 'sqlite'")
    STORAGE_BACKEND = "sqlite"

SQLITE_PATH = os.environ.get(
    "SQLITE_PATH",
    os.path.join(os.path.expanduser("~"), ".agent-memories", "memories.db")
)

R2_BUCKET = os.environ.get("R2_BUCKET") or None

# All memory blobs live under this key namespace
MEMORY_KEY_PREFIX = "memories/"

# =============================================================================
# Cloudflare API (R2 objects and AI Search)
# =============================================================================

CF_ACCOUNT_ID = os.environ.get("CF_ACCOUNT_ID") or None
CF_API_TOKEN = os.environ.get("CF_API_TOKEN") or None
AI_SEARCH_INSTANCE = os.environ.get("AI_SEARCH_INSTANCE") or None
CLOUDFLARE_API_BASE = os.environ.get(
    "CLOUDFLARE_API_BASE", "https://api.cloudflare.com/client/v4"
).rstrip("/")
HTTP_TIMEOUT_SECONDS = safe_get_float_env("HTTP_TIMEOUT_SECONDS", 30.0, min_value=0.1)

# =============================================================================
# Retrieval and listing
# =============================================================================

DEFAULT_SEARCH_LIMIT = 5
MAX_SEARCH_RESULTS = 50
SEARCH_SCORE_THRESHOLD = 0.1
DEFAULT_LIST_LIMIT = 20
MAX_LIST_LIMIT = 1000

# =============================================================================
# HTTP server and logging
# =============================================================================

HTTP_HOST = os.environ.get("HTTP_HOST", "127.0.0.1")
HTTP_PORT = safe_get_int_env("HTTP_PORT", 8787, min_value=1, max_value=65535)
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()


def validate_config() -> List[str]:
    """
    Check that every setting required by the selected backends is present.

    Returns:
        List of human-readable problems, empty when the configuration is usable
    """
    problems = []

    if not API_KEY:
        problems.append("API_KEY is not set; every authenticated route will answer 500")

    if not CF_ACCOUNT_ID:
        problems.append("CF_ACCOUNT_ID is required for AI Search")
    if not CF_API_TOKEN:
        problems.append("CF_API_TOKEN is required for AI Search")
    if not AI_SEARCH_INSTANCE:
        problems.append("AI_SEARCH_INSTANCE is required for AI Search")

    if STORAGE_BACKEND == "r2" and not R2_BUCKET:
        problems.append("R2_BUCKET is required when STORAGE_BACKEND=r2")
    if STORAGE_BACKEND == "sqlite" and not SQLITE_PATH:
        problems.append("SQLITE_PATH is required when STORAGE_BACKEND=sqlite")

    return problems
