"""
Retry Proxy Configuration
=========================
Configuration constants and environment variables.
"""

import os

# Policy defaults from environment
DEFAULT_MAX_RETRIES = int(os.getenv("RETRY_PROXY_MAX_RETRIES", "3"))
DEFAULT_INITIAL_INTERVAL_MS = float(os.getenv("RETRY_PROXY_INITIAL_INTERVAL_MS", "500"))

# Each wait is the previous one times this factor
BACKOFF_MULTIPLIER = 1.5

# Message handed to the observer on every failed attempt
OBSERVATION_TEMPLATE = "RetryError - Attempts left: {retries_left} - {error}"

# Logging
LOG_LEVEL = os.getenv("RETRY_PROXY_LOG_LEVEL", "INFO")
LOG_JSON = os.getenv("RETRY_PROXY_LOG_JSON", "true").lower() in ("1", "true", "yes")
