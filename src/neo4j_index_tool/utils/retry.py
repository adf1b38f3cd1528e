"""Shared retry decorator for Neo4j connection attempts.

Only session acquisition is retried. DDL and polling queries are not: a
failure there surfaces to the orchestrator so the checkpoint stays accurate.
"""

from __future__ import annotations

import logging

from neo4j.exceptions import ServiceUnavailable, SessionExpired
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from neo4j_index_tool.config import CONNECT_ATTEMPTS

# tenacity's before_sleep_log requires a stdlib logger, NOT structlog.
_tenacity_logger = logging.getLogger("neo4j_index_tool.retry")

connect_retry = retry(
    retry=retry_if_exception_type((ServiceUnavailable, SessionExpired)),
    stop=stop_after_attempt(CONNECT_ATTEMPTS),
    wait=wait_random_exponential(multiplier=1, min=1, max=10),
    before_sleep=before_sleep_log(_tenacity_logger, logging.WARNING),
    reraise=True,
)
"""Retry decorator for connectivity checks.

``CONNECT_ATTEMPTS`` attempts with random exponential backoff capped at 10s.
The last ``ServiceUnavailable`` is re-raised once attempts run out.
"""
