"""
Health reporting for the TOS API.

Probing the datastore on every status request would be wasteful, so the
most recent result is kept for a short time. The cache lives in this
process only; other instances of the service keep their own.
"""

import logging
import time
from typing import Any, Callable, Optional

from ..domain import StatusCheckResponse, SubsystemStatus

logger = logging.getLogger(__name__)

DEFAULT_TTL = 60
"""Seconds for which a status check result is reused."""


class StatusCache:
    """Single-slot cache holding the most recent status check result."""

    def __init__(self, ttl: float = DEFAULT_TTL,
                 clock: Callable[[], float] = time.time) -> None:
        self.ttl = ttl
        self.clock = clock
        self.last_refresh: Optional[float] = None
        self.last_result: Optional[StatusCheckResponse] = None

    def get(self) -> Optional[StatusCheckResponse]:
        if self.last_refresh is None:
            return None
        if self.clock() - self.last_refresh < self.ttl:
            return self.last_result
        return None

    def put(self, result: StatusCheckResponse) -> StatusCheckResponse:
        self.last_refresh = self.clock()
        self.last_result = result
        return result


def check_datastore_status(datastore: Any) -> SubsystemStatus:
    """Healthy only if the probe query returns exactly one entity."""
    try:
        hits = datastore.health_check_query()
    except Exception as e:
        logger.error('Datastore health check failed: %s', e)
        return SubsystemStatus(False, [str(e)])
    if len(hits) == 1:
        return SubsystemStatus(True)
    return SubsystemStatus(False,
                           [f'{len(hits)} entities returned from Datastore.'])


class StatusReporter:
    """Reports the health of the datastore, caching the result."""

    def __init__(self, cache: Optional[StatusCache] = None) -> None:
        self.cache = cache or StatusCache()

    def check_health(self, datastore: Any) -> StatusCheckResponse:
        cached = self.cache.get()
        if cached is not None:
            logger.info('returning cached status check.')
            return cached
        datastore_status = check_datastore_status(datastore)
        status = StatusCheckResponse(datastore_status.ok,
                                     {'datastore': datastore_status})
        return self.cache.put(status)
