import logging
import time
from collections.abc import Callable

from tiller_installer.services.errors import HealthTimeoutError

logger = logging.getLogger(__name__)

POLL_SLICES = 10


class ReadinessService:
    def __init__(self, sleep: Callable[[float], None] = time.sleep):
        self.sleep = sleep

    def wait_until_healthy(self, probe: Callable[[], bool], max_wait_seconds: float) -> int:
        """Poll ``probe`` until it passes or ``max_wait_seconds`` is spent.

        The budget is split into ten slices with one check per slice, so at most
        ten checks are made and the worst-case block time is nine slices
        (0.9 x ``max_wait_seconds``) plus check latency. Returns the number of
        checks it took.
        """
        slice_seconds = max_wait_seconds / POLL_SLICES
        waited = 0.0
        checks = 0
        while True:
            checks += 1
            if probe():
                return checks
            if waited >= max_wait_seconds or checks >= POLL_SLICES:
                raise HealthTimeoutError("didn't become healthy within max time")
            logger.debug(f"Not healthy after {checks} checks, retrying in {slice_seconds:.2f}s")
            self.sleep(slice_seconds)
            waited += slice_seconds
