"""
Connection Warm-Up

After a device or tab has been suspended, pooled transport connections to
the backend may be dead without the client knowing. Requests written to a
dead connection hang instead of failing. A warm-up issues one cheap probe
request so the transport notices and reconnects before real queries run.

Policy:
    - best effort: returns False on failure, never raises for probe errors
    - cooldown: calls within WARM_UP_COOLDOWN_SECONDS of the last warm-up
      return True immediately without probing
    - deduplicated: concurrent callers share one in-flight probe
    - bounded: the probe is cancelled after WARM_UP_PROBE_TIMEOUT seconds
    - "no rows" responses count as success (reachability, not data)

Usage:
    warm_up = ConnectionWarmUp(probe=lambda: data_client.select("documents", columns="id", limit=1))
    ok = await warm_up.warm_up()
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional

from studyaid.middleware.error_handling import NoRowsError
from studyaid.session.inflight import InFlight

logger = logging.getLogger(__name__)

Probe = Callable[[], Awaitable[Any]]


class ConnectionWarmUp:
    """
    Rate-limited, deduplicated connection probe.

    Attributes:
        cooldown: Seconds after a warm-up during which calls are skipped
        probe_timeout: Deadline for a single probe request
        last_warm_up: Monotonic clock reading of the last probe start, or None
    """

    def __init__(
        self,
        probe: Probe,
        cooldown: float = 30.0,
        probe_timeout: float = 3.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._probe = probe
        self.cooldown = cooldown
        self.probe_timeout = probe_timeout
        self._clock = clock
        self._inflight: InFlight[bool] = InFlight("connection warm-up")
        self.last_warm_up: Optional[float] = None

    @property
    def in_progress(self) -> bool:
        return self._inflight.in_progress

    def in_cooldown(self) -> bool:
        if self.last_warm_up is None:
            return False
        return self._clock() - self.last_warm_up < self.cooldown

    async def warm_up(self) -> bool:
        """
        Probe the backend unless recently done or already in progress.

        Returns:
            True if the connection is believed healthy (or was warmed up
            within the cooldown window), False if the probe failed
        """
        if self.in_cooldown():
            logger.debug("Skipping warm-up (cooldown)")
            return True

        pending = self._inflight.pending
        if pending is not None:
            logger.debug("Waiting for existing warm-up")
        else:
            pending = self._inflight.start(self._run_probe)

        return await asyncio.shield(pending)

    async def _run_probe(self) -> bool:
        started = self._clock()
        logger.info("Warming up backend connection")
        try:
            await asyncio.wait_for(self._probe(), timeout=self.probe_timeout)
            logger.info("Connection warm-up successful")
            return True
        except NoRowsError:
            logger.info("Connection warm-up successful (no rows)")
            return True
        except asyncio.TimeoutError:
            logger.warning(
                f"Warm-up timed out after {self.probe_timeout}s (connection may be stale)"
            )
            return False
        except Exception as e:
            logger.warning(f"Warm-up failed: {type(e).__name__}: {e}")
            return False
        finally:
            # Stamped on failure too, so a dead backend is not hammered
            self.last_warm_up = started
