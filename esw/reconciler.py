from __future__ import annotations

import logging
import time
from threading import Lock, Thread, current_thread

from .api_models import ErrorEvent, SnapshotEvent
from .health import HealthProber, ProbeResult
from .settings import Settings
from .source import EndpointSource
from .tracker import Delta, EndpointTracker

logger = logging.getLogger(__name__)


class Reconciler:
    """Correlates EndpointSlice changes with HTTP health checks.

    Two triggers share one prober: a periodic timer thread and the watch
    consumer (initial discovery and every event that changes the endpoint
    set). A single gate serialises probes; a timer tick that finds the gate
    busy is skipped rather than queued. Only the watch consumer touches the
    tracker.
    """

    def __init__(self, settings: Settings, source: EndpointSource, tracker: EndpointTracker, prober: HealthProber):
        self.settings = settings
        self.source = source
        self.tracker = tracker
        self.prober = prober
        self.check_interval_s = max(1, int(settings.check_interval_s))
        self.skipped_ticks = 0
        self._stop = source.stop_event
        self._probe_gate = Lock()
        self._initial_reported = False
        self._thr: Thread | None = None

    def start(self) -> None:
        if self._thr and self._thr.is_alive():
            return
        self._thr = Thread(target=self._timer_loop, name="esw-health-timer", daemon=True)
        self._thr.start()

    def stop(self) -> None:
        self._stop.set()
        thr = self._thr
        if thr and thr.is_alive() and thr is not current_thread():
            thr.join()

    def run(self) -> None:
        """Consume the watch until stopped. The timer never outlives this call."""
        self.start()
        try:
            for event in self.source.watch():
                try:
                    self.handle_event(event)
                except Exception:
                    logger.exception("Failed to process %s event", getattr(event, "type", "?"))
                if self._stop.is_set():
                    break
        finally:
            self.stop()

    def _timer_loop(self) -> None:
        # Ticks sit on a fixed monotonic grid; ticks a slow probe ran over are dropped, not replayed.
        interval = self.check_interval_s
        next_tick = time.monotonic() + interval
        while not self._stop.wait(max(0.0, next_tick - time.monotonic())):
            try:
                self.periodic_check()
            except Exception:
                logger.exception("Periodic health check failed")
            next_tick += interval
            now = time.monotonic()
            if next_tick <= now:
                missed = int((now - next_tick) // interval) + 1
                self.skipped_ticks += missed
                next_tick += missed * interval
                logger.debug("Health check overran %d tick(s)", missed)

    def handle_event(self, event: SnapshotEvent | ErrorEvent) -> ProbeResult | None:
        """Apply one watch event in receipt order; returns the probe it triggered, if any."""
        if isinstance(event, ErrorEvent):
            logger.error("Watch error event: %s", event.object)
            return None

        delta = self.tracker.update(event.object)

        if not self._initial_reported:
            self._initial_reported = True
            self._report_initial()
            return self.triggered_check("Initial HTTP Health Check")

        if not delta.changed:
            logger.debug("EndpointSlice %s without endpoint set change", event.type)
            return None

        self._report_delta(event.type, delta)
        return self.triggered_check("HTTP Health Check (triggered by endpoint change)")

    def periodic_check(self) -> ProbeResult | None:
        if not self._probe_gate.acquire(blocking=False):
            self.skipped_ticks += 1
            logger.debug("Health check already in flight; skipping periodic tick")
            return None
        try:
            result = self.prober.check()
        finally:
            self._probe_gate.release()

        if result.success:
            logger.info("HTTP Health Check: %s", result.summary())
        else:
            logger.warning("HTTP Health Check: %s", result.summary())
            logger.warning(
                "  Active endpoints: %d ready, %d not-ready",
                self.tracker.ready_count(),
                self.tracker.not_ready_count(),
            )
        return result

    def triggered_check(self, label: str) -> ProbeResult:
        with self._probe_gate:
            result = self.prober.check()
        if result.success:
            logger.info("%s: %s", label, result.summary())
        else:
            logger.warning("%s: %s", label, result.summary())
        return result

    def _report_initial(self) -> None:
        ready = self.tracker.ready_endpoints()
        logger.info("Initial endpoints discovered: %d ready, %d not-ready", len(ready), self.tracker.not_ready_count())
        for ep in ready:
            logger.info("  • %s", ep.describe())

    def _report_delta(self, event_type: str, delta: Delta) -> None:
        logger.info("EndpointSlice %s", event_type)
        for ep in delta.added:
            logger.info("  + ADDED: %s [%s]", ep.describe(), "READY" if ep.ready else "NOT READY")
        for ep in delta.removed:
            logger.info("  - REMOVED: %s", ep.describe())
        logger.info("  Ready endpoints: %d", self.tracker.ready_count())
