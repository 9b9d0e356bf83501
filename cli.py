from __future__ import annotations

import argparse
import logging
import signal
import sys

from esw.credentials import load_in_cluster_credentials
from esw.health import HealthProber
from esw.logs import setup_logging
from esw.reconciler import Reconciler
from esw.settings import ConfigError, Settings, load_settings
from esw.source import EndpointSource
from esw.tracker import EndpointTracker

logger = logging.getLogger("esw")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Watch a service's EndpointSlices and health-check it")
    p.add_argument("--service", dest="service_name", help="Service name (env SERVICE_NAME)")
    p.add_argument("--namespace", help="Namespace (env NAMESPACE)")
    p.add_argument("--app-root", dest="app_root", help="Application root path (env APP_ROOT)")
    p.add_argument("--check-interval", dest="check_interval_s", type=int, help="Seconds between health checks (env CHECK_INTERVAL, default 5)")
    p.add_argument("--http-timeout", dest="http_timeout_ms", type=int, help="Health check timeout in ms (env HTTP_TIMEOUT, default 5000)")
    p.add_argument("--log-level", dest="log_level", help="debug|info|warn|error (env LOG_LEVEL, default info)")
    return p


def _log_banner(settings: Settings, prober: HealthProber) -> None:
    logger.info("Starting K8s Endpoint Watcher")
    logger.info("Configuration:")
    logger.info("  Service: %s", settings.service_name)
    logger.info("  Namespace: %s", settings.namespace)
    logger.info("  App Root: %s", settings.app_root)
    logger.info("  Check Interval: %ss", settings.check_interval_s)
    logger.info("  HTTP Timeout: %sms", settings.http_timeout_ms)
    logger.info("Health Check URL: %s", prober.url)


def _raise_interrupt(signum, frame) -> None:
    raise KeyboardInterrupt


def build_reconciler(settings: Settings) -> Reconciler:
    source = EndpointSource(
        load_in_cluster_credentials(),
        settings.service_name,
        settings.namespace,
        reconnect_delay_s=settings.reconnect_delay_s,
    )
    prober = HealthProber(settings.service_name, settings.namespace, settings.app_root, timeout_ms=settings.http_timeout_ms)
    return Reconciler(settings, source, EndpointTracker(), prober)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(**vars(args))
    except ConfigError as e:
        setup_logging(args.log_level)
        logger.error("ERROR: %s", e)
        return 2

    setup_logging(settings.log_level)
    # SIGTERM takes the same path as Ctrl-C so the timer is cancelled on the way out.
    signal.signal(signal.SIGTERM, _raise_interrupt)

    try:
        reconciler = build_reconciler(settings)
        _log_banner(settings, reconciler.prober)
        reconciler.run()
    except KeyboardInterrupt:
        logger.info("Shutting down")
        return 0
    except Exception as e:
        logger.exception("Fatal error: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
