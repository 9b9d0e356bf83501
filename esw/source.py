from __future__ import annotations

import logging
import ssl
from threading import Event
from typing import Iterable, Iterator

import httpx
from pydantic import ValidationError

from .api_models import ErrorEvent, SnapshotEvent, parse_change_event
from .credentials import ClusterCredentials

logger = logging.getLogger(__name__)

SERVICE_NAME_LABEL = "kubernetes.io/service-name"


class WatchError(Exception):
    """The watch request was rejected or its body was unusable."""


def iter_lines(chunks: Iterable[bytes]) -> Iterator[bytes]:
    """Reassemble newline-delimited records from arbitrarily split byte chunks.

    A partial line at the end of one chunk is held back and completed by the
    next. Blank lines are dropped. Whatever is left when the chunks run out is
    emitted as a final record.
    """
    buffer = b""
    for chunk in chunks:
        if not chunk:
            continue
        buffer += chunk
        *lines, buffer = buffer.split(b"\n")
        for line in lines:
            if line.strip():
                yield line
    if buffer.strip():
        yield buffer


class EndpointSource:
    """Endless stream of EndpointSlice change events for one service.

    Each pass opens a fresh watch; the API server replays current state on
    connect, so nothing is resumed. Failures are logged and retried after a
    fixed delay, forever, until stop_event is set.
    """

    def __init__(
        self,
        credentials: ClusterCredentials,
        service_name: str,
        namespace: str,
        reconnect_delay_s: float = 5.0,
        stop_event: Event | None = None,
        transport: httpx.BaseTransport | None = None,
        connect_timeout_s: float = 10.0,
    ):
        self.credentials = credentials
        self.service_name = service_name
        self.namespace = namespace
        self.reconnect_delay_s = max(0.0, float(reconnect_delay_s))
        self.stop_event = stop_event or Event()
        self.reconnects = 0
        self._transport = transport
        self._timeout = httpx.Timeout(connect_timeout_s, read=None)
        # Built up front so an unusable CA bundle fails startup instead of every reconnect.
        self._tls_verify = self._verify()

    @property
    def path(self) -> str:
        return f"/apis/discovery.k8s.io/v1/namespaces/{self.namespace}/endpointslices"

    @property
    def params(self) -> dict[str, str]:
        return {"watch": "true", "labelSelector": f"{SERVICE_NAME_LABEL}={self.service_name}"}

    def _verify(self) -> ssl.SSLContext | bool:
        verify = self.credentials.verify
        if isinstance(verify, str):
            return ssl.create_default_context(cafile=verify)
        return verify

    def watch(self) -> Iterator[SnapshotEvent | ErrorEvent]:
        logger.info("Watching EndpointSlices for service: %s in namespace: %s", self.service_name, self.namespace)
        while not self.stop_event.is_set():
            try:
                yield from self._watch_once()
                if self.stop_event.is_set():
                    break
                logger.info("Watch stream closed by server")
            except Exception as e:
                logger.error("Watch error: %s: %s", type(e).__name__, e)
            if self.stop_event.is_set():
                break
            logger.info("Reconnecting in %g seconds...", self.reconnect_delay_s)
            if self.stop_event.wait(self.reconnect_delay_s):
                break
            self.reconnects += 1

    def _watch_once(self) -> Iterator[SnapshotEvent | ErrorEvent]:
        with httpx.Client(
            base_url=self.credentials.api_server,
            headers=self.credentials.auth_headers(),
            verify=self._tls_verify,
            timeout=self._timeout,
            transport=self._transport,
        ) as client:
            with client.stream("GET", self.path, params=self.params) as resp:
                if not resp.is_success:
                    raise WatchError(f"HTTP {resp.status_code}: {resp.reason_phrase}")
                for line in iter_lines(resp.iter_bytes()):
                    try:
                        event = parse_change_event(line)
                    except ValidationError as e:
                        logger.error("Failed to parse watch event: %s", e.errors(include_url=False)[:1])
                        continue
                    yield event
                    if self.stop_event.is_set():
                        return
