from __future__ import annotations

from dataclasses import dataclass, field

from .api_models import EndpointSlice


@dataclass(frozen=True)
class TrackedEndpoint:
    ip: str
    port: int | None = None
    pod_name: str | None = None
    node_name: str | None = None
    ready: bool = False

    @property
    def key(self) -> tuple[str, int | None]:
        return self.ip, self.port

    @property
    def address(self) -> str:
        return f"{self.ip}:{self.port}" if self.port else self.ip

    def describe(self) -> str:
        return f"{self.address} → pod: {self.pod_name or 'unknown'} (node: {self.node_name or 'unknown'})"


@dataclass(frozen=True)
class Delta:
    added: list[TrackedEndpoint] = field(default_factory=list)
    removed: list[TrackedEndpoint] = field(default_factory=list)
    current: list[TrackedEndpoint] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)


def flatten(snapshot: EndpointSlice) -> dict[tuple[str, int | None], TrackedEndpoint]:
    """One TrackedEndpoint per member address; the port comes from the first declared port."""
    port = snapshot.ports[0].port if snapshot.ports else None
    out: dict[tuple[str, int | None], TrackedEndpoint] = {}
    for member in snapshot.endpoints:
        ready = bool(member.conditions and member.conditions.ready)
        pod_name = member.target_ref.name if member.target_ref else None
        for address in member.addresses:
            ep = TrackedEndpoint(ip=address, port=port, pod_name=pod_name, node_name=member.node_name, ready=ready)
            out[ep.key] = ep
    return out


class EndpointTracker:
    """Current endpoint set of one service, diffed by (address, port) key.

    Only the reconciliation loop calls update(); readers on other threads see
    either the old or the new mapping, never a mix, because the mapping is
    rebound rather than mutated.
    """

    def __init__(self) -> None:
        self._endpoints: dict[tuple[str, int | None], TrackedEndpoint] = {}

    def update(self, snapshot: EndpointSlice) -> Delta:
        new = flatten(snapshot)
        old = self._endpoints

        added = [ep for key, ep in new.items() if key not in old]
        removed = [ep for key, ep in old.items() if key not in new]

        self._endpoints = new
        return Delta(added=added, removed=removed, current=list(new.values()))

    def endpoints(self) -> list[TrackedEndpoint]:
        return list(self._endpoints.values())

    def ready_endpoints(self) -> list[TrackedEndpoint]:
        return [ep for ep in self._endpoints.values() if ep.ready]

    def ready_count(self) -> int:
        return sum(1 for ep in self._endpoints.values() if ep.ready)

    def not_ready_count(self) -> int:
        return sum(1 for ep in self._endpoints.values() if not ep.ready)
