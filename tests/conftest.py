import json
import sys

import pytest


def _slice(members, port=8080, name="web-abc12"):
    """EndpointSlice dict as the API server sends it.

    members: list of (addresses, ready, pod_name) tuples; ready/pod may be None.
    """
    endpoints = []
    for addresses, ready, pod in members:
        ep = {"addresses": list(addresses), "nodeName": f"node-{pod}" if pod else None}
        if ready is not None:
            ep["conditions"] = {"ready": ready}
        if pod:
            ep["targetRef"] = {"kind": "Pod", "name": pod, "namespace": "default"}
        endpoints.append(ep)
    obj = {
        "metadata": {"name": name, "namespace": "default", "labels": {"kubernetes.io/service-name": "web"}},
        "addressType": "IPv4",
        "endpoints": endpoints or None,
    }
    if port is not None:
        obj["ports"] = [{"name": "http", "port": port, "protocol": "TCP"}]
    return obj


def _line(event_type, obj):
    return (json.dumps({"type": event_type, "object": obj}) + "\n").encode()


@pytest.fixture
def make_slice():
    return _slice


@pytest.fixture
def watch_line():
    return _line


# Ensure project root is importable (so `import esw...` and `import cli` work without installing)
import os as _os
_project_root = _os.path.dirname(_os.path.dirname(__file__))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)
