from esw.api_models import EndpointSlice
from esw.tracker import EndpointTracker, TrackedEndpoint


def _snap(make_slice, members, port=8080):
    return EndpointSlice.model_validate(make_slice(members, port=port))


def test_first_update_adds_everything(make_slice):
    t = EndpointTracker()
    d = t.update(_snap(make_slice, [(["10.0.0.1"], True, "web-1"), (["10.0.0.2"], False, "web-2")]))
    assert {ep.key for ep in d.added} == {("10.0.0.1", 8080), ("10.0.0.2", 8080)}
    assert d.removed == []
    assert t.ready_count() == 1
    assert t.not_ready_count() == 1


def test_member_with_two_addresses_yields_two_ready_endpoints(make_slice):
    t = EndpointTracker()
    d = t.update(_snap(make_slice, [(["10.0.0.1", "10.0.0.2"], True, "web-1")]))
    assert len(d.current) == 2
    assert all(ep.ready for ep in d.current)
    assert all(ep.pod_name == "web-1" for ep in d.current)
    assert len({ep.key for ep in d.current}) == 2


def test_member_removed_when_snapshot_empties(make_slice):
    t = EndpointTracker()
    t.update(_snap(make_slice, [(["10.0.0.1"], True, None)], port=None))
    d2 = t.update(_snap(make_slice, [], port=None))
    assert d2.added == []
    assert [ep.key for ep in d2.removed] == [("10.0.0.1", None)]
    assert t.endpoints() == []


def test_same_snapshot_twice_is_no_change(make_slice):
    t = EndpointTracker()
    snap = _snap(make_slice, [(["10.0.0.1"], True, "web-1")])
    t.update(snap)
    d2 = t.update(snap)
    assert d2.added == [] and d2.removed == []
    assert not d2.changed


def test_field_change_on_existing_key_is_not_a_delta(make_slice):
    t = EndpointTracker()
    t.update(_snap(make_slice, [(["10.0.0.1"], False, "web-1")]))
    d2 = t.update(_snap(make_slice, [(["10.0.0.1"], True, "web-1")]))
    assert not d2.changed
    # ...but the stored value reflects the new snapshot
    assert t.ready_count() == 1


def test_readiness_defaults_to_false(make_slice):
    t = EndpointTracker()
    t.update(_snap(make_slice, [(["10.0.0.1"], None, None)]))
    assert t.not_ready_count() == 1
    assert t.ready_endpoints() == []


def test_removed_only_contains_previously_tracked_keys(make_slice):
    snapshots = [
        [(["10.0.0.1"], True, "a"), (["10.0.0.2"], True, "b")],
        [(["10.0.0.2"], True, "b"), (["10.0.0.3"], False, "c")],
        [],
        [(["10.0.0.4", "10.0.0.5"], True, "d")],
        [(["10.0.0.5"], True, "d")],
    ]
    t = EndpointTracker()
    prior: set = set()
    for members in snapshots:
        d = t.update(_snap(make_slice, members))
        new = {ep.key for ep in d.current}
        assert {ep.key for ep in d.removed} <= prior
        assert {ep.key for ep in d.removed} == prior - new
        assert {ep.key for ep in d.added} == new - prior
        prior = new


def test_port_comes_from_first_port_definition(make_slice):
    obj = make_slice([(["10.0.0.1"], True, "web-1")])
    obj["ports"] = [{"name": "http", "port": 8080}, {"name": "metrics", "port": 9090}]
    t = EndpointTracker()
    t.update(EndpointSlice.model_validate(obj))
    assert [ep.port for ep in t.endpoints()] == [8080]


def test_describe():
    ep = TrackedEndpoint(ip="10.0.0.1", port=8080, pod_name="web-1", node_name=None, ready=True)
    assert ep.describe() == "10.0.0.1:8080 → pod: web-1 (node: unknown)"
    assert TrackedEndpoint(ip="10.0.0.1").address == "10.0.0.1"
