"""EndpointSlice Watcher (ESW).

Single-process monitor for one cluster service that:
 - watches the service's EndpointSlices and keeps the current endpoint set
 - reports endpoints as they are added or removed, with readiness
 - health-checks the service over HTTP on a fixed interval and on every change

It never modifies the cluster and keeps no history: a restart rebuilds the
view from the snapshot the API server replays on connect.
"""
