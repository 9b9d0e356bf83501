from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping

logger = logging.getLogger(__name__)

SERVICE_ACCOUNT_DIR = "/var/run/secrets/kubernetes.io/serviceaccount"
TOKEN_PATH = f"{SERVICE_ACCOUNT_DIR}/token"
CA_PATH = f"{SERVICE_ACCOUNT_DIR}/ca.crt"


@dataclass(frozen=True)
class ClusterCredentials:
    api_server: str
    token: str = ""
    verify: str | bool = False

    def auth_headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}


def load_in_cluster_credentials(
    environ: Mapping[str, str] | None = None,
    token_path: str = TOKEN_PATH,
    ca_path: str = CA_PATH,
) -> ClusterCredentials:
    """Resolve API server address, bearer token and TLS verification from the pod environment.

    A missing token is not fatal: the watch will simply be rejected by the API
    server and retried, which is what happens when running outside a cluster.
    """
    env = os.environ if environ is None else environ

    api_server = env.get("KUBE_API_SERVER")
    if not api_server:
        host = env.get("KUBERNETES_SERVICE_HOST") or "kubernetes.default.svc"
        port = env.get("KUBERNETES_SERVICE_PORT") or "443"
        api_server = f"https://{host}:{port}"

    token = ""
    try:
        with open(token_path, encoding="utf-8") as f:
            token = f.read().strip()
    except OSError:
        logger.warning("Could not read service account token at %s. Running outside cluster?", token_path)

    verify: str | bool = ca_path if os.path.isfile(ca_path) else False
    if verify is False:
        logger.warning("No cluster CA bundle at %s; TLS verification disabled", ca_path)

    return ClusterCredentials(api_server=api_server.rstrip("/"), token=token, verify=verify)
