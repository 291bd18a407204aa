"""etcd client over the v3 JSON gateway.

Talks HTTP(S) to the gRPC gateway every etcd member exposes on its client
port, so health and latency come back as structured responses instead of
scraped command output.

Gateway API: https://etcd.io/docs/v3.5/dev-guide/api_grpc_gateway/
"""

import base64
import ssl
import time
from typing import Any, Dict, List, Optional

import httpx

from .config.settings import ConnectionConfig
from .errors import EtcdConnectionError, PermissionDeniedError, ResponseParseError
from .logging import get_logger
from .models import EndpointHealth

logger = get_logger(__name__)

# gRPC status code etcd returns for auth permission failures
GRPC_PERMISSION_DENIED = 7


def encode_key(key: str) -> str:
    """Keys travel base64-encoded through the gateway."""
    return base64.b64encode(key.encode("utf-8")).decode("ascii")


def build_ssl_context(config: ConnectionConfig) -> ssl.SSLContext | bool:
    """Build the TLS context from the configured certificate material.

    Raises:
        EtcdConnectionError: If the certificate files cannot be loaded
    """
    if not config.uses_tls:
        return True

    if config.key and not config.cert:
        raise EtcdConnectionError("client key given without a client certificate")

    try:
        context = ssl.create_default_context(cafile=config.cacert)
        if config.cert:
            context.load_cert_chain(config.cert, keyfile=config.key)
    except OSError as e:
        raise EtcdConnectionError(f"failed to load TLS material: {e}") from e

    if config.insecure_skip_tls_verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE

    return context


class EtcdClient:
    """Minimal etcd v3 client for health and latency probes."""

    def __init__(
        self,
        config: ConnectionConfig,
        api_prefix: str = "/v3",
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize the client; no connection is made until connect()."""
        self.config = config
        self.api_prefix = "/" + api_prefix.strip("/")
        self.endpoints = config.endpoint_urls()
        self._transport = transport
        self._client: Optional[httpx.Client] = None
        self._tokens: Dict[str, str] = {}

    def connect(self) -> None:
        """Create the HTTP client with TLS and timeout settings."""
        if self._client is not None:
            return
        verify = build_ssl_context(self.config)
        timeout = httpx.Timeout(self.config.command_timeout, connect=self.config.dial_timeout)
        self._client = httpx.Client(verify=verify, timeout=timeout, transport=self._transport)
        logger.debug(f"Client ready for endpoints {self.endpoints}")

    def close(self) -> None:
        """Close HTTP client connection."""
        if self._client is not None:
            self._client.close()
            self._client = None
        self._tokens.clear()

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _post(self, base_url: str, path: str, payload: Dict[str, Any], auth: bool = True) -> Dict[str, Any]:
        """POST a gateway request and return the decoded JSON body."""
        if self._client is None:
            raise EtcdConnectionError("client is not connected")

        url = f"{base_url}{self.api_prefix}{path}"
        headers = {}
        if auth:
            token = self.authenticate(base_url)
            if token:
                headers["Authorization"] = token

        try:
            response = self._client.post(url, json=payload, headers=headers)
        except httpx.TimeoutException as e:
            raise EtcdConnectionError(f"timed out waiting for {base_url}") from e
        except httpx.HTTPError as e:
            raise EtcdConnectionError(f"cannot reach {base_url}: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.status_code >= 400:
            error = (body.get("error") or body.get("message")) if isinstance(body, dict) else None
            code = body.get("code") if isinstance(body, dict) else None
            message = f"{url} returned HTTP {response.status_code}: {error or response.reason_phrase}"
            if response.status_code == 403 or code == GRPC_PERMISSION_DENIED:
                raise PermissionDeniedError(message)
            raise EtcdConnectionError(message)

        if not isinstance(body, dict):
            raise ResponseParseError(f"{url} returned a non-JSON-object body")
        return body

    def authenticate(self, base_url: str) -> Optional[str]:
        """Fetch (and cache) an auth token for the endpoint when a user is set."""
        if not self.config.user:
            return None
        if base_url in self._tokens:
            return self._tokens[base_url]

        body = self._post(
            base_url,
            "/auth/authenticate",
            {"name": self.config.user, "password": self.config.password or ""},
            auth=False,
        )
        token = body.get("token")
        if not token:
            raise ResponseParseError(f"authentication response from {base_url} has no token")
        self._tokens[base_url] = token
        logger.debug(f"Authenticated as {self.config.user} against {base_url}")
        return token

    def range(self, base_url: str, key: str) -> Dict[str, Any]:
        """Linearizable (quorum) read of a single key."""
        body = self._post(base_url, "/kv/range", {"key": encode_key(key), "serializable": False})
        if "header" not in body:
            raise ResponseParseError(f"range response from {base_url} has no header")
        return body

    def endpoint_health(self, key: str = "health") -> List[EndpointHealth]:
        """Check every endpoint with a consensus read, the way etcdctl does.

        A "permission denied" answer still counts as healthy: the member had
        to reach consensus to evaluate it.
        """
        results = []
        for base_url in self.endpoints:
            start = time.perf_counter()
            error = None
            try:
                self.range(base_url, key)
                healthy = True
            except PermissionDeniedError:
                healthy = True
            except (EtcdConnectionError, ResponseParseError) as e:
                healthy = False
                error = str(e)
                logger.warning(f"{base_url} is unhealthy: {e}")
            took = time.perf_counter() - start
            results.append(EndpointHealth(endpoint=base_url, healthy=healthy, took=took, error=error))
        return results

    def measure_latency(self, key: str = "dummy", total: int = 1) -> float:
        """Average latency of ``total`` linearizable reads against the first endpoint."""
        if total < 1:
            raise ValueError("total must be at least 1")

        base_url = self.endpoints[0]
        # Token fetch stays outside the measured window
        self.authenticate(base_url)

        latencies = []
        for _ in range(total):
            start = time.perf_counter()
            self.range(base_url, key)
            latencies.append(time.perf_counter() - start)

        average = sum(latencies) / len(latencies)
        logger.debug(f"{total} linearizable reads of {key!r} on {base_url}: average {average:.6f}s")
        return average
