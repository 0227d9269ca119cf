"""HTTP connector that delivers payloads to the configured endpoint."""

from __future__ import annotations

import time
from dataclasses import dataclass

import httpx

from .errors import StatusError, TransportError
from .logging_utils import LogHandle

JSON_CONTENT_TYPE = "application/json"
BODY_PREVIEW_BYTES = 200


@dataclass(frozen=True)
class Reply:
    body: bytes
    status_code: int
    elapsed: float


class EndpointClient:
    """Pooled, thread-safe client bound to one endpoint and one timeout.

    The pool scales with the number of workers sharing the client: up to
    ``workers * 10`` idle keep-alive connections and ``workers * 20``
    connections in total.  Idle connections expire after three timeouts.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        timeout: float,
        workers: int,
        logger: LogHandle,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.timeout = float(timeout)
        self.logger = logger
        workers = max(1, int(workers))
        self.limits = httpx.Limits(
            max_connections=workers * 20,
            max_keepalive_connections=workers * 10,
            keepalive_expiry=self.timeout * 3,
        )
        if transport is None:
            transport = httpx.HTTPTransport(limits=self.limits)
        self._client = httpx.Client(
            timeout=self.timeout,
            transport=transport,
            headers={"Content-Type": JSON_CONTENT_TYPE, "Accept": JSON_CONTENT_TYPE},
        )

    def send(self, payload: bytes) -> Reply:
        """POST ``payload`` and return the raw reply.

        Raises :class:`TransportError` when no reply was received and
        :class:`StatusError` (carrying the body) for non-2xx replies.
        """

        self.logger.debug(
            "Sending HTTP request",
            {
                "url": self.endpoint,
                "method": "POST",
                "content_type": JSON_CONTENT_TYPE,
                "data_size": len(payload),
            },
        )
        start = time.perf_counter()
        try:
            response = self._client.post(self.endpoint, content=payload)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            elapsed = time.perf_counter() - start
            self.logger.error(
                "HTTP request failed",
                {
                    "url": self.endpoint,
                    "duration_ms": round(elapsed * 1000),
                    "error": f"{type(exc).__name__}: {exc}",
                },
            )
            raise TransportError(f"{type(exc).__name__}: {exc}") from exc
        elapsed = time.perf_counter() - start

        body = response.content
        status = response.status_code
        self.logger.debug(
            "Received HTTP response",
            {
                "url": self.endpoint,
                "duration_ms": round(elapsed * 1000),
                "status_code": status,
                "response_size": len(body),
                "content_type": response.headers.get("Content-Type", ""),
                "server": response.headers.get("Server", ""),
            },
        )

        if not 200 <= status < 300:
            self.logger.warn(
                "Server returned an error status",
                {
                    "status_code": status,
                    "body_preview": body[:BODY_PREVIEW_BYTES].decode("utf-8", errors="replace"),
                },
            )
            raise StatusError(status, body)

        return Reply(body=body, status_code=status, elapsed=elapsed)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "EndpointClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = ["EndpointClient", "Reply", "JSON_CONTENT_TYPE"]
