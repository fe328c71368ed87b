"""HTTP transport for the chat-completion endpoint."""

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager

import httpx
from pydantic_core import PydanticSerializationError

from .config import ClientConfig
from .errors import EncodingError, StreamReadError, TransportError
from .models import ChatRequest
from .session import SessionState

logger = logging.getLogger(__name__)

MAX_IDLE_CONNECTIONS = 10
IDLE_CONNECTION_TIMEOUT = 30.0


def build_payload(session: SessionState) -> bytes:
    """Serialize the whole conversation into a streaming request body."""
    request = ChatRequest(model=session.model, messages=session.history, stream=True)
    try:
        return request.model_dump_json().encode("utf-8")
    except (PydanticSerializationError, UnicodeEncodeError) as e:
        raise EncodingError(f"failed to encode request: {e}") from e


class ChatClient:
    """Issues one streaming POST per turn over a pooled httpx client."""

    def __init__(self, config: ClientConfig, http_client: httpx.Client | None = None):
        self.config = config
        self.http = http_client or httpx.Client(
            timeout=httpx.Timeout(config.timeout if config.timeout > 0 else None),
            limits=httpx.Limits(
                max_keepalive_connections=MAX_IDLE_CONNECTIONS,
                keepalive_expiry=IDLE_CONNECTION_TIMEOUT,
            ),
        )

    def __enter__(self) -> "ChatClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self.http.close()

    def headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.config.api_key}",
        }

    @contextmanager
    def stream_chat(self, session: SessionState) -> Iterator[Iterator[bytes]]:
        """Send the conversation and yield the response body as byte chunks.

        Raises:
            EncodingError: the body could not be built
            TransportError: network failure, timeout or non-2xx status
        """
        body = build_payload(session)
        if session.debug:
            logger.debug("Request body: %s", body.decode("utf-8"))

        # A timeout of 0 or less disables both the per-operation and wall-clock limits
        deadline = None
        if self.config.timeout > 0:
            deadline = time.monotonic() + self.config.timeout
        try:
            with self.http.stream(
                "POST", self.config.endpoint, content=body, headers=self.headers()
            ) as response:
                if not response.is_success:
                    response.read()
                    raise TransportError(
                        f"API error {response.status_code}: {response.text}",
                        status_code=response.status_code,
                        body=response.text,
                    )
                yield self._read_chunks(response, deadline)
        except httpx.TimeoutException as e:
            raise TransportError(f"request timed out: {e}") from e
        except httpx.TransportError as e:
            raise TransportError(f"request failed: {e}") from e

    def _read_chunks(
        self, response: httpx.Response, deadline: float | None
    ) -> Iterator[bytes]:
        try:
            for chunk in response.iter_bytes():
                if deadline is not None and time.monotonic() > deadline:
                    raise TransportError(
                        f"request exceeded timeout of {self.config.timeout:g}s"
                    )
                yield chunk
        except httpx.TimeoutException as e:
            raise TransportError(f"request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise StreamReadError(f"failed to read stream: {e}") from e
