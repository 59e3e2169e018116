"""WebSocket bridge between the widget and the relay.

The transport owns one background task holding the connection. Outbound
events go through a FIFO outbox so publishing never blocks the caller;
inbound events are handed to a single registered callback on the same event
loop. Reconnection and backoff are left to the ``websockets`` reconnecting
``connect`` iterator.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from typing import Any, AsyncIterator, Callable

import websockets
from websockets.exceptions import ConnectionClosed

from chatlateral.protocol import FrameError, RelayEvent, decode_frame, encode_frame

logger = logging.getLogger("chatlateral.widget")

InboundCallback = Callable[[RelayEvent, str], None]
Connector = Callable[[str], AsyncIterator[Any]]

# Seconds an unanswered echo is waited for
ECHO_TIMEOUT = 5.0

MAX_PENDING_ECHOES = 256


class RelayTransport:
    """Publish/subscribe client for the echo-broadcast relay.

    The relay sends every frame back to every client, including the one that
    sent it. With ``suppress_own_echo`` enabled the transport remembers each
    frame it actually sent and swallows the first matching inbound frame that
    arrives within ``echo_timeout`` on the same connection, so the sender does
    not see its own messages twice. Echoes that never come back (dropped by
    the relay, lost on reconnect) expire instead of hiding later messages.

    Args:
        suppress_own_echo: Drop relay echoes of frames this transport sent.
        connector: Factory returning an async iterator of connections for a
            URL. Defaults to ``websockets.connect``, which reconnects with
            backoff when iterated.
        echo_timeout: Seconds a sent frame waits for its echo.
        max_pending_echoes: Upper bound on remembered unanswered frames; the
            oldest are forgotten first.
    """

    def __init__(
        self,
        *,
        suppress_own_echo: bool = False,
        connector: Connector | None = None,
        echo_timeout: float = ECHO_TIMEOUT,
        max_pending_echoes: int = MAX_PENDING_ECHOES,
    ) -> None:
        self.suppress_own_echo = suppress_own_echo
        self.echo_timeout = echo_timeout
        self._connector = connector or websockets.connect
        self._callback: InboundCallback | None = None
        self._endpoint: str | None = None
        self._outbox: asyncio.Queue[tuple[RelayEvent, str]] | None = None
        self._runner: asyncio.Task[None] | None = None
        self._socket: Any = None
        self._pending_echoes: deque[tuple[float, RelayEvent, str]] = deque(
            maxlen=max_pending_echoes
        )

    @property
    def endpoint(self) -> str | None:
        return self._endpoint

    @property
    def connected(self) -> bool:
        """True while a connection to the relay is open."""
        return self._socket is not None

    @property
    def pending_echo_count(self) -> int:
        """Number of sent frames still waiting for their relay echo."""
        return len(self._pending_echoes)

    def on_event(self, callback: InboundCallback | None) -> None:
        """Register the callback receiving inbound ``(event, payload)`` pairs."""
        self._callback = callback

    async def connect(self, endpoint: str) -> None:
        """Start the connection task. A second call while running is a no-op."""
        if self._runner is not None and not self._runner.done():
            logger.debug("Transport already connected to %s", self._endpoint)
            return
        self._endpoint = endpoint
        self._outbox = asyncio.Queue()
        self._pending_echoes.clear()
        self._runner = asyncio.create_task(self._run(endpoint))
        logger.info("Connecting to relay at %s", endpoint)

    async def disconnect(self) -> None:
        """Stop the connection task. Safe to call repeatedly or before connect."""
        runner, self._runner = self._runner, None
        self._outbox = None
        self._pending_echoes.clear()
        if runner is None:
            return
        runner.cancel()
        try:
            await runner
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("Relay connection task failed")
        self._socket = None
        logger.info("Disconnected from relay at %s", self._endpoint)

    def publish_text(self, text: str) -> None:
        self._publish(RelayEvent.TEXT_MESSAGE, text)

    def publish_image(self, payload: str) -> None:
        self._publish(RelayEvent.IMAGE_MESSAGE, payload)

    def _publish(self, event: RelayEvent, payload: str) -> None:
        if self._outbox is None:
            logger.debug("Dropping %s: transport not connected", event.value)
            return
        self._outbox.put_nowait((event, payload))

    # -- connection task -------------------------------------------------

    async def _run(self, endpoint: str) -> None:
        async for socket in self._connector(endpoint):
            self._socket = socket
            logger.info("Connected to relay at %s", endpoint)
            try:
                await self._pump(socket)
            except (ConnectionClosed, OSError) as exc:
                logger.warning("Relay connection lost: %s", exc)
            finally:
                self._socket = None
                # Echoes of frames sent on a closed connection never arrive
                self._pending_echoes.clear()

    async def _pump(self, socket: Any) -> None:
        writer = asyncio.create_task(self._drain_outbox(socket))
        try:
            async for raw in socket:
                self._dispatch(raw)
        finally:
            writer.cancel()
            try:
                await writer
            except (asyncio.CancelledError, ConnectionClosed, OSError):
                pass

    async def _drain_outbox(self, socket: Any) -> None:
        outbox = self._outbox
        if outbox is None:
            return
        while True:
            event, payload = await outbox.get()
            await socket.send(encode_frame(event, payload))
            if self.suppress_own_echo:
                self._pending_echoes.append((time.monotonic(), event, payload))

    def _consume_echo(self, event: RelayEvent, payload: str) -> bool:
        """Forget the oldest pending echo matching the frame, if any."""
        deadline = time.monotonic() - self.echo_timeout
        while self._pending_echoes and self._pending_echoes[0][0] < deadline:
            self._pending_echoes.popleft()

        for index, (_, sent_event, sent_payload) in enumerate(self._pending_echoes):
            if sent_event is event and sent_payload == payload:
                del self._pending_echoes[index]
                return True
        return False

    def _dispatch(self, raw: str | bytes) -> None:
        try:
            event, payload = decode_frame(raw)
        except FrameError as exc:
            logger.warning("Ignoring malformed relay frame: %s", exc)
            return

        if self._consume_echo(event, payload):
            logger.debug("Suppressed own echo of %s", event.value)
            return

        if self._callback is None:
            return
        try:
            self._callback(event, payload)
        except Exception:
            logger.exception("Inbound %s handler failed", event.value)
