from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Callable, Dict, Optional

import websockets
from websockets.asyncio.client import ClientConnection, connect

from . import codec
from .errors import ChannelUnavailable, DecodeFailure

LOGGER = logging.getLogger("cah_client")

# WebSocketChannel is the transport the CLI hands to the protocol client.
# send() never blocks: frames go into an outbox that a writer task drains,
# so command calls stay synchronous.


class WebSocketChannel:
    def __init__(self, url: str, *, flush_timeout: float = 2.0) -> None:
        self.url = url
        self.flush_timeout = flush_timeout
        self.websocket: Optional[ClientConnection] = None
        self._outbox: Optional[asyncio.Queue[str]] = None

    @property
    def connected(self) -> bool:
        return self.websocket is not None and self._outbox is not None

    def send(self, payload: Dict[str, Any]) -> None:
        if not self.connected:
            raise ChannelUnavailable("Message stream is not attached")
        assert self._outbox is not None
        self._outbox.put_nowait(codec.dumps(payload))

    async def run(
        self,
        on_message: Callable[[Dict[str, Any]], Any],
        on_open: Optional[Callable[[], Any]] = None,
    ) -> None:
        """Connect, then feed every inbound frame to ``on_message`` until closed."""

        async with connect(self.url) as ws:
            self.websocket = ws
            self._outbox = asyncio.Queue()
            writer = asyncio.create_task(self._pump(ws, self._outbox))
            LOGGER.info("[connect] %s", self.url)
            try:
                if on_open is not None:
                    on_open()
                async for raw in ws:
                    try:
                        message = codec.loads(raw)
                    except DecodeFailure as exc:
                        LOGGER.warning("Dropping unreadable frame: %s", exc)
                        continue
                    on_message(message)
            except websockets.ConnectionClosed as exc:
                LOGGER.warning("Connection closed: %s", exc)
            finally:
                writer.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await writer
                self.websocket = None
                self._outbox = None
        LOGGER.info("[disconnect] %s", self.url)

    async def close(self) -> None:
        """Flush queued frames (best effort) and close the connection."""

        ws, outbox = self.websocket, self._outbox
        if ws is None or outbox is None:
            return
        try:
            await asyncio.wait_for(outbox.join(), timeout=self.flush_timeout)
        except asyncio.TimeoutError:
            LOGGER.warning("Closing with %d unsent frame(s)", outbox.qsize())
        await ws.close()

    async def _pump(self, ws: ClientConnection, outbox: asyncio.Queue[str]) -> None:
        while True:
            text = await outbox.get()
            try:
                await ws.send(text)
            except websockets.ConnectionClosed as exc:
                LOGGER.error("Unable to send message: %s", exc)
                return
            finally:
                outbox.task_done()
