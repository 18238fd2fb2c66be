# broadcaster — live analytics push over server-sent events
# per-owner registry of open stream channels; a broadcast builds the summary once
# and writes the identical payload to every channel the owner has open.
# in-memory and single-process: nothing survives a restart.

import asyncio
import logging
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Optional

from shanti.config import settings
from shanti.models.analytics import AnalyticsSummary
from shanti.services.analytics_service import build_summary
from shanti.services.db import Database

logger = logging.getLogger(__name__)

SummaryBuilder = Callable[[str, Database], Awaitable[AnalyticsSummary]]

# wire envelopes
KEEPALIVE = ": ping\n\n"
ERROR_ENVELOPE = 'event: error\ndata: {"message":"analytics_error"}\n\n'

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

_CLOSED = object()


def data_envelope(summary: AnalyticsSummary) -> str:
    """format a summary as a single sse data event"""
    return f"data: {summary.model_dump_json(by_alias=True)}\n\n"


class StreamChannel:
    """one open push connection.
    writes are non-blocking and never raise; a full or closed channel drops them."""

    def __init__(self, maxsize: Optional[int] = None):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize or settings.STREAM_QUEUE_SIZE)
        self.closed = False

    def send(self, payload: str) -> bool:
        if self.closed:
            return False
        try:
            self._queue.put_nowait(payload)
        except asyncio.QueueFull:
            logger.warning("Stream channel queue full, dropping payload")
            return False
        return True

    def close(self):
        """stop the channel; pending payloads are discarded"""
        if self.closed:
            return
        self.closed = True
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(_CLOSED)

    async def __aiter__(self):
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item


class SubscriberRegistry:
    """owner id -> set of open channels.
    every method mutates the map without awaiting, so the event loop keeps them atomic."""

    def __init__(self, builder: SummaryBuilder = build_summary):
        self._builder = builder
        self._channels: dict[str, set[StreamChannel]] = {}

    def register(self, owner_id: str, channel: StreamChannel):
        self._channels.setdefault(owner_id, set()).add(channel)
        logger.info(f"Stream opened for owner {owner_id} ({len(self._channels[owner_id])} open)")

    def unregister(self, owner_id: str, channel: StreamChannel):
        channels = self._channels.get(owner_id)
        if channels is None:
            return
        channels.discard(channel)
        # drop the key so the map doesn't grow with idle owners
        if not channels:
            del self._channels[owner_id]
        logger.info(f"Stream closed for owner {owner_id}")

    def subscribers(self, owner_id: str) -> set[StreamChannel]:
        return set(self._channels.get(owner_id, ()))

    def has_subscribers(self, owner_id: str) -> bool:
        return owner_id in self._channels

    def subscriber_count(self) -> int:
        return sum(len(channels) for channels in self._channels.values())

    async def broadcast(self, owner_id: str, db: Database) -> int:
        """recompute the owner's summary and push it to every open channel.
        returns the number of channels the payload was handed to."""
        channels = self.subscribers(owner_id)
        if not channels:
            return 0

        try:
            summary = await self._builder(owner_id, db)
            payload = data_envelope(summary)
        except Exception as e:
            logger.error(f"Analytics broadcast failed for owner {owner_id}: {e}")
            payload = ERROR_ENVELOPE

        delivered = 0
        for channel in channels:
            if channel.send(payload):
                delivered += 1
        return delivered

    def close_all(self):
        """close every open channel, used on shutdown"""
        for channels in list(self._channels.values()):
            for channel in list(channels):
                channel.close()
        self._channels.clear()


async def safe_broadcast(registry: SubscriberRegistry, owner_id: str, db: Database):
    """fire-and-forget broadcast after a mutation; never raises"""
    try:
        await registry.broadcast(owner_id, db)
    except Exception as e:
        logger.warning(f"Could not broadcast analytics for {owner_id}: {e}")


async def _keepalive(channel: StreamChannel, interval: float):
    """comment line every interval so proxies don't time out the stream"""
    while not channel.closed:
        await asyncio.sleep(interval)
        channel.send(KEEPALIVE)


async def stream_summaries(
    registry: SubscriberRegistry,
    owner_id: str,
    db: Database,
    is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None,
    keepalive_seconds: Optional[float] = None,
) -> AsyncGenerator[str, None]:
    """sse body for one connection: register, push the current summary,
    then relay broadcasts and keep-alives until the client goes away."""
    channel = StreamChannel()
    registry.register(owner_id, channel)
    keepalive_task = asyncio.create_task(
        _keepalive(channel, keepalive_seconds or settings.STREAM_KEEPALIVE_SECONDS)
    )
    try:
        # initial payload so a new client doesn't wait for the next mutation
        await registry.broadcast(owner_id, db)

        async for payload in channel:
            if is_disconnected is not None and await is_disconnected():
                break
            yield payload
    finally:
        registry.unregister(owner_id, channel)
        channel.close()
        keepalive_task.cancel()
        try:
            await keepalive_task
        except asyncio.CancelledError:
            pass
