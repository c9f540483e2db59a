"""Async streaming helpers connecting sample producers → engine → result consumers."""

from __future__ import annotations

import asyncio
from typing import AsyncIterable, AsyncIterator, Awaitable, Callable

import structlog

from hrv_emotion.inference.engine import EmotionEngine
from hrv_emotion.models import EmotionResult, Sample

logger = structlog.get_logger(__name__)


async def emotion_stream(
    engine: EmotionEngine,
    samples: AsyncIterable[Sample],
) -> AsyncIterator[EmotionResult]:
    """Push every sample into *engine* and yield results as they become ready."""
    async for sample in samples:
        engine.push_sample(sample)
        for result in await engine.consume_async():
            yield result


class EmotionStreamPipeline:
    """In-process async pipeline that feeds one engine from a sample queue
    and forwards every emitted result to registered observers.

    Producers only touch the :class:`asyncio.Queue`; the single consumer loop
    is the only code calling ``push``/``consume_async``, so several producers
    can share one engine safely.
    """

    def __init__(self, engine: EmotionEngine, maxsize: int = 10_000) -> None:
        self._engine = engine
        self._queue: asyncio.Queue[Sample] = asyncio.Queue(maxsize=maxsize)
        self._consumers: list[Callable[[EmotionResult], Awaitable[None]]] = []
        self._running = False
        self._processed_total = 0
        self._emitted_total = 0

    # ── Configuration ─────────────────────────────────────────

    def add_consumer(self, fn: Callable[[EmotionResult], Awaitable[None]]) -> None:
        """Register an async callback that receives every result."""
        self._consumers.append(fn)

    # ── Producer side ─────────────────────────────────────────

    async def publish(self, sample: Sample) -> None:
        """Enqueue a sample for the engine."""
        await self._queue.put(sample)

    async def publish_batch(self, samples: list[Sample]) -> None:
        for s in samples:
            await self._queue.put(s)

    # ── Consumer loop ─────────────────────────────────────────

    async def start(self) -> None:
        """Drain the queue into the engine until :meth:`stop` is called.

        Run as a background task; it is the only caller of the engine.
        """
        self._running = True
        logger.info("stream_pipeline.started", consumers=len(self._consumers))

        while self._running:
            try:
                sample = await asyncio.wait_for(self._queue.get(), timeout=1.0)
            except asyncio.TimeoutError:
                continue

            try:
                self._engine.push_sample(sample)
                results = await self._engine.consume_async()
            finally:
                self._processed_total += 1
                self._queue.task_done()

            for result in results:
                self._emitted_total += 1
                for consumer in self._consumers:
                    try:
                        await consumer(result)
                    except Exception as exc:
                        logger.error(
                            "stream_pipeline.consumer_error",
                            consumer=consumer.__qualname__,
                            error=str(exc),
                        )

    async def stop(self) -> None:
        """Ask the consumer loop to exit after its current poll."""
        self._running = False
        logger.info(
            "stream_pipeline.stopped",
            processed_total=self._processed_total,
            emitted_total=self._emitted_total,
        )

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def processed_total(self) -> int:
        return self._processed_total
