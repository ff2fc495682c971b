"""AnalysisEngine: cache, chunking, pooled capability calls, merge, fallback.

Each check moves through received -> cache-check -> (hit -> done) or
(miss -> chunk decision -> per-chunk dispatch -> merge -> cache-store -> done).
A failed chunk is skipped; if every chunk fails, or the capability is not
ready, the whole analysed window goes to the FallbackAnalyzer instead.
``analyze()`` never raises for backend trouble.

Callers are admitted through a priority queue that drains one check at a
time, high before normal before low, FIFO within a priority.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import json
import logging
import math
import re
import time
from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import ValidationError

from inkwell.analysis.fallback import FallbackAnalyzer
from inkwell.analysis.normalize import ParseFailed, normalize_response
from inkwell.capabilities.registry import CapabilityRegistry
from inkwell.chunking.text_chunker import TextChunker
from inkwell.core.exceptions import (
    CapabilityCallFailedError,
    InkwellError,
    MalformedResponseError,
    PoolExhaustedError,
)
from inkwell.core.protocols import IResultCache
from inkwell.core.types import AnalysisContext, SessionOptions
from inkwell.models.analysis import AnalysisResult, Chunk, Stats, Suggestion, ToneAnalysis
from inkwell.models.capability import CapabilityKind, Origin, Priority
from inkwell.pool.session_pool import SessionPool

logger = logging.getLogger(__name__)

TONE_PROMPT = """Analyze the tone of this {kind}. Rate it on a scale of 0-100 where 0 is very harsh/rude and 100 is very kind/empathetic.

Text: "{text}"

Respond with JSON only:
{{
  "score": <number>,
  "tone": "<harsh|neutral|professional|friendly|warm>",
  "issues": ["<tone issues, if any>"],
  "suggestions": ["<ways to improve the tone>"]
}}"""

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


@dataclass(order=True)
class _QueuedCheck:
    rank: int
    seq: int
    text: str = field(compare=False)
    context: AnalysisContext = field(compare=False)
    future: asyncio.Future = field(compare=False)


def context_string(context: Optional[AnalysisContext]) -> str:
    """Flatten a caller context dict into the shared-context string sent with each chunk."""
    if not context:
        return ""
    return "; ".join(f"{key}: {value}" for key, value in sorted(context.items()))


class AnalysisEngine:
    """Orchestrates one analysis pipeline over injected collaborators."""

    def __init__(
        self,
        *,
        registry: CapabilityRegistry,
        pool: SessionPool,
        chunker: TextChunker,
        fallback: FallbackAnalyzer,
        cache: Optional[IResultCache] = None,
        capability: CapabilityKind = CapabilityKind.PROOFREADER,
        max_text_length: int = 5000,
        session_options: Optional[SessionOptions] = None,
    ) -> None:
        self._registry = registry
        self._pool = pool
        self._chunker = chunker
        self._fallback = fallback
        self._cache = cache
        self._capability = capability
        self._max_text_length = max_text_length
        self._session_options = dict(session_options or {})

        self._queue: list[_QueuedCheck] = []
        self._seq = itertools.count()
        self._draining = False
        self._drain_task: Optional[asyncio.Task[None]] = None
        self._stats = Stats()
        self._total_latency_ms = 0.0

    @property
    def registry(self) -> CapabilityRegistry:
        return self._registry

    @property
    def pool(self) -> SessionPool:
        return self._pool

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------

    async def analyze(self, text: str, context: Optional[AnalysisContext] = None) -> AnalysisResult:
        return await self.queue_check(text, context, Priority.NORMAL)

    async def queue_check(
        self,
        text: str,
        context: Optional[AnalysisContext] = None,
        priority: Priority | str = Priority.NORMAL,
    ) -> AnalysisResult:
        """Enqueue a check and wait for its result."""
        future: asyncio.Future[AnalysisResult] = asyncio.get_running_loop().create_future()
        heapq.heappush(self._queue, _QueuedCheck(
            rank=Priority(priority).rank,
            seq=next(self._seq),
            text=text,
            context=dict(context or {}),
            future=future,
        ))
        if not self._draining:
            self._draining = True
            self._drain_task = asyncio.create_task(self._drain())
        return await future

    def get_stats(self) -> Stats:
        stats = self._stats.model_copy()
        stats.cache_size = len(self._cache) if self._cache is not None else 0
        if stats.checks_performed:
            stats.cache_hit_rate = round(stats.cache_hits / stats.checks_performed * 100, 2)
        return stats

    def clear_cache(self) -> None:
        if self._cache is not None:
            self._cache.clear()

    def close(self) -> None:
        """Destroy every pooled session."""
        self._pool.destroy_all()

    # ------------------------------------------------------------------
    # queue
    # ------------------------------------------------------------------

    async def _drain(self) -> None:
        try:
            while self._queue:
                item = heapq.heappop(self._queue)
                if item.future.done():
                    continue  # caller stopped waiting
                try:
                    result = await self._check(item.text, item.context)
                except Exception as exc:
                    if not item.future.done():
                        item.future.set_exception(exc)
                else:
                    if not item.future.done():
                        item.future.set_result(result)
        finally:
            self._draining = False

    # ------------------------------------------------------------------
    # pipeline
    # ------------------------------------------------------------------

    async def _check(self, text: str, context: AnalysisContext) -> AnalysisResult:
        started = time.perf_counter()
        window = text[:self._max_text_length]

        key = None
        if self._cache is not None:
            key = self._cache.key_for(window)
            hit = self._cache.get(key)
            if hit is not None:
                logger.debug("Cache hit for %d chars", len(window))
                self._record(hit, started, cache_hit=True)
                return hit

        result = await self._analyze_window(window, context)

        if key is not None and result.origin is Origin.MODEL:
            self._cache.put(key, result)
        self._record(result, started)
        logger.info(
            "Check complete: %d chars, %d suggestion(s), origin=%s, %.0fms",
            len(window), len(result.suggestions), result.origin,
            (time.perf_counter() - started) * 1000,
        )
        return result

    async def _analyze_window(self, window: str, context: AnalysisContext) -> AnalysisResult:
        await self._registry.probe()
        if not self._registry.is_ready(self._capability):
            logger.info(
                "%s not ready (%s), using fallback analysis",
                self._capability, self._registry.state(self._capability),
            )
            return self._fallback.analyze(window)

        chunked = self._chunker.needs_chunking(window)
        if chunked:
            chunks = self._chunker.chunk(window)
            logger.debug("Processing %d chunks", len(chunks))
        else:
            chunks = [Chunk(text=window, index=0, start_offset=0, end_offset=len(window))]

        shared_context = context_string(context)
        chunk_results: list[list[Suggestion]] = []
        failed = 0
        for chunk in chunks:
            try:
                chunk_results.append(await self._run_chunk(chunk, shared_context))
            except InkwellError as exc:
                failed += 1
                logger.warning("Skipping chunk %d: %s", chunk.index, exc)

        if not chunk_results:
            logger.warning("All %d chunk(s) failed, using fallback analysis", len(chunks))
            return self._fallback.analyze(window)

        return AnalysisResult(
            suggestions=self._chunker.merge_chunk_results(chunk_results),
            source_text_length=len(window),
            was_chunked=chunked,
            chunk_count=len(chunks),
            failed_chunks=failed,
            origin=Origin.MODEL,
        )

    async def _run_chunk(self, chunk: Chunk, shared_context: str) -> list[Suggestion]:
        kind = self._capability
        async with self._pool.session(kind, self._session_options) as handle:
            if handle is None:
                raise PoolExhaustedError(kind, self._pool.acquire_timeout_ms)
            try:
                raw = await handle.session.invoke(chunk.text, shared_context)
            except Exception as exc:
                raise CapabilityCallFailedError(kind, chunk.index, str(exc)) from exc

        outcome = normalize_response(raw, chunk)
        if isinstance(outcome, ParseFailed):
            raise MalformedResponseError(kind, chunk.index, outcome.reason)
        return outcome.suggestions

    def _record(self, result: AnalysisResult, started: float, *, cache_hit: bool = False) -> None:
        try:
            elapsed_ms = (time.perf_counter() - started) * 1000
            self._stats.checks_performed += 1
            self._stats.issues_found += len(result.suggestions)
            if cache_hit:
                self._stats.cache_hits += 1
            self._total_latency_ms += elapsed_ms
            self._stats.average_latency_ms = self._total_latency_ms / self._stats.checks_performed
        except Exception:
            logger.debug("Stats update failed", exc_info=True)

    # ------------------------------------------------------------------
    # tone
    # ------------------------------------------------------------------

    async def analyze_tone(self, text: str, context: Optional[AnalysisContext] = None) -> ToneAnalysis:
        """Single-shot tone reading. Falls back to a neutral reading instead of raising."""
        kind = CapabilityKind.LANGUAGE_MODEL
        await self._registry.probe()
        if not self._registry.is_ready(kind):
            return ToneAnalysis(origin=Origin.FALLBACK, error="tone analysis unavailable")

        prompt = TONE_PROMPT.format(
            kind=(context or {}).get("type", "message"),
            text=text[:self._max_text_length],
        )
        try:
            async with self._pool.session(kind) as handle:
                if handle is None:
                    return ToneAnalysis(origin=Origin.FALLBACK, error="no language model session available")
                raw = await handle.session.invoke(prompt)
        except Exception as exc:
            logger.warning("Tone analysis failed: %s", exc)
            return ToneAnalysis(origin=Origin.FALLBACK, error=str(exc))

        return parse_tone(raw)


def parse_tone(raw: Any) -> ToneAnalysis:
    """Parse a structured tone response; anything unparseable reads as neutral."""
    payload = raw
    if isinstance(raw, str):
        match = _JSON_OBJECT.search(raw)
        if match is None:
            return ToneAnalysis(origin=Origin.FALLBACK, error="tone response was not JSON")
        try:
            payload = json.loads(match.group(0))
        except ValueError as exc:
            return ToneAnalysis(origin=Origin.FALLBACK, error=f"tone response was not JSON: {exc}")

    if not isinstance(payload, dict):
        return ToneAnalysis(origin=Origin.FALLBACK, error="tone response was not an object")

    score = payload.get("score", 50)
    if isinstance(score, float) and math.isfinite(score):
        score = round(score)

    try:
        return ToneAnalysis.model_validate({
            "score": score,
            "tone": payload.get("tone") or "neutral",
            "issues": payload.get("issues") or [],
            "suggestions": payload.get("suggestions") or [],
            "origin": Origin.MODEL,
        })
    except ValidationError as exc:
        return ToneAnalysis(origin=Origin.FALLBACK, error=f"invalid tone response: {exc.error_count()} error(s)")
