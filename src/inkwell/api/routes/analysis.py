"""Analysis endpoints: text checks, tone, log insights, stats, cache control."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from inkwell.analysis.engine import AnalysisEngine
from inkwell.analysis.log_analyzer import LogAnalyzer
from inkwell.core.config import FeatureFlags
from inkwell.models.analysis import AnalysisResult, Stats, ToneAnalysis
from inkwell.models.capability import Priority
from inkwell.models.logs import LogEntry, LogInsight

router = APIRouter(tags=["analysis"])


class AnalyzeRequest(BaseModel):
    text: str
    context: dict[str, Any] = Field(default_factory=dict)
    priority: Priority = Priority.NORMAL


class ToneRequest(BaseModel):
    text: str
    context: dict[str, Any] = Field(default_factory=dict)


def get_engine(request: Request) -> AnalysisEngine:
    return request.app.state.engine


def get_log_analyzer(request: Request) -> LogAnalyzer:
    return request.app.state.log_analyzer


def _require(request: Request, feature: str) -> None:
    flags: FeatureFlags = request.app.state.settings.flags
    if not flags.is_feature_enabled(feature):
        raise HTTPException(status_code=403, detail=f"Feature '{feature}' is disabled")


@router.post("/analyze")
async def analyze(
    body: AnalyzeRequest, request: Request, engine: AnalysisEngine = Depends(get_engine),
) -> AnalysisResult:
    _require(request, "basic_grammar")
    return await engine.queue_check(body.text, body.context, body.priority)


@router.post("/tone")
async def tone(
    body: ToneRequest, request: Request, engine: AnalysisEngine = Depends(get_engine),
) -> ToneAnalysis:
    _require(request, "tone_detection")
    return await engine.analyze_tone(body.text, body.context)


@router.post("/logs/analyze")
async def analyze_log(
    entry: LogEntry, request: Request, log_analyzer: LogAnalyzer = Depends(get_log_analyzer),
) -> LogInsight:
    _require(request, "log_analysis")
    return await log_analyzer.analyze(entry)


@router.get("/stats")
async def stats(engine: AnalysisEngine = Depends(get_engine)) -> Stats:
    return engine.get_stats()


@router.delete("/cache")
async def clear_cache(engine: AnalysisEngine = Depends(get_engine)) -> dict[str, str]:
    engine.clear_cache()
    return {"status": "cleared"}
