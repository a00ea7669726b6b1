"""litreview — FastAPI application entry point."""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Literal, Union

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from litreview.backends.claude import ClaudeChat
from litreview.backends.perplexity import PerplexitySearch
from litreview.config import settings
from litreview.db.database import Database
from litreview.errors import CitationEnhancementError, DeepResearchError, ExternalServiceError
from litreview.models.options import ResearchOptions
from litreview.orchestrator.citation_agent import CitationAgent
from litreview.orchestrator.deep_research import DeepResearchAgent
from litreview.orchestrator.progress import ConnectionHub, connection_message
from litreview.orchestrator.standard import StandardResearch, keywords_prompt

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

db = Database(settings.database_path)
hub = ConnectionHub()


@asynccontextmanager
async def lifespan(app: FastAPI):
    await db.connect()
    yield
    await db.close()


app = FastAPI(
    title="litreview",
    description="Literature review assistant with inline citations",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Request / Response models ---


class TextResearchRequest(BaseModel):
    text: str = Field(min_length=10)
    use_deep_research: bool = False
    max_tokens: int | None = Field(default=None, gt=0)


class KeywordsResearchRequest(BaseModel):
    keywords: str = Field(min_length=3)
    sources_limit: int = Field(default=10, ge=1, le=20)
    use_deep_research: bool = False
    max_tokens: int | None = Field(default=None, gt=0)


class TextGenerateRequest(TextResearchRequest):
    type: Literal["text"]


class KeywordsGenerateRequest(KeywordsResearchRequest):
    type: Literal["keywords"]


GenerateRequest = Union[TextGenerateRequest, KeywordsGenerateRequest]


class DeepResearchRequest(BaseModel):
    text: str = Field(min_length=3)
    search_domains: list[str] | None = None
    max_tokens: int | None = Field(default=None, gt=0)


class EnhanceTextRequest(BaseModel):
    text: str = Field(min_length=10)


class CitationModel(BaseModel):
    authors: str
    text: str
    url: str | None = None


class SummaryResponse(BaseModel):
    id: int | None
    title: str
    content: str
    citations: list[CitationModel]
    model_used: str
    reasoning_trace: str | None = None


class EnhancedTextResponse(BaseModel):
    original_text: str
    enhanced_text: str
    citations: list[CitationModel]


# --- Collaborators ---


def _standard_research() -> StandardResearch:
    return StandardResearch(PerplexitySearch())


def _deep_research_agent() -> DeepResearchAgent:
    return DeepResearchAgent(ClaudeChat(), PerplexitySearch(), hub)


def _citation_agent() -> CitationAgent:
    return CitationAgent(ClaudeChat(), PerplexitySearch())


def _options(**kwargs) -> ResearchOptions:
    try:
        return ResearchOptions(**kwargs)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


async def _standard_summary(prompt: str, use_deep_research: bool, max_tokens: int | None) -> dict:
    options = _options(use_deep_research=use_deep_research, max_tokens=max_tokens)
    try:
        summary = await _standard_research().generate(prompt, options)
    except ExternalServiceError as exc:
        logger.error("Research generation failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    saved = await db.save_summary(summary)
    return saved.to_dict()


async def _keywords_summary(req: KeywordsResearchRequest) -> dict:
    logger.info(
        'Generating research on keywords: "%s" with %d sources', req.keywords, req.sources_limit
    )
    return await _standard_summary(
        keywords_prompt(req.keywords, req.sources_limit), req.use_deep_research, req.max_tokens
    )


# --- Routes ---


@app.get("/api/health")
async def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.post("/api/research/text", response_model=SummaryResponse)
async def research_text(req: TextResearchRequest):
    """Single-call literature review of free text."""
    return await _standard_summary(req.text, req.use_deep_research, req.max_tokens)


@app.post("/api/research/keywords", response_model=SummaryResponse)
async def research_keywords(req: KeywordsResearchRequest):
    """Single-call literature review of a keyword list."""
    return await _keywords_summary(req)


@app.post("/api/research/generate", response_model=SummaryResponse)
async def research_generate(req: GenerateRequest):
    """Text or keyword research, selected by the ``type`` field."""
    logger.info("Processing research request of type: %s", req.type)
    if isinstance(req, KeywordsGenerateRequest):
        return await _keywords_summary(req)
    return await _standard_summary(req.text, req.use_deep_research, req.max_tokens)


@app.post("/api/research/agentic-deep", response_model=SummaryResponse)
async def research_agentic_deep(req: DeepResearchRequest):
    """Claude + Perplexity deep research. Progress is streamed over /ws."""
    options = _options(
        use_deep_research=True,
        max_tokens=req.max_tokens,
        search_domains=tuple(req.search_domains) if req.search_domains is not None else None,
    )
    try:
        summary = await _deep_research_agent().run(req.text, options)
    except DeepResearchError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    saved = await db.save_summary(summary)
    return saved.to_dict()


@app.post("/api/enhance-text", response_model=EnhancedTextResponse)
async def enhance_text(req: EnhanceTextRequest):
    """Insert citation markers after the factual claims in ``text``."""
    try:
        enhanced = await _citation_agent().enhance(req.text)
    except CitationEnhancementError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return enhanced.to_dict()


@app.get("/api/research/{summary_id}", response_model=SummaryResponse)
async def get_research(summary_id: int):
    summary = await db.get_summary(summary_id)
    if summary is None:
        raise HTTPException(status_code=404, detail="Research summary not found")
    return summary.to_dict()


# --- WebSocket ---


@app.websocket("/ws")
async def progress_ws(websocket: WebSocket):
    """Stream research progress events to the client."""
    await websocket.accept()
    async with hub.subscribe(websocket) as subscriber:
        await subscriber.send(connection_message())
        try:
            while True:
                raw = await websocket.receive_text()
                try:
                    data = json.loads(raw)
                except ValueError:
                    logger.warning("Ignoring malformed WebSocket message: %r", raw[:100])
                    continue
                if isinstance(data, dict) and data.get("type") == "ping":
                    await subscriber.send({
                        "type": "pong",
                        "message": "Pong",
                        "timestamp": datetime.now(timezone.utc).isoformat(),
                    })
        except WebSocketDisconnect:
            logger.debug("Progress client disconnected")
