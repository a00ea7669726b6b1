"""Summary store via aiosqlite. In-memory unless configured otherwise."""

from __future__ import annotations

import dataclasses
import json

import aiosqlite

from litreview.models.citation import Citation
from litreview.models.summary import ResearchSummary

SCHEMA = """
CREATE TABLE IF NOT EXISTS research_summaries (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    content TEXT NOT NULL,
    citations_json TEXT NOT NULL DEFAULT '[]',
    model_used TEXT NOT NULL DEFAULT '',
    reasoning_trace TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""


class Database:
    """Append-only store for research summaries."""

    def __init__(self, path: str = ":memory:") -> None:
        self.path = path
        self._db: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        self._db = await aiosqlite.connect(self.path)
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(SCHEMA)

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RuntimeError("Database not connected, call connect() first")
        return self._db

    async def save_summary(self, summary: ResearchSummary) -> ResearchSummary:
        """Store ``summary`` and return a copy carrying its new id."""
        cursor = await self.db.execute(
            "INSERT INTO research_summaries "
            "(title, content, citations_json, model_used, reasoning_trace) "
            "VALUES (?, ?, ?, ?, ?)",
            (
                summary.title,
                summary.content,
                json.dumps([c.to_dict() for c in summary.citations]),
                summary.model_used,
                summary.reasoning_trace,
            ),
        )
        await self.db.commit()
        return dataclasses.replace(summary, id=cursor.lastrowid)

    async def get_summary(self, summary_id: int) -> ResearchSummary | None:
        cursor = await self.db.execute(
            "SELECT * FROM research_summaries WHERE id = ?", (summary_id,)
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return ResearchSummary(
            id=row["id"],
            title=row["title"],
            content=row["content"],
            citations=[Citation.from_dict(c) for c in json.loads(row["citations_json"])],
            model_used=row["model_used"],
            reasoning_trace=row["reasoning_trace"],
        )
