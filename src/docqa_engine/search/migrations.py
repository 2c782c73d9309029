"""Idempotent passage-store schema creation."""

from __future__ import annotations

import aiosqlite

DOCUMENTS_TABLE = """
CREATE TABLE IF NOT EXISTS documents (
    doc_id TEXT PRIMARY KEY,
    filename TEXT NOT NULL,
    page_count INTEGER,
    metadata TEXT NOT NULL DEFAULT '{}'
)
"""

PASSAGES_TABLE = """
CREATE TABLE IF NOT EXISTS passages (
    passage_id TEXT PRIMARY KEY,
    doc_id TEXT NOT NULL,
    text TEXT NOT NULL,
    passage_index INTEGER NOT NULL,
    page_number INTEGER,
    metadata TEXT NOT NULL DEFAULT '{}',
    FOREIGN KEY (doc_id) REFERENCES documents(doc_id)
)
"""

PASSAGES_DOC_INDEX = """
CREATE INDEX IF NOT EXISTS idx_passages_doc_id ON passages(doc_id)
"""


async def initialize_passage_db(db_path: str) -> None:
    async with aiosqlite.connect(db_path) as db:
        await db.execute(DOCUMENTS_TABLE)
        await db.execute(PASSAGES_TABLE)
        await db.execute(PASSAGES_DOC_INDEX)
        await db.commit()
