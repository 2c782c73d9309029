"""SQLite-backed document and passage store."""

from __future__ import annotations

import json

import aiosqlite

from docqa_engine.models.domain import Document, Passage
from docqa_engine.search.migrations import initialize_passage_db


class SQLitePassageStore:
    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    async def initialize(self) -> None:
        await initialize_passage_db(self._db_path)

    async def save_document(self, doc: Document) -> str:
        async with aiosqlite.connect(self._db_path) as db:
            await db.execute(
                "INSERT OR REPLACE INTO documents (doc_id, filename, page_count, metadata) "
                "VALUES (?, ?, ?, ?)",
                (doc.doc_id, doc.filename, doc.page_count, json.dumps(doc.metadata)),
            )
            await db.commit()
        return doc.doc_id

    async def save_passages(self, passages: list[Passage]) -> None:
        if not passages:
            return
        async with aiosqlite.connect(self._db_path) as db:
            await db.executemany(
                "INSERT OR REPLACE INTO passages "
                "(passage_id, doc_id, text, passage_index, page_number, metadata) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                [
                    (
                        p.passage_id,
                        p.doc_id,
                        p.text,
                        p.index,
                        p.page_number,
                        json.dumps(p.metadata),
                    )
                    for p in passages
                ],
            )
            await db.commit()

    async def get_documents_by_ids(self, doc_ids: list[str]) -> dict[str, Document]:
        if not doc_ids:
            return {}
        placeholders = ",".join("?" for _ in doc_ids)
        async with aiosqlite.connect(self._db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(
                f"SELECT * FROM documents WHERE doc_id IN ({placeholders})",
                doc_ids,
            ) as cursor:
                rows = await cursor.fetchall()
                return {row["doc_id"]: self._row_to_document(row) for row in rows}

    async def get_passages_by_ids(self, passage_ids: list[str]) -> dict[str, Passage]:
        if not passage_ids:
            return {}
        placeholders = ",".join("?" for _ in passage_ids)
        async with aiosqlite.connect(self._db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(
                f"SELECT * FROM passages WHERE passage_id IN ({placeholders})",
                passage_ids,
            ) as cursor:
                rows = await cursor.fetchall()
                return {row["passage_id"]: self._row_to_passage(row) for row in rows}

    async def get_passage_ids_by_docs(self, doc_ids: list[str]) -> set[str]:
        if not doc_ids:
            return set()
        placeholders = ",".join("?" for _ in doc_ids)
        async with aiosqlite.connect(self._db_path) as db:
            async with db.execute(
                f"SELECT passage_id FROM passages WHERE doc_id IN ({placeholders})",
                doc_ids,
            ) as cursor:
                rows = await cursor.fetchall()
                return {row[0] for row in rows}

    async def count_documents(self) -> int:
        async with aiosqlite.connect(self._db_path) as db:
            async with db.execute("SELECT COUNT(*) FROM documents") as cursor:
                row = await cursor.fetchone()
                return row[0] if row else 0

    async def count_passages(self) -> int:
        async with aiosqlite.connect(self._db_path) as db:
            async with db.execute("SELECT COUNT(*) FROM passages") as cursor:
                row = await cursor.fetchone()
                return row[0] if row else 0

    @staticmethod
    def _row_to_document(row: aiosqlite.Row) -> Document:
        return Document(
            doc_id=row["doc_id"],
            filename=row["filename"],
            page_count=row["page_count"],
            metadata=json.loads(row["metadata"]),
        )

    @staticmethod
    def _row_to_passage(row: aiosqlite.Row) -> Passage:
        return Passage(
            passage_id=row["passage_id"],
            doc_id=row["doc_id"],
            text=row["text"],
            index=row["passage_index"],
            page_number=row["page_number"],
            metadata=json.loads(row["metadata"]),
        )
