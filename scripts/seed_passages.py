"""Load pre-chunked passages into the passage store and FAISS index.

Usage: python scripts/seed_passages.py [passages.json]

The JSON file holds a list of documents:

    [{"doc_id": "...", "filename": "...", "page_count": 3,
      "passages": [{"text": "...", "page_number": 1, "metadata": {...}}]}]

Without an argument a small built-in sample is loaded.
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import numpy as np

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from docqa_engine.config.settings import Settings
from docqa_engine.embeddings.openai_embedder import OpenAIEmbedder
from docqa_engine.models.domain import Document, Passage
from docqa_engine.observability.logger import setup_logging
from docqa_engine.search.faiss_store import FAISSPassageIndex
from docqa_engine.search.sqlite_passage_store import SQLitePassageStore

SAMPLE_DOCS = [
    {
        "doc_id": "sample-lease",
        "filename": "lease_agreement.pdf",
        "page_count": 2,
        "passages": [
            {
                "text": "The lease term begins on January 1, 2024 and runs for twelve months. "
                "Rent of $2,000 is due on the first day of each month.",
                "page_number": 1,
            },
            {
                "text": "Either party may terminate this agreement with 30 days written notice. "
                "Early termination by the tenant forfeits the security deposit.",
                "page_number": 2,
                "metadata": {"section_title": "Termination"},
            },
        ],
    },
    {
        "doc_id": "sample-handbook",
        "filename": "employee_handbook.pdf",
        "page_count": 1,
        "passages": [
            {
                "text": "Employees accrue 1.5 days of paid leave per month of service, "
                "up to a maximum balance of 30 days.",
                "page_number": 1,
            },
        ],
    },
]


def load_documents(path: str | None) -> list[dict]:
    if path is None:
        return SAMPLE_DOCS
    return json.loads(Path(path).read_text())


def to_domain(raw: dict) -> tuple[Document, list[Passage]]:
    doc = Document(
        doc_id=raw["doc_id"],
        filename=raw["filename"],
        page_count=raw.get("page_count"),
        metadata=raw.get("metadata", {}),
    )
    passages = [
        Passage(
            passage_id=p.get("passage_id") or f"{doc.doc_id}:{i}",
            doc_id=doc.doc_id,
            text=p["text"],
            index=i,
            page_number=p.get("page_number"),
            metadata=p.get("metadata", {}),
        )
        for i, p in enumerate(raw.get("passages", []))
    ]
    return doc, passages


async def main(path: str | None = None) -> None:
    settings = Settings()
    setup_logging(settings.log_level, "console")

    Path(settings.passage_db_path).parent.mkdir(parents=True, exist_ok=True)

    store = SQLitePassageStore(settings.passage_db_path)
    await store.initialize()

    embedder = OpenAIEmbedder(
        api_key=settings.openai_api_key,
        model=settings.embedding_model,
        batch_size=settings.embedding_batch_size,
        dimensions=settings.embedding_dimensions,
    )
    index = FAISSPassageIndex(
        dimensions=settings.embedding_dimensions,
        index_path=settings.faiss_index_path,
    )

    for raw in load_documents(path):
        doc, passages = to_domain(raw)
        await store.save_document(doc)
        await store.save_passages(passages)
        if passages:
            vectors = await embedder.embed_passages([p.text for p in passages])
            await index.add_safe(
                [p.passage_id for p in passages], np.array(vectors, dtype=np.float32)
            )
        print(f"Seeded {doc.filename}: {len(passages)} passages")

    index.save()

    print(f"\nTotal documents: {await store.count_documents()}")
    print(f"Total passages: {await store.count_passages()}")
    print(f"Vector index size: {index.size}")


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else None))
