from __future__ import annotations

import logging
import textwrap
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

from pypdf import PdfReader
from rich.progress import Progress

from .context import ServiceContext
from .errors import ClientError, EmbeddingError, PersistenceError
from .index import UpsertResult, VectorEntry
from .log import console

logger = logging.getLogger(__name__)

DOCUMENT_SUFFIXES = {".md", ".txt", ".pdf"}


@dataclass
class IngestResult:
    id: int
    text: str
    inserted: UpsertResult

    def to_dict(self) -> dict:
        return {"id": self.id, "text": self.text, "inserted": self.inserted.to_dict()}


def ingest_note(text: Optional[str], ctx: ServiceContext) -> IngestResult:
    """
    Store `text` as a note and index its embedding under the note's id.

    The row is written first. If embedding or upsert fails afterwards the row
    stays behind without a vector, unless `compensate_failed_ingest` is set,
    in which case the row and its vector are removed before the error propagates.
    """
    if not text:
        raise ClientError()

    record = ctx.store.insert_note(text)
    if record is None:
        raise PersistenceError()

    try:
        vectors = ctx.inference.embed([text])
        values = vectors[0] if vectors else None
        if values is None or len(values) == 0:
            raise EmbeddingError()

        inserted = ctx.index.upsert([VectorEntry(id=str(record.id), values=values)])
    except Exception:
        if ctx.config.compensate_failed_ingest:
            logger.warning("Removing note %s after failed indexing", record.id)
            ctx.store.delete_note(record.id)
            ctx.index.delete([str(record.id)])
        raise

    logger.info("Created note %s", record.id)
    return IngestResult(id=record.id, text=text, inserted=inserted)


def load_text(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def load_pdf_pages(path: Path) -> List[str]:
    reader = PdfReader(str(path))
    return [page.extract_text() or "" for page in reader.pages]


def chunk_text(text: str, chunk_size: int = 800, chunk_overlap: int = 200) -> List[str]:
    chunks: List[str] = []
    cleaned = text.replace("\r\n", "\n").strip()
    if not cleaned:
        return chunks

    start = 0
    while start < len(cleaned):
        piece = textwrap.dedent(cleaned[start : start + chunk_size]).strip()
        if piece:
            chunks.append(piece)
        if start + chunk_size >= len(cleaned):
            break
        start += chunk_size - chunk_overlap
    return chunks


def iter_documents(data_dir: Path) -> Iterable[Path]:
    for path in sorted(data_dir.rglob("*")):
        if path.is_file() and path.suffix.lower() in DOCUMENT_SUFFIXES:
            yield path


def document_chunks(path: Path, chunk_size: int, chunk_overlap: int) -> List[str]:
    if path.suffix.lower() == ".pdf":
        pages = load_pdf_pages(path)
    else:
        pages = [load_text(path)]

    chunks: List[str] = []
    for page_text in pages:
        chunks.extend(chunk_text(page_text, chunk_size=chunk_size, chunk_overlap=chunk_overlap))
    return chunks


def import_documents(data_dir: Path, ctx: ServiceContext) -> List[IngestResult]:
    """Chunk every document under `data_dir` and ingest each chunk as a note."""
    cfg = ctx.config
    if not data_dir.exists():
        logger.error("Data directory not found: %s", data_dir)
        return []

    files = list(iter_documents(data_dir))
    if not files:
        logger.warning("No .md, .txt or .pdf files found in %s", data_dir)
        return []

    results: List[IngestResult] = []
    with Progress(console=console) as progress:
        task = progress.add_task("Importing documents...", total=len(files))
        for path in files:
            progress.update(task, description=f"Processing {path.name}")
            try:
                chunks = document_chunks(path, cfg.chunk_size, cfg.chunk_overlap)
            except Exception as exc:
                logger.error("Failed to read %s: %s", path, exc)
                chunks = []
            for chunk in chunks:
                results.append(ingest_note(chunk, ctx))
            progress.update(task, advance=1)

    logger.info("Imported %d notes from %d files", len(results), len(files))
    return results


__all__ = [
    "IngestResult",
    "chunk_text",
    "document_chunks",
    "import_documents",
    "ingest_note",
    "iter_documents",
]
