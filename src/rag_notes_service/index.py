from __future__ import annotations

import logging
import threading
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

import faiss
import numpy as np

logger = logging.getLogger(__name__)

INDEX_FILENAME = "notes.faiss"


@dataclass
class Match:
    id: str
    score: float


@dataclass
class VectorEntry:
    id: str
    values: Sequence[float]


@dataclass
class UpsertResult:
    count: int
    ids: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


def _as_matrix(values: Sequence[float] | np.ndarray) -> np.ndarray:
    # Normalised rows make inner product equal cosine similarity.
    arr = np.asarray(values, dtype="float32").reshape(1, -1).copy()
    faiss.normalize_L2(arr)
    return arr


def _as_key(entry_id: str) -> int:
    try:
        return int(entry_id)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Vector id must be an integer string, got {entry_id!r}") from e


class VectorIndex:
    """Nearest-neighbour index over note embeddings, keyed by note id."""

    def __init__(self, index_dir: Optional[Path] = None, dimension: Optional[int] = None) -> None:
        self.index_dir = index_dir
        self._lock = threading.Lock()
        self._index: Optional[faiss.IndexIDMap2] = None

        path = self.path
        if path is not None and path.exists():
            logger.info("Loading FAISS index from %s", path)
            self._index = faiss.read_index(str(path))
        elif dimension is not None:
            self._index = self._create(dimension)

    @property
    def path(self) -> Optional[Path]:
        if self.index_dir is None:
            return None
        return self.index_dir / INDEX_FILENAME

    @property
    def size(self) -> int:
        with self._lock:
            return 0 if self._index is None else int(self._index.ntotal)

    @staticmethod
    def _create(dimension: int) -> faiss.IndexIDMap2:
        return faiss.IndexIDMap2(faiss.IndexFlatIP(dimension))

    def _save(self) -> None:
        path = self.path
        if path is None or self._index is None:
            return
        path.parent.mkdir(parents=True, exist_ok=True)
        faiss.write_index(self._index, str(path))

    def query(self, vector: Sequence[float], top_k: int = 1) -> List[Match]:
        q = _as_matrix(vector)
        with self._lock:
            if self._index is None or self._index.ntotal == 0:
                return []
            k = min(top_k, int(self._index.ntotal))
            scores, ids = self._index.search(q, k)

        matches: List[Match] = []
        for score, idx in zip(scores[0], ids[0]):
            if idx < 0:
                continue
            matches.append(Match(id=str(int(idx)), score=float(score)))
        return matches

    def upsert(self, entries: Sequence[VectorEntry]) -> UpsertResult:
        if not entries:
            return UpsertResult(count=0)

        keys = np.array([_as_key(e.id) for e in entries], dtype="int64")
        vectors = np.vstack([_as_matrix(e.values) for e in entries])

        with self._lock:
            if self._index is None:
                self._index = self._create(vectors.shape[1])
            elif vectors.shape[1] != self._index.d:
                raise ValueError(
                    f"Vector dimension {vectors.shape[1]} does not match index dimension {self._index.d}"
                )
            stored = set(faiss.vector_to_array(self._index.id_map).tolist())
            replaced = [int(k) for k in keys if int(k) in stored]
            previous = [self._index.reconstruct(k) for k in replaced]

            self._index.remove_ids(keys)
            self._index.add_with_ids(vectors, keys)
            try:
                self._save()
            except Exception:
                # The file on disk was not updated, so the in-memory index must not be either.
                self._index.remove_ids(keys)
                if replaced:
                    self._index.add_with_ids(
                        np.vstack(previous).astype("float32"),
                        np.array(replaced, dtype="int64"),
                    )
                raise

        return UpsertResult(count=len(entries), ids=[str(int(k)) for k in keys])

    def delete(self, ids: Sequence[str]) -> int:
        keys = np.array([_as_key(i) for i in ids], dtype="int64")
        with self._lock:
            if self._index is None or len(keys) == 0:
                return 0
            removed = int(self._index.remove_ids(keys))
            if removed:
                self._save()
        return removed


__all__ = ["Match", "VectorEntry", "UpsertResult", "VectorIndex"]
