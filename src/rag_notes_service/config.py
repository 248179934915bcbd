from __future__ import annotations

from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, model_validator


class AppConfig(BaseModel):
    db_path: Path = Field(default=Path("data/notes.db"))
    index_dir: Optional[Path] = Field(default=Path("index"))
    data_dir: Path = Field(default=Path("data"))
    embedding_model_name: str = Field(
        default="sentence-transformers/all-MiniLM-L6-v2"
    )
    openai_model: str = Field(default="gpt-4o-mini")
    temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    stream_completions: bool = Field(default=False)
    similarity_cutoff: float = Field(default=0.75, ge=0.0, le=1.0)
    top_k: int = Field(default=1, ge=1)
    chunk_size: int = Field(default=800, ge=1)
    chunk_overlap: int = Field(default=200, ge=0)
    compensate_failed_ingest: bool = Field(default=False)
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000, ge=1, le=65535)
    log_level: str = Field(default="INFO")

    @model_validator(mode="after")
    def _check_chunking(self) -> "AppConfig":
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError("chunk_overlap must be smaller than chunk_size")
        return self

    @property
    def db_path_resolved(self) -> Path:
        return self.db_path.resolve()

    @property
    def index_dir_resolved(self) -> Optional[Path]:
        return self.index_dir.resolve() if self.index_dir is not None else None

    @property
    def data_dir_resolved(self) -> Path:
        return self.data_dir.resolve()


def load_config(path: Optional[Path] = None) -> AppConfig:
    """
    Load configuration from a YAML file.

    If `path` is None, looks for `config.yaml` in the current working directory.
    Also loads environment variables from a `.env` file if present, which is
    where the OpenAI client picks up `OPENAI_API_KEY`.
    """
    load_dotenv()

    if path is None:
        path = Path("config.yaml")

    raw: dict = {}
    if path.exists():
        with path.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

    try:
        cfg = AppConfig(**raw)
    except ValidationError as e:
        raise SystemExit(f"Invalid configuration in {path}:\n{e}") from e

    cfg.db_path_resolved.parent.mkdir(parents=True, exist_ok=True)
    cfg.data_dir_resolved.mkdir(parents=True, exist_ok=True)
    if cfg.index_dir_resolved is not None:
        cfg.index_dir_resolved.mkdir(parents=True, exist_ok=True)
    return cfg


__all__ = ["AppConfig", "load_config"]
