"""
Corpus loader: reads plain-text files from a directory (or a single file).
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List

from grounded_qa.config import settings
from grounded_qa.errors import IngestionError
from grounded_qa.vector_store.base import Document

CORPUS_DIR = settings.corpus_dir
EXAMPLE_FILE_NAME = "exemplo.txt"
EXAMPLE_TEXT = (
    "O céu é azul e o mar é profundo. O sol brilha forte. "
    "A Terra é um planeta maravilhoso. A capital do Brasil é Brasília."
)

logger = logging.getLogger(__name__)


def clean_text(text: str) -> str:
    text = re.sub(r"\r\n?", "\n", text)
    text = text.lstrip("\ufeff")
    return text


class CorpusLoader:
    def __init__(self, pattern: str = "*.txt", seed_example: bool = settings.corpus_seed_example) -> None:
        self.pattern = pattern
        self.seed_example = seed_example

    def load(self, location: str | Path = CORPUS_DIR) -> List[Document]:
        base = Path(location)
        if not base.exists():
            if not self.seed_example:
                raise IngestionError(f"Corpus location does not exist: {base}")
            self._seed(base)

        paths = [base] if base.is_file() else sorted(p for p in base.rglob(self.pattern) if p.is_file())
        documents: List[Document] = []
        for path in paths:
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                raise IngestionError(f"Cannot read {path}: {exc}") from exc
            doc_id = path.name if path == base else path.relative_to(base).as_posix()
            documents.append(Document(id=doc_id, text=clean_text(text), source=str(path)))

        logger.info("Loaded corpus", extra={"location": str(base), "documents": len(documents)})
        return documents

    @staticmethod
    def _seed(base: Path) -> None:
        try:
            base.mkdir(parents=True, exist_ok=True)
            (base / EXAMPLE_FILE_NAME).write_text(EXAMPLE_TEXT, encoding="utf-8")
        except OSError as exc:
            raise IngestionError(f"Cannot create example corpus at {base}: {exc}") from exc
        logger.info("Created example corpus", extra={"location": str(base), "file": EXAMPLE_FILE_NAME})


__all__ = ["CorpusLoader", "clean_text", "CORPUS_DIR", "EXAMPLE_TEXT"]
