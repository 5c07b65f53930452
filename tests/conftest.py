from __future__ import annotations

from typing import Dict, List, Sequence

import pytest

from grounded_qa.config import Settings
from grounded_qa.engine import build_engine
from grounded_qa.indexing.loader import EXAMPLE_TEXT
from grounded_qa.vector_store.base import Segment


class KeywordEmbeddings:
    """Fake embedding adapter: vector of the first keyword found in the text, else `default`."""

    def __init__(self, topics: Dict[str, List[float]], default: List[float]) -> None:
        self.topics = topics
        self.default = default
        self.calls: List[List[str]] = []

    def vector_for(self, text: str) -> List[float]:
        lowered = text.lower()
        for keyword, vector in self.topics.items():
            if keyword in lowered:
                return list(vector)
        return list(self.default)

    def embed_texts(self, texts: Sequence[str]) -> List[List[float]]:
        self.calls.append(list(texts))
        return [self.vector_for(t) for t in texts]

    def embed_text(self, text: str) -> List[float]:
        return self.embed_texts([text])[0]


class FakeLLM:
    """Fake completion adapter recording every call."""

    def __init__(self, response: str = "O céu é azul.", error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.calls: List[dict] = []

    def complete(self, system_instruction, history, user_prompt) -> str:
        self.calls.append(
            {"system": system_instruction, "history": list(history), "prompt": user_prompt}
        )
        if self.error is not None:
            raise self.error
        return self.response


def make_segment(id_: str, text: str = "texto", metadata: Dict[str, str] | None = None) -> Segment:
    return Segment(
        id=id_,
        document_id=id_.split("#")[0],
        index=0,
        text=text,
        start=0,
        end=len(text),
        metadata=metadata or {},
    )


def make_settings(**overrides) -> Settings:
    values = {
        "MIN_SCORE": 0.75,
        "MAX_RESULTS": 3,
        "MEMORY_WINDOW_SIZE": 10,
        "CHUNK_SIZE_CHARS": 500,
        "CHUNK_OVERLAP_CHARS": 50,
        "CORPUS_SEED_EXAMPLE": False,
        "VECTOR_STORE_BACKEND": "memory",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def embeddings() -> KeywordEmbeddings:
    return KeywordEmbeddings(topics={"céu": [1.0, 0.0, 0.0]}, default=[0.0, 0.0, 1.0])


@pytest.fixture
def llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def engine(embeddings, llm):
    return build_engine(make_settings(), embeddings_client=embeddings, llm_client=llm)


@pytest.fixture
def corpus_dir(tmp_path):
    corpus = tmp_path / "corpus"
    corpus.mkdir()
    (corpus / "exemplo.txt").write_text(EXAMPLE_TEXT, encoding="utf-8")
    return corpus
