"""
Vector store abstractions and factories.
"""

from grounded_qa.config import settings
from grounded_qa.vector_store.base import VectorStore
from grounded_qa.vector_store.memory_store import InMemoryVectorIndex

DEFAULT_VECTOR_STORE_BACKEND = settings.vector_store_backend


def create_vector_store(backend: str = DEFAULT_VECTOR_STORE_BACKEND) -> VectorStore:
    """
    Build a new VectorStore for the configured backend.
    Currently supports only the in-memory backend; call once per process.
    """
    backend = backend.lower()
    if backend == "memory":
        return InMemoryVectorIndex()
    raise ValueError(f"Unsupported vector store backend: {backend}")


__all__ = ["DEFAULT_VECTOR_STORE_BACKEND", "create_vector_store", "InMemoryVectorIndex"]
