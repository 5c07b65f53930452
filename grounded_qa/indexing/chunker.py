"""
Text chunking utilities.
"""

from __future__ import annotations

import re
from typing import List, Sequence, Tuple

from grounded_qa.config import settings
from grounded_qa.vector_store.base import Document, Segment

CHUNK_SIZE_CHARS = settings.chunk_size_chars
CHUNK_OVERLAP_CHARS = settings.chunk_overlap_chars

# Separators stay attached to the piece they close, so pieces tile the text.
PARAGRAPH_BREAK = re.compile(r"\n[ \t]*\n\s*")
SENTENCE_END = re.compile(r"(?<=[.!?])\s+")
_SEPARATORS = (PARAGRAPH_BREAK, SENTENCE_END)

Span = Tuple[int, int]


def _split_spans(text: str, start: int, end: int, limit: int, level: int = 0) -> List[Span]:
    """
    Cut `text[start:end]` into contiguous spans of at most `limit` characters.

    Tries paragraph breaks first, then sentence ends, then fixed character windows.
    """
    if end - start <= limit:
        return [(start, end)]
    if level >= len(_SEPARATORS):
        return [(pos, min(pos + limit, end)) for pos in range(start, end, limit)]

    pieces: List[Span] = []
    cursor = start
    for match in _SEPARATORS[level].finditer(text, start, end):
        if match.end() > cursor:
            pieces.append((cursor, match.end()))
            cursor = match.end()
    if cursor < end:
        pieces.append((cursor, end))

    spans: List[Span] = []
    for piece_start, piece_end in pieces:
        spans.extend(_split_spans(text, piece_start, piece_end, limit, level + 1))
    return spans


def _pack(spans: Sequence[Span], limit: int) -> List[Span]:
    """Greedily merge neighbouring spans while the merged span fits in `limit`."""
    packed: List[Span] = []
    core_start, core_end = spans[0]
    for span_start, span_end in spans[1:]:
        if span_end - core_start <= limit:
            core_end = span_end
            continue
        packed.append((core_start, core_end))
        core_start, core_end = span_start, span_end
    packed.append((core_start, core_end))
    return packed


class Chunker:
    """
    Recursive structural splitter with a character overlap between neighbours.

    Each segment is `overlap` characters borrowed from the end of the previous
    segment followed by at most `target_size - overlap` new characters.
    """

    def __init__(self, target_size: int = CHUNK_SIZE_CHARS, overlap: int = CHUNK_OVERLAP_CHARS) -> None:
        if target_size <= 0:
            raise ValueError("target_size must be positive")
        if overlap < 0 or overlap >= target_size:
            raise ValueError("overlap must be >= 0 and smaller than target_size")
        self.target_size = target_size
        self.overlap = overlap

    def split(self, documents: Sequence[Document]) -> List[Segment]:
        segments: List[Segment] = []
        for document in documents:
            segments.extend(self.split_document(document))
        return segments

    def split_document(self, document: Document) -> List[Segment]:
        text = document.text
        if not text:
            return []

        limit = self.target_size - self.overlap
        cores = _pack(_split_spans(text, 0, len(text), limit), limit)

        segments: List[Segment] = []
        for index, (core_start, core_end) in enumerate(cores):
            start = core_start
            if segments:
                previous = segments[-1]
                start = core_start - min(self.overlap, core_start - previous.start)
            segments.append(
                Segment(
                    id=f"{document.id}#{index:04d}",
                    document_id=document.id,
                    index=index,
                    text=text[start:core_end],
                    start=start,
                    end=core_end,
                    metadata=dict(document.metadata),
                )
            )
        return segments


def reconstruct(segments: Sequence[Segment]) -> str:
    """Concatenate one document's segments, dropping each leading overlap."""
    parts: List[str] = []
    previous_end: int | None = None
    for segment in segments:
        if previous_end is None:
            parts.append(segment.text)
        else:
            parts.append(segment.text[previous_end - segment.start :])
        previous_end = segment.end
    return "".join(parts)


__all__ = ["Chunker", "reconstruct", "CHUNK_SIZE_CHARS", "CHUNK_OVERLAP_CHARS"]
