"""
CLI to inspect retrieval for a text query: compiled filter, scores and segment metadata.

Example:
    python -m scripts.search_query --corpus ./data/corpus -q "modelo sequencial" --top-k 5 --min-score 0.5
"""

from __future__ import annotations

import argparse

from grounded_qa.config import settings, setup_logging
from grounded_qa.engine import build_engine


def main() -> None:
    parser = argparse.ArgumentParser(description="Search indexed segments by text query.")
    parser.add_argument("--corpus", default=settings.corpus_dir, help="Directory or .txt file to ingest")
    parser.add_argument("--query", "-q", required=True, help="Query text")
    parser.add_argument("--top-k", type=int, default=settings.max_results, help="How many results to return")
    parser.add_argument("--min-score", type=float, default=settings.min_score, help="Minimum cosine score")
    parser.add_argument("--snippet", type=int, default=300, help="Snippet length")
    parser.add_argument("--show-records", type=int, default=0, help="Also list the first N indexed records")
    args = parser.parse_args()

    setup_logging()
    engine = build_engine()
    print(engine.ingest(args.corpus))

    if args.show_records:
        for record in engine.vector_store.records()[: args.show_records]:
            print(f"record={record.record_id} segment={record.segment.id} metadata={record.metadata}")

    retriever = engine.retriever
    print("filter:", retriever.filter_compiler.compile(args.query))
    results = retriever.retrieve(args.query, min_score=args.min_score, top_k=args.top_k)

    if not results:
        print("No results")
        return

    for idx, item in enumerate(results, start=1):
        text = item.segment.text
        snippet = text[: args.snippet].replace("\n", " ")
        print(f"\n#{idx} score={item.score:.4f} id={item.segment.id} record={item.record_id}")
        print("metadata:", item.segment.metadata)
        print("text:", snippet + ("..." if len(text) > args.snippet else ""))


if __name__ == "__main__":
    main()
