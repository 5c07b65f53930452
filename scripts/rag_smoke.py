"""
Simple smoke test of the grounded answering pipeline.

The index lives in memory, so the corpus is ingested first in the same process.

Example:
    python -m scripts.rag_smoke --corpus ./data/corpus -q "Qual é a cor do céu?" -q "E do mar?"
"""

from __future__ import annotations

import argparse
import logging
import sys

from grounded_qa.config import settings, setup_logging
from grounded_qa.engine import DEFAULT_SESSION_ID, build_engine


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Smoke test of ingestion + grounded answering.")
    parser.add_argument("--corpus", default=settings.corpus_dir, help="Directory or .txt file to ingest")
    parser.add_argument(
        "--question",
        "-q",
        action="append",
        required=True,
        help="Question to ask; repeat to ask several in one session",
    )
    parser.add_argument("--session", default=DEFAULT_SESSION_ID, help="Conversation session id")
    return parser.parse_args()


def main() -> None:
    setup_logging()
    logger = logging.getLogger(__name__)
    args = parse_args()

    engine = build_engine()
    report = engine.ingest(args.corpus)
    print(f"\n=== Ingestion ===\n{report}")

    try:
        for idx, question in enumerate(args.question, start=1):
            answer = engine.ask(question, session_id=args.session)
            print(f"\n=== Q{idx} ===\n{question}\n--- answer ---\n{answer}")
    except Exception:
        logger.exception("RAG smoke failed")
        sys.exit(1)


if __name__ == "__main__":
    main()
