"""
Grounded answering: retrieve context, refuse when there is none, otherwise ask the LLM.
"""

from __future__ import annotations

import logging
import threading
from typing import Sequence

from grounded_qa.errors import GroundedQAError, QueryCancelled
from grounded_qa.llm.client import LLMClient
from grounded_qa.rag.memory import ConversationMemory
from grounded_qa.rag.retriever import Retriever, raise_if_cancelled
from grounded_qa.vector_store.base import ScoredSegment

REFUSAL_MESSAGE = "Não consigo responder a esta pergunta com as informações disponíveis no documento."
APOLOGY_MESSAGE = "Desculpe, ocorreu um erro ao processar sua consulta."
NOT_FOUND_MESSAGE = "Não encontrei essa informação nos documentos"
CONTEXT_SEPARATOR = "\n\n"

SYSTEM_INSTRUCTION = "\n".join(
    [
        "Você é um assistente de IA estritamente focado em responder COM BASE NO CONTEXTO fornecido.",
        "--------------------------------------------------",
        "REGRAS DE OURO (Siga rigorosamente):",
        "1. IGNORE todo o seu conhecimento prévio/externo. Use APENAS o texto do contexto.",
        f"2. Se a resposta não estiver EXPLICITAMENTE escrita no contexto, diga: '{NOT_FOUND_MESSAGE}'.",
        "3. NÃO TENTE COMPLETAR ou enriquecer a resposta com informações que 'fazem sentido' mas não estão no texto.",
        "4. Se o contexto for apenas uma frase, sua resposta deve ser restrita apenas a essa frase.",
        "5. Seja literal. Não infira coisas que não estão escritas.",
        "6. Citar trechos exatos do contexto é encorajado para garantir fidelidade.",
    ]
)


def build_context(results: Sequence[ScoredSegment]) -> str:
    return CONTEXT_SEPARATOR.join(item.segment.text for item in results)


def build_user_prompt(question: str, context: str) -> str:
    return f"{question}\n\nContexto: {context}"


class GroundedAnswerService:
    """Retrieve, refuse or synthesize, then remember the exchange."""

    def __init__(
        self,
        retriever: Retriever,
        llm_client: LLMClient,
        memory: ConversationMemory,
        logger_: logging.Logger | None = None,
    ) -> None:
        self.retriever = retriever
        self.llm_client = llm_client
        self.memory = memory
        self.logger = logger_ or logging.getLogger(__name__)

    # --- Public API ---
    def answer(
        self,
        session_id: str,
        question: str,
        cancel: threading.Event | None = None,
    ) -> str:
        """
        Answer `question` for `session_id` from indexed content only.

        Always returns text: the model's answer, the refusal, or the apology.
        Only `QueryCancelled` escapes, and it leaves the session window untouched.
        """
        normalized = self.normalize_question(question)
        if not normalized:
            self.logger.info("Grounding refusal before LLM", extra={"reason": "blank_question"})
            return REFUSAL_MESSAGE

        with self.memory.session(session_id):
            try:
                response = self._answer_locked(session_id, normalized, cancel)
            except QueryCancelled:
                self.logger.info("Query cancelled", extra={"session_id": session_id})
                raise
            except GroundedQAError:
                self.logger.exception("Answer failed", extra={"session_id": session_id})
                return APOLOGY_MESSAGE
            if response is None:
                return REFUSAL_MESSAGE

            self.memory.append(session_id, "user", normalized)
            self.memory.append(session_id, "assistant", response)
        return response

    # --- Steps ---
    @staticmethod
    def normalize_question(text: str) -> str:
        """Trim and collapse whitespace and newlines."""
        return " ".join((text or "").strip().split())

    def _answer_locked(
        self, session_id: str, question: str, cancel: threading.Event | None
    ) -> str | None:
        results = self.retriever.retrieve(question, cancel=cancel)
        if not results:
            self.logger.info(
                "Grounding refusal before LLM",
                extra={"reason": "no_relevant_segments", "session_id": session_id},
            )
            return None

        prompt = build_user_prompt(question, build_context(results))
        history = self.memory.window(session_id)
        response = self.llm_client.complete(SYSTEM_INSTRUCTION, history, prompt)
        raise_if_cancelled(cancel, "completion")

        self.logger.info(
            "Answered question",
            extra={
                "session_id": session_id,
                "segments": len(results),
                "history_turns": len(history),
                "answer_len": len(response),
            },
        )
        return response


__all__ = [
    "GroundedAnswerService",
    "REFUSAL_MESSAGE",
    "APOLOGY_MESSAGE",
    "NOT_FOUND_MESSAGE",
    "SYSTEM_INSTRUCTION",
    "build_context",
    "build_user_prompt",
]
