from types import SimpleNamespace

import httpx
import openai
import pytest

from grounded_qa.embeddings.client import EmbeddingsClient
from grounded_qa.errors import (
    CompletionServiceError,
    EmbeddingServiceError,
    InvalidInput,
    InvalidResponse,
    RateLimited,
    ServiceTimeout,
)
from grounded_qa.llm.client import LLMClient, build_messages
from grounded_qa.rag.memory import ConversationTurn
from grounded_qa.retry import call_with_retry, translate_openai_error

REQUEST = httpx.Request("POST", "https://api.openai.com/v1/embeddings")


def _timeout():
    return openai.APITimeoutError(request=REQUEST)


def _rate_limited():
    return openai.RateLimitError("slow down", response=httpx.Response(429, request=REQUEST), body=None)


def _bad_request():
    return openai.BadRequestError("bad input", response=httpx.Response(400, request=REQUEST), body=None)


class ScriptedEndpoint:
    """Returns (or raises) the scripted outcomes in order, recording the calls."""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _embedding_response(vectors):
    # Returned out of order on purpose; the client sorts by index.
    items = [SimpleNamespace(index=i, embedding=v) for i, v in enumerate(vectors)]
    return SimpleNamespace(data=list(reversed(items)))


def _chat_response(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def _embeddings_client(outcomes, batch_size=64):
    endpoint = ScriptedEndpoint(outcomes)
    client = EmbeddingsClient(
        model="test-embed",
        batch_size=batch_size,
        client=SimpleNamespace(embeddings=endpoint),
        max_retries=1,
        retry_base_delay=0.0,
        retry_max_delay=0.0,
    )
    return client, endpoint


def _llm_client(outcomes):
    endpoint = ScriptedEndpoint(outcomes)
    client = LLMClient(
        model="test-chat",
        temperature=0.0,
        client=SimpleNamespace(chat=SimpleNamespace(completions=endpoint)),
        max_retries=1,
        retry_base_delay=0.0,
        retry_max_delay=0.0,
    )
    return client, endpoint


class TestRetry:
    def test_transient_error_is_retried_once(self) -> None:
        attempts = []
        sleeps = []

        def flaky():
            attempts.append(1)
            if len(attempts) == 1:
                raise RateLimited("embedding", "429")
            return "ok"

        result = call_with_retry(flaky, operation="embedding", base_delay=0.5, sleep=sleeps.append)
        assert result == "ok"
        assert len(attempts) == 2
        assert sleeps == [0.5]

    def test_transient_error_surfaces_after_single_retry(self) -> None:
        attempts = []

        def always_timeout():
            attempts.append(1)
            raise ServiceTimeout("completion", "timed out")

        with pytest.raises(ServiceTimeout):
            call_with_retry(always_timeout, operation="completion", sleep=lambda _: None)
        assert len(attempts) == 2

    def test_permanent_error_is_not_retried(self) -> None:
        attempts = []

        def bad():
            attempts.append(1)
            raise InvalidInput("embedding", "too long")

        with pytest.raises(InvalidInput):
            call_with_retry(bad, operation="embedding", sleep=lambda _: None)
        assert len(attempts) == 1

    def test_no_retry_when_disabled(self) -> None:
        attempts = []

        def always_rate_limited():
            attempts.append(1)
            raise RateLimited("embedding", "429")

        with pytest.raises(RateLimited):
            call_with_retry(always_rate_limited, operation="embedding", max_retries=0)
        assert len(attempts) == 1

    def test_backoff_is_capped(self) -> None:
        sleeps = []

        def always_timeout():
            raise ServiceTimeout("embedding", "timed out")

        with pytest.raises(ServiceTimeout):
            call_with_retry(
                always_timeout,
                operation="embedding",
                max_retries=1,
                base_delay=10.0,
                max_delay=2.0,
                sleep=sleeps.append,
            )
        assert sleeps == [2.0]

    @pytest.mark.parametrize(
        "exc_factory,expected",
        [(_timeout, ServiceTimeout), (_rate_limited, RateLimited), (_bad_request, InvalidInput)],
    )
    def test_translate_openai_error(self, exc_factory, expected) -> None:
        translated = translate_openai_error("embedding", exc_factory(), InvalidInput)
        assert type(translated) is expected
        assert translated.service == "embedding"


class TestEmbeddingsClient:
    def test_embed_texts_batches_and_keeps_order(self) -> None:
        client, endpoint = _embeddings_client(
            [_embedding_response([[1.0], [2.0]]), _embedding_response([[3.0]])], batch_size=2
        )
        assert client.embed_texts(["a", "b", "c"]) == [[1.0], [2.0], [3.0]]
        assert [call["input"] for call in endpoint.calls] == [["a", "b"], ["c"]]
        assert endpoint.calls[0]["model"] == "test-embed"

    def test_empty_input_makes_no_call(self) -> None:
        client, endpoint = _embeddings_client([])
        assert client.embed_texts([]) == []
        assert endpoint.calls == []

    def test_timeout_is_retried_once(self) -> None:
        client, endpoint = _embeddings_client([_timeout(), _embedding_response([[0.1, 0.2]])])
        assert client.embed_text("pergunta") == [0.1, 0.2]
        assert len(endpoint.calls) == 2

    def test_persistent_failure_raises_embedding_service_error(self) -> None:
        client, endpoint = _embeddings_client([_rate_limited(), _rate_limited()])
        with pytest.raises(EmbeddingServiceError) as excinfo:
            client.embed_text("pergunta")
        assert isinstance(excinfo.value.__cause__, RateLimited)
        assert len(endpoint.calls) == 2

    def test_rejected_input_is_not_retried(self) -> None:
        client, endpoint = _embeddings_client([_bad_request()])
        with pytest.raises(EmbeddingServiceError) as excinfo:
            client.embed_text("x")
        assert isinstance(excinfo.value.__cause__, InvalidInput)
        assert len(endpoint.calls) == 1

    def test_wrong_vector_count_is_invalid_response(self) -> None:
        client, _ = _embeddings_client([_embedding_response([[1.0]])])
        with pytest.raises(EmbeddingServiceError) as excinfo:
            client.embed_texts(["a", "b"])
        assert isinstance(excinfo.value.__cause__, InvalidResponse)


class TestLLMClient:
    def test_build_messages_puts_history_between_system_and_prompt(self) -> None:
        history = [ConversationTurn("user", "oi", 0), ConversationTurn("assistant", "olá", 1)]
        messages = build_messages("regras", history, "pergunta")
        assert messages == [
            {"role": "system", "content": "regras"},
            {"role": "user", "content": "oi"},
            {"role": "assistant", "content": "olá"},
            {"role": "user", "content": "pergunta"},
        ]

    def test_complete_returns_message_content(self) -> None:
        client, endpoint = _llm_client([_chat_response("O céu é azul.")])
        assert client.complete("regras", [], "pergunta") == "O céu é azul."
        call = endpoint.calls[0]
        assert call["model"] == "test-chat"
        assert call["temperature"] == 0.0
        assert call["messages"][-1] == {"role": "user", "content": "pergunta"}

    def test_none_content_becomes_empty_string(self) -> None:
        client, _ = _llm_client([_chat_response(None)])
        assert client.complete("regras", [], "pergunta") == ""

    def test_rate_limit_retried_once_then_succeeds(self) -> None:
        client, endpoint = _llm_client([_rate_limited(), _chat_response("ok")])
        assert client.complete("regras", [], "pergunta") == "ok"
        assert len(endpoint.calls) == 2

    def test_persistent_failure_raises_completion_service_error(self) -> None:
        client, endpoint = _llm_client([_timeout(), _timeout()])
        with pytest.raises(CompletionServiceError):
            client.complete("regras", [], "pergunta")
        assert len(endpoint.calls) == 2

    def test_empty_choices_is_invalid_response(self) -> None:
        client, endpoint = _llm_client([SimpleNamespace(choices=[])])
        with pytest.raises(CompletionServiceError) as excinfo:
            client.complete("regras", [], "pergunta")
        assert isinstance(excinfo.value.__cause__, InvalidResponse)
        assert len(endpoint.calls) == 1
