"""Tests for the embedding and completion backends."""

from types import SimpleNamespace
from unittest.mock import Mock

import numpy as np
import pytest
from openai import OpenAIError

from connect4_rag.ai import backends
from connect4_rag.ai.backends import LocalEmbedder, OpenAICompletionService, OpenAIEmbedder
from connect4_rag.ai.records import GenerationOptions
from connect4_rag.config import Settings
from connect4_rag.errors import TransientExternalError
from connect4_rag.game import encoder
from connect4_rag.game.board import Board
from connect4_rag.utils import Player


def chat_response(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class TestLocalEmbedder:
    def test_vector_shape_and_norm(self):
        vector = LocalEmbedder(dimensions=32).embed(encoder.encode(Board()))
        assert vector.shape == (32,)
        assert vector.dtype == np.float32
        assert np.linalg.norm(vector) == pytest.approx(1.0, abs=1e-5)

    def test_deterministic(self):
        board = Board()
        board.place(4, Player.RED)
        text = encoder.encode(board)

        assert np.array_equal(LocalEmbedder(dimensions=32).embed(text),
                              LocalEmbedder(dimensions=32).embed(text))

    def test_different_boards_differ(self):
        embedder = LocalEmbedder(dimensions=32)
        a = Board()
        a.place(4, Player.RED)
        b = Board()
        b.place(4, Player.BLUE)

        assert not np.allclose(embedder.embed(encoder.encode(a)), embedder.embed(encoder.encode(b)))

    def test_board_to_state_channels(self):
        board = Board()
        board.place(1, Player.RED)
        board.place(2, Player.BLUE)
        state = backends.board_to_state(board.grid)

        assert tuple(state.shape) == (3, 6, 7)
        assert state[0].sum().item() == 40
        assert state[1, 0, 0].item() == 1.0
        assert state[2, 0, 1].item() == 1.0


class TestOpenAICompletionService:
    def test_passes_generation_options(self):
        client = Mock()
        client.chat.completions.create.return_value = chat_response('{"Column": 4}')
        service = OpenAICompletionService(client, "llama3.1")

        options = GenerationOptions(max_tokens=5000, temperature=0.8, timeout=300.0)
        assert service.complete("pick a column", options) == '{"Column": 4}'

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "llama3.1"
        assert kwargs["messages"] == [{"role": "user", "content": "pick a column"}]
        assert kwargs["max_tokens"] == 5000
        assert kwargs["temperature"] == 0.8
        assert kwargs["timeout"] == 300.0
        assert "stop" not in kwargs

    def test_client_errors_become_transient(self):
        client = Mock()
        client.chat.completions.create.side_effect = OpenAIError("connection reset")
        service = OpenAICompletionService(client, "llama3.1")

        with pytest.raises(TransientExternalError):
            service.complete("prompt", GenerationOptions())

    def test_list_content_is_joined(self):
        client = Mock()
        client.chat.completions.create.return_value = chat_response(
            [{"type": "text", "text": "one"}, SimpleNamespace(text="two")])

        assert OpenAICompletionService(client, "m").complete("p", GenerationOptions()) == "one\ntwo"

    def test_empty_choices(self):
        client = Mock()
        client.chat.completions.create.return_value = SimpleNamespace(choices=[])

        assert OpenAICompletionService(client, "m").complete("p", GenerationOptions()) == ""


class TestOpenAIEmbedder:
    def test_returns_first_embedding(self):
        client = Mock()
        client.embeddings.create.return_value = SimpleNamespace(data=[SimpleNamespace(embedding=[0.1, 0.2])])
        embedder = OpenAIEmbedder(client, "mxbai-embed-large", timeout=10.0)

        vector = embedder.embed("board")

        assert np.allclose(vector, [0.1, 0.2])
        kwargs = client.embeddings.create.call_args.kwargs
        assert kwargs == {"model": "mxbai-embed-large", "input": "board", "timeout": 10.0}

    def test_errors_become_transient(self):
        client = Mock()
        client.embeddings.create.side_effect = OpenAIError("timeout")

        with pytest.raises(TransientExternalError):
            OpenAIEmbedder(client, "m").embed("board")

    def test_empty_data_is_transient(self):
        client = Mock()
        client.embeddings.create.return_value = SimpleNamespace(data=[])

        with pytest.raises(TransientExternalError):
            OpenAIEmbedder(client, "m").embed("board")


class TestFactories:
    def test_local_embedder(self):
        embedder = backends.create_embedder(Settings(embed_system="local", embed_dimensions=16))
        assert isinstance(embedder, LocalEmbedder)
        assert embedder.dimensions == 16

    def test_ollama_embedder_uses_local_endpoint(self):
        embedder = backends.create_embedder(Settings(embed_system="ollama"))
        assert isinstance(embedder, OpenAIEmbedder)
        assert str(embedder.client.base_url).startswith("http://localhost:11434/v1")
        assert embedder.dimensions is None

    def test_ollama_completion(self):
        service = backends.create_completion_service(Settings(llm_system="ollama", llm_model="llama3.1"))
        assert isinstance(service, OpenAICompletionService)
        assert service.model == "llama3.1"
        assert str(service.client.base_url).startswith("http://localhost:11434/v1")

    def test_openai_completion_with_key(self):
        settings = Settings(llm_system="openai", llm_api_key="sk-test", llm_model="gpt-4o-mini")
        service = backends.create_completion_service(settings)
        assert service.client.api_key == "sk-test"

    def test_unknown_embed_system(self):
        with pytest.raises(ValueError):
            backends.create_embedder(Settings(embed_system="word2vec"))

    def test_unknown_llm_system(self):
        with pytest.raises(ValueError):
            backends.create_completion_service(Settings(llm_system="carrier-pigeon"))

    def test_generation_options(self):
        options = backends.generation_options(Settings(max_tokens=10, temperature=0.2, completion_timeout_s=3))
        assert (options.max_tokens, options.temperature, options.timeout) == (10, 0.2, 3)
