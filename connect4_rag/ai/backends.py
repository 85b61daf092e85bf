"""
backends.py - Embedding and completion backends

The AI pipeline talks to two capabilities:

    Embedder.embed(text) -> numpy vector
    CompletionService.complete(prompt, options) -> text

Concrete variants are picked once, from Settings, by create_embedder() and
create_completion_service(). The "openai" and "ollama" systems both go
through the OpenAI SDK; Ollama exposes an OpenAI-compatible /v1 endpoint.
"""

from typing import Optional, Protocol

import numpy as np
import torch
from openai import OpenAI, OpenAIError

from connect4_rag.ai.records import GenerationOptions
from connect4_rag.config import DEFAULT_OLLAMA_URL, Settings
from connect4_rag.debug import debug
from connect4_rag.errors import TransientExternalError
from connect4_rag.game import encoder
from connect4_rag.utils import ROWS, COLS, Player


class Embedder(Protocol):
    def embed(self, text: str) -> np.ndarray:
        ...


class CompletionService(Protocol):
    def complete(self, prompt: str, options: GenerationOptions) -> str:
        ...


# ----------------------------------------------------------------------
# Embedders
# ----------------------------------------------------------------------

def board_to_state(grid: np.ndarray) -> torch.Tensor:
    """
    One-hot encode a grid into a 3 x ROWS x COLS tensor.

    Channel 0: empty cells
    Channel 1: own (perspective) pieces
    Channel 2: the other player's pieces
    """
    state = torch.zeros((3, ROWS, COLS), dtype=torch.float32)
    grid_t = torch.as_tensor(grid.astype(np.int64))
    state[0] = (grid_t == Player.EMPTY.value).float()
    state[1] = (grid_t == Player.RED.value).float()
    state[2] = (grid_t == Player.BLUE.value).float()
    return state


class LocalEmbedder:
    """
    Offline embedder for canonical board text.

    The one-hot board tensor is projected through a fixed random matrix and
    L2-normalised. Identical boards always produce identical vectors and the
    result is stable across runs for the same seed and dimensionality.
    """

    def __init__(self, dimensions: int = 512, seed: int = 7):
        self.dimensions = dimensions
        generator = torch.Generator().manual_seed(seed)
        self._projection = torch.randn((3 * ROWS * COLS, dimensions), generator=generator)

    def embed(self, text: str) -> np.ndarray:
        grid = encoder.decode(text, Player.RED)
        state = board_to_state(grid).flatten()
        with torch.no_grad():
            vector = state @ self._projection
            vector = torch.nn.functional.normalize(vector, dim=0)
        return vector.numpy().astype(np.float32)


class OpenAIEmbedder:
    """Embeddings through an OpenAI-compatible /embeddings endpoint."""

    def __init__(self, client: OpenAI, model: str, timeout: float = 10.0,
                 dimensions: Optional[int] = None):
        self.client = client
        self.model = model
        self.timeout = timeout
        self.dimensions = dimensions

    def embed(self, text: str) -> np.ndarray:
        kwargs = {"model": self.model, "input": text, "timeout": self.timeout}
        if self.dimensions:
            kwargs["dimensions"] = self.dimensions

        try:
            with debug.timer("embed", "llm"):
                rsp = self.client.embeddings.create(**kwargs)
        except OpenAIError as e:
            raise TransientExternalError(f"embedding call failed: {e}") from e

        if not rsp.data:
            raise TransientExternalError("embedding response contained no data")
        return np.asarray(rsp.data[0].embedding, dtype=np.float32)


# ----------------------------------------------------------------------
# Completion
# ----------------------------------------------------------------------

def _extract_text(rsp) -> str:
    if not getattr(rsp, "choices", None):
        return ""
    content = getattr(rsp.choices[0].message, "content", None)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for c in content:
            if isinstance(c, dict):
                if c.get("type") == "text" and isinstance(c.get("text"), str):
                    parts.append(c["text"])
            elif isinstance(getattr(c, "text", None), str):
                parts.append(c.text)
        return "\n".join(parts)
    return ""


class OpenAICompletionService:
    """Chat completions through the OpenAI SDK."""

    def __init__(self, client: OpenAI, model: str):
        self.client = client
        self.model = model

    def complete(self, prompt: str, options: GenerationOptions) -> str:
        kwargs = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": options.max_tokens,
            "temperature": options.temperature,
            "timeout": options.timeout,
        }
        if options.stop:
            kwargs["stop"] = options.stop

        debug.debug(f"Prompt:\n{prompt}", "llm")
        try:
            with debug.timer("completion", "llm"):
                rsp = self.client.chat.completions.create(**kwargs)
        except OpenAIError as e:
            raise TransientExternalError(f"completion call failed: {e}") from e

        text = _extract_text(rsp)
        debug.debug(f"Response:\n{text}", "llm")
        return text


# ----------------------------------------------------------------------
# Factories
# ----------------------------------------------------------------------

def _client(system: str, settings: Settings) -> OpenAI:
    if system == "ollama":
        # Ollama ignores the key but the SDK requires one.
        return OpenAI(api_key=settings.llm_api_key or "ollama",
                      base_url=settings.llm_base_url or DEFAULT_OLLAMA_URL)
    if system == "openai":
        try:
            return OpenAI(api_key=settings.llm_api_key or None,
                          base_url=settings.llm_base_url or None)
        except OpenAIError as e:
            raise ValueError(f"cannot create OpenAI client (set C4_LLM_API_KEY): {e}") from e
    raise ValueError(f"unknown backend system {system!r}")


def create_embedder(settings: Settings) -> Embedder:
    """Build the embedder named by settings.embed_system."""
    debug.info(f"Embedder: {settings.embed_system} ({settings.embed_model})", "backends")
    if settings.embed_system == "local":
        return LocalEmbedder(dimensions=settings.embed_dimensions)
    if settings.embed_system == "openai":
        return OpenAIEmbedder(_client("openai", settings), settings.embed_model,
                              timeout=settings.embed_timeout_s,
                              dimensions=settings.embed_dimensions)
    if settings.embed_system == "ollama":
        # Ollama models have a fixed size and reject the dimensions parameter.
        return OpenAIEmbedder(_client("ollama", settings), settings.embed_model,
                              timeout=settings.embed_timeout_s)
    raise ValueError(f"unknown embed system {settings.embed_system!r}")


def create_completion_service(settings: Settings) -> CompletionService:
    """Build the completion service named by settings.llm_system."""
    debug.info(f"Completion: {settings.llm_system} ({settings.llm_model})", "backends")
    return OpenAICompletionService(_client(settings.llm_system, settings), settings.llm_model)


def generation_options(settings: Settings) -> GenerationOptions:
    return GenerationOptions(
        max_tokens=settings.max_tokens,
        temperature=settings.temperature,
        timeout=settings.completion_timeout_s,
    )
