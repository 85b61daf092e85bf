"""
config.py - Settings for the Connect Four AI

Settings are read from environment variables (prefix C4_), after loading a
.env file from the working directory if one exists. Command-line flags in
run.py override individual fields with dataclasses.replace().
"""

import os
from dataclasses import dataclass
from typing import Any, Callable, Optional

from dotenv import load_dotenv

# Default data directory lives next to the package, like the training data
# of the original game.
BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
DATA_DIR = os.path.join(BASE_DIR, 'data')

DEFAULT_OLLAMA_URL = "http://localhost:11434/v1"


def _as_bool(value: Any) -> bool:
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _get(name: str, default: Any, cast: Optional[Callable[[Any], Any]] = None) -> Any:
    value = os.environ.get(f"C4_{name}")
    if value is None or value == "":
        return default
    return cast(value) if cast else value


@dataclass(frozen=True)
class Settings:
    data_dir: str = DATA_DIR

    # Backends: "local" | "openai" | "ollama" for embeddings,
    # "openai" | "ollama" for completions.
    embed_system: str = "local"
    embed_model: str = "mxbai-embed-large"
    embed_dimensions: int = 512
    llm_system: str = "ollama"
    llm_model: str = "llama3.1"
    llm_base_url: str = ""
    llm_api_key: str = ""

    # Timeouts (seconds) and generation knobs
    embed_timeout_s: float = 10.0
    completion_timeout_s: float = 300.0
    max_tokens: int = 5000
    temperature: float = 0.8

    # Retrieval
    search_k: int = 1
    search_exact: bool = True
    settle_delay_s: float = 1.0

    debug_level: str = "warning"

    @property
    def records_dir(self) -> str:
        return os.path.join(self.data_dir, 'training-data')


def load_settings(env_file: Optional[str] = None) -> Settings:
    """Build Settings from the environment (and an optional .env file)."""
    load_dotenv(env_file)

    return Settings(
        data_dir=_get("DATA_DIR", DATA_DIR),
        embed_system=_get("EMBED_SYSTEM", "local").lower(),
        embed_model=_get("EMBED_MODEL", "mxbai-embed-large"),
        embed_dimensions=_get("EMBED_DIMENSIONS", 512, int),
        llm_system=_get("LLM_SYSTEM", "ollama").lower(),
        llm_model=_get("LLM_MODEL", "llama3.1"),
        llm_base_url=_get("LLM_BASE_URL", ""),
        llm_api_key=_get("LLM_API_KEY", ""),
        embed_timeout_s=_get("EMBED_TIMEOUT_S", 10.0, float),
        completion_timeout_s=_get("COMPLETION_TIMEOUT_S", 300.0, float),
        max_tokens=_get("MAX_TOKENS", 5000, int),
        temperature=_get("TEMPERATURE", 0.8, float),
        search_k=_get("SEARCH_K", 1, int),
        search_exact=_get("SEARCH_EXACT", True, _as_bool),
        settle_delay_s=_get("SETTLE_DELAY_S", 1.0, float),
        debug_level=_get("DEBUG_LEVEL", "warning"),
    )
