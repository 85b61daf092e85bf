"""
Pytest configuration and shared fixtures.

The repository root is added to sys.path so the tests run from a plain
checkout as well as from an installed package.
"""

import sys
from pathlib import Path

import pytest

_root_path = str(Path(__file__).resolve().parent.parent)
if _root_path not in sys.path:
    sys.path.insert(0, _root_path)

from connect4_rag.ai.backends import LocalEmbedder  # noqa: E402
from connect4_rag.ai.recorder import TrainingRecorder  # noqa: E402
from connect4_rag.data.index import VectorIndex  # noqa: E402
from connect4_rag.data.store import FileRecordStore  # noqa: E402


class ScriptedCompletion:
    """
    Completion service returning canned responses in order.

    An Exception instance in the script is raised instead of returned. When
    the script runs out, `default` is returned if set.
    """

    def __init__(self, responses=None, default=None):
        self.responses = list(responses or [])
        self.default = default
        self.prompts = []

    def complete(self, prompt, options):
        self.prompts.append(prompt)
        if self.responses:
            response = self.responses.pop(0)
        elif self.default is not None:
            response = self.default
        else:
            raise AssertionError("completion called more often than scripted")
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def calls(self):
        return len(self.prompts)


@pytest.fixture
def scripted():
    """Factory for ScriptedCompletion instances."""
    return ScriptedCompletion


@pytest.fixture
def store(tmp_path):
    return FileRecordStore(str(tmp_path / "data"))


@pytest.fixture
def embedder():
    return LocalEmbedder(dimensions=64)


@pytest.fixture
def index(embedder, store):
    return VectorIndex(embedder, store, exact=True)


@pytest.fixture
def sleeps():
    """Records settle delays instead of sleeping."""
    return []


@pytest.fixture
def recorder(store, index, sleeps):
    return TrainingRecorder(store, index, settle_delay=1.0, sleep=sleeps.append)

