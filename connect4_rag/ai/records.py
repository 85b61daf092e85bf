"""
records.py - Training record types and their text format

A training record pairs a canonical board with the columns that were chosen
when that exact board was seen, and a feedback label. On disk a record is the
six board lines, one blank line and a JSON document:

    |🟢|🟢|🟢|🟢|🟢|🟢|🟢|
    ...

    {
        "markers": 3,
        "moves": [4, 2],
        "feedback": "Will-Win"
    }
"""

import json
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Tuple

from connect4_rag.game import encoder
from connect4_rag.utils import ROWS, Player, is_valid_column


class FeedbackLabel(Enum):
    NORMAL = "Normal-GamePlay"
    WILL_WIN = "Will-Win"
    BLOCKED_WIN = "Blocked-Win"

    @property
    def rank(self) -> int:
        """Merge precedence: a merge never downgrades a label."""
        return _RANKS[self]

    @classmethod
    def parse(cls, value: str) -> 'FeedbackLabel':
        for label in cls:
            if label.value == value:
                return label
        # Unknown labels in hand-edited files are treated as normal play.
        return cls.NORMAL

    def strongest(self, other: 'FeedbackLabel') -> 'FeedbackLabel':
        return self if self.rank >= other.rank else other


_RANKS = {
    FeedbackLabel.NORMAL: 0,
    FeedbackLabel.BLOCKED_WIN: 1,
    FeedbackLabel.WILL_WIN: 2,
}


@dataclass(frozen=True)
class TrainingRecord:
    id: str
    board: str
    markers: int
    moves: Tuple[int, ...]
    feedback: FeedbackLabel = FeedbackLabel.NORMAL

    def with_move(self, column: int, feedback: FeedbackLabel) -> 'TrainingRecord':
        """
        Merge an observed column into the record.

        The column is prepended only if it is not already in the list; the
        feedback label keeps the strongest of the two.
        """
        moves = self.moves if column in self.moves else (column,) + self.moves
        return replace(self, moves=moves, feedback=self.feedback.strongest(feedback))

    def to_text(self) -> str:
        metadata = {
            "markers": self.markers,
            "moves": list(self.moves),
            "feedback": self.feedback.value,
        }
        return f"{self.board}\n{json.dumps(metadata, indent=4)}\n"

    @classmethod
    def from_text(cls, record_id: str, text: str) -> 'TrainingRecord':
        """
        Parse the on-disk format.

        Raises:
            ValueError: when the board lines or the JSON document are malformed
        """
        lines = text.split("\n")
        if len(lines) < ROWS + 2:
            raise ValueError(f"record {record_id} is truncated")

        board = "".join(line + "\n" for line in lines[:ROWS])
        encoder.split_rows(board)

        metadata = json.loads("\n".join(lines[ROWS + 1:]))
        moves = tuple(int(move) for move in metadata.get("moves", []))
        if not all(is_valid_column(move) for move in moves):
            raise ValueError(f"record {record_id} has invalid moves {moves}")

        return cls(
            id=record_id,
            board=board,
            markers=int(metadata.get("markers", encoder.count_markers(board))),
            moves=tuple(dict.fromkeys(moves)),
            feedback=FeedbackLabel.parse(metadata.get("feedback", "")),
        )


@dataclass(frozen=True)
class SimilarBoardMatch:
    """A training record returned by similarity search, with its score in [0, 1]."""
    id: str
    board: str
    markers: int
    moves: Tuple[int, ...]
    feedback: FeedbackLabel
    score: float

    @classmethod
    def from_record(cls, record: TrainingRecord, score: float) -> 'SimilarBoardMatch':
        return cls(
            id=record.id,
            board=record.board,
            markers=record.markers,
            moves=record.moves,
            feedback=record.feedback,
            score=min(max(float(score), 0.0), 1.0),
        )


@dataclass(frozen=True)
class PickResult:
    column: int
    reason: str
    attempts: int


@dataclass(frozen=True)
class Discovery:
    """A column where a hypothetical piece ends the game immediately."""
    column: int
    player: Player
    label: FeedbackLabel


@dataclass
class GenerationOptions:
    max_tokens: int = 5000
    temperature: float = 0.8
    timeout: float = 300.0
    stop: List[str] = field(default_factory=list)
