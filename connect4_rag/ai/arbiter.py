"""
arbiter.py - Turn a similar board and a language model suggestion into a column

The arbiter builds a prompt from the current board, the candidate columns of
the best matching training record and its similarity score, asks the
completion service for a JSON answer {"Column": int, "Reason": str}, and
validates it. An invalid answer gets one corrective retry; after that the
first open column is played.
"""

import json
import re
from typing import List, Sequence

from connect4_rag.ai import prompts
from connect4_rag.ai.records import GenerationOptions, PickResult, SimilarBoardMatch
from connect4_rag.debug import debug
from connect4_rag.errors import MalformedResponseError, NoLegalMoveError
from connect4_rag.game import encoder
from connect4_rag.utils import Player

MAX_ATTEMPTS = 2

# With this many candidates the model tends to always take the first one, so
# the score is lowered to make it pick among them.
EXPLORE_CANDIDATES = 4
EXPLORE_SCORE = "25.00"

_FENCE = re.compile(r"^\s*`+\s*(?:json)?\s*|\s*`+\s*$", re.IGNORECASE)


def format_score(score: float, candidate_count: int) -> str:
    if candidate_count >= EXPLORE_CANDIDATES:
        return EXPLORE_SCORE
    return f"{score * 100:.2f}"


def strip_code_fence(text: str) -> str:
    """Remove ``` / ```json markup around a response."""
    return _FENCE.sub("", text).strip()


def parse_pick(response: str, candidates: Sequence[int]) -> PickResult:
    """
    Parse a completion into a PickResult (attempts is filled in by the caller).

    Raises:
        MalformedResponseError: when the text is not a JSON object with an
            integer Column, or the column is not one of the candidates
    """
    text = strip_code_fence(response)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedResponseError(f"response is not JSON: {e}", response) from e
    if not isinstance(data, dict):
        raise MalformedResponseError("response is not a JSON object", response)

    fields = {str(key).lower(): value for key, value in data.items()}
    column = fields.get("column")
    if isinstance(column, str) and column.strip().isdigit():
        column = int(column.strip())
    if not isinstance(column, int) or isinstance(column, bool):
        raise MalformedResponseError(f"Column is not an integer: {column!r}", response)
    if column not in candidates:
        raise MalformedResponseError(f"Column {column} is not one of {list(candidates)}", response)

    reason = fields.get("reason", "")
    return PickResult(column=column, reason=str(reason) if reason is not None else "", attempts=0)


class MoveArbiter:
    """
    Runs the pick protocol against a completion service.

    Args:
        completion: Anything with complete(prompt, options) -> str
        options: Generation parameters passed on every call
        ai_player: The side the AI plays; the prompt names it
    """

    def __init__(self, completion, options: GenerationOptions = None,
                 ai_player: Player = Player.RED):
        self.completion = completion
        self.options = options or GenerationOptions()
        self.ai_player = ai_player

    def build_prompt(self, board_text: str, columns: List[int], score: float) -> str:
        return prompts.PICK.format(
            columns=",".join(str(column) for column in columns),
            score=format_score(score, len(columns)),
            grid=encoder.to_prompt_grid(board_text),
            me=self.ai_player.label,
            opponent=self.ai_player.other().label,
        )

    def pick_move(self, board_text: str, candidates: SimilarBoardMatch,
                  open_columns: Sequence[int]) -> PickResult:
        """
        Choose a column for the AI.

        Args:
            board_text: Canonical text of the current board (AI perspective)
            candidates: The matched training record supplying candidate columns
            open_columns: Columns with an open slot on the real board

        Returns:
            PickResult with the chosen column and the number of completion calls

        Raises:
            NoLegalMoveError: when the board has no open column
            TransientExternalError: when the completion service fails
        """
        open_columns = sorted(open_columns)
        if not open_columns:
            raise NoLegalMoveError("no column has an open slot")

        # Only offer candidates that can actually be played.
        columns = [column for column in candidates.moves if column in open_columns] or open_columns

        prompt = self.build_prompt(board_text, columns, candidates.score)
        debug.info(f"Asking for a pick among {columns} (record {candidates.id}, score {candidates.score:.4f})", "arbiter")

        for attempt in range(1, MAX_ATTEMPTS + 1):
            response = self.completion.complete(prompt, self.options)
            try:
                pick = parse_pick(response, columns)
            except MalformedResponseError as e:
                debug.warning(f"Attempt {attempt}: {e}", "arbiter")
                prompt = prompts.PICK_AGAIN.format(prompt=prompt, response=e.response)
                continue

            debug.info(f"Picked column {pick.column} after {attempt} attempt(s)", "arbiter")
            return PickResult(column=pick.column, reason=pick.reason, attempts=attempt)

        column = open_columns[0]
        debug.warning(f"No valid pick after {MAX_ATTEMPTS} attempts, playing column {column}", "arbiter")
        return PickResult(column=column, reason="fallback: first open column", attempts=MAX_ATTEMPTS)
