"""
commentary.py - Short remarks from the AI after a move
"""

from enum import Enum

from connect4_rag.ai import prompts
from connect4_rag.ai.records import GenerationOptions
from connect4_rag.debug import debug
from connect4_rag.utils import Player


class Outcome(Enum):
    NORMAL = "Normal-GamePlay"
    WILL_WIN = "Will-Win"
    BLOCKED_WIN = "Blocked-Win"
    WON_GAME = "Won-Game"
    LOST_GAME = "Lost-Game"
    TIE_GAME = "Tie-Game"


_TEMPLATES = {
    Outcome.NORMAL: prompts.NORMAL_GAMEPLAY,
    Outcome.WILL_WIN: prompts.WON_GAME,
    Outcome.BLOCKED_WIN: prompts.BLOCKED_WIN,
    Outcome.WON_GAME: prompts.WON_GAME,
    Outcome.LOST_GAME: prompts.LOST_GAME,
    Outcome.TIE_GAME: prompts.TIE_GAME,
}


class Commentator:
    """
    Generates the AI's remark for an outcome through the completion service.

    Args:
        completion: Anything with complete(prompt, options) -> str
        options: Generation parameters passed on every call
        ai_player: The side the AI plays; the prompts speak as that colour
    """

    def __init__(self, completion, options: GenerationOptions = None,
                 ai_player: Player = Player.RED):
        self.completion = completion
        self.options = options or GenerationOptions()
        self.ai_player = ai_player

    def prompt(self, outcome: Outcome, mine: int, theirs: int, column: int) -> str:
        return _TEMPLATES[outcome].format(
            me=self.ai_player.label,
            opponent=self.ai_player.other().label,
            mine=mine,
            theirs=theirs,
            column=column,
        )

    def comment(self, outcome: Outcome, mine: int, theirs: int, column: int) -> str:
        """
        Args:
            outcome: What just happened, from the AI's side
            mine: The AI's pieces on the board
            theirs: The human's pieces on the board
            column: Column of the last move

        Raises:
            TransientExternalError: when the completion service fails
        """
        debug.debug(f"Commentary for {outcome.value}", "commentary")
        return self.completion.complete(self.prompt(outcome, mine, theirs, column), self.options).strip()
