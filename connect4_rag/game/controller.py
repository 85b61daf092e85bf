"""
controller.py - Turn state machine for a game against the AI

The controller owns the Board for one game and drives both kinds of turn:

    human_turn(column)  validate, place, evaluate, record the move as a
                        training example seen from the human's side
    ai_turn()           learn phase (simulate + flush), then decide phase
                        (embed, search, arbitrate), then place and evaluate

States: SETUP -> IN_PROGRESS -> RED_WINS | BLUE_WINS | TIE -> (new_game)

Recoverable failures (Connect4Error) never propagate out of a turn; they are
reported in the snapshot's game_message and the board is left as it was.
"""

import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from connect4_rag.ai.commentary import Commentator, Outcome
from connect4_rag.ai.records import FeedbackLabel, SimilarBoardMatch
from connect4_rag.debug import debug
from connect4_rag.errors import Connect4Error
from connect4_rag.game import encoder, rules
from connect4_rag.game.board import Board, Cell, LastMove
from connect4_rag.utils import COLS, GameStatus, Player, is_valid_column

NO_MATCH_ID = "none"


@dataclass(frozen=True)
class BoardStateSnapshot:
    """Read-only view of the game after a turn, for any UI."""
    cells: Tuple[Tuple[Cell, ...], ...]
    last_move: Optional[LastMove]
    game_message: str
    ai_message: str
    debug_message: str
    game_over: bool
    winner: Optional[Player]
    tie: bool
    status: GameStatus
    turn: Optional[Player]

    def render(self) -> str:
        """ASCII board, top row first."""
        symbols = {Player.EMPTY: ".", Player.RED: "R", Player.BLUE: "B"}
        lines = []
        for row in reversed(self.cells):
            lines.append("| " + " | ".join(symbols[cell.owner] for cell in row) + " |")
        lines.append("  " + "   ".join(str(column) for column in range(1, COLS + 1)))
        return "\n".join(lines)


class GameController:
    """
    Plays one game at a time between a human and the AI.

    Args:
        recorder: TrainingRecorder used for the learn phase and human captures
        arbiter: MoveArbiter used for the decide phase
        embedder: Embeds canonical board text for the similarity query
        search: Similarity search with query(vector, k)
        commentator: Optional Commentator for the AI's remarks
        ai_player: The side the AI plays
        search_k: Number of matches requested per query
        rng: Random source for the first player
    """

    def __init__(self, recorder, arbiter, embedder, search,
                 commentator: Optional[Commentator] = None,
                 ai_player: Player = Player.RED, search_k: int = 1,
                 rng: Optional[random.Random] = None):
        self.recorder = recorder
        self.arbiter = arbiter
        self.embedder = embedder
        self.search = search
        self.commentator = commentator
        self.ai_player = ai_player
        self.human_player = ai_player.other()
        self.search_k = max(1, search_k)
        self.rng = rng or random.Random()

        self.board = Board()
        self.status = GameStatus.SETUP
        self.turn: Optional[Player] = None
        self._clear_messages()

    @classmethod
    def from_settings(cls, settings, ai_player: Player = Player.RED) -> 'GameController':
        """Wire the controller and its collaborators from Settings, all playing ai_player."""
        from connect4_rag.ai import backends
        from connect4_rag.ai.arbiter import MoveArbiter
        from connect4_rag.ai.recorder import TrainingRecorder
        from connect4_rag.data.index import VectorIndex
        from connect4_rag.data.store import FileRecordStore

        store = FileRecordStore(settings.data_dir)
        embedder = backends.create_embedder(settings)
        index = VectorIndex(embedder, store, exact=settings.search_exact)
        index.reindex()

        completion = backends.create_completion_service(settings)
        options = backends.generation_options(settings)
        recorder = TrainingRecorder(store, index, ai_player=ai_player,
                                    settle_delay=settings.settle_delay_s)
        return cls(
            recorder=recorder,
            arbiter=MoveArbiter(completion, options, ai_player=ai_player),
            embedder=embedder,
            search=index,
            commentator=Commentator(completion, options, ai_player=ai_player),
            ai_player=ai_player,
            search_k=settings.search_k,
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def _clear_messages(self) -> None:
        self.game_message = ""
        self.ai_message = ""
        self.debug_message = ""

    def new_game(self, first_player: Optional[Player] = None) -> BoardStateSnapshot:
        """Discard the board and start a new game."""
        self.board = Board()
        self.status = GameStatus.IN_PROGRESS
        self.turn = first_player or self.rng.choice([Player.RED, Player.BLUE])
        self._clear_messages()
        self.game_message = f"New game, {self.turn} goes first"
        debug.info(self.game_message, "controller")
        return self.snapshot()

    def snapshot(self) -> BoardStateSnapshot:
        return BoardStateSnapshot(
            cells=self.board.cells(),
            last_move=self.board.last_move,
            game_message=self.game_message,
            ai_message=self.ai_message,
            debug_message=self.debug_message,
            game_over=self.status.is_game_over(),
            winner=self.status.winner,
            tie=self.status == GameStatus.TIE,
            status=self.status,
            turn=self.turn,
        )

    def _check_turn(self, player: Player) -> bool:
        if self.status.is_game_over():
            self.game_message = "game is over"
            return False
        if self.status != GameStatus.IN_PROGRESS:
            self.game_message = "no game in progress"
            return False
        if self.turn != player:
            self.game_message = f"it is {self.turn}'s turn"
            return False
        return True

    def _apply(self, column: int, player: Player) -> LastMove:
        """Place a validated move, evaluate it and advance the state machine."""
        move = self.board.place(column, player)
        verdict = rules.evaluate(self.board, move)
        if verdict.is_win:
            self.status = GameStatus.won_by(verdict.winner)
            self.turn = None
            self.game_message = f"{verdict.winner} wins!"
        elif verdict.is_tie:
            self.status = GameStatus.TIE
            self.turn = None
            self.game_message = "It's a tie!"
        else:
            self.turn = player.other()
        debug.info(f"{player} played column {column} (row {move.row}), status {self.status.value}", "controller")
        return move

    def _comment(self, outcome: Outcome, column: int) -> None:
        if self.commentator is None:
            return
        try:
            self.ai_message = self.commentator.comment(
                outcome, self.board.count(self.ai_player), self.board.count(self.human_player), column)
        except Connect4Error as e:
            debug.warning(f"Commentary failed: {e}", "controller")
            self.game_message = f"{self.game_message} ({e})" if self.game_message else str(e)

    def _outcome(self, feedback: FeedbackLabel = FeedbackLabel.NORMAL) -> Outcome:
        if self.status == GameStatus.TIE:
            return Outcome.TIE_GAME
        if self.status.winner == self.ai_player:
            return Outcome.WON_GAME
        if self.status.winner == self.human_player:
            return Outcome.LOST_GAME
        return Outcome(feedback.value)

    # ------------------------------------------------------------------
    # Human turn
    # ------------------------------------------------------------------

    def human_turn(self, column: int) -> BoardStateSnapshot:
        """
        Play the human's column.

        An invalid or full column is rejected without touching the board.
        After the move the pre-move board, seen from the human's side, is
        recorded with the chosen column.
        """
        self._clear_messages()
        if not self._check_turn(self.human_player):
            return self.snapshot()

        if not is_valid_column(column):
            self.game_message = f"column must be between 1 and {COLS}"
            return self.snapshot()
        if not self.board.is_column_open(column):
            self.game_message = f"column {column} is full"
            return self.snapshot()

        board_text = encoder.encode(self.board, self.human_player)
        markers = encoder.count_markers(board_text)

        move = self._apply(column, self.human_player)

        if self.status.winner == self.human_player:
            label = FeedbackLabel.WILL_WIN
        elif rules.would_win(self.board, column, self.ai_player, row=move.row):
            label = FeedbackLabel.BLOCKED_WIN
        else:
            label = FeedbackLabel.NORMAL

        try:
            self.recorder.capture(board_text, markers, column, label)
        except Connect4Error as e:
            debug.error(f"Could not record human move: {e}", "controller")
            self.debug_message = str(e)

        if self.status.is_game_over():
            self._comment(self._outcome(), column)
        return self.snapshot()

    # ------------------------------------------------------------------
    # AI turn
    # ------------------------------------------------------------------

    def _choose_candidate(self, matches: List[SimilarBoardMatch], board_text: str,
                          open_columns: Sequence[int]) -> SimilarBoardMatch:
        for match in matches:
            if any(move in open_columns for move in match.moves):
                return match

        debug.info("No usable match, offering every open column", "controller")
        return SimilarBoardMatch(
            id=NO_MATCH_ID,
            board=board_text,
            markers=encoder.count_markers(board_text),
            moves=tuple(open_columns),
            feedback=FeedbackLabel.NORMAL,
            score=0.0,
        )

    def ai_turn(self) -> BoardStateSnapshot:
        """
        Let the AI choose and play a column.

        The learn phase completes before the decide phase starts. Any
        Connect4Error from either phase aborts the move with a game message.
        """
        self._clear_messages()
        if not self._check_turn(self.ai_player):
            return self.snapshot()

        debug.start_timer("ai_turn")
        try:
            # Learn phase
            self.recorder.learn(self.board)

            # Decide phase
            board_text = encoder.encode(self.board, self.ai_player)
            open_columns = self.board.open_columns()
            matches = self.search.query(self.embedder.embed(board_text), self.search_k)
            candidate = self._choose_candidate(matches, board_text, open_columns)
            pick = self.arbiter.pick_move(board_text, candidate, open_columns)
        except Connect4Error as e:
            debug.error(f"AI move aborted: {e}", "controller")
            self.game_message = str(e)
            debug.end_timer("ai_turn", "controller")
            return self.snapshot()

        choice = pick.column if self.board.is_column_open(pick.column) else open_columns[0]
        self._apply(choice, self.ai_player)
        debug.end_timer("ai_turn", "controller")

        self.debug_message = (
            f"BOARD: {candidate.id} CHOICE: {choice} OPTIONS: {list(candidate.moves)} "
            f"ATTEMPTS: {pick.attempts} SCORE: {candidate.score * 100:.2f}% {pick.reason}"
        )
        debug.debug(self.debug_message, "controller")

        self._comment(self._outcome(candidate.feedback), choice)
        return self.snapshot()
