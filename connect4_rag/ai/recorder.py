"""
recorder.py - Harvest training records from simulated and observed moves

Before the AI decides a move, simulate() probes every open column for an
immediate win (the AI's own piece) or an immediate loss (the opponent's
piece). Every discovery becomes a training record, so the next similarity
search already knows the winning or blocking column for this board.

After anything is written the vector index is brought up to date and a short
settle delay passes before the caller searches again:

    write -> reindex -> settle -> search
"""

import time
from typing import Callable, List

from connect4_rag.ai.records import Discovery, FeedbackLabel, TrainingRecord
from connect4_rag.data.index import VectorIndex
from connect4_rag.data.store import FileRecordStore
from connect4_rag.debug import debug
from connect4_rag.game import encoder, rules
from connect4_rag.game.board import Board
from connect4_rag.utils import Player


class TrainingRecorder:
    """
    Writes training records and keeps the similarity index current.

    Args:
        store: Record store to write to
        index: Vector index to refresh after writes
        ai_player: The side the AI plays
        settle_delay: Seconds to wait after a reindex
        sleep: Sleep function (tests pass a no-op)
    """

    def __init__(self, store: FileRecordStore, index: VectorIndex,
                 ai_player: Player = Player.RED, settle_delay: float = 1.0,
                 sleep: Callable[[float], None] = time.sleep):
        self.store = store
        self.index = index
        self.ai_player = ai_player
        self.settle_delay = settle_delay
        self._sleep = sleep

    def simulate(self, board: Board) -> List[Discovery]:
        """
        Find columns where one piece ends the game.

        For each open column the AI's piece is probed first; if it does not
        win, the opponent's piece is probed. The board is left unchanged.

        Returns:
            Discoveries in ascending column order
        """
        human = self.ai_player.other()
        discoveries = []
        for column in board.open_columns():
            if rules.would_win(board, column, self.ai_player):
                discoveries.append(Discovery(column, self.ai_player, FeedbackLabel.WILL_WIN))
            elif rules.would_win(board, column, human):
                discoveries.append(Discovery(column, human, FeedbackLabel.BLOCKED_WIN))

        for discovery in discoveries:
            debug.info(f"Column {discovery.column}: {discovery.label.value} ({discovery.player})", "recorder")
        return discoveries

    def learn(self, board: Board) -> List[Discovery]:
        """
        Learn phase of the AI turn: record discoveries, then flush.

        Flushing also picks up records written since the last flush, such as
        the human's previous move.
        """
        debug.start_timer("learn")
        discoveries = self.simulate(board)
        if discoveries:
            text = encoder.encode(board, self.ai_player)
            markers = encoder.count_markers(text)
            for discovery in discoveries:
                self.store.upsert(text, markers, discovery.column, discovery.label)

        if self.store.pending_changes():
            self.flush()
        debug.end_timer("learn", "recorder")
        return discoveries

    def capture(self, board_text: str, markers: int, column: int,
                label: FeedbackLabel = FeedbackLabel.NORMAL) -> TrainingRecord:
        """Record an observed move on the given canonical board."""
        return self.store.upsert(board_text, markers, column, label)

    def flush(self) -> int:
        """Re-embed pending records and wait for the settle delay."""
        count = self.index.reindex()
        if self.settle_delay > 0:
            debug.debug(f"Settling for {self.settle_delay}s", "recorder")
            self._sleep(self.settle_delay)
        return count
