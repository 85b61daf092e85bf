"""Tests for the training recorder."""

import numpy as np
import pytest

from connect4_rag.ai.records import Discovery, FeedbackLabel
from connect4_rag.ai.recorder import TrainingRecorder
from connect4_rag.game import encoder
from connect4_rag.game.board import Board
from connect4_rag.utils import Player

R, B = Player.RED, Player.BLUE

# Red holds columns 1-3 of the top row; column 4 has exactly one slot left.
TOP_ROW_THREAT = [
    "RRR....",
    "BBBR...",
    "RRBB...",
    "BBRR...",
    "RRBB...",
    "BBRR...",
]

# Blue holds columns 1-3 of the bottom row.
BOTTOM_ROW_THREAT = [
    ".......",
    ".......",
    ".......",
    ".......",
    "RR.....",
    "BBB....",
]


def snapshot(board):
    return board.grid.copy(), board.last_move, list(board.moves_made)


class TestSimulate:
    def test_empty_board_has_no_discoveries(self, recorder):
        assert recorder.simulate(Board()) == []

    def test_top_row_will_win(self, recorder):
        board = Board.from_rows(TOP_ROW_THREAT)
        assert recorder.simulate(board) == [Discovery(4, R, FeedbackLabel.WILL_WIN)]

    def test_blocked_win_for_opponent_threat(self, recorder):
        board = Board.from_rows(BOTTOM_ROW_THREAT)
        assert recorder.simulate(board) == [Discovery(4, B, FeedbackLabel.BLOCKED_WIN)]

    def test_own_win_takes_precedence_over_block(self, recorder):
        board = Board.from_rows([
            ".......",
            ".......",
            ".......",
            "R......",
            "R......",
            "RBBB...",
        ])
        assert recorder.simulate(board) == [
            Discovery(1, R, FeedbackLabel.WILL_WIN),
            Discovery(5, B, FeedbackLabel.BLOCKED_WIN),
        ]

    def test_ai_side_is_configurable(self, store, index):
        recorder = TrainingRecorder(store, index, ai_player=B, settle_delay=0)
        board = Board.from_rows(BOTTOM_ROW_THREAT)
        assert recorder.simulate(board) == [Discovery(4, B, FeedbackLabel.WILL_WIN)]

    @pytest.mark.parametrize("rows", [TOP_ROW_THREAT, BOTTOM_ROW_THREAT])
    def test_board_is_identical_after_simulate(self, recorder, rows):
        board = Board.from_rows(rows)
        board.place(7, R)
        grid, last_move, moves = snapshot(board)
        text = encoder.encode(board)

        recorder.simulate(board)

        assert encoder.encode(board) == text
        assert np.array_equal(board.grid, grid)
        assert board.last_move == last_move
        assert board.moves_made == moves

    def test_full_columns_are_skipped(self, recorder):
        board = Board.from_rows([
            "B......",
            "R......",
            "B......",
            "R......",
            "B......",
            "R......",
        ])
        assert recorder.simulate(board) == []


class TestLearn:
    def test_learn_writes_reindexes_and_settles(self, recorder, store, index, sleeps):
        board = Board.from_rows(TOP_ROW_THREAT)
        discoveries = recorder.learn(board)

        assert discoveries == [Discovery(4, R, FeedbackLabel.WILL_WIN)]
        records = store.all_records()
        assert len(records) == 1
        record = records[0]
        assert record.board == encoder.encode(board, R)
        assert record.moves == (4,)
        assert record.feedback == FeedbackLabel.WILL_WIN
        assert record.markers == board.count(R)

        assert store.pending_changes() == []
        assert len(index) == 1
        assert sleeps == [1.0]

    def test_learn_merges_into_existing_record(self, recorder, store):
        board = Board.from_rows(TOP_ROW_THREAT)
        text = encoder.encode(board, R)
        store.upsert(text, board.count(R), 6, FeedbackLabel.NORMAL)

        recorder.learn(board)

        record = store.find_by_board(text)
        assert record.moves == (4, 6)
        assert record.feedback == FeedbackLabel.WILL_WIN
        assert len(store.all_records()) == 1

    def test_learn_without_changes_does_not_flush(self, recorder, sleeps, index):
        recorder.learn(Board())
        assert sleeps == []
        assert len(index) == 0

    def test_learn_flushes_earlier_captures(self, recorder, store, index, sleeps):
        recorder.capture(encoder.encode(Board(), B), 0, 4)
        assert store.pending_changes()

        assert recorder.learn(Board()) == []
        assert store.pending_changes() == []
        assert len(index) == 1
        assert sleeps == [1.0]

    def test_write_happens_before_reindex_before_settle(self, store, index):
        events = []

        class TracingIndex:
            def reindex(self):
                events.append(("reindex", len(store.all_records())))
                return index.reindex()

        recorder = TrainingRecorder(store, TracingIndex(), settle_delay=0.5,
                                    sleep=lambda s: events.append(("sleep", s)))
        recorder.learn(Board.from_rows(TOP_ROW_THREAT))

        assert events == [("reindex", 1), ("sleep", 0.5)]
