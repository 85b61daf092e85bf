"""Tests for the file-backed record store and the vector index."""

import os

import numpy as np
import pytest

from connect4_rag.ai.records import FeedbackLabel
from connect4_rag.data.index import VectorIndex
from connect4_rag.errors import RecordStoreError
from connect4_rag.game import encoder
from connect4_rag.game.board import Board
from connect4_rag.utils import Player


def write_junk(store, name="junk"):
    with open(os.path.join(store.records_dir, name + ".txt"), "w", encoding="utf-8") as f:
        f.write("not a record\n")


def board_text(*moves):
    board = Board()
    for column, player in moves:
        board.place(column, player)
    return encoder.encode(board)


class TestFileRecordStore:
    def test_upsert_creates_record_file(self, store):
        text = board_text((4, Player.RED))
        record = store.upsert(text, 1, 3, FeedbackLabel.NORMAL)

        path = os.path.join(store.records_dir, record.id + ".txt")
        assert os.path.exists(path)
        assert store.read(record.id) == record
        assert store.record_ids() == [record.id]
        assert not os.path.exists(path + ".tmp")

    def test_upsert_merges_same_board(self, store):
        text = board_text((4, Player.RED))
        first = store.upsert(text, 1, 3)
        second = store.upsert(text, 1, 5, FeedbackLabel.WILL_WIN)
        third = store.upsert(text, 1, 3)

        assert first.id == second.id == third.id
        assert third.moves == (5, 3)
        assert third.feedback == FeedbackLabel.WILL_WIN
        assert len(store.all_records()) == 1

    def test_different_boards_get_different_records(self, store):
        a = store.upsert(board_text((4, Player.RED)), 1, 3)
        b = store.upsert(board_text((4, Player.BLUE)), 0, 3)

        assert a.id != b.id
        assert store.find_by_board(board_text((4, Player.BLUE))).id == b.id
        assert store.find_by_board(board_text((1, Player.RED))) is None

    def test_changelog_tracks_writes_until_cleared(self, store):
        a = store.upsert(board_text((4, Player.RED)), 1, 3)
        store.upsert(board_text((4, Player.RED)), 1, 2)
        b = store.upsert(board_text((2, Player.RED)), 1, 3)

        assert store.pending_changes() == [a.id, b.id]
        store.clear_changelog()
        assert store.pending_changes() == []
        # Records survive a changelog clear
        assert len(store.all_records()) == 2

    def test_malformed_record_raises_store_error(self, store):
        with open(os.path.join(store.records_dir, "broken.txt"), "w", encoding="utf-8") as f:
            f.write("not a board\n")

        with pytest.raises(RecordStoreError):
            store.read("broken")

    def test_unreadable_file_does_not_block_writes(self, store):
        write_junk(store)
        text = board_text((4, Player.RED))

        first = store.upsert(text, 1, 3)
        second = store.upsert(text, 1, 5)

        assert second.id == first.id
        assert second.moves == (3, 5)
        assert [record.id for record in store.all_records()] == [first.id]
        assert store.summary()["Normal-GamePlay"] == 1

    def test_missing_record_raises_store_error(self, store):
        with pytest.raises(RecordStoreError):
            store.read("missing")

    def test_summary_counts_labels(self, store):
        store.upsert(board_text((4, Player.RED)), 1, 3, FeedbackLabel.WILL_WIN)
        store.upsert(board_text((2, Player.RED)), 1, 3)

        summary = store.summary()
        assert summary["Will-Win"] == 1
        assert summary["Normal-GamePlay"] == 1
        assert summary["Blocked-Win"] == 0


class TestVectorIndex:
    def test_empty_index_returns_nothing(self, index, embedder):
        assert index.query(embedder.embed(board_text()), 3) == []

    def test_reindex_embeds_pending_and_clears_changelog(self, store, index):
        store.upsert(board_text((4, Player.RED)), 1, 3)
        store.upsert(board_text((2, Player.RED)), 1, 3)

        assert index.reindex() == 2
        assert len(index) == 2
        assert store.pending_changes() == []
        assert index.reindex() == 0

    def test_reindex_picks_up_records_from_earlier_runs(self, store, embedder):
        store.upsert(board_text((4, Player.RED)), 1, 3)
        store.clear_changelog()

        fresh = VectorIndex(embedder, store)
        assert fresh.reindex() == 1

    def test_reindex_skips_unreadable_file(self, store, index, embedder):
        write_junk(store)
        record = store.upsert(board_text((4, Player.RED)), 1, 3)

        assert index.reindex() == 1
        assert len(index) == 1
        assert store.pending_changes() == []
        assert index.query(embedder.embed(board_text((4, Player.RED))), 1)[0].id == record.id

    def test_full_reindex_embeds_everything(self, store, index):
        store.upsert(board_text((4, Player.RED)), 1, 3)
        index.reindex()
        assert index.reindex(full=True) == 1

    def test_identical_board_ranks_first(self, store, index, embedder):
        target = board_text((4, Player.RED), (4, Player.BLUE))
        store.upsert(board_text((1, Player.RED)), 1, 2)
        wanted = store.upsert(target, 1, 5)
        store.upsert(board_text((7, Player.BLUE)), 0, 6)
        index.reindex()

        matches = index.query(embedder.embed(target), 3)
        assert [m.id for m in matches][0] == wanted.id
        assert matches[0].score == pytest.approx(1.0, abs=1e-5)
        assert matches[0].moves == (5,)
        scores = [m.score for m in matches]
        assert scores == sorted(scores, reverse=True)
        assert all(0.0 <= s <= 1.0 for s in scores)

    def test_k_limits_results(self, store, index, embedder):
        for column in range(1, 6):
            store.upsert(board_text((column, Player.RED)), 1, column)
        index.reindex()

        assert len(index.query(embedder.embed(board_text()), 2)) == 2
        assert index.query(embedder.embed(board_text()), 0) == []

    def test_reindex_sees_merged_moves(self, store, index, embedder):
        text = board_text((4, Player.RED))
        store.upsert(text, 1, 3)
        index.reindex()
        store.upsert(text, 1, 6)
        index.reindex()

        assert index.query(embedder.embed(text), 1)[0].moves == (6, 3)

    def test_approximate_search_finds_identical_board(self, store, embedder):
        index = VectorIndex(embedder, store, exact=False, seed=3)
        target = board_text((3, Player.RED))
        wanted = store.upsert(target, 1, 4)
        for column in (1, 5, 7):
            store.upsert(board_text((column, Player.BLUE)), 0, column)
        index.reindex()

        # An identical vector always lands in its own bucket
        matches = index.query(embedder.embed(target), 1)
        assert matches[0].id == wanted.id

    def test_zero_vector_query_does_not_fail(self, store, index):
        store.upsert(board_text((4, Player.RED)), 1, 3)
        index.reindex()

        matches = index.query(np.zeros(64, dtype=np.float32), 1)
        assert matches[0].score == pytest.approx(0.5)
