"""
index.py - In-memory vector index over the training records

The index keeps one embedding per stored record and answers similarity
queries with cosine similarity mapped to [0, 1] as (1 + cos) / 2, so that
identical boards score 1.0.

Two search modes:
    exact       - brute-force scan over every vector
    approximate - vectors are bucketed by a random-hyperplane signature; a
                  query only scores its own bucket, falling back to the full
                  scan when the bucket holds fewer than k vectors
"""

from typing import Dict, List, Optional

import numpy as np

from connect4_rag.ai.records import SimilarBoardMatch, TrainingRecord
from connect4_rag.data.store import FileRecordStore
from connect4_rag.debug import debug
from connect4_rag.errors import RecordStoreError

HYPERPLANES = 8


class VectorIndex:
    """
    Similarity search over the records of a FileRecordStore.

    Args:
        embedder: Anything with embed(text) -> numpy vector
        store: The record store the index mirrors
        exact: Brute-force scan (True) or hyperplane buckets (False)
        seed: Seed for the hyperplanes of the approximate mode
    """

    def __init__(self, embedder, store: FileRecordStore, exact: bool = True, seed: int = 0):
        self.embedder = embedder
        self.store = store
        self.exact = exact
        self.seed = seed

        self._vectors: Dict[str, np.ndarray] = {}
        self._records: Dict[str, TrainingRecord] = {}
        self._buckets: Dict[int, List[str]] = {}
        self._planes: Optional[np.ndarray] = None

    def __len__(self) -> int:
        return len(self._vectors)

    # ------------------------------------------------------------------
    # Indexing
    # ------------------------------------------------------------------

    def _signature(self, vector: np.ndarray) -> int:
        if self._planes is None:
            rng = np.random.default_rng(self.seed)
            self._planes = rng.standard_normal((HYPERPLANES, vector.shape[0])).astype(np.float32)
        bits = (self._planes @ vector) >= 0
        return int(sum(1 << i for i, bit in enumerate(bits) if bit))

    def _add(self, record: TrainingRecord) -> None:
        vector = np.asarray(self.embedder.embed(record.board), dtype=np.float32)
        norm = float(np.linalg.norm(vector))
        if norm > 0:
            vector = vector / norm

        if record.id in self._vectors:
            self._remove_from_bucket(record.id)
        self._vectors[record.id] = vector
        self._records[record.id] = record
        self._buckets.setdefault(self._signature(vector), []).append(record.id)

    def _remove_from_bucket(self, record_id: str) -> None:
        signature = self._signature(self._vectors[record_id])
        bucket = self._buckets.get(signature, [])
        if record_id in bucket:
            bucket.remove(record_id)

    def reindex(self, full: bool = False) -> int:
        """
        Embed records that changed since the last reindex.

        Records named in the store's change log are re-embedded, and so is any
        record the index has not seen yet (e.g. written by an earlier run).
        The change log is cleared afterwards.

        Args:
            full: Re-embed every record regardless of the change log

        Returns:
            Number of records embedded
        """
        debug.start_timer("reindex")
        pending = set(self.store.pending_changes())
        embedded = 0
        for record_id in self.store.record_ids():
            if full or record_id in pending or record_id not in self._vectors:
                try:
                    record = self.store.read(record_id)
                except RecordStoreError as e:
                    debug.error(f"Not indexing record: {e}", "index")
                    continue
                self._add(record)
                embedded += 1
        self.store.clear_changelog()
        debug.end_timer("reindex", "index")
        debug.info(f"Reindexed {embedded} record(s), {len(self)} in index", "index")
        return embedded

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def query(self, vector: np.ndarray, k: int = 1) -> List[SimilarBoardMatch]:
        """
        Find the k records most similar to the query vector.

        Returns:
            Matches ordered by descending score (ties keep record id order)
        """
        if k < 1 or not self._vectors:
            return []

        debug.start_timer("search")
        query = np.asarray(vector, dtype=np.float32)
        norm = float(np.linalg.norm(query))
        if norm > 0:
            query = query / norm

        candidates = sorted(self._vectors)
        if not self.exact:
            bucket = self._buckets.get(self._signature(query), [])
            if len(bucket) >= k:
                candidates = sorted(bucket)
            else:
                debug.debug(f"Bucket holds {len(bucket)} vector(s), scanning all", "index")

        matrix = np.stack([self._vectors[record_id] for record_id in candidates])
        cosines = matrix @ query
        scores = np.clip((1.0 + cosines) / 2.0, 0.0, 1.0)

        order = np.argsort(-scores, kind="stable")[:k]
        matches = [SimilarBoardMatch.from_record(self._records[candidates[i]], float(scores[i])) for i in order]
        debug.end_timer("search", "index")

        for match in matches:
            debug.debug(f"Match {match.id}: score={match.score:.4f} moves={list(match.moves)}", "index")
        return matches
