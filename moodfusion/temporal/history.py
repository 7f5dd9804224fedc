"""
Emotion History — Bounded Log & Session Statistics
===================================================
Keeps the most recent fused states (1000 by default) in memory for the
dashboard and persistence collaborators, and summarises them:

  - dominant emotion (most frequent),
  - number of transitions (label changes between consecutive entries),
  - average stability (mean confidence).

Durable storage is the host's job; ``to_records()`` hands over plain
dicts ready for JSON or a database row.
"""

from __future__ import annotations

from collections import Counter, deque
from typing import Optional

from moodfusion.core.emotions import Emotion
from moodfusion.core.emotional_state import HistoryEntry


class EmotionHistory:
    """Ring buffer of ``HistoryEntry`` with summary statistics."""

    def __init__(self, max_entries: int = 1000):
        self.max_entries = max_entries
        self._entries: deque[HistoryEntry] = deque(maxlen=max_entries)

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, entry: HistoryEntry) -> None:
        self._entries.append(entry)

    def clear(self) -> None:
        self._entries.clear()

    def recent(self, n: Optional[int] = None) -> list[HistoryEntry]:
        entries = list(self._entries)
        return entries if n is None else entries[-n:]

    def statistics(self) -> dict:
        """Dominant emotion, transition count and average stability.

        An empty history reports neutral / 0 / 100.
        """
        if not self._entries:
            return {"dominant_emotion": Emotion.NEUTRAL, "transitions": 0, "average_stability": 100}

        counts = Counter(e.emotion for e in self._entries)
        dominant = max(counts, key=counts.get)

        entries = list(self._entries)
        transitions = sum(1 for prev, cur in zip(entries, entries[1:]) if prev.emotion != cur.emotion)
        average = round(sum(e.confidence for e in entries) / len(entries))

        return {"dominant_emotion": dominant, "transitions": transitions, "average_stability": average}

    def average_confidence_by_emotion(self) -> dict[Emotion, float]:
        sums: dict[Emotion, float] = {}
        counts: Counter = Counter()
        for entry in self._entries:
            sums[entry.emotion] = sums.get(entry.emotion, 0.0) + entry.confidence
            counts[entry.emotion] += 1
        return {emotion: sums[emotion] / counts[emotion] for emotion in sums}

    def to_records(self) -> list[dict]:
        return [entry.to_dict() for entry in self._entries]
