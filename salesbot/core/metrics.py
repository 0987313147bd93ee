"""Lightweight in-memory metrics collector."""

from __future__ import annotations

import threading
from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterable


@dataclass
class MetricSnapshot:
    total_turns: int
    fallback_turns: int
    token_usage: int
    intents: Dict[str, int]
    actions: Dict[str, int]


class MetricsCollector:
    """Thread-safe counter storage for per-turn service metrics."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._total_turns = 0
        self._fallback_turns = 0
        self._token_usage = 0
        self._intents: Counter[str] = Counter()
        self._actions: Counter[str] = Counter()

    def record_turn(
        self,
        intent: str,
        actions: Iterable[str] = (),
        *,
        fallback: bool = False,
        token_usage: int = 0,
    ) -> None:
        with self._lock:
            self._total_turns += 1
            self._intents[intent] += 1
            self._actions.update(actions)
            self._token_usage += max(0, int(token_usage))
            if fallback:
                self._fallback_turns += 1

    def snapshot(self) -> MetricSnapshot:
        with self._lock:
            return MetricSnapshot(
                total_turns=self._total_turns,
                fallback_turns=self._fallback_turns,
                token_usage=self._token_usage,
                intents=dict(self._intents),
                actions=dict(self._actions),
            )
