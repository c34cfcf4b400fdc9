from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional

from docsift.errors import UnknownStrategyError
from docsift.ingestion.analysis import Analyzer
from docsift.ingestion.strategies.base import IngestStrategy
from docsift.ingestion.strategies.chunked import ChunkedStrategy
from docsift.ingestion.strategies.code_analysis import CodeAnalysisStrategy
from docsift.ingestion.strategies.single_segment import builtin_single_segment_strategies

logger = logging.getLogger("Docsift.Ingest")


class StrategyRegistry:
    """Maps strategy tags to strategy implementations."""

    def __init__(self):
        self._strategies: Dict[str, IngestStrategy] = {}
        self._lock = threading.Lock()

    def register(self, strategy: IngestStrategy, *, replace: bool = False) -> None:
        if not strategy.name:
            raise ValueError("strategy.name must be a non-empty string")
        with self._lock:
            if strategy.name in self._strategies and not replace:
                raise ValueError(f"Strategy {strategy.name!r} is already registered")
            self._strategies[strategy.name] = strategy
        logger.debug("Registered ingest strategy %s", strategy.name)

    def get(self, name: str) -> IngestStrategy:
        with self._lock:
            strategy = self._strategies.get(name)
            if strategy is None:
                raise UnknownStrategyError(name, available=list(self._strategies))
            return strategy

    def names(self) -> List[str]:
        with self._lock:
            return sorted(self._strategies)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._strategies


def default_registry(analyzer: Optional[Analyzer] = None) -> StrategyRegistry:
    registry = StrategyRegistry()
    for strategy in builtin_single_segment_strategies():
        registry.register(strategy)
    registry.register(ChunkedStrategy())
    registry.register(CodeAnalysisStrategy(analyzer))
    return registry
