from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol

from ferrycast.reconcile.model_types import format_chain_key, format_pair_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedModel:
    bucket_type: str
    key: str
    model_type: str
    parameters: dict
    bucket_stats: Optional[dict] = None


class ModelSource(Protocol):
    def get_by_chain(self, chain_key: str, model_type: str) -> Any: ...

    def get_by_pair(self, pair_key: str, model_type: str) -> Any: ...


@dataclass(frozen=True)
class LookupRequest:
    prev_terminal: Optional[str]
    departing_terminal: str
    arriving_terminal: Optional[str]
    model_type: str


Strategy = Callable[[ModelSource, LookupRequest, int], Optional[ResolvedModel]]


def _to_resolved(row: Any, bucket_type: str, key: str) -> ResolvedModel:
    return ResolvedModel(
        bucket_type=bucket_type,
        key=key,
        model_type=row.model_type,
        parameters=dict(row.parameters or {}),
        bucket_stats=dict(row.bucket_stats) if row.bucket_stats else None,
    )


def _chain_strategy(source: ModelSource, req: LookupRequest, min_chain_records: int) -> Optional[ResolvedModel]:
    if not req.prev_terminal or not req.arriving_terminal:
        return None

    key = format_chain_key(req.prev_terminal, req.departing_terminal, req.arriving_terminal)
    row = source.get_by_chain(key, req.model_type)
    if row is None:
        return None

    stats = row.bucket_stats or {}
    total = stats.get("totalRecords")
    if total is not None and total < min_chain_records:
        logger.debug("Chain model %s %s too thin (%s < %d)", key, req.model_type, total, min_chain_records)
        return None
    return _to_resolved(row, "chain", key)


def _pair_strategy(source: ModelSource, req: LookupRequest, min_chain_records: int) -> Optional[ResolvedModel]:
    if not req.arriving_terminal:
        return None

    key = format_pair_key(req.departing_terminal, req.arriving_terminal)
    row = source.get_by_pair(key, req.model_type)
    if row is None:
        return None
    return _to_resolved(row, "pair", key)


# most specific first
LOOKUP_STRATEGIES: tuple[Strategy, ...] = (_chain_strategy, _pair_strategy)


def resolve_model(
    source: ModelSource,
    req: LookupRequest,
    *,
    min_chain_records: int,
    strategies: tuple[Strategy, ...] = LOOKUP_STRATEGIES,
) -> Optional[ResolvedModel]:
    for strategy in strategies:
        model = strategy(source, req, min_chain_records)
        if model is not None:
            return model

    logger.debug(
        "No model for %s->%s %s",
        req.departing_terminal,
        req.arriving_terminal,
        req.model_type,
    )
    return None


class CachedModelSource:
    """Memoises store lookups for the duration of one pass."""

    def __init__(self, source: ModelSource):
        self._source = source
        self._chain: dict[tuple[str, str], Any] = {}
        self._pair: dict[tuple[str, str], Any] = {}

    def get_by_chain(self, chain_key: str, model_type: str) -> Any:
        k = (chain_key, model_type)
        if k not in self._chain:
            self._chain[k] = self._source.get_by_chain(chain_key, model_type)
        return self._chain[k]

    def get_by_pair(self, pair_key: str, model_type: str) -> Any:
        k = (pair_key, model_type)
        if k not in self._pair:
            self._pair[k] = self._source.get_by_pair(pair_key, model_type)
        return self._pair[k]
