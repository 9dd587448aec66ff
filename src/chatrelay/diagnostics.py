"""Append-only record of request outcomes with running totals."""

import threading
from typing import List, Optional

from .models import (
    DiagnosticsAggregate,
    DiagnosticsEntry,
    FailureEntry,
    SuccessEntry,
    TokenUsage,
)


class DiagnosticsRecorder:
    """Collects success and failure entries.

    Each call appends its entry and updates the aggregate under one lock, so
    a reader never sees counters that disagree with the log. Nothing is ever
    evicted.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._log: List[DiagnosticsEntry] = []
        self._aggregate = DiagnosticsAggregate()

    def record_success(
        self,
        provider_id: str,
        model: str,
        latency_ms: int,
        token_usage: Optional[TokenUsage] = None,
    ) -> None:
        entry = SuccessEntry(provider_id=provider_id, model=model, latency_ms=latency_ms)
        usage = token_usage or TokenUsage()
        with self._lock:
            self._log.append(entry)
            current = self._aggregate
            self._aggregate = current.model_copy(
                update={
                    "total_requests": current.total_requests + 1,
                    "successful_requests": current.successful_requests + 1,
                    "total_prompt_tokens": current.total_prompt_tokens
                    + usage.prompt_tokens,
                    "total_completion_tokens": current.total_completion_tokens
                    + usage.completion_tokens,
                    "total_tokens": current.total_tokens + usage.total_tokens,
                }
            )

    def record_error(self, provider_id: str, model: str, error_message: str) -> None:
        entry = FailureEntry(
            provider_id=provider_id, model=model, error_message=error_message
        )
        with self._lock:
            self._log.append(entry)
            current = self._aggregate
            self._aggregate = current.model_copy(
                update={
                    "total_requests": current.total_requests + 1,
                    "failed_requests": current.failed_requests + 1,
                }
            )

    def get_aggregate(self) -> DiagnosticsAggregate:
        with self._lock:
            return self._aggregate

    def get_log(self) -> List[DiagnosticsEntry]:
        """Returns a copy of every entry, oldest first."""
        with self._lock:
            return list(self._log)
