"""Comparison harness: replay each request against old and new, then diff.

The harness has two entry points that differ in how a status code mismatch
is handled:

- run_single(request_id): the single-request path. Runs in SINGLE mode by
  default, where a status mismatch is reported and the body diff skipped.
- run_batch(requests): the whole-collection path. Runs in BATCH mode by
  default, where a status mismatch is reported and the body diff still runs.

An explicit ``mode`` in the configuration overrides both defaults.

Items are processed strictly in sequence and each item is reported before
the next one starts. Failures never escape a batch: they are logged and
recorded on the item's result.

Example:
    >>> config = load_config()
    >>> with ComparisonHarness(config, reporter=ConsoleReporter()) as harness:
    ...     batch = harness.run()
    >>> print(batch.summary())
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from apiparity.collection import CollectionEntry, CollectionStore, PostmanCollectionStore
from apiparity.config import ParityConfig
from apiparity.diff import StructuralDiff
from apiparity.errors import ConfigurationError, ResolutionError, TransportError
from apiparity.http import HttpTransport
from apiparity.models import (
    BatchResult,
    CompareMode,
    ComparisonResult,
    RequestDefinition,
    ResponseRecord,
)
from apiparity.observability import log_context
from apiparity.reporters import ConsoleReporter

logger = logging.getLogger(__name__)

OLD = "old"
NEW = "new"


class ComparisonHarness:
    """Runs request definitions against two services and diffs the results.

    Attributes:
        config: Read-only process configuration.
        transport: HTTP transport shared by both sides.
        reporter: Output boundary, or None to stay silent.
    """

    def __init__(
        self,
        config: ParityConfig,
        transport: HttpTransport | None = None,
        store: CollectionStore | None = None,
        reporter: ConsoleReporter | None = None,
    ) -> None:
        self.config = config
        self.old_base, self.new_base = config.base_urls()
        self.transport = transport or HttpTransport(
            timeout=config.timeout,
            extended_logs=config.extended_logs,
        )
        self.reporter = reporter
        self._store = store
        self._differ = StructuralDiff(sort_arrays=config.sort_arrays)

    @property
    def store(self) -> CollectionStore:
        """The collection store, built from the configuration on first use."""
        if self._store is None:
            if not self.config.collection_id or not self.config.api_key:
                raise ConfigurationError(
                    missing=[
                        f"{env} is not set"
                        for env, value in (
                            ("COLLECTION_ID", self.config.collection_id),
                            ("API_KEY", self.config.api_key),
                        )
                        if not value
                    ]
                )
            self._store = PostmanCollectionStore(
                collection_id=self.config.collection_id,
                api_key=self.config.api_key,
                api_url=self.config.collection_api_url,
                timeout=self.config.timeout,
            )
        return self._store

    def _execute(self, request: RequestDefinition, url: str, side: str) -> ResponseRecord:
        return self.transport.execute(
            request.method,
            url,
            headers=request.headers,
            params=request.query_params,
            body=request.body,
            side=side,
            request_name=request.name,
        )

    def compare(
        self,
        request: RequestDefinition,
        mode: CompareMode = CompareMode.BATCH,
    ) -> ComparisonResult:
        """Replay ``request`` against both services and compare the responses.

        Args:
            request: The definition to replay.
            mode: SINGLE skips the body diff on a status mismatch, BATCH
                diffs the bodies regardless.

        Returns:
            ComparisonResult; transport failures are recorded on it.
        """
        result = ComparisonResult(
            request_name=request.name,
            method=request.method,
            old_url=request.url_for(self.old_base),
            new_url=request.url_for(self.new_base),
            mode=mode,
        )

        try:
            old_response = self._execute(request, result.old_url, OLD)
            new_response = self._execute(request, result.new_url, NEW)
        except TransportError as e:
            logger.error(
                "Error comparing %s: %s side failed: %s",
                request.name,
                e.side or "unknown",
                e.message,
            )
            result.error = e.message
            result.error_side = e.side
            result.error_details = e.to_dict()
            return result

        result.old_status = old_response.status
        result.new_status = new_response.status

        if result.status_mismatch:
            logger.warning(
                "Status codes differ for %s: Old - %s, New - %s",
                request.name,
                result.old_status,
                result.new_status,
            )
            if mode is CompareMode.SINGLE:
                return result

        result.changes = self._differ.compare(old_response.body, new_response.body)
        logger.debug("%s: %d difference(s)", request.name, len(result.changes))
        return result

    def run_single(self, request_id: str) -> BatchResult:
        """Resolve one request by id and compare it.

        A resolution failure aborts the run and is recorded on the batch.
        """
        try:
            request = self.store.get_request(request_id)
        except ResolutionError as e:
            return self._resolution_failed(e)

        mode = self.config.mode or CompareMode.SINGLE
        with log_context(request=request.name):
            if self.reporter:
                self.reporter.request_start(request.name)
            result = self._compare_safely(request, mode)
            if self.reporter:
                self.reporter.report(result)
        return BatchResult(results=[result])

    def run_batch(self, requests: Sequence[CollectionEntry] | None = None) -> BatchResult:
        """Compare every definition in order, continuing past failures.

        An item the store could not parse is recorded as a failed result and
        the batch moves on to the next one.

        Args:
            requests: Definitions to compare; the whole collection when None.
        """
        if requests is None:
            try:
                requests = self.store.list_requests()
            except ResolutionError as e:
                return self._resolution_failed(e)

        mode = self.config.mode or CompareMode.BATCH
        batch = BatchResult()
        total = len(requests)

        for index, entry in enumerate(requests, start=1):
            name = _entry_name(entry)
            with log_context(request=name, item=index):
                logger.info("[%d/%d] Comparing %s", index, total, name)
                if self.reporter:
                    self.reporter.request_start(name, index, total)

                if isinstance(entry, ResolutionError):
                    logger.error("Cannot compare %s: %s", name, entry.message)
                    result = _unresolved(entry, mode)
                else:
                    result = self._compare_safely(entry, mode)
                batch.results.append(result)

                if self.reporter:
                    self.reporter.report(result)
                    if index < total:
                        self.reporter.separator()

        logger.info(
            "Finished %d comparison(s): %d matched, %d with differences, %d failed",
            batch.total,
            batch.matched_count,
            batch.mismatched_count,
            batch.failed_count,
        )
        return batch

    def _resolution_failed(self, error: ResolutionError) -> BatchResult:
        logger.error("Failed to retrieve request details: %s", error.message)
        if self.reporter:
            self.reporter.resolution_failed(error)
        return BatchResult(error=error.message, error_details=error.to_dict())

    def _compare_safely(self, request: RequestDefinition, mode: CompareMode) -> ComparisonResult:
        try:
            return self.compare(request, mode)
        except Exception as e:
            logger.exception("Unexpected error comparing %s", request.name)
            return ComparisonResult(
                request_name=request.name,
                method=request.method,
                old_url=request.url_for(self.old_base),
                new_url=request.url_for(self.new_base),
                mode=mode,
                error=f"{type(e).__name__}: {e}",
            )

    def run(self) -> BatchResult:
        """Validate the configuration, then run one request or the whole collection.

        Raises:
            ConfigurationError: If any required input is missing.
        """
        self.config.validate_required()
        if self.config.request_id:
            return self.run_single(self.config.request_id)
        return self.run_batch()

    def close(self) -> None:
        self.transport.disconnect()

    def __enter__(self) -> ComparisonHarness:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


def _entry_name(entry: CollectionEntry) -> str:
    if isinstance(entry, ResolutionError):
        return entry.context.request_name or "unnamed request"
    return entry.name


def _unresolved(error: ResolutionError, mode: CompareMode) -> ComparisonResult:
    """Failed result for a collection item that never became a definition."""
    return ComparisonResult(
        request_name=_entry_name(error),
        method=error.context.method or "",
        old_url="",
        new_url="",
        mode=mode,
        error=error.message,
        error_details=error.to_dict(),
    )
