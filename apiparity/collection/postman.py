"""Request definitions from Postman collections.

Two stores share the CollectionStore protocol:

- PostmanCollectionStore fetches a collection through the Postman API.
- StaticCollectionStore serves definitions already in memory, for example
  from an exported collection file (see load_collection_file).

Folders are flattened depth-first, so the order of definitions matches the
order shown in the Postman sidebar.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any, Protocol

import httpx

from apiparity.errors import (
    ErrorCode,
    ErrorContext,
    RequestNotFoundError,
    ResolutionError,
)
from apiparity.models import RequestDefinition

logger = logging.getLogger(__name__)


# A parsed definition, or the error raised while parsing that item.
CollectionEntry = RequestDefinition | ResolutionError


class CollectionStore(Protocol):
    """Source of request definitions."""

    def get_request(self, request_id: str) -> RequestDefinition: ...

    def list_requests(self) -> list[CollectionEntry]: ...


def key_value_list_to_map(entries: Any) -> dict[str, str]:
    """Turn Postman's ``[{"key": ..., "value": ...}]`` lists into a dict.

    Anything that is not a list becomes an empty dict. Disabled entries are
    skipped; later duplicates win.
    """
    if not isinstance(entries, list):
        return {}
    result: dict[str, str] = {}
    for entry in entries:
        if not isinstance(entry, dict) or "key" not in entry:
            continue
        if entry.get("disabled"):
            continue
        value = entry.get("value")
        result[str(entry["key"])] = "" if value is None else str(value)
    return result


def _join_path(url: Any) -> str:
    if isinstance(url, str):
        return ""
    segments = url.get("path") if isinstance(url, dict) else None
    if isinstance(segments, str):
        segments = [segments]
    if not segments:
        return ""
    return "/" + "/".join(str(s) for s in segments)


def _iter_items(items: Iterable[Any]) -> Iterator[dict[str, Any]]:
    for item in items:
        if not isinstance(item, dict):
            continue
        if isinstance(item.get("item"), list):
            yield from _iter_items(item["item"])
        elif isinstance(item.get("request"), dict):
            yield item


def parse_item(item: dict[str, Any]) -> RequestDefinition:
    """Build a RequestDefinition from one collection item.

    Raises:
        ResolutionError: If the item cannot be turned into a definition. The
            item's id is kept in ``context.extra["request_id"]``.
    """
    request = item.get("request") or {}
    url = request.get("url") or {}
    body = request.get("body")
    name = item.get("name") or item.get("id") or "unnamed request"
    method = request.get("method", "GET")

    try:
        return RequestDefinition(
            name=name,
            method=method,
            headers=key_value_list_to_map(request.get("header")),
            query_params=key_value_list_to_map(url.get("query") if isinstance(url, dict) else None),
            path=_join_path(url),
            body=body.get("raw") if isinstance(body, dict) else None,
            request_id=item.get("id"),
        )
    except ValueError as e:
        raise ResolutionError(
            str(e),
            error_code=ErrorCode.COLLECTION_MALFORMED,
            context=ErrorContext(request_name=name, method=str(method)),
            cause=e,
            request_id=item.get("id"),
        ) from e


def parse_entry(item: dict[str, Any]) -> CollectionEntry:
    """Like parse_item, but returns the ResolutionError instead of raising it."""
    try:
        return parse_item(item)
    except ResolutionError as e:
        logger.warning("Cannot parse %s: %s", e.context.request_name, e.message)
        return e


def entry_id(entry: CollectionEntry) -> str | None:
    """Collection id of a parsed definition or of an unparseable item."""
    if isinstance(entry, ResolutionError):
        return entry.context.extra.get("request_id")
    return entry.request_id


def collection_items(payload: Any) -> list[dict[str, Any]]:
    """Flattened request items of a collection document.

    Accepts both ``{"collection": {"item": [...]}}`` and ``{"item": [...]}``.

    Raises:
        ResolutionError: If the document has no item list.
    """
    collection = payload.get("collection", payload) if isinstance(payload, dict) else None
    if not isinstance(collection, dict) or not isinstance(collection.get("item"), list):
        raise ResolutionError(
            "Collection payload has no item list",
            error_code=ErrorCode.COLLECTION_MALFORMED,
        )
    return list(_iter_items(collection["item"]))


def parse_collection(payload: Any) -> list[CollectionEntry]:
    """Parse a collection document (API response or exported file).

    Items that cannot be parsed do not stop the others; each one appears in
    the result as its ResolutionError.
    """
    return [parse_entry(item) for item in collection_items(payload)]


class StaticCollectionStore:
    """In-memory collection store."""

    def __init__(self, requests: Iterable[CollectionEntry]) -> None:
        self._requests = list(requests)

    def get_request(self, request_id: str) -> RequestDefinition:
        for entry in self._requests:
            if entry_id(entry) != request_id:
                continue
            if isinstance(entry, ResolutionError):
                raise entry
            return entry
        raise RequestNotFoundError(f"Request with ID {request_id} not found in the collection.")

    def list_requests(self) -> list[CollectionEntry]:
        return list(self._requests)


def load_collection_file(path: str | Path) -> StaticCollectionStore:
    """Load an exported Postman collection (v2.x JSON) from disk."""
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            payload = json.load(f)
    except (OSError, ValueError) as e:
        raise ResolutionError(
            f"Cannot read collection file {path}: {e}",
            error_code=ErrorCode.COLLECTION_UNAVAILABLE,
            cause=e,
        ) from e
    return StaticCollectionStore(parse_collection(payload))


class PostmanCollectionStore:
    """Collection store backed by the Postman API.

    The collection is fetched once and cached for the lifetime of the store.
    Items are parsed on demand: get_request only parses the matching item.

    Attributes:
        collection_id: Postman collection uid.
        api_url: Base URL of the Postman API.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        collection_id: str,
        api_key: str,
        api_url: str = "https://api.postman.com",
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.collection_id = collection_id
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._api_key = api_key
        self._transport = transport
        self._items: list[dict[str, Any]] | None = None

    def _fetch(self) -> list[dict[str, Any]]:
        url = f"{self.api_url}/collections/{self.collection_id}"
        logger.debug("Fetching collection %s", self.collection_id)
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.get(url, params={"access_key": self._api_key})
        except httpx.HTTPError as e:
            raise ResolutionError(
                f"Error fetching request details: {e}",
                context=ErrorContext(url=url, method="GET"),
                cause=e,
            ) from e

        if response.status_code == 404:
            raise ResolutionError(
                f"Collection {self.collection_id} not found",
                error_code=ErrorCode.REQUEST_NOT_FOUND,
                context=ErrorContext(url=url, method="GET"),
            )
        if response.is_error:
            raise ResolutionError(
                f"Error fetching request details: HTTP {response.status_code}",
                context=ErrorContext(url=url, method="GET"),
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise ResolutionError(
                "Collection response is not valid JSON",
                error_code=ErrorCode.COLLECTION_MALFORMED,
                context=ErrorContext(url=url, method="GET"),
                cause=e,
            ) from e

        return collection_items(payload)

    def _load(self) -> list[dict[str, Any]]:
        if self._items is None:
            self._items = self._fetch()
        return self._items

    def list_requests(self) -> list[CollectionEntry]:
        return [parse_entry(item) for item in self._load()]

    def get_request(self, request_id: str) -> RequestDefinition:
        for item in self._load():
            if item.get("id") == request_id:
                return parse_item(item)
        raise RequestNotFoundError(f"Request with ID {request_id} not found in the collection.")
