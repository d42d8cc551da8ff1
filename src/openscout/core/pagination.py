"""Pagination environment — Current page and path resolution for page links.

The builder asks this module which page the caller is on and which path
page links should point at. By default both come from the active request
context, set with :func:`request_context`::

    with request_context("/products", {"page": "3"}):
        page = Product.search("lamp").paginate()   # page 3, links to /products?...

Applications with their own request objects can install custom resolvers
with :func:`set_current_page_resolver` and :func:`set_current_path_resolver`.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, NamedTuple


class RequestContext(NamedTuple):
    """Path and query parameters of the request being served."""

    path: str
    params: Mapping[str, Any]


_request: ContextVar[RequestContext | None] = ContextVar("openscout_request", default=None)


@contextmanager
def request_context(path: str = "/", params: Mapping[str, Any] | None = None) -> Iterator[RequestContext]:
    """Make ``path`` and ``params`` the current request for page resolution."""
    context = RequestContext(path=path, params=dict(params or {}))
    token = _request.set(context)
    try:
        yield context
    finally:
        _request.reset(token)


def _page_from_request(page_name: str) -> int:
    context = _request.get()
    if context is None:
        return 1
    try:
        page = int(context.params.get(page_name, 1))
    except (TypeError, ValueError):
        return 1
    return page if page >= 1 else 1


def _path_from_request() -> str:
    context = _request.get()
    return context.path if context is not None else "/"


_current_page_resolver: Callable[[str], int] = _page_from_request
_current_path_resolver: Callable[[], str] = _path_from_request


def set_current_page_resolver(resolver: Callable[[str], int] | None) -> None:
    """Install a custom page resolver (``None`` restores the request-context default)."""
    global _current_page_resolver
    _current_page_resolver = resolver or _page_from_request


def set_current_path_resolver(resolver: Callable[[], str] | None) -> None:
    """Install a custom path resolver (``None`` restores the request-context default)."""
    global _current_path_resolver
    _current_path_resolver = resolver or _path_from_request


def resolve_current_page(page_name: str = "page") -> int:
    """Page number the caller is on; 1 when unknown or invalid."""
    return _current_page_resolver(page_name)


def resolve_current_path() -> str:
    """Base path for generated page links."""
    return _current_path_resolver()
