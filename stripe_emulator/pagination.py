"""
Cursor-based list pagination.

Mirrors the live API's list semantics: ``limit`` (default 10),
``starting_after`` and ``ending_before`` cursors naming object ids, and a
list envelope whose ``total_count`` covers the whole matching set.
"""

from collections.abc import Callable, Mapping, Sequence
from typing import Any

import structlog

from .config import EmulatorConfig
from .exceptions import InvalidRequestError, ResourceMissingError
from .models import ListOptions, ObjectKind, Record
from .utils import parse_integer

logger = structlog.get_logger(__name__)

CursorResolver = Callable[[str, str], Any]


def list_envelope(
    data: list[Any],
    url: str,
    has_more: bool = False,
    total_count: int | None = None,
) -> Record:
    """Build a list envelope around ``data``."""
    return {
        "object": ObjectKind.LIST.value,
        "data": data,
        "has_more": has_more,
        "total_count": len(data) if total_count is None else total_count,
        "url": url,
    }


def _parse_limit(raw: Any, config: EmulatorConfig) -> int:
    if raw is None:
        return config.default_list_limit

    limit = parse_integer(raw, "limit")
    if limit < 1:
        raise InvalidRequestError(
            "This value must be greater than or equal to 1.",
            code="parameter_invalid_integer",
            param="limit",
        )
    if limit > config.max_list_limit:
        raise InvalidRequestError(
            f"This value must be less than or equal to {config.max_list_limit}.",
            code="parameter_invalid_integer",
            param="limit",
        )
    return limit


def parse_list_options(
    params: Mapping[str, Any] | None, config: EmulatorConfig | None = None
) -> ListOptions:
    """Validate the pagination parameters of a list call."""
    config = config or EmulatorConfig()
    params = params or {}

    options = ListOptions(
        limit=_parse_limit(params.get("limit"), config),
        starting_after=params.get("starting_after") or None,
        ending_before=params.get("ending_before") or None,
    )
    if options.starting_after and options.ending_before:
        raise InvalidRequestError(
            "You may only specify one of these parameters: ending_before, starting_after.",
            param="ending_before",
        )
    return options


def _cursor_position(
    full_set: Sequence[Mapping[str, Any]],
    cursor: str,
    param_name: str,
    resolve_cursor: CursorResolver,
) -> int:
    # Raises the resolver's own not-found error for unknown ids.
    resolve_cursor(cursor, param_name)
    for position, entity in enumerate(full_set):
        if entity["id"] == cursor:
            return position
    raise ResourceMissingError(f"No such object: {cursor}", param=param_name)


def apply_list_options(
    full_set: Sequence[Mapping[str, Any]],
    params: Mapping[str, Any] | None,
    resolve_cursor: CursorResolver,
    url: str = "",
    config: EmulatorConfig | None = None,
) -> Record:
    """Return one page of ``full_set`` wrapped in a list envelope.

    Args:
        full_set: Candidate entities, already filtered, in list order
        params: Raw list parameters (limit, starting_after, ending_before)
        resolve_cursor: Called as ``resolve_cursor(id, param_name)``; must
            raise a not-found error naming ``param_name`` for unknown ids
        url: Value for the envelope's ``url`` field
        config: Supplies the default and maximum limit

    Returns:
        List envelope whose ``total_count`` is ``len(full_set)``
    """
    options = parse_list_options(params, config)
    total = len(full_set)

    if options.starting_after:
        position = _cursor_position(
            full_set, options.starting_after, "starting_after", resolve_cursor
        )
        start = position + 1
        end = min(start + options.limit, total)
        has_more = end < total
    elif options.ending_before:
        position = _cursor_position(
            full_set, options.ending_before, "ending_before", resolve_cursor
        )
        end = position
        start = max(0, end - options.limit)
        has_more = start > 0
    else:
        start = 0
        end = min(options.limit, total)
        has_more = end < total

    page = list(full_set[start:end])
    logger.debug(
        "list_page_built",
        url=url,
        limit=options.limit,
        returned=len(page),
        total_count=total,
        has_more=has_more,
    )
    return list_envelope(page, url, has_more=has_more, total_count=total)
