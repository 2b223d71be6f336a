"""Arity inspection for the callables accepted as loaders, scopes, handlers and defaults."""

from __future__ import annotations

import inspect
from collections.abc import Callable
from typing import Any

_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


def arity(fn: Callable[..., Any]) -> int:
    """Number of required positional parameters, or -1 when *args is accepted."""
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return -1
    required = 0
    for param in signature.parameters.values():
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return -1
        if param.kind in _POSITIONAL and param.default is param.empty:
            required += 1
    return required


def call_with_arity(fn: Callable[..., Any], *args: Any) -> Any:
    """Call fn with as many of args as it requires (all of them for *args callables)."""
    n = arity(fn)
    return fn(*args) if n < 0 else fn(*args[:n])
