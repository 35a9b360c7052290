"""Opt-in call tracing for the resolution pipeline.

Set ``DRAFTSNAP_DEBUG_CALLS=1`` and a module that calls
``apply_debug_logging(globals())`` gets every public function wrapped so that
arguments and results are logged at DEBUG.  Shape collections can hold
thousands of entries, so arguments are rendered as compact summaries.
"""

from __future__ import annotations

import inspect
import logging
import os
import reprlib
from functools import wraps
from typing import Any, Callable, Iterable, MutableMapping, Optional, Sequence, Set, TypeVar, cast

import numpy as np

from .shapes import SHAPE_TYPES
from .types import Point, SnapPoint, TrackingLine

F = TypeVar("F", bound=Callable[..., Any])

DEBUG_CALLS_ENV = "DRAFTSNAP_DEBUG_CALLS"

_repr = reprlib.Repr()
_repr.maxother = 120
_repr.maxstring = 60
_repr.maxlist = 6
_repr.maxtuple = 6


def debug_calls_enabled() -> bool:
    return os.environ.get(DEBUG_CALLS_ENV, "").strip().lower() in {"1", "true", "yes", "on"}


def _point_repr(value: Sequence[float]) -> str:
    return f"({value[0]:.6g}, {value[1]:.6g})"


def _shape_repr(shape: Any) -> str:
    return f"<{shape.kind} {shape.id!r}>"


def _array_repr(value: np.ndarray) -> str:
    summary = f"ndarray(shape={tuple(value.shape)}, dtype={value.dtype})"
    if value.size == 0:
        return summary
    if value.dtype.kind not in "biuf":
        return summary
    return f"{summary}, min={float(value.min()):.6g}, max={float(value.max()):.6g}"


def _safe_repr(value: Any, *, max_items: int = 4, max_length: int = 300) -> str:
    if isinstance(value, Point):
        return _point_repr(value)
    if isinstance(value, SHAPE_TYPES):
        return _shape_repr(value)
    if isinstance(value, SnapPoint):
        return f"SnapPoint({value.type.value} at {_point_repr(value.point)}, source={value.source_shape_id!r})"
    if isinstance(value, TrackingLine):
        return f"TrackingLine({value.type.value} from {_point_repr(value.origin)}, angle={value.angle:.6g})"
    if isinstance(value, np.ndarray):
        return _array_repr(value)

    if isinstance(value, (list, tuple)) and value and all(isinstance(item, SHAPE_TYPES) for item in value):
        kinds: MutableMapping[str, int] = {}
        for shape in value:
            kinds[shape.kind] = kinds.get(shape.kind, 0) + 1
        breakdown = ", ".join(f"{kind}={count}" for kind, count in sorted(kinds.items()))
        return f"<{len(value)} shapes: {breakdown}>"

    if isinstance(value, (list, tuple, set, frozenset)):
        items = []
        for idx, item in enumerate(value):
            if idx >= max_items:
                items.append(f"... +{len(value) - max_items}")
                break
            items.append(_safe_repr(item))
        open_br, close_br = ("(", ")") if isinstance(value, tuple) else ("[", "]")
        return f"{open_br}{', '.join(items)}{close_br}"

    try:
        rendered = _repr.repr(value)
    except Exception as exc:  # pragma: no cover - repr of foreign objects
        rendered = f"<repr-error {exc!r}>"
    if len(rendered) > max_length:
        return rendered[:max_length] + "..."
    return rendered


def _format_arguments(args: Sequence[Any], kwargs: MutableMapping[str, Any]) -> str:
    parts = [_safe_repr(arg) for arg in args]
    parts.extend(f"{key}={_safe_repr(value)}" for key, value in kwargs.items())
    return ", ".join(parts)


def debug_log_call(
    logger: logging.Logger, *, name: Optional[str] = None, log_result: bool = True
) -> Callable[[F], F]:
    """Decorator logging entry, exit and exceptions of the wrapped callable."""

    def decorator(func: F) -> F:
        if getattr(func, "_debug_logging_wrapped", False):
            return func

        qualname = name or getattr(func, "__qualname__", func.__name__)

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            traced = logger.isEnabledFor(logging.DEBUG)
            if traced:
                logger.debug("-> %s(%s)", qualname, _format_arguments(args, kwargs))
            try:
                result = func(*args, **kwargs)
            except Exception:
                if traced:
                    logger.exception("!! %s raised", qualname)
                raise
            if traced:
                if log_result:
                    logger.debug("<- %s = %s", qualname, _safe_repr(result))
                else:
                    logger.debug("<- %s", qualname)
            return result

        setattr(wrapper, "_debug_logging_wrapped", True)
        return cast(F, wrapper)

    return decorator


def _wrap_class_methods(cls: type, logger: logging.Logger, skip: Set[str]) -> None:
    for attr_name, attr_value in list(cls.__dict__.items()):
        if attr_name.startswith("_"):
            continue
        qualified = f"{cls.__name__}.{attr_name}"
        if attr_name in skip or qualified in skip:
            continue
        if inspect.isfunction(attr_value) and attr_value.__module__ == cls.__module__:
            setattr(cls, attr_name, debug_log_call(logger, name=qualified)(attr_value))


def apply_debug_logging(
    namespace: MutableMapping[str, Any],
    *,
    logger: Optional[logging.Logger] = None,
    skip: Optional[Iterable[str]] = None,
    force: bool = False,
) -> bool:
    """Wrap the public functions and methods defined in ``namespace``.

    Does nothing unless ``DRAFTSNAP_DEBUG_CALLS`` is set or ``force`` is true.
    Returns whether wrapping happened.
    """

    if not (force or debug_calls_enabled()):
        return False
    module_name = namespace.get("__name__")
    logger = logger or logging.getLogger(module_name if isinstance(module_name, str) else __name__)
    skip_set: Set[str] = set(skip or ())

    for name, value in list(namespace.items()):
        if name.startswith("_") or name in skip_set:
            continue
        if inspect.isfunction(value) and value.__module__ == module_name:
            namespace[name] = debug_log_call(logger, name=name)(value)
        elif inspect.isclass(value) and value.__module__ == module_name:
            _wrap_class_methods(value, logger, skip_set)

    logger.debug("call tracing enabled for %s", module_name)
    return True


__all__ = [
    "DEBUG_CALLS_ENV",
    "apply_debug_logging",
    "debug_calls_enabled",
    "debug_log_call",
]
