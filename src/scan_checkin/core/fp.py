"""Small function-pipeline toolkit: composition, currying and transduction.

Everything here is pure apart from :func:`trace`, which logs. The helpers are
used to assemble the submission pipeline in :mod:`scan_checkin.core.checkin`::

    submit = compose(then(classify), with_network_error_guard(recover), send)

Transducers compose the same way, right to left over the combiner::

    keep_even_doubled = compose(transduce_filter(is_even), transduce_map(double))
    transduce(keep_even_doubled, list_combine, [], [1, 2, 3, 4])  # [4, 8]
"""

from __future__ import annotations

import functools
import inspect
from typing import Any, Awaitable, Callable, Iterable, List, Optional, TypeVar

from ..utils.logger import get_logger

T = TypeVar("T")

_log = get_logger("fp", layer="debug")

__all__ = [
    "compose",
    "curry",
    "filter_",
    "identity",
    "invert",
    "list_combine",
    "map_",
    "reduce_",
    "reduce_async",
    "then",
    "trace",
    "transduce",
    "transduce_filter",
    "transduce_map",
]


def identity(value: T) -> T:
    return value


def compose(*fns: Callable[[Any], Any]) -> Callable[[Any], Any]:
    """Compose ``fns`` right to left: ``compose(f, g)(x) == f(g(x))``.

    With no functions the result is the identity function.
    """

    def composed(value: Any) -> Any:
        for fn in reversed(fns):
            value = fn(value)
        return value

    return composed


def _declared_arity(fn: Callable[..., Any]) -> int:
    arity = 0
    for param in inspect.signature(fn).parameters.values():
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            raise TypeError(
                f"cannot infer arity of variadic {getattr(fn, '__name__', fn)!r}; pass arity explicitly"
            )
        if (
            param.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
            and param.default is inspect.Parameter.empty
        ):
            arity += 1
    return arity


def curry(fn: Callable[..., T], arity: Optional[int] = None) -> Callable[..., Any]:
    """Return a curried version of ``fn``.

    Positional arguments accumulate across calls until ``arity`` of them have
    been supplied, then ``fn`` is invoked with all of them in order. ``arity``
    defaults to the number of required positional parameters of ``fn``;
    variadic callables must pass it explicitly.
    """
    if arity is None:
        arity = _declared_arity(fn)
    if arity < 0:
        raise TypeError("arity must be non-negative")

    @functools.wraps(fn)
    def curried(*args: Any) -> Any:
        if len(args) >= arity:
            return fn(*args)

        def partial(*more: Any) -> Any:
            return curried(*args, *more)

        return partial

    return curried


def _map(fn: Callable[[Any], Any], items: Iterable[Any]) -> List[Any]:
    return [fn(item) for item in items]


def _filter(predicate: Callable[[Any], Any], items: Iterable[Any]) -> List[Any]:
    return [item for item in items if predicate(item)]


def _reduce(reducer: Callable[[Any, Any], Any], initial: Any, items: Iterable[Any]) -> Any:
    return functools.reduce(reducer, items, initial)


def _invert(predicate: Callable[[Any], Any], value: Any) -> bool:
    return not predicate(value)


map_ = curry(_map)
filter_ = curry(_filter)
reduce_ = curry(_reduce)
invert = curry(_invert)


def list_combine(acc: List[Any], value: Any) -> List[Any]:
    return [*acc, value]


def _map_reducer(mapper: Callable[[Any], Any], combiner: Callable[[Any, Any], Any]):
    def reducer(acc: Any, value: Any) -> Any:
        return combiner(acc, mapper(value))

    return reducer


def _filter_reducer(predicate: Callable[[Any], Any], combiner: Callable[[Any, Any], Any]):
    def reducer(acc: Any, value: Any) -> Any:
        if predicate(value):
            return combiner(acc, value)
        return acc

    return reducer


def _transduce(
    transducer: Callable[[Callable[[Any, Any], Any]], Callable[[Any, Any], Any]],
    combiner: Callable[[Any, Any], Any],
    initial: Any,
    items: Iterable[Any],
) -> Any:
    return functools.reduce(transducer(combiner), items, initial)


transduce_map = curry(_map_reducer)
transduce_filter = curry(_filter_reducer)
transduce = curry(_transduce)


def trace(fn: Callable[..., T]) -> Callable[..., T]:
    """Log the arguments of every call to ``fn`` at debug level, then delegate.

    The return value (a coroutine, for async callables) and any exception pass
    through untouched.
    """
    name = getattr(fn, "__name__", repr(fn))

    @functools.wraps(fn)
    def traced(*args: Any, **kwargs: Any) -> T:
        if kwargs:
            _log.debug("%s%r %r", name, args, kwargs)
        else:
            _log.debug("%s%r", name, args)
        return fn(*args, **kwargs)

    return traced


async def _then(callback: Callable[[Any], T], awaitable: Awaitable[Any]) -> T:
    return callback(await awaitable)


async def _reduce_async(
    reducer: Callable[[Any, Any], Awaitable[Any]],
    initial: Any,
    items: Iterable[Any],
) -> Any:
    acc = initial
    for item in items:
        acc = await reducer(acc, item)
    return acc


then = curry(_then)
reduce_async = curry(_reduce_async)
