"""Builds the substitute class whose public methods route into an InvocationChain."""

from __future__ import annotations

import functools
import inspect
import itertools
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from shmock.joinpoint import InvocationChain

INSTANCE = "instance"
STATIC = "static"
CLASS = "class"

_class_ids = itertools.count(1)


def interceptable(target: type) -> dict[str, tuple[str, Callable[..., Any]]]:
    """Map public method name -> (kind, raw function), nearest class first."""
    found: dict[str, tuple[str, Callable[..., Any]]] = {}
    for klass in inspect.getmro(target):
        if klass is object:
            continue
        for name, raw in vars(klass).items():
            if name.startswith("_") or name in found:
                continue
            if isinstance(raw, staticmethod):
                found[name] = (STATIC, raw.__func__)
            elif isinstance(raw, classmethod):
                found[name] = (CLASS, raw.__func__)
            elif inspect.isfunction(raw):
                found[name] = (INSTANCE, raw)
    return found


def _signature(fn: Callable[..., Any], drop_first: bool) -> inspect.Signature | None:
    try:
        sig = inspect.signature(fn)
    except (TypeError, ValueError):
        return None
    if drop_first:
        params = list(sig.parameters.values())[1:]
        sig = sig.replace(parameters=params)
    return sig


def normalize_arguments(
    sig: inspect.Signature | None, args: tuple[Any, ...], kwargs: dict[str, Any]
) -> tuple[list[Any], dict[str, Any]]:
    """Move keyword arguments that name positional parameters into position."""
    if sig is None:
        return list(args), dict(kwargs)
    try:
        bound = sig.bind(*args, **kwargs)
    except TypeError:
        # Calls that do not fit the signature (extra trailing arguments) are
        # matched exactly as given.
        return list(args), dict(kwargs)
    return list(bound.args), dict(bound.kwargs)


def _finish(proxy: Callable[..., Any], fn: Callable[..., Any]) -> Callable[..., Any]:
    if inspect.iscoroutinefunction(fn):
        sync_proxy = proxy

        async def proxy(*args: Any, **kwargs: Any) -> Any:
            result = sync_proxy(*args, **kwargs)
            if inspect.isawaitable(result):
                result = await result
            return result

    functools.update_wrapper(proxy, fn)
    # The substitute is concrete even when the target is an abstract interface.
    proxy.__isabstractmethod__ = False  # type: ignore[attr-defined]
    return proxy


def _instance_proxy(chain: InvocationChain, name: str, fn: Callable[..., Any]) -> Callable[..., Any]:
    sig = _signature(fn, drop_first=True)

    def proxy(self: Any, *args: Any, **kwargs: Any) -> Any:
        arguments, keywords = normalize_arguments(sig, args, kwargs)
        original = fn.__get__(self, type(self))
        return chain.intercept(self, name, arguments, keywords, original)

    return _finish(proxy, fn)


def _class_proxy(chain: InvocationChain, name: str, fn: Callable[..., Any]) -> Callable[..., Any]:
    sig = _signature(fn, drop_first=True)

    def proxy(cls: type, *args: Any, **kwargs: Any) -> Any:
        arguments, keywords = normalize_arguments(sig, args, kwargs)
        original = fn.__get__(cls, type(cls))
        return chain.intercept(cls, name, arguments, keywords, original)

    return classmethod(_finish(proxy, fn))  # type: ignore[return-value]


def _static_proxy(
    chain: InvocationChain, name: str, fn: Callable[..., Any], holder: list[type]
) -> Callable[..., Any]:
    sig = _signature(fn, drop_first=False)

    def proxy(*args: Any, **kwargs: Any) -> Any:
        arguments, keywords = normalize_arguments(sig, args, kwargs)
        return chain.intercept(holder[0], name, arguments, keywords, fn)

    return staticmethod(_finish(proxy, fn))  # type: ignore[return-value]


def synthesize(target: type, chain: InvocationChain) -> type:
    """Return a fresh subclass of ``target`` routing every public method into ``chain``.

    Static methods route with the synthesized class as their target, so
    ``return_this()`` on a static mock answers with the class itself.
    """
    if not isinstance(target, type):
        raise TypeError(f"Can only mock classes, got {target!r}")

    holder: list[type] = []
    namespace: dict[str, Any] = {"__module__": target.__module__}
    for name, (kind, fn) in interceptable(target).items():
        if kind == INSTANCE:
            namespace[name] = _instance_proxy(chain, name, fn)
        elif kind == CLASS:
            namespace[name] = _class_proxy(chain, name, fn)
        else:
            namespace[name] = _static_proxy(chain, name, fn, holder)

    cls = type(target)(
        f"Shmock_{target.__name__}_{next(_class_ids)}", (target,), namespace
    )
    holder.append(cls)
    return cls


def instantiate(
    cls: type,
    args: tuple[Any, ...] = (),
    kwargs: dict[str, Any] | None = None,
    call_constructor: bool = True,
) -> Any:
    if call_constructor:
        return cls(*args, **(kwargs or {}))
    return cls.__new__(cls)
