"""Request hooks and the ordered hook chain.

A hook is any callable taking the prepared :class:`httpx.Request` and
returning the request to send (usually the same object, modified).  Returning
``None`` means the hook changed the request in place.  Raising aborts the
call: the exception becomes the terminal error of the
:class:`~httpchain.client.Response` and no request is sent.

:class:`Hooks` is an ordered sequence of hooks that is itself a hook.  The
chain follows a pipeline pattern: each hook receives the output of the
previous one, so additive transformations (auth headers, signing, tracing
headers) compose naturally.

A client or request stores its hook in one of three forms: nothing, a single
hook, or a :class:`Hooks` sequence.  :func:`compose_hook` implements the
rules for appending to each form, including copy-on-write for sequences that
are still shared with another owner.
"""

from __future__ import annotations

from typing import Callable, Optional, Union

import httpx

Hook = Callable[[httpx.Request], Optional[httpx.Request]]
"""A request transformer. Raise to abort the call."""


class Hooks(list):
    """An ordered chain of hooks, applied in registration order.

    The first hook to raise stops the chain; the exception propagates to the
    caller unchanged.

    Example::

        def add_trace_id(request):
            request.headers["X-Trace-Id"] = new_trace_id()
            return request

        chain = Hooks([add_trace_id, sign_request])
        request = chain(request)
    """

    def __call__(self, request: httpx.Request) -> httpx.Request:
        for hook in self:
            result = hook(request)
            if result is not None:
                request = result
        return request

    def __repr__(self) -> str:
        return f"Hooks({list.__repr__(self)})"


HookValue = Union[None, Hook, Hooks]


def clone_hook(hook: HookValue) -> HookValue:
    """Return a private copy of *hook* if it is a non-empty :class:`Hooks`.

    Single hooks and ``None`` are returned unchanged; they are never mutated
    in place, so sharing them is safe.
    """
    if isinstance(hook, Hooks) and hook:
        return Hooks(hook)
    return hook


def compose_hook(current: HookValue, hook: Hook, owned: bool) -> tuple[HookValue, bool]:
    """Append *hook* to *current* and return ``(new_value, owned)``.

    * ``current`` is ``None``: *hook* is stored directly.
    * ``current`` is a :class:`Hooks`: appended to, after cloning it when it
      is not *owned* (still aliased by another client or request).
    * ``current`` is a single hook: promoted to a two-element
      :class:`Hooks`, which is always owned.

    Raises:
        ValueError: If *hook* is ``None``.
    """
    if hook is None:
        raise ValueError("add_hook: the hook must not be None")

    if current is None:
        return hook, owned

    if isinstance(current, Hooks):
        hooks = current if owned else Hooks(current)
        hooks.append(hook)
        return hooks, True

    return Hooks([current, hook]), True


def run_hook(hook: HookValue, request: httpx.Request) -> httpx.Request:
    """Apply *hook* (single, chain, or ``None``) to *request*."""
    if hook is None:
        return request
    result = hook(request)
    return request if result is None else result
