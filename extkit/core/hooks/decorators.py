"""
Decorator utilities for hooks.
"""

from typing import Callable, Awaitable, TypeVar, ParamSpec
from functools import wraps

from extkit.core.errors import HookAbortError
from .manager import HookManager

P = ParamSpec("P")
R = TypeVar("R")


def hookable(
    hooks: HookManager,
    name: str,
) -> Callable[
    [Callable[P, Awaitable[R]]],
    Callable[P, Awaitable[R]],
]:
    """
    Make a host function hookable with before/after events.

    Automatically triggers:
    - {name}.before with {"args", "kwargs"}
    - {name}.after with {"result", "args", "kwargs"}

    A before handler returning ``False`` vetoes the call and
    ``HookAbortError`` is raised instead of running the function.

    Example:
    ```python
    @hookable(manager.hook_manager, "call.start")
    async def start_call(target: str) -> Call:
        return await client.call(target)
    ```
    """
    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            before = await hooks.execute(
                f"{name}.before",
                {"args": args, "kwargs": kwargs},
            )

            # A strict False can only be the last result of a pass
            if before and before[-1] is False:
                raise HookAbortError(f"Hook {name}.before aborted execution")

            result = await func(*args, **kwargs)

            await hooks.execute(
                f"{name}.after",
                {"result": result, "args": args, "kwargs": kwargs},
            )
            return result

        return wrapper

    return decorator
