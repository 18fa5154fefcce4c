from __future__ import annotations

import inspect
from typing import Any


async def invoke(fn: Any, *args: Any) -> Any:
    result = fn(*args)
    if inspect.isawaitable(result):
        return await result
    return result
