"""
Cancels in-flight work when the HTTP client goes away.
"""
import asyncio
from collections.abc import Coroutine
from typing import Any, TypeVar

from loguru import logger as l
from starlette.requests import Request

T = TypeVar("T")


class ClientDisconnectedError(Exception):
    """The client closed the connection before the response was ready."""
    pass


async def run_until_disconnected(
    request: Request,
    coro: Coroutine[Any, Any, T],
    poll_interval: float = 0.5,
) -> T:
    """
    Runs ``coro`` as a task and cancels it as soon as the client disconnects.

    Cancellation reaches whatever the task is awaiting (a retry sleep or a
    transfer), so no further upstream attempts are made for a gone client.

    Raises:
        ClientDisconnectedError: the client disconnected first
    """
    task = asyncio.ensure_future(coro)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=poll_interval)
            if done:
                return task.result()
            if await request.is_disconnected():
                l.info(f"Client disconnected from {request.method} {request.url.path}, cancelling download")
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
                raise ClientDisconnectedError()
    finally:
        if not task.done():
            task.cancel()
