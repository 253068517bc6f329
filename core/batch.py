"""
Parallel GETs with all-or-nothing semantics.

Screens load several collections at once. Each blocking ApiClient.get()
runs in a worker thread via asyncio.to_thread and the lot is awaited
with asyncio.gather. If any one request fails, the sibling tasks are
cancelled and the first error propagates: callers never see a partial
result set.

Usage:
    from core.batch import fetch_all

    data = await fetch_all(client, {"members": "/members", "plans": "/plans"})
    data["members"], data["plans"]
"""

import asyncio
import logging
from typing import Any

from core.http_client import ApiClient

logger = logging.getLogger("gympro.batch")


async def fetch_all(
    client: ApiClient,
    endpoints: dict[str, str | tuple[str, dict]],
) -> dict[str, Any]:
    """GET every endpoint concurrently and return {name: body}.

    Args:
        client:    The ApiClient to send through.
        endpoints: name → "/path", or name → ("/path", params).

    Raises:
        The first ApiError raised by any request.
    """
    names = list(endpoints)
    tasks = []
    for name in names:
        target = endpoints[name]
        if isinstance(target, tuple):
            path, params = target
        else:
            path, params = target, None
        tasks.append(asyncio.create_task(asyncio.to_thread(client.get, path, params)))

    try:
        results = await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        logger.debug("Batch of %d failed, discarding all results", len(tasks))
        raise
    return dict(zip(names, results))
