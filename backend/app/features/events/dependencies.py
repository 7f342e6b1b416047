"""Dependencies for the ingestion gateway."""

from typing import Annotated

from fastapi import Depends, Request

from .runner import BackgroundRunner


async def get_event_runner(request: Request) -> BackgroundRunner:
    """Background runner created during application startup.

    :param request: Incoming request
    :returns: The process-wide background runner
    """
    return request.app.state.event_runner


# Type alias for cleaner dependency injection
EventRunnerDep = Annotated[BackgroundRunner, Depends(get_event_runner)]
