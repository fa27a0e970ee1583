"""FastAPI dependencies for settings and the outbound HTTP client."""

from collections.abc import AsyncIterator
from typing import Annotated

import httpx
from fastapi import Depends

from playground.core.settings import PlaygroundSettings


def load_settings() -> PlaygroundSettings:
    return PlaygroundSettings()


async def get_http_client(
    settings: Annotated[PlaygroundSettings, Depends(load_settings)],
) -> AsyncIterator[httpx.AsyncClient]:
    """Per-request client for token endpoint calls."""
    async with httpx.AsyncClient(timeout=settings.http_timeout) as client:
        yield client
