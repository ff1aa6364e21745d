"""OpenAI API client for post generation.

Singleton AsyncOpenAI client shared by the summarizer. The request timeout
comes from SUMMARIZER_TIMEOUT so a slow model call ends in the summarizer's
fallback instead of blocking the generation job.
"""

import logging
from typing import Optional

from openai import AsyncOpenAI

from threadpress.config import settings

logger = logging.getLogger(__name__)

_client: Optional[AsyncOpenAI] = None


def get_client() -> AsyncOpenAI:
    """Get or create the shared OpenAI client.

    Retries are left to the SDK's built-in policy (max_retries=2).
    """
    global _client

    if _client is None:
        if not settings.OPENAI_API_KEY:
            raise ValueError(
                "OPENAI_API_KEY is required for post generation. "
                "Set it in environment variables."
            )
        _client = AsyncOpenAI(
            api_key=settings.OPENAI_API_KEY,
            timeout=settings.SUMMARIZER_TIMEOUT,
            max_retries=2,
        )
        logger.debug("Created OpenAI client")

    return _client


async def close_client() -> None:
    """Close the shared client (call on application shutdown)."""
    global _client

    if _client is not None:
        await _client.close()
        _client = None
        logger.debug("Closed OpenAI client")
