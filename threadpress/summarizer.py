"""Blog post generation from a conversation thread using the OpenAI API."""

import json
import logging
import time
from dataclasses import dataclass
from typing import Optional, Sequence

from openai import APIConnectionError, APIStatusError, APITimeoutError

from threadpress.config import settings
from threadpress.openai_client import get_client

logger = logging.getLogger(__name__)

BLOG_POST_PROMPT = """You are summarizing a personal iMessage conversation into a blog post.

Conversation participants: {participants}
Time period: {start_time} to {end_time}
Message count: {message_count}

Messages:
{transcript}

Create an engaging blog post that:
1. Captures the main topics and key points discussed
2. Maintains a natural narrative flow
3. Respects the conversational tone
4. Creates a SPECIFIC and DESCRIPTIVE title that reflects the actual content and topics discussed
   - The title should be unique and meaningful, not generic
   - It should tell readers what the conversation is actually about
   - Examples: "Planning Sarah's Birthday Surprise Party", "Debugging the Production Database Issue"
   - AVOID generic titles like "A Conversation" or "Chat with Friends"

Return ONLY valid JSON in this exact format (no markdown code fences):
{{"title": "Blog Post Title", "content": "Blog post content here..."}}"""

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"


@dataclass
class BlogPostContent:
    """Generated title and body of a post."""

    title: str
    content: str
    # True when the body is the raw transcript rather than model output
    fallback: bool = False

    def to_dict(self) -> dict:
        return {"title": self.title, "content": self.content, "fallback": self.fallback}


def _sender(message) -> str:
    return (
        getattr(message, "display_name", None)
        or getattr(message, "sender_name", None)
        or message.sender_id
    )


def _text(message) -> str:
    return message.text if message.text else "[no text]"


def build_prompt(messages: Sequence) -> str:
    """Build the summarization prompt for messages sorted oldest first."""
    participants = list(dict.fromkeys(_sender(m) for m in messages))
    transcript = "\n".join(
        f"[{m.sent_at.strftime(TIMESTAMP_FORMAT)}] {_sender(m)}: {_text(m)}"
        for m in messages
    )
    return BLOG_POST_PROMPT.format(
        participants=", ".join(participants),
        start_time=messages[0].sent_at.strftime(TIMESTAMP_FORMAT),
        end_time=messages[-1].sent_at.strftime(TIMESTAMP_FORMAT),
        message_count=len(messages),
        transcript=transcript,
    )


def strip_code_fence(text: str) -> str:
    """Drop a leading ``` / ```json line and a trailing ``` line."""
    lines = text.strip().splitlines()
    if lines and lines[0].strip().startswith("```"):
        lines = lines[1:]
    if lines and lines[-1].strip() == "```":
        lines = lines[:-1]
    return "\n".join(lines).strip()


def parse_blog_post(response: str) -> Optional[BlogPostContent]:
    """
    Parse the model's JSON answer.

    Returns None unless the payload is a JSON object with non-empty string
    title and content.
    """
    try:
        data = json.loads(strip_code_fence(response))
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse JSON: {e}")
        logger.debug(f"Raw response: {response[:500]}")
        return None

    if not isinstance(data, dict):
        return None
    title = data.get("title")
    content = data.get("content")
    if not isinstance(title, str) or not isinstance(content, str):
        return None
    if not title.strip() or not content.strip():
        return None
    return BlogPostContent(title=title.strip(), content=content.strip())


def generate_fallback_post(messages: Sequence) -> BlogPostContent:
    """Deterministic post built from the raw transcript."""
    if not messages:
        return BlogPostContent(
            title="Conversation", content="# Conversation Transcript", fallback=True
        )

    transcript = "\n\n".join(
        f"**{_sender(m)}** ({m.sent_at.strftime('%H:%M')}): {_text(m)}"
        for m in messages
    )
    return BlogPostContent(
        title=f"Conversation from {messages[0].sent_at.strftime('%Y-%m-%d')}",
        content=f"# Conversation Transcript\n\n{transcript}",
        fallback=True,
    )


async def _request_completion(prompt: str) -> str:
    client = get_client()
    response = await client.chat.completions.create(
        model=settings.SUMMARIZER_MODEL,
        messages=[{"role": "user", "content": prompt}],
        temperature=settings.SUMMARIZER_TEMPERATURE,
        max_tokens=settings.SUMMARIZER_MAX_TOKENS,
        timeout=settings.SUMMARIZER_TIMEOUT,
    )

    usage = response.usage
    if usage:
        logger.info(
            f"OpenAI {settings.SUMMARIZER_MODEL}: "
            f"{usage.prompt_tokens} in + {usage.completion_tokens} out tokens"
        )
    return response.choices[0].message.content or ""


async def generate_blog_post(messages: Sequence) -> BlogPostContent:
    """
    Summarize a thread into a blog post draft.

    Never raises: a missing API key, network or API error, timeout, or an
    unusable answer all produce the transcript fallback.

    Args:
        messages: thread messages sorted oldest first

    Returns:
        BlogPostContent, with fallback=True when the model output was not used
    """
    if not messages:
        return generate_fallback_post(messages)

    start_time = time.time()
    try:
        response = await _request_completion(build_prompt(messages))
    except ValueError as e:
        logger.warning(f"Summarizer not configured, using transcript: {e}")
        return generate_fallback_post(messages)
    except APITimeoutError:
        logger.warning(f"OpenAI timeout after {settings.SUMMARIZER_TIMEOUT}s, using transcript")
        return generate_fallback_post(messages)
    except APIConnectionError as e:
        logger.warning(f"Cannot connect to OpenAI, using transcript: {e}")
        return generate_fallback_post(messages)
    except APIStatusError as e:
        logger.warning(f"OpenAI API error {e.status_code}, using transcript: {e.message}")
        return generate_fallback_post(messages)
    except Exception as e:
        logger.error(f"Post generation failed, using transcript: {e}", exc_info=True)
        return generate_fallback_post(messages)

    logger.info(f"Post generation completed in {time.time() - start_time:.1f}s")

    parsed = parse_blog_post(response)
    if parsed is None:
        logger.warning("Model answer unusable, using transcript")
        return generate_fallback_post(messages)
    return parsed
