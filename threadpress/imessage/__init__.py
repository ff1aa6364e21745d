"""iMessage archive access."""

from .attributed_body import extract_text_from_attributed_body
from .chat_db import ChatDbSource, IncomingMessage

__all__ = [
    "ChatDbSource",
    "IncomingMessage",
    "extract_text_from_attributed_body",
]
