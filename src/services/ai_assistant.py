"""
Simulated AI assistant.

No inference happens here: every call waits a fixed delay and returns canned
text, standing in for a real summarization/chat backend.
"""
import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime

from core.config import get_settings

GENERATED_SUMMARY = (
    "This is an automatically generated summary of the content at the provided URL. "
    "It highlights key points and main topics covered in the article, making it easier "
    "to decide if the content is relevant to your needs."
)

SUGGESTED_TAGS = ["ai-suggested", "documentation", "web-development"]

CHAT_SUMMARY = (
    "Here's a summary of the requested content:\n\n"
    "This article discusses modern web development practices, focusing on performance "
    "optimization, accessibility, and responsive design. It covers techniques for reducing "
    "bundle sizes, implementing efficient rendering patterns, and ensuring websites work well "
    "across all devices and for all users. The article also touches on the importance of "
    "semantic HTML and ARIA attributes for creating inclusive web experiences."
)

SUGGESTED_QUERIES = [
    "Find bookmarks about machine learning",
    "Summarize my most recent bookmark",
    "What are my most used tags?",
    "Find bookmarks I saved last week",
    "Recommend bookmarks based on my interests",
]


@dataclass
class BookmarkReference:
    """A bookmark mentioned in an assistant reply."""

    id: str
    title: str
    url: str


MATCHED_BOOKMARKS = [
    BookmarkReference(
        id="b4", title="Advanced JavaScript Techniques", url="https://example.com/advanced-js",
    ),
    BookmarkReference(
        id="b5", title="Modern Web Development", url="https://example.com/web-dev",
    ),
    BookmarkReference(
        id="b6", title="CSS Grid Layout Guide", url="https://example.com/css-grid",
    ),
]


@dataclass
class AiSuggestion:
    """Summary and tag suggestions for a URL."""

    summary: str
    tags: list[str]


@dataclass
class AssistantReply:
    """One assistant chat message."""

    content: str
    bookmarks: list[BookmarkReference] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


async def generate_summary(url: str, existing_tags: list[str] | None = None) -> AiSuggestion:
    """
    Produce a summary and tag suggestions for a URL.

    Tags are only suggested when the caller has none yet; existing tags are
    returned unchanged.

    Raises:
        ValueError: If no URL is given.
    """
    if not url or not url.strip():
        raise ValueError("URL required")

    await asyncio.sleep(get_settings().ai_summary_delay_seconds)
    tags = list(existing_tags) if existing_tags else list(SUGGESTED_TAGS)
    return AiSuggestion(summary=GENERATED_SUMMARY, tags=tags)


async def chat(message: str) -> AssistantReply:
    """Answer a chat message: search-like queries get matches, summary requests a summary."""
    await asyncio.sleep(get_settings().ai_chat_delay_seconds)

    lowered = message.lower()
    if "find" in lowered or "search" in lowered:
        return AssistantReply(
            content=f'I found several bookmarks that match your query "{message}":',
            bookmarks=list(MATCHED_BOOKMARKS),
        )
    if "summarize" in lowered or "summary" in lowered:
        return AssistantReply(content=CHAT_SUMMARY)
    return AssistantReply(
        content=(
            f'I\'ve processed your request: "{message}". Is there anything specific you\'d '
            "like to know about your bookmarks or how I can help you organize them better?"
        ),
    )
