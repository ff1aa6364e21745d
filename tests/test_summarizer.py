"""Tests for threadpress/summarizer.py."""

from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from threadpress import openai_client, summarizer
from threadpress.config import settings

T0 = datetime(2025, 11, 8, 14, 5, 0)


def msg(minutes, sender, text):
    return SimpleNamespace(
        sender_id=sender,
        sender_name=None,
        text=text,
        sent_at=T0 + timedelta(minutes=minutes),
    )


MESSAGES = [
    msg(0, "alice", "Are we still on for the hike?"),
    msg(3, "bob", "Yes, Mount Rainier at 7"),
    msg(5, "alice", "Bringing snacks"),
]


#============================================
def test_build_prompt_contains_transcript_and_participants():
    prompt = summarizer.build_prompt(MESSAGES)
    assert "Conversation participants: alice, bob" in prompt
    assert "Message count: 3" in prompt
    assert "[2025-11-08 14:05] alice: Are we still on for the hike?" in prompt
    assert "[2025-11-08 14:08] bob: Yes, Mount Rainier at 7" in prompt
    assert "Time period: 2025-11-08 14:05 to 2025-11-08 14:10" in prompt
    assert '{"title": "Blog Post Title", "content": "Blog post content here..."}' in prompt


#============================================
def test_strip_code_fence():
    fenced = '```json\n{"title": "T", "content": "C"}\n```'
    assert summarizer.strip_code_fence(fenced) == '{"title": "T", "content": "C"}'
    plain = '{"title": "T", "content": "C"}'
    assert summarizer.strip_code_fence(plain) == plain
    bare_fence = '```\n{"a": 1}\n```'
    assert summarizer.strip_code_fence(bare_fence) == '{"a": 1}'


#============================================
def test_parse_blog_post_accepts_fenced_json():
    parsed = summarizer.parse_blog_post('```json\n{"title": "Hike", "content": "Body"}\n```')
    assert parsed.title == "Hike"
    assert parsed.content == "Body"
    assert parsed.fallback is False


#============================================
def test_parse_blog_post_rejects_unusable_answers():
    assert summarizer.parse_blog_post("Sure! Here is your post.") is None
    assert summarizer.parse_blog_post('["title", "content"]') is None
    assert summarizer.parse_blog_post('{"title": "Only title"}') is None
    assert summarizer.parse_blog_post('{"title": "", "content": "x"}') is None
    assert summarizer.parse_blog_post('{"title": 3, "content": "x"}') is None


#============================================
def test_fallback_post_contains_date_and_every_message():
    post = summarizer.generate_fallback_post(MESSAGES)
    assert post.fallback is True
    assert post.title == "Conversation from 2025-11-08"
    assert post.content.startswith("# Conversation Transcript\n\n")
    for m in MESSAGES:
        assert m.text in post.content
    assert "**alice** (14:05): Are we still on for the hike?" in post.content
    assert "\n\n**bob** (14:08): Yes, Mount Rainier at 7" in post.content


#============================================
def test_fallback_post_marks_missing_text():
    post = summarizer.generate_fallback_post([msg(0, "alice", None)])
    assert "**alice** (14:05): [no text]" in post.content


#============================================
async def test_generate_blog_post_uses_model_answer(monkeypatch):
    async def fake_completion(prompt):
        assert "Mount Rainier" in prompt
        return '```json\n{"title": "Planning the Rainier Hike", "content": "We hiked."}\n```'

    monkeypatch.setattr(summarizer, "_request_completion", fake_completion)
    post = await summarizer.generate_blog_post(MESSAGES)
    assert post.title == "Planning the Rainier Hike"
    assert post.content == "We hiked."
    assert post.fallback is False


#============================================
async def test_generate_blog_post_falls_back_on_error(monkeypatch):
    async def failing_completion(prompt):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(summarizer, "_request_completion", failing_completion)
    post = await summarizer.generate_blog_post(MESSAGES)
    assert post.fallback is True
    assert "2025-11-08" in post.title
    for m in MESSAGES:
        assert m.text in post.content


#============================================
async def test_generate_blog_post_falls_back_on_non_json(monkeypatch):
    async def chatty_completion(prompt):
        return "Here's a lovely post about hiking!"

    monkeypatch.setattr(summarizer, "_request_completion", chatty_completion)
    post = await summarizer.generate_blog_post(MESSAGES)
    assert post.fallback is True


#============================================
async def test_generate_blog_post_without_api_key(monkeypatch):
    """Missing credential ends in the fallback, not an exception."""
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "")
    monkeypatch.setattr(openai_client, "_client", None)
    post = await summarizer.generate_blog_post(MESSAGES)
    assert post.fallback is True


#============================================
def test_get_client_requires_api_key(monkeypatch):
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "")
    monkeypatch.setattr(openai_client, "_client", None)
    with pytest.raises(ValueError):
        openai_client.get_client()
