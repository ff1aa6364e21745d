"""Threadpress: chat archive conversations to blog post drafts."""
