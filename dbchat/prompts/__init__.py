"""Prompt templates and loader."""

from dbchat.prompts.loader import PromptLoader

__all__ = ["PromptLoader"]
