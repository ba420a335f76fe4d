"""Content cleaning for extracted article markup and text.

Removes page furniture and media from an article container and collapses
the remaining text into a single whitespace-normalized string.
"""

import logging
import re

from bs4 import Tag

logger = logging.getLogger(__name__)

MEDIA_TAGS = ("img", "video", "picture", "audio", "iframe", "source", "svg")
NON_TEXT_TAGS = ("script", "style", "noscript")

_WHITESPACE = re.compile(r"\s+")


def normalize_whitespace(text: str) -> str:
    """Collapse every whitespace run to a single space and trim the ends."""
    return _WHITESPACE.sub(" ", text).strip()


class ContentExtractor:
    """Cleans an article container down to plain text."""

    def __init__(self, strip_tags: tuple = ("h1",) + MEDIA_TAGS + NON_TEXT_TAGS):
        self.strip_tags = strip_tags

    def strip(self, container: Tag) -> Tag:
        """Remove unwanted nodes from the container in place and return it."""
        removed = 0
        for tag in container.find_all(list(self.strip_tags)):
            # Nested media (source inside video) goes with its parent
            if tag.decomposed:
                continue
            tag.decompose()
            removed += 1
        if removed:
            logger.debug("Stripped %d non-text nodes", removed)
        return container

    def clean(self, container: Tag) -> str:
        """Strip the container and return its normalized text."""
        self.strip(container)
        # Join text nodes with spaces so adjacent blocks don't fuse words
        return normalize_whitespace(container.get_text(" "))
