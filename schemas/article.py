"""Pydantic model for an extracted knowledge-base article."""

from pydantic import BaseModel, Field


class Article(BaseModel):
    url: str
    title: str = Field(default="", description="Article heading, empty if the page has none")
    content: str = Field(description="Whitespace-normalized plain text, media and title removed")
