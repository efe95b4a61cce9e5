"""Resolved cross-reference schemas for people and films."""

from pydantic import BaseModel


class MovieRef(BaseModel):
    """Film a person appears in."""

    id: int
    title: str | None = None


class CharacterRef(BaseModel):
    """Character appearing in a film."""

    id: int
    name: str | None = None
