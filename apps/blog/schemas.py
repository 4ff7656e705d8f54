"""
Pydantic schemas for the Blog API.

Field names are snake_case in Python and camelCase on the wire.
Request bodies accept any JSON value per field: presence is checked by
the handlers so they can answer with their own messages, and values of
the wrong type are left for the database to reject.
"""
from datetime import datetime
from typing import Any
from pydantic import AliasGenerator, BaseModel
from pydantic.alias_generators import to_camel


class CamelRequest(BaseModel):
    """Base schema for request bodies, read from camelCase keys only."""

    class Config:
        alias_generator = to_camel


class CamelResponse(BaseModel):
    """Base schema for responses, built from ORM rows and written as camelCase."""

    class Config:
        alias_generator = AliasGenerator(serialization_alias=to_camel)
        from_attributes = True


class PostCreate(CamelRequest):
    """Body of POST /api/posts. Any published value sent is ignored."""
    title: Any = None
    content: Any = None
    author_id: Any = None


class PostUpdate(CamelRequest):
    """Body of PUT /api/posts/{id}. Only fields present in the body are written."""
    title: Any = None
    content: Any = None
    published: Any = None
    current_user_id: Any = None


class PostDelete(CamelRequest):
    """Body of DELETE /api/posts/{id}."""
    current_user_id: Any = None


class AuthorResponse(CamelResponse):
    id: str
    email: str


class PostResponse(CamelResponse):
    """A post as stored, author not expanded."""
    id: str
    title: str
    content: str
    published: bool
    author_id: str
    created_at: datetime


class PostWithAuthorResponse(PostResponse):
    """A post with its author's id and email."""
    author: AuthorResponse


class HealthResponse(BaseModel):
    status: str
    service: str
    database: str
