"""
Blog database models.

Posts are owned by this service. Users belong to the external identity
provider and live in their own schema; they are only ever read here.
"""
import os
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from apps.shared.database import Base

# Schema holding the identity provider's users table, empty for the default schema
USERS_SCHEMA = os.getenv("USERS_SCHEMA", "auth") or None
USERS_TABLE = f"{USERS_SCHEMA}.users" if USERS_SCHEMA else "users"


def _new_id() -> str:
    return str(uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """Identity record managed by the external auth provider."""
    __tablename__ = "users"
    __table_args__ = {"schema": USERS_SCHEMA}

    id = Column(String(64), primary_key=True)
    email = Column(String(320), unique=True, nullable=False)

    posts = relationship("Post", back_populates="author")


class Post(Base):
    """
    A blog post.

    - id and created_at are set once at creation and never change
    - author_id must reference an existing user (enforced by the FK)
    - published defaults to True
    """
    __tablename__ = "posts"

    id = Column(String(64), primary_key=True, default=_new_id)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    title = Column(Text, nullable=False)
    content = Column(Text, nullable=False)
    published = Column(Boolean, nullable=False, default=True)
    author_id = Column(
        String(64),
        ForeignKey(f"{USERS_TABLE}.id"),
        nullable=False,
        index=True,
    )

    author = relationship("User", back_populates="posts")
