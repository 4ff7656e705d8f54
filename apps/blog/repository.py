"""
Post queries.

Mutations that require ownership are a single conditional statement:

    UPDATE posts SET ... WHERE id = :id AND author_id = :author_id
    DELETE FROM posts WHERE id = :id AND author_id = :author_id

so the ownership check and the write cannot interleave with another
request. Callers commit; these functions never do.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session, selectinload

from apps.blog.models import Post, User


def _with_author():
    return selectinload(Post.author).load_only(User.id, User.email)


def list_posts(db: Session) -> List[Post]:
    """All posts with their author, newest first."""
    stmt = select(Post).options(_with_author()).order_by(Post.created_at.desc())
    return list(db.scalars(stmt))


def get_post(db: Session, post_id: str) -> Optional[Post]:
    """One post with its author, or None."""
    stmt = select(Post).options(_with_author()).where(Post.id == post_id)
    return db.scalars(stmt).first()


def get_post_author_id(db: Session, post_id: str) -> Optional[str]:
    """The stored author_id of a post, or None if the post does not exist."""
    return db.scalar(select(Post.author_id).where(Post.id == post_id))


def create_post(db: Session, title: str, content: str, author_id: str) -> Post:
    """Insert a new published post. The FK on author_id is checked on flush."""
    post = Post(title=title, content=content, author_id=author_id, published=True)
    db.add(post)
    db.flush()
    return post


def update_post(
    db: Session,
    post_id: str,
    author_id: str,
    changes: Dict[str, Any],
) -> Optional[Post]:
    """
    Apply changes to a post owned by author_id.

    Returns the updated post, or None when no row matched (the post is gone
    or belongs to someone else).

    Only the columns in changes are written. With no changes the row is still
    matched so the caller gets the current post back.
    """
    if not changes:
        return db.scalars(
            select(Post).where(Post.id == post_id, Post.author_id == author_id)
        ).first()

    stmt = (
        update(Post)
        .where(Post.id == post_id, Post.author_id == author_id)
        .values(**changes)
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    if result.rowcount == 0:
        return None
    return db.get(Post, post_id, populate_existing=True)


def delete_post(db: Session, post_id: str, author_id: str) -> bool:
    """Delete a post owned by author_id. Returns False when no row matched."""
    stmt = (
        delete(Post)
        .where(Post.id == post_id, Post.author_id == author_id)
        .execution_options(synchronize_session=False)
    )
    return db.execute(stmt).rowcount > 0
