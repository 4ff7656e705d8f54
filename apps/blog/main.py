"""
Blog API

CRUD endpoints for blog posts. Anyone can read; only a post's author
may update or delete it.
"""
import os
import logging
from typing import Any

from fastapi import FastAPI, APIRouter, Body, Depends, HTTPException, Response, status
from fastapi.responses import PlainTextResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from apps.shared.cors import setup_cors
from apps.shared.database import Database, get_database, get_db
from apps.shared.errors import StorageError, setup_config_guard, setup_error_handlers
from apps.blog import repository
from apps.blog.schemas import (
    HealthResponse,
    PostCreate,
    PostDelete,
    PostResponse,
    PostUpdate,
    PostWithAuthorResponse,
)

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

# Validated once at startup, engine built on first use
database = Database.from_env()
if not database.configured:
    logger.error("Invalid or missing DATABASE_URL: %s", database.config_error)

app = FastAPI(
    title="Blog Service",
    version="1.0.0",
    description="Blog posts with author ownership checks",
)
app.state.database = database

setup_error_handlers(app)
setup_cors(app)
# Outermost, so even CORS preflights are refused while misconfigured
setup_config_guard(app)

router = APIRouter(prefix="/api", tags=["posts"])

POST_NOT_FOUND = "Post not found"
NOT_AUTHOR = "Unauthorized: You are not the author of this post"


@app.get("/", response_class=PlainTextResponse)
def root():
    """Liveness check. Does not touch the database."""
    return "Blog API is running!"


@router.get("/health", response_model=HealthResponse)
def health(db: Database = Depends(get_database)):
    """Health check endpoint."""
    db_connected = db.check_connection()
    return {
        "status": "ok" if db_connected else "degraded",
        "service": "blog",
        "database": "connected" if db_connected else "disconnected",
    }


def _parse_body(schema, body: Any):
    """Read a JSON body into schema. Anything but an object counts as empty."""
    if isinstance(body, dict):
        return schema.model_validate(body)
    return schema()


def _require_user(current_user_id: Any) -> Any:
    if not current_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return current_user_id


def _authorize(db: Session, post_id: str, current_user_id: Any) -> None:
    """Raise 404 if the post is missing, 403 if the caller is not its author."""
    author_id = repository.get_post_author_id(db, post_id)
    if author_id is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=POST_NOT_FOUND)
    if author_id != current_user_id:
        logger.warning("User %s tried to modify post %s owned by %s", current_user_id, post_id, author_id)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=NOT_AUTHOR)


def _lost_race(db: Session, post_id: str, current_user_id: Any) -> HTTPException:
    """
    The conditional write matched nothing although the ownership check passed.
    Look again to report why.
    """
    db.rollback()
    _authorize(db, post_id, current_user_id)
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=POST_NOT_FOUND)


@router.get("/posts", response_model=list[PostWithAuthorResponse])
def list_posts(db: Session = Depends(get_db)):
    """List all posts, newest first, each with its author's id and email."""
    try:
        return repository.list_posts(db)
    except SQLAlchemyError as e:
        raise StorageError("fetch posts", e)


@router.get("/posts/{post_id}", response_model=PostWithAuthorResponse)
def get_post(post_id: str, db: Session = Depends(get_db)):
    """Get a single post with its author."""
    try:
        post = repository.get_post(db, post_id)
    except SQLAlchemyError as e:
        raise StorageError("fetch post", e)
    if not post:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=POST_NOT_FOUND)
    return post


@router.post("/posts", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
def create_post(body: Any = Body(None), db: Session = Depends(get_db)):
    """
    Create a new post.
    New posts are always published.
    """
    payload = _parse_body(PostCreate, body)
    if not payload.title or not payload.content or not payload.author_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Title, content, and author ID are required",
        )

    try:
        post = repository.create_post(db, payload.title, payload.content, payload.author_id)
        db.commit()
        db.refresh(post)
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageError("create post", e)

    logger.info("Created post %s by %s", post.id, post.author_id)
    return post


@router.put("/posts/{post_id}", response_model=PostResponse)
def update_post(post_id: str, body: Any = Body(None), db: Session = Depends(get_db)):
    """
    Update a post. Only its author may do this.
    Fields missing from the body keep their stored value.
    """
    payload = _parse_body(PostUpdate, body)
    current_user_id = _require_user(payload.current_user_id)
    changes = payload.model_dump(include={"title", "content", "published"}, exclude_unset=True)

    try:
        _authorize(db, post_id, current_user_id)
        post = repository.update_post(db, post_id, current_user_id, changes)
        if post is None:
            raise _lost_race(db, post_id, current_user_id)
        db.commit()
        db.refresh(post)
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageError("update post", e)

    logger.info("Updated post %s (%s)", post_id, ", ".join(sorted(changes)) or "no changes")
    return post


@router.delete("/posts/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_post(post_id: str, body: Any = Body(None), db: Session = Depends(get_db)):
    """Delete a post. Only its author may do this."""
    current_user_id = _require_user(_parse_body(PostDelete, body).current_user_id)

    try:
        _authorize(db, post_id, current_user_id)
        if not repository.delete_post(db, post_id, current_user_id):
            raise _lost_race(db, post_id, current_user_id)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageError("delete post", e)

    logger.info("Deleted post %s", post_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


app.include_router(router)
