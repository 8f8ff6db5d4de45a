"""
Database abstraction for SQL backends and an in-memory test implementation.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional, Protocol

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
    delete,
    func,
    select,
)
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")


def new_id() -> str:
    return uuid.uuid4().hex


def is_valid_id(value: str) -> bool:
    return bool(value) and bool(ID_PATTERN.match(value))


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DuplicateKeyError(Exception):
    """Raised when a unique field already holds the given value."""

    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(f"{field_name} already exists")


@dataclass
class UserRecord:
    id: str
    name: str
    email: str
    password_hash: str
    avatar: Optional[str] = None
    bio: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def public_fields(self) -> dict:
        return {"id": self.id, "name": self.name, "avatar": self.avatar}


@dataclass
class PostRecord:
    id: str
    user_id: str
    text: str
    image: Optional[str] = None
    likes: list[str] = field(default_factory=list)
    comments_count: int = 0
    edited: bool = False
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class CommentRecord:
    id: str
    post_id: str
    user_id: str
    text: str
    edited: bool = False
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


class DbClient(Protocol):
    """Interface for database access."""

    def create_user(self, name: str, email: str, password_hash: str) -> UserRecord:
        ...

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        ...

    def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        ...

    def get_users(self, user_ids: Iterable[str]) -> Dict[str, UserRecord]:
        ...

    def update_user(
        self,
        user_id: str,
        *,
        name: Optional[str] = None,
        avatar: Optional[str] = None,
        bio: Optional[str] = None,
    ) -> Optional[UserRecord]:
        ...

    def count_posts(self, user_id: Optional[str] = None) -> int:
        ...

    def create_post(
        self, user_id: str, text: str, image: Optional[str] = None
    ) -> PostRecord:
        ...

    def get_post(self, post_id: str) -> Optional[PostRecord]:
        ...

    def list_posts(
        self, *, user_id: Optional[str] = None, offset: int = 0, limit: int = 10
    ) -> tuple[list[PostRecord], int]:
        ...

    def update_post_text(self, post_id: str, text: str) -> Optional[PostRecord]:
        ...

    def delete_post(self, post_id: str) -> bool:
        ...

    def toggle_like(self, post_id: str, user_id: str) -> Optional[tuple[int, bool]]:
        ...

    def list_posts_with_images(self) -> list[PostRecord]:
        ...

    def set_post_image(self, post_id: str, image: Optional[str]) -> None:
        ...

    def create_comment(
        self, post_id: str, user_id: str, text: str
    ) -> Optional[CommentRecord]:
        ...

    def get_comment(self, comment_id: str) -> Optional[CommentRecord]:
        ...

    def list_comments(self, post_id: str) -> list[CommentRecord]:
        ...

    def update_comment_text(
        self, comment_id: str, text: str
    ) -> Optional[CommentRecord]:
        ...

    def delete_comment(self, comment_id: str) -> bool:
        ...


class InMemoryDbClient:
    """Simple in-memory database for development and tests."""

    def __init__(self):
        self.users: Dict[str, UserRecord] = {}
        self.posts: Dict[str, PostRecord] = {}
        self.comments: Dict[str, CommentRecord] = {}

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.users.clear()
        self.posts.clear()
        self.comments.clear()

    def create_user(self, name: str, email: str, password_hash: str) -> UserRecord:
        if self.get_user_by_email(email):
            raise DuplicateKeyError("email")
        record = UserRecord(
            id=new_id(), name=name, email=email, password_hash=password_hash
        )
        self.users[record.id] = record
        return replace(record)

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        user = self.users.get(user_id)
        return replace(user) if user else None

    def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        for user in self.users.values():
            if user.email == email:
                return replace(user)
        return None

    def get_users(self, user_ids: Iterable[str]) -> Dict[str, UserRecord]:
        return {
            user_id: replace(self.users[user_id])
            for user_id in set(user_ids)
            if user_id in self.users
        }

    def update_user(
        self,
        user_id: str,
        *,
        name: Optional[str] = None,
        avatar: Optional[str] = None,
        bio: Optional[str] = None,
    ) -> Optional[UserRecord]:
        user = self.users.get(user_id)
        if not user:
            return None
        if name is not None:
            user.name = name
        if avatar is not None:
            user.avatar = avatar
        if bio is not None:
            user.bio = bio
        user.updated_at = utcnow()
        return replace(user)

    def count_posts(self, user_id: Optional[str] = None) -> int:
        return sum(
            1 for post in self.posts.values() if user_id is None or post.user_id == user_id
        )

    def create_post(
        self, user_id: str, text: str, image: Optional[str] = None
    ) -> PostRecord:
        record = PostRecord(id=new_id(), user_id=user_id, text=text, image=image)
        self.posts[record.id] = record
        return self._copy_post(record)

    def _copy_post(self, post: PostRecord) -> PostRecord:
        return replace(post, likes=list(post.likes))

    def get_post(self, post_id: str) -> Optional[PostRecord]:
        post = self.posts.get(post_id)
        return self._copy_post(post) if post else None

    def list_posts(
        self, *, user_id: Optional[str] = None, offset: int = 0, limit: int = 10
    ) -> tuple[list[PostRecord], int]:
        matching = [
            post
            for post in self.posts.values()
            if user_id is None or post.user_id == user_id
        ]
        # Newest first; insertion order breaks timestamp ties.
        ordered = [
            post
            for _, post in sorted(
                enumerate(matching),
                key=lambda item: (item[1].created_at, item[0]),
                reverse=True,
            )
        ]
        page = ordered[offset : offset + limit]
        return [self._copy_post(post) for post in page], len(matching)

    def update_post_text(self, post_id: str, text: str) -> Optional[PostRecord]:
        post = self.posts.get(post_id)
        if not post:
            return None
        post.text = text
        post.edited = True
        post.updated_at = utcnow()
        return self._copy_post(post)

    def delete_post(self, post_id: str) -> bool:
        if post_id not in self.posts:
            return False
        for comment_id in [
            c.id for c in self.comments.values() if c.post_id == post_id
        ]:
            del self.comments[comment_id]
        del self.posts[post_id]
        return True

    def toggle_like(self, post_id: str, user_id: str) -> Optional[tuple[int, bool]]:
        post = self.posts.get(post_id)
        if not post:
            return None
        if user_id in post.likes:
            post.likes.remove(user_id)
            liked = False
        else:
            post.likes.append(user_id)
            liked = True
        post.updated_at = utcnow()
        return len(post.likes), liked

    def list_posts_with_images(self) -> list[PostRecord]:
        return [self._copy_post(post) for post in self.posts.values() if post.image]

    def set_post_image(self, post_id: str, image: Optional[str]) -> None:
        post = self.posts.get(post_id)
        if post:
            post.image = image

    def create_comment(
        self, post_id: str, user_id: str, text: str
    ) -> Optional[CommentRecord]:
        post = self.posts.get(post_id)
        if not post:
            return None
        record = CommentRecord(id=new_id(), post_id=post_id, user_id=user_id, text=text)
        self.comments[record.id] = record
        post.comments_count += 1
        return replace(record)

    def get_comment(self, comment_id: str) -> Optional[CommentRecord]:
        comment = self.comments.get(comment_id)
        return replace(comment) if comment else None

    def list_comments(self, post_id: str) -> list[CommentRecord]:
        # Stable sort keeps insertion order for equal timestamps.
        return [
            replace(comment)
            for comment in sorted(
                (c for c in self.comments.values() if c.post_id == post_id),
                key=lambda c: c.created_at,
            )
        ]

    def update_comment_text(
        self, comment_id: str, text: str
    ) -> Optional[CommentRecord]:
        comment = self.comments.get(comment_id)
        if not comment:
            return None
        comment.text = text
        comment.edited = True
        comment.updated_at = utcnow()
        return replace(comment)

    def delete_comment(self, comment_id: str) -> bool:
        comment = self.comments.pop(comment_id, None)
        if not comment:
            return False
        post = self.posts.get(comment.post_id)
        if post and post.comments_count > 0:
            post.comments_count -= 1
        return True


class SqlDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).

    Operations touching more than one row run in a single transaction.
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlDbClient")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    @staticmethod
    def _to_user_record(row: "UserRow") -> UserRecord:
        return UserRecord(
            id=row.id,
            name=row.name,
            email=row.email,
            password_hash=row.password_hash,
            avatar=row.avatar,
            bio=row.bio,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    @staticmethod
    def _to_post_record(row: "PostRow") -> PostRecord:
        return PostRecord(
            id=row.id,
            user_id=row.user_id,
            text=row.text,
            image=row.image,
            likes=list(row.likes or []),
            comments_count=row.comments_count,
            edited=row.edited,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    @staticmethod
    def _to_comment_record(row: "CommentRow") -> CommentRecord:
        return CommentRecord(
            id=row.id,
            post_id=row.post_id,
            user_id=row.user_id,
            text=row.text,
            edited=row.edited,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    # Users

    def create_user(self, name: str, email: str, password_hash: str) -> UserRecord:
        now = utcnow()
        with self.Session() as session:
            row = UserRow(
                id=new_id(),
                name=name,
                email=email,
                password_hash=password_hash,
                created_at=now,
                updated_at=now,
            )
            session.add(row)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise DuplicateKeyError("email") from exc
            return self._to_user_record(row)

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        with self.Session() as session:
            row = session.get(UserRow, user_id)
            return self._to_user_record(row) if row else None

    def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        with self.Session() as session:
            row = session.execute(
                select(UserRow).where(UserRow.email == email)
            ).scalar_one_or_none()
            return self._to_user_record(row) if row else None

    def get_users(self, user_ids: Iterable[str]) -> Dict[str, UserRecord]:
        ids = set(user_ids)
        if not ids:
            return {}
        with self.Session() as session:
            rows = session.execute(
                select(UserRow).where(UserRow.id.in_(sorted(ids)))
            ).scalars()
            return {row.id: self._to_user_record(row) for row in rows}

    def update_user(
        self,
        user_id: str,
        *,
        name: Optional[str] = None,
        avatar: Optional[str] = None,
        bio: Optional[str] = None,
    ) -> Optional[UserRecord]:
        with self.Session() as session:
            row = session.get(UserRow, user_id)
            if not row:
                return None
            if name is not None:
                row.name = name
            if avatar is not None:
                row.avatar = avatar
            if bio is not None:
                row.bio = bio
            row.updated_at = utcnow()
            session.commit()
            return self._to_user_record(row)

    # Posts

    def count_posts(self, user_id: Optional[str] = None) -> int:
        stmt = select(func.count()).select_from(PostRow)
        if user_id is not None:
            stmt = stmt.where(PostRow.user_id == user_id)
        with self.Session() as session:
            return session.execute(stmt).scalar_one()

    def create_post(
        self, user_id: str, text: str, image: Optional[str] = None
    ) -> PostRecord:
        now = utcnow()
        with self.Session() as session:
            row = PostRow(
                id=new_id(),
                user_id=user_id,
                text=text,
                image=image,
                likes=[],
                comments_count=0,
                edited=False,
                created_at=now,
                updated_at=now,
            )
            session.add(row)
            session.commit()
            return self._to_post_record(row)

    def get_post(self, post_id: str) -> Optional[PostRecord]:
        with self.Session() as session:
            row = session.get(PostRow, post_id)
            return self._to_post_record(row) if row else None

    def list_posts(
        self, *, user_id: Optional[str] = None, offset: int = 0, limit: int = 10
    ) -> tuple[list[PostRecord], int]:
        stmt = select(PostRow)
        if user_id is not None:
            stmt = stmt.where(PostRow.user_id == user_id)
        stmt = (
            stmt.order_by(PostRow.created_at.desc(), PostRow.id.desc())
            .offset(offset)
            .limit(limit)
        )
        with self.Session() as session:
            rows = session.execute(stmt).scalars().all()
            posts = [self._to_post_record(row) for row in rows]
        return posts, self.count_posts(user_id)

    def update_post_text(self, post_id: str, text: str) -> Optional[PostRecord]:
        with self.Session() as session:
            row = session.get(PostRow, post_id)
            if not row:
                return None
            row.text = text
            row.edited = True
            row.updated_at = utcnow()
            session.commit()
            return self._to_post_record(row)

    def delete_post(self, post_id: str) -> bool:
        with self.Session() as session:
            row = session.get(PostRow, post_id)
            if not row:
                return False
            session.execute(delete(CommentRow).where(CommentRow.post_id == post_id))
            session.delete(row)
            session.commit()
            return True

    def toggle_like(self, post_id: str, user_id: str) -> Optional[tuple[int, bool]]:
        with self.Session() as session:
            row = session.execute(
                select(PostRow).where(PostRow.id == post_id).with_for_update()
            ).scalar_one_or_none()
            if not row:
                return None
            likes = list(row.likes or [])
            if user_id in likes:
                likes.remove(user_id)
                liked = False
            else:
                likes.append(user_id)
                liked = True
            # Reassign so the JSON column is flagged dirty.
            row.likes = likes
            row.updated_at = utcnow()
            session.commit()
            return len(likes), liked

    def list_posts_with_images(self) -> list[PostRecord]:
        with self.Session() as session:
            rows = session.execute(
                select(PostRow).where(PostRow.image.is_not(None))
            ).scalars()
            return [self._to_post_record(row) for row in rows]

    def set_post_image(self, post_id: str, image: Optional[str]) -> None:
        with self.Session() as session:
            row = session.get(PostRow, post_id)
            if not row:
                return
            row.image = image
            session.commit()

    # Comments

    def create_comment(
        self, post_id: str, user_id: str, text: str
    ) -> Optional[CommentRecord]:
        now = utcnow()
        with self.Session() as session:
            post = session.execute(
                select(PostRow).where(PostRow.id == post_id).with_for_update()
            ).scalar_one_or_none()
            if not post:
                return None
            row = CommentRow(
                id=new_id(),
                post_id=post_id,
                user_id=user_id,
                text=text,
                edited=False,
                created_at=now,
                updated_at=now,
            )
            session.add(row)
            post.comments_count = (post.comments_count or 0) + 1
            session.commit()
            return self._to_comment_record(row)

    def get_comment(self, comment_id: str) -> Optional[CommentRecord]:
        with self.Session() as session:
            row = session.get(CommentRow, comment_id)
            return self._to_comment_record(row) if row else None

    def list_comments(self, post_id: str) -> list[CommentRecord]:
        with self.Session() as session:
            rows = session.execute(
                select(CommentRow)
                .where(CommentRow.post_id == post_id)
                .order_by(CommentRow.created_at.asc(), CommentRow.id.asc())
            ).scalars()
            return [self._to_comment_record(row) for row in rows]

    def update_comment_text(
        self, comment_id: str, text: str
    ) -> Optional[CommentRecord]:
        with self.Session() as session:
            row = session.get(CommentRow, comment_id)
            if not row:
                return None
            row.text = text
            row.edited = True
            row.updated_at = utcnow()
            session.commit()
            return self._to_comment_record(row)

    def delete_comment(self, comment_id: str) -> bool:
        with self.Session() as session:
            row = session.get(CommentRow, comment_id)
            if not row:
                return False
            post = session.execute(
                select(PostRow).where(PostRow.id == row.post_id).with_for_update()
            ).scalar_one_or_none()
            session.delete(row)
            if post and post.comments_count > 0:
                post.comments_count -= 1
            session.commit()
            return True


Base = declarative_base()


class UserRow(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String, nullable=False)
    avatar = Column(String, nullable=True)
    bio = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class PostRow(Base):
    __tablename__ = "posts"

    id = Column(String(32), primary_key=True)
    user_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)
    text = Column(Text, nullable=False)
    image = Column(String, nullable=True)
    likes = Column(JSON, nullable=False, default=list)
    comments_count = Column(Integer, nullable=False, default=0)
    edited = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class CommentRow(Base):
    __tablename__ = "comments"

    id = Column(String(32), primary_key=True)
    post_id = Column(String(32), ForeignKey("posts.id"), nullable=False, index=True)
    user_id = Column(String(32), ForeignKey("users.id"), nullable=False)
    text = Column(Text, nullable=False)
    edited = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
