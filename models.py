# Database models
import sqlite3
import threading
import uuid
from datetime import datetime, timedelta, timezone

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import CheckConstraint, Index, UniqueConstraint, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from views import Outcome

db = SQLAlchemy()

_clock_lock = threading.Lock()
_last_tick = None


def utcnow():
    """Naive UTC timestamp, strictly increasing within the process."""
    global _last_tick
    with _clock_lock:
        now = datetime.now(timezone.utc).replace(tzinfo=None)
        if _last_tick is not None and now <= _last_tick:
            now = _last_tick + timedelta(microseconds=1)
        _last_tick = now
        return now


def new_id():
    return str(uuid.uuid4())


@event.listens_for(Engine, 'connect')
def _configure_sqlite(dbapi_connection, connection_record):
    if not isinstance(dbapi_connection, sqlite3.Connection):
        return
    cursor = dbapi_connection.cursor()
    cursor.execute('PRAGMA foreign_keys=ON')
    cursor.execute('PRAGMA journal_mode=WAL')
    cursor.close()


class SessionToken(db.Model):
    __tablename__ = 'session_tokens'
    token = db.Column(db.String(64), primary_key=True)
    external_account_id = db.Column(db.String(255), nullable=False, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)


class Profile(db.Model):
    __tablename__ = 'profiles'
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    external_account_id = db.Column(db.String(255), unique=True, nullable=False)
    username = db.Column(db.String(30), unique=True, nullable=False)
    display_name = db.Column(db.String(100), nullable=False)
    bio = db.Column(db.Text, nullable=False, default='')
    avatar_url = db.Column(db.String(2048))
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "username": self.username,
            "display_name": self.display_name,
            "bio": self.bio,
            "avatar_url": self.avatar_url,
            "created_at": self.created_at.isoformat()
        }


class Post(db.Model):
    __tablename__ = 'posts'
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    author_id = db.Column(db.String(36), db.ForeignKey('profiles.id'), nullable=False)
    image_url = db.Column(db.String(2048), nullable=False)
    caption = db.Column(db.Text, nullable=False, default='')
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    # Removing a post removes what hangs off it
    comments = db.relationship('Comment', backref='post', cascade='all, delete-orphan')
    likes = db.relationship('Like', backref='post', cascade='all, delete-orphan')

    __table_args__ = (
        Index('idx_posts_author', 'author_id'),
        Index('idx_posts_created', created_at.desc()),
    )


class Like(db.Model):
    __tablename__ = 'likes'
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    post_id = db.Column(db.String(36), db.ForeignKey('posts.id', ondelete='CASCADE'), nullable=False)
    user_id = db.Column(db.String(36), db.ForeignKey('profiles.id'), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint('post_id', 'user_id', name='uq_likes_post_user'),
        Index('idx_likes_post', 'post_id'),
    )


class Comment(db.Model):
    __tablename__ = 'comments'
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    post_id = db.Column(db.String(36), db.ForeignKey('posts.id', ondelete='CASCADE'), nullable=False)
    author_id = db.Column(db.String(36), db.ForeignKey('profiles.id'), nullable=False)
    content = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index('idx_comments_post', 'post_id'),
    )


class Follow(db.Model):
    __tablename__ = 'follows'
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    follower_id = db.Column(db.String(36), db.ForeignKey('profiles.id'), nullable=False)
    following_id = db.Column(db.String(36), db.ForeignKey('profiles.id'), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint('follower_id', 'following_id', name='uq_follows_pair'),
        CheckConstraint('follower_id != following_id', name='ck_follows_not_self'),
        Index('idx_follows_follower', 'follower_id'),
        Index('idx_follows_following', 'following_id'),
    )


def insert_once(session, row, exists):
    """Insert a row guarded by a unique constraint.

    The constraint decides the race: on violation the transaction is rolled
    back and ``exists()`` tells a duplicate apart from a dangling reference.
    """
    session.add(row)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        if exists():
            return Outcome.ALREADY_EXISTS
        return Outcome.REJECTED
    return Outcome.CREATED
