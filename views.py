# Result types and read projections returned by the stores
import enum
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

USERNAME_PATTERN = re.compile(r'^[A-Za-z0-9_]{3,30}$')
COMMENT_MAX_LENGTH = 500


def is_valid_username(username):
    return isinstance(username, str) and USERNAME_PATTERN.match(username) is not None


class Outcome(enum.Enum):
    """Result of an idempotent insert.

    Only CREATED is truthy, so callers that want a plain boolean can
    treat the outcome as one.
    """
    CREATED = 'created'
    ALREADY_EXISTS = 'already_exists'
    REJECTED = 'rejected'

    def __bool__(self):
        return self is Outcome.CREATED


class _Absent:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return 'ABSENT'

    def __bool__(self):
        return False


ABSENT = _Absent()


@dataclass(frozen=True)
class ProfileUpdate:
    """Partial profile update. Fields left as ABSENT are not written."""
    display_name: object = ABSENT
    bio: object = ABSENT
    avatar_url: object = ABSENT

    FIELDS = ('display_name', 'bio', 'avatar_url')

    @classmethod
    def from_mapping(cls, data):
        return cls(**{name: data[name] for name in cls.FIELDS if name in data})

    def changes(self):
        values = {}
        for name in self.FIELDS:
            value = getattr(self, name)
            if value is not ABSENT:
                values[name] = value
        return values

    def is_empty(self):
        return not self.changes()


@dataclass
class PostView:
    id: str
    author_id: str
    image_url: str
    caption: str
    created_at: datetime
    author_username: str
    author_display_name: str
    author_avatar_url: Optional[str]
    like_count: int
    comment_count: int
    # None means no viewer was supplied, not "not liked"
    is_liked: Optional[bool] = None

    def to_dict(self):
        data = {
            "id": self.id,
            "author_id": self.author_id,
            "image_url": self.image_url,
            "caption": self.caption,
            "created_at": self.created_at.isoformat(),
            "author_username": self.author_username,
            "author_display_name": self.author_display_name,
            "author_avatar_url": self.author_avatar_url,
            "like_count": self.like_count,
            "comment_count": self.comment_count
        }
        if self.is_liked is not None:
            data["is_liked"] = self.is_liked
        return data


@dataclass
class CommentView:
    id: str
    post_id: str
    author_id: str
    content: str
    created_at: datetime
    author_username: str
    author_display_name: str
    author_avatar_url: Optional[str] = None

    def to_dict(self):
        return {
            "id": self.id,
            "post_id": self.post_id,
            "author_id": self.author_id,
            "content": self.content,
            "created_at": self.created_at.isoformat(),
            "author_username": self.author_username,
            "author_display_name": self.author_display_name,
            "author_avatar_url": self.author_avatar_url
        }


@dataclass
class Viewer:
    """Who is making a request: nobody, an account without a profile, or a profile."""
    account_id: Optional[str] = None
    profile: Optional[object] = field(default=None)

    @property
    def is_authenticated(self):
        return self.account_id is not None

    @property
    def is_registered(self):
        return self.profile is not None

    @property
    def profile_id(self):
        return self.profile.id if self.profile is not None else None
