# Profiles, posts, likes and comments
import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from errors import ProfileExists, UsernameTaken
from models import Comment, Like, Post, Profile, insert_once
from views import CommentView, PostView

logger = logging.getLogger(__name__)


class ContentStore:
    def __init__(self, session):
        self.session = session

    # Profiles

    def create_profile(self, external_account_id, username, display_name):
        """Create the profile for an external account.

        Raises ProfileExists or UsernameTaken when a uniqueness constraint
        rejects the insert, including when a concurrent request won the race.
        """
        profile = Profile(
            external_account_id=external_account_id,
            username=username,
            display_name=display_name,
            bio=''
        )
        self.session.add(profile)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            if self._account_has_profile(external_account_id):
                raise ProfileExists(external_account_id) from None
            if self.get_profile_by_username(username) is not None:
                raise UsernameTaken(username) from None
            raise
        logger.info("Created profile %s (%s)", profile.id, username)
        return profile

    def _account_has_profile(self, external_account_id):
        return self.session.query(Profile.id)\
            .filter(Profile.external_account_id == external_account_id)\
            .first() is not None

    def get_profile(self, profile_id):
        return self.session.get(Profile, profile_id)

    def get_profile_by_username(self, username):
        return self.session.query(Profile).filter(Profile.username == username).first()

    def update_profile(self, profile_id, update):
        """Write the fields present in ``update``; returns whether a row changed."""
        changes = update.changes()
        if not changes:
            return False
        count = self.session.query(Profile)\
            .filter(Profile.id == profile_id)\
            .update(changes, synchronize_session=False)
        self.session.commit()
        if count:
            logger.info("Updated profile %s: %s", profile_id, ', '.join(sorted(changes)))
        return count > 0

    # Posts

    def create_post(self, author_id, image_url, caption='', created_at=None):
        post = Post(author_id=author_id, image_url=image_url, caption=caption or '')
        if created_at is not None:
            post.created_at = created_at
        self.session.add(post)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            logger.debug("Rejected post for unknown author %s", author_id)
            return None
        logger.info("Profile %s created post %s", author_id, post.id)
        return post

    def post_views(self, viewer_id=None):
        """Query for posts joined with author data and per-post counts.

        The counts are computed in the same statement as the post row, and
        ``is_liked`` is only selected when a viewer is given.
        """
        like_count = select(func.count(Like.id))\
            .where(Like.post_id == Post.id)\
            .correlate(Post)\
            .scalar_subquery()
        comment_count = select(func.count(Comment.id))\
            .where(Comment.post_id == Post.id)\
            .correlate(Post)\
            .scalar_subquery()
        columns = [
            Post.id,
            Post.author_id,
            Post.image_url,
            Post.caption,
            Post.created_at,
            Profile.username.label('author_username'),
            Profile.display_name.label('author_display_name'),
            Profile.avatar_url.label('author_avatar_url'),
            like_count.label('like_count'),
            comment_count.label('comment_count'),
        ]
        if viewer_id is not None:
            is_liked = select(Like.id)\
                .where(Like.post_id == Post.id, Like.user_id == viewer_id)\
                .correlate(Post)\
                .exists()
            columns.append(is_liked.label('is_liked'))
        return self.session.query(*columns).join(Profile, Profile.id == Post.author_id)

    @staticmethod
    def to_post_view(row, with_viewer):
        return PostView(
            id=row.id,
            author_id=row.author_id,
            image_url=row.image_url,
            caption=row.caption,
            created_at=row.created_at,
            author_username=row.author_username,
            author_display_name=row.author_display_name,
            author_avatar_url=row.author_avatar_url,
            like_count=int(row.like_count or 0),
            comment_count=int(row.comment_count or 0),
            is_liked=bool(row.is_liked) if with_viewer else None
        )

    def get_post(self, post_id, viewer_id=None):
        row = self.post_views(viewer_id).filter(Post.id == post_id).first()
        if row is None:
            return None
        return self.to_post_view(row, viewer_id is not None)

    def post_exists(self, post_id):
        return self.session.query(Post.id).filter(Post.id == post_id).first() is not None

    def delete_post(self, post_id, author_id):
        """Delete a post owned by ``author_id`` together with its likes and comments.

        Missing and not-owned posts both return False.
        """
        post = self.session.query(Post)\
            .filter(Post.id == post_id, Post.author_id == author_id)\
            .first()
        if post is None:
            return False
        self.session.delete(post)
        self.session.commit()
        logger.info("Profile %s deleted post %s", author_id, post_id)
        return True

    # Likes

    def like_post(self, post_id, user_id):
        outcome = insert_once(
            self.session,
            Like(post_id=post_id, user_id=user_id),
            lambda: self.has_liked(post_id, user_id)
        )
        logger.debug("Like %s by %s: %s", post_id, user_id, outcome.value)
        return outcome

    def unlike_post(self, post_id, user_id):
        count = self.session.query(Like)\
            .filter(Like.post_id == post_id, Like.user_id == user_id)\
            .delete(synchronize_session=False)
        self.session.commit()
        return count > 0

    def has_liked(self, post_id, user_id):
        return self.session.query(Like.id)\
            .filter(Like.post_id == post_id, Like.user_id == user_id)\
            .first() is not None

    def get_post_likers(self, post_id, limit=50):
        return self.session.query(Profile)\
            .join(Like, Like.user_id == Profile.id)\
            .filter(Like.post_id == post_id)\
            .order_by(Like.created_at.desc(), Like.id.desc())\
            .limit(limit)\
            .all()

    # Comments

    def _comment_views(self):
        return self.session.query(
            Comment.id,
            Comment.post_id,
            Comment.author_id,
            Comment.content,
            Comment.created_at,
            Profile.username.label('author_username'),
            Profile.display_name.label('author_display_name'),
            Profile.avatar_url.label('author_avatar_url')
        ).join(Profile, Profile.id == Comment.author_id)

    def add_comment(self, post_id, author_id, content):
        comment = Comment(post_id=post_id, author_id=author_id, content=content)
        self.session.add(comment)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            logger.debug("Rejected comment on %s by %s", post_id, author_id)
            return None
        comment_id = comment.id
        logger.info("Profile %s commented on post %s", author_id, post_id)
        row = self._comment_views().filter(Comment.id == comment_id).one()
        return CommentView(**row._asdict())

    def get_comments(self, post_id, limit=50, offset=0):
        rows = self._comment_views()\
            .filter(Comment.post_id == post_id)\
            .order_by(Comment.created_at.asc(), Comment.id.asc())\
            .limit(limit)\
            .offset(offset)\
            .all()
        return [CommentView(**row._asdict()) for row in rows]

    def delete_comment(self, comment_id, author_id):
        count = self.session.query(Comment)\
            .filter(Comment.id == comment_id, Comment.author_id == author_id)\
            .delete(synchronize_session=False)
        self.session.commit()
        if count:
            logger.info("Profile %s deleted comment %s", author_id, comment_id)
        return count > 0
