# Follow edges between profiles
import logging

from sqlalchemy import func

from models import Follow, Post, Profile, insert_once
from views import Outcome

logger = logging.getLogger(__name__)


class SocialGraphStore:
    """Directed follow edges and the counts derived from them.

    Counts are aggregated from the tables on every call.
    """

    def __init__(self, session):
        self.session = session

    def follow_user(self, follower_id, following_id):
        if follower_id == following_id:
            logger.debug("Rejected self-follow by %s", follower_id)
            return Outcome.REJECTED
        outcome = insert_once(
            self.session,
            Follow(follower_id=follower_id, following_id=following_id),
            lambda: self.is_following(follower_id, following_id)
        )
        logger.debug("Follow %s -> %s: %s", follower_id, following_id, outcome.value)
        return outcome

    def unfollow_user(self, follower_id, following_id):
        count = self.session.query(Follow)\
            .filter(Follow.follower_id == follower_id, Follow.following_id == following_id)\
            .delete(synchronize_session=False)
        self.session.commit()
        return count > 0

    def is_following(self, follower_id, following_id):
        return self.session.query(Follow.id)\
            .filter(Follow.follower_id == follower_id, Follow.following_id == following_id)\
            .first() is not None

    def get_followers(self, user_id, limit=50):
        """Profiles following ``user_id``, most recently followed first."""
        return self.session.query(Profile)\
            .join(Follow, Follow.follower_id == Profile.id)\
            .filter(Follow.following_id == user_id)\
            .order_by(Follow.created_at.desc(), Follow.id.desc())\
            .limit(limit)\
            .all()

    def get_following(self, user_id, limit=50):
        """Profiles ``user_id`` follows, most recently followed first."""
        return self.session.query(Profile)\
            .join(Follow, Follow.following_id == Profile.id)\
            .filter(Follow.follower_id == user_id)\
            .order_by(Follow.created_at.desc(), Follow.id.desc())\
            .limit(limit)\
            .all()

    def get_follower_count(self, user_id):
        return self.session.query(func.count(Follow.id))\
            .filter(Follow.following_id == user_id)\
            .scalar()

    def get_following_count(self, user_id):
        return self.session.query(func.count(Follow.id))\
            .filter(Follow.follower_id == user_id)\
            .scalar()

    def get_post_count(self, user_id):
        return self.session.query(func.count(Post.id))\
            .filter(Post.author_id == user_id)\
            .scalar()

    def profile_summary(self, profile, viewer_id=None):
        """Profile fields plus counts; ``is_following`` only for another viewer."""
        data = profile.to_dict()
        data["follower_count"] = self.get_follower_count(profile.id)
        data["following_count"] = self.get_following_count(profile.id)
        data["post_count"] = self.get_post_count(profile.id)
        if viewer_id is not None and viewer_id != profile.id:
            data["is_following"] = self.is_following(viewer_id, profile.id)
        return data
