# Reverse-chronological post listings
from models import Post


class FeedAssembler:
    """Pages of posts, newest first, with the same projection as a single post."""

    def __init__(self, content):
        self.content = content

    def _page(self, query, with_viewer, limit, offset):
        rows = query\
            .order_by(Post.created_at.desc(), Post.id.desc())\
            .limit(limit)\
            .offset(offset)\
            .all()
        return [self.content.to_post_view(row, with_viewer) for row in rows]

    def get_feed(self, viewer_id=None, limit=20, offset=0):
        query = self.content.post_views(viewer_id)
        return self._page(query, viewer_id is not None, limit, offset)

    def get_posts_by_user(self, author_id, viewer_id=None, limit=20, offset=0):
        query = self.content.post_views(viewer_id).filter(Post.author_id == author_id)
        return self._page(query, viewer_id is not None, limit, offset)
