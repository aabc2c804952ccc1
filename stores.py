# Store components bound to one storage handle
from dataclasses import dataclass

from flask import current_app

from content import ContentStore
from feed import FeedAssembler
from graph import SocialGraphStore
from identity import IdentityResolver


@dataclass
class Stores:
    identity: IdentityResolver
    content: ContentStore
    graph: SocialGraphStore
    feed: FeedAssembler

    @classmethod
    def build(cls, session):
        content = ContentStore(session)
        return cls(
            identity=IdentityResolver(session),
            content=content,
            graph=SocialGraphStore(session),
            feed=FeedAssembler(content)
        )


def get_stores():
    return current_app.extensions['stores']
