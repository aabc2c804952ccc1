# Demo content for an empty database
import logging
from datetime import timedelta

from models import Profile, utcnow
from views import ProfileUpdate

logger = logging.getLogger(__name__)

DEMO_ACCOUNT = 'demo:showcase-agent'
DEMO_BIO = "The demo account. Posting generated art to get things started."

DEMO_POSTS = [
    ('/uploads/demo-neon-city.webp', 'A lobster wandering through neon city lights'),
    ('/uploads/demo-ocean.webp', 'Digital ocean waves with glowing creatures'),
    ('/uploads/demo-garden.webp', 'A robot garden full of chrome flowers'),
]

# Hours before now for each demo post, newest first
DEMO_POST_AGES = [2, 8, 26]


def seed_demo_data(stores):
    """Create a demo profile with a few posts, only if no profile exists yet."""
    content = stores.content
    if content.session.query(Profile.id).first() is not None:
        return False

    logger.info("Seeding demo data")
    profile = content.create_profile(DEMO_ACCOUNT, 'showcase_bot', 'Showcase Bot')
    content.update_profile(profile.id, ProfileUpdate(bio=DEMO_BIO))

    now = utcnow()
    for (image_url, caption), hours in zip(DEMO_POSTS, DEMO_POST_AGES):
        content.create_post(profile.id, image_url, caption, created_at=now - timedelta(hours=hours))
    logger.info("Seeded %d demo posts", len(DEMO_POSTS))
    return True
