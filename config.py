# Configuration settings
import os

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


class Config:
    SQLALCHEMY_DATABASE_URI = os.getenv(
        'DATABASE_URL', 'sqlite:///' + os.path.join(BASE_DIR, 'social.db'))
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    AUTH_COOKIE_NAME = os.getenv('AUTH_COOKIE_NAME', 'social_auth')
    SEED_DEMO_DATA = os.getenv('SEED_DEMO_DATA', '').lower() in ('1', 'true', 'yes')

    # Pagination bounds enforced by the HTTP layer
    FEED_DEFAULT_LIMIT = 20
    FEED_MAX_LIMIT = 50
    LIST_DEFAULT_LIMIT = 50
    LIST_MAX_LIMIT = 100

    DEBUG = False
    TESTING = False


class DevelopmentConfig(Config):
    DEBUG = True
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'DEBUG')


class ProductionConfig(Config):
    DEBUG = False


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SEED_DEMO_DATA = False
    LOG_LEVEL = 'DEBUG'


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
