# Main Flask app
import logging

import click
from flask import Flask

from config import config
from models import db
from routes import auth_bp, main_bp, posts_bp, users_bp, register_error_handlers
from seed import seed_demo_data
from stores import Stores

logger = logging.getLogger(__name__)


def configure_logging(level):
    logging.basicConfig(format='%(asctime)s %(levelname)s [%(name)s] %(message)s')
    logging.getLogger().setLevel(level)


def create_app(config_name='default'):
    app = Flask(__name__)
    app.config.from_object(config[config_name])
    configure_logging(app.config['LOG_LEVEL'])

    # Initialize extensions
    db.init_app(app)
    app.extensions['stores'] = Stores.build(db.session)

    # Register blueprints
    app.register_blueprint(main_bp, url_prefix='/api')
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(posts_bp, url_prefix='/api/posts')
    app.register_blueprint(users_bp, url_prefix='/api/users')
    register_error_handlers(app)

    register_commands(app)

    with app.app_context():
        db.create_all()
        if app.config['SEED_DEMO_DATA']:
            seed_demo_data(app.extensions['stores'])

    logger.info("Application created with %s config", config_name)
    return app


def register_commands(app):
    @app.cli.command('init-db')
    def init_db():
        """Create all tables."""
        db.create_all()
        click.echo("Database initialized")

    @app.cli.command('seed-demo')
    def seed_demo():
        """Insert demo content when the database has no profiles."""
        if seed_demo_data(app.extensions['stores']):
            click.echo("Demo data seeded")
        else:
            click.echo("Profiles already exist, nothing seeded")

    @app.cli.command('issue-token')
    @click.argument('account')
    def issue_token(account):
        """Print a new session token for an external account."""
        click.echo(app.extensions['stores'].identity.issue_token(account))
