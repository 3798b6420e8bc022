import logging
import os

import click
from flask import Flask, jsonify
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from config import config
from adventures.extensions import db, migrate, jwt, cors


def create_app(config_name='development', clock=None):
    app = Flask(__name__)
    config_class = config.get(config_name, config['default'])
    app.config.from_object(config_class)
    config_class.init_app(app)

    # Override DATABASE_URL from env
    db_url = os.environ.get('DATABASE_URL', '')
    if db_url and config_name != 'testing':
        if db_url.startswith('postgres://'):
            db_url = db_url.replace('postgres://', 'postgresql://', 1)
        app.config['SQLALCHEMY_DATABASE_URI'] = db_url

    # Apply all env overrides
    for key in ('SECRET_KEY', 'JWT_SECRET_KEY', 'CORS_ORIGINS', 'LOG_LEVEL'):
        val = os.environ.get(key)
        if val and config_name != 'testing':
            app.config[key] = val

    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))
    logging.getLogger('adventures').setLevel(app.config.get('LOG_LEVEL', 'INFO'))
    app.logger.info('[BOOT] config=%s, db=%s', config_name,
                    app.config.get('SQLALCHEMY_DATABASE_URI', '')[:50])

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    cors.init_app(app, resources={r'/api/*': {'origins': app.config['CORS_ORIGINS']}})

    # Import models so they are registered with SQLAlchemy
    from adventures import models  # noqa: F401
    from adventures.utils.policy import ProgressionPolicy
    from adventures.utils.progression import ProgressionService

    with app.app_context():
        db.create_all()

    policy = ProgressionPolicy.from_config(app.config)
    app.extensions['progression'] = ProgressionService(db.session, policy, clock)
    app.logger.info('[BOOT] %r', policy)

    # Register blueprints
    _register_blueprints(app)

    # Register error handlers
    _register_error_handlers(app)

    _register_commands(app)

    return app


def _register_blueprints(app):
    from adventures.blueprints.api import bp as api_bp

    app.register_blueprint(api_bp, url_prefix='/api')


def _register_error_handlers(app):
    from adventures.errors import ProgressionError

    @app.errorhandler(ProgressionError)
    def progression_error(e):
        if e.status_code >= 500:
            app.logger.error('Progression error: %s', e.message)
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(SQLAlchemyError)
    def database_error(e):
        db.session.rollback()
        app.logger.exception('Database error')
        return jsonify({'error': 'An unexpected error occurred', 'code': 'INTERNAL_ERROR'}), 500

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({'error': 'Not found', 'code': 'NOT_FOUND'}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({'error': 'Method not allowed', 'code': 'METHOD_NOT_ALLOWED'}), 405

    @app.errorhandler(Exception)
    def server_error(e):
        if isinstance(e, HTTPException):
            return jsonify({'error': e.description, 'code': e.name.upper().replace(' ', '_')}), e.code
        app.logger.exception('Unhandled error')
        return jsonify({'error': 'An unexpected error occurred', 'code': 'INTERNAL_ERROR'}), 500


def _register_commands(app):

    @app.cli.command('seed')
    @click.option('--reset', is_flag=True, help='Drop and recreate all tables first.')
    def seed_command(reset):
        """Seed the demo course catalog and users."""
        from adventures.seed import seed_demo_data
        if reset:
            db.drop_all()
            db.create_all()
        seed_demo_data()
        click.echo('Seeded demo data.')
