import os
from datetime import timedelta


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-change-in-production')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # JWT (tokens are issued by the auth service, only verified here)
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET_KEY', 'jwt-dev-secret')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=1)
    JWT_TOKEN_LOCATION = ['headers']

    # CORS
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')

    # Progression policy
    LESSON_PASS_SCORE = 70
    LEVEL_BASE_XP = 100
    LEVEL_EXPONENT = 1.5
    # (minimum streak days, multiplier), ascending
    STREAK_BONUS_TIERS = ((3, 1.1), (7, 1.25), (30, 1.5))
    REVEAL_COST_RATIO = 0.5
    REVEAL_LEVEL_DAMPING = 0.1
    MAX_FREE_COURSE_ENROLLMENTS = 2

    @staticmethod
    def init_app(app):
        pass


class DevelopmentConfig(Config):
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        'DATABASE_URL',
        'sqlite:///adventures.db'
    )


class ProductionConfig(Config):
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', '')
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        # Fail fast instead of hanging on a stuck connection pool
        'pool_timeout': 10,
    }

    @staticmethod
    def init_app(app):
        # Fix Heroku/Railway postgres:// -> postgresql://
        uri = app.config.get('SQLALCHEMY_DATABASE_URI', '')
        if uri.startswith('postgres://'):
            app.config['SQLALCHEMY_DATABASE_URI'] = uri.replace(
                'postgres://', 'postgresql://', 1
            )


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    JWT_SECRET_KEY = 'jwt-test-secret-with-enough-length-for-hs256'
    LOG_LEVEL = 'WARNING'


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig,
}
