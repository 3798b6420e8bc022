from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_jwt_extended import JWTManager
from flask_cors import CORS

db = SQLAlchemy()
migrate = Migrate()
jwt = JWTManager()
cors = CORS()


@jwt.unauthorized_loader
def missing_token(reason):
    from flask import jsonify
    return jsonify({'error': 'Authentication required', 'code': 'AUTHENTICATION_ERROR',
                    'details': reason}), 401


@jwt.invalid_token_loader
def invalid_token(reason):
    from flask import jsonify
    return jsonify({'error': 'Invalid session token', 'code': 'AUTHENTICATION_ERROR',
                    'details': reason}), 401


@jwt.expired_token_loader
def expired_token(jwt_header, jwt_payload):
    from flask import jsonify
    return jsonify({'error': 'Session expired', 'code': 'AUTHENTICATION_ERROR'}), 401


@jwt.user_lookup_loader
def load_user(jwt_header, jwt_payload):
    from adventures.models.user import User
    user = db.session.get(User, int(jwt_payload['sub']))
    if user is None or not user.is_active:
        return None
    return user


@jwt.user_lookup_error_loader
def unknown_user(jwt_header, jwt_payload):
    from flask import jsonify
    return jsonify({'error': 'User not found or inactive', 'code': 'AUTHENTICATION_ERROR'}), 401
