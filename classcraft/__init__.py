from flask import Flask, g, jsonify
from flask_cors import CORS
from .config import Config
from classcraft.extensions import db, jwt, limiter, migrate
from classcraft.errors import register_error_handlers
from classcraft.routes import register_routes


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    db.init_app(app)
    jwt.init_app(app)
    CORS(app, origins=app.config["CORS_ORIGINS"], supports_credentials=True)
    limiter.init_app(app)
    migrate.init_app(app, db)
    register_error_handlers(app)
    register_routes(app)

    @jwt.unauthorized_loader
    def missing_token(reason):
        return jsonify({"message": "No token"}), 401

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return jsonify({"message": "Invalid or expired token"}), 401

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return jsonify({"message": "Invalid or expired token"}), 401

    @app.teardown_request
    def forget_caller(exc):
        g.pop("caller", None)

    with app.app_context():
        db.create_all()

    return app
