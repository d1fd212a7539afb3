from flask import Flask, jsonify
from flask_cors import CORS
from dotenv import load_dotenv
import os
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from nexus.extensions import db, migrate, jwt
from nexus.utils.email import mail, MailGateway
from datetime import timedelta
import logging

# Load environment variables
load_dotenv()


def _unauthorized(message):
    return jsonify({"success": False, "error": message, "code": "Unauthorized"}), 401


def create_app(config_overrides=None):
    app = Flask(__name__)

    # Set testing mode from environment variable
    app.config["TESTING"] = os.getenv("FLASK_ENV") in ["development", "testing"]

    # Configure logging
    logging.basicConfig(level=logging.INFO)
    app.logger.setLevel(logging.INFO)

    # Configure database
    app.config["SQLALCHEMY_DATABASE_URI"] = os.getenv(
        "DATABASE_URL", "postgresql://localhost/nexus"
    )
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False

    # Configure JWT
    app.config["JWT_SECRET_KEY"] = os.getenv("JWT_SECRET_KEY", "your-secret-key")
    app.config["JWT_ACCESS_TOKEN_EXPIRES"] = timedelta(days=1)
    app.config["JWT_TOKEN_LOCATION"] = ["headers"]
    app.config["JWT_HEADER_NAME"] = "Authorization"
    app.config["JWT_HEADER_TYPE"] = "Bearer"

    # Email configuration
    app.config["MAIL_SERVER"] = os.getenv("MAIL_SERVER")
    app.config["MAIL_PORT"] = int(os.getenv("MAIL_PORT", 587))
    app.config["MAIL_USE_TLS"] = os.getenv("MAIL_USE_TLS", "true").lower() in ["true", "1", "t"]
    app.config["MAIL_USERNAME"] = os.getenv("MAIL_USERNAME")
    app.config["MAIL_PASSWORD"] = os.getenv("MAIL_PASSWORD")
    app.config["DEFAULT_ORGANIZATION_NAME"] = os.getenv("DEFAULT_ORGANIZATION_NAME", "Nexus Events")

    # Notification outbox
    app.config["NOTIFICATION_DISPATCH"] = os.getenv("NOTIFICATION_DISPATCH", "thread")
    app.config["NOTIFICATION_TIMEOUT_SECONDS"] = float(os.getenv("NOTIFICATION_TIMEOUT_SECONDS", 10))
    app.config["NOTIFICATION_MAX_ATTEMPTS"] = int(os.getenv("NOTIFICATION_MAX_ATTEMPTS", 3))
    app.config["NOTIFICATION_POLL_SECONDS"] = float(os.getenv("NOTIFICATION_POLL_SECONDS", 5))

    # Rate limiting
    app.config["RATELIMIT_ENABLED"] = os.getenv("RATELIMIT_ENABLED", "true").lower() in ["true", "1", "t"]

    if config_overrides:
        app.config.update(config_overrides)

    # Implement rate limiting using flask-limiter
    Limiter(
        get_remote_address,
        app=app,
        default_limits=["150 per minute", "10000 per hour"],
        storage_uri=os.getenv("LIMITER_DATABASE_URL", "memory://"),
        strategy="fixed-window",
    )

    # Initialize Flask extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    mail.init_app(app)

    @jwt.unauthorized_loader
    def missing_token(reason):
        return _unauthorized(reason)

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return _unauthorized(reason)

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return _unauthorized("Token has expired")

    # Side effects leave the request through the outbox
    from nexus.services.notification_service import NotificationDispatcher

    MailGateway(app)
    dispatcher = NotificationDispatcher(app)

    # Register blueprints
    from nexus.routes.user_routes import user_bp
    from nexus.routes.event_routes import event_bp
    from nexus.routes.registration_routes import registration_bp
    from nexus.routes.admin_routes import admin_bp
    from nexus.routes.health_routes import health_bp

    app.register_blueprint(user_bp, url_prefix="/api/user")
    app.register_blueprint(event_bp, url_prefix="/api")
    app.register_blueprint(registration_bp, url_prefix="/api")
    app.register_blueprint(admin_bp, url_prefix="/api")
    app.register_blueprint(health_bp, url_prefix="/api")

    # Set up CORS
    cors_origins = os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000",
    ).split(",")
    app.logger.info(f"Initializing CORS with origins: {cors_origins}")

    CORS(
        app,
        resources={
            r"/api/*": {"origins": cors_origins},
        },
        supports_credentials=True,
        methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept"],
        expose_headers=["Content-Type"],
    )

    dispatcher.start()

    return app
