import logging
import os
from datetime import timedelta

from dotenv import load_dotenv
from flask import Flask

from app.tourcms.auth import bp as auth_bp, load_current_user
from app.tourcms.config import load_config
from app.tourcms.db import init_db, teardown_db_session
from app.tourcms.errors import register_error_handlers
from app.tourcms.routes import bp as routes_bp
from app.tourcms.modules.blog.api import bp as blog_bp
from app.tourcms.modules.cart.api import bp as cart_bp
from app.tourcms.modules.catalog.api import bp as catalog_bp
from app.tourcms.modules.gallery.api import bp as gallery_bp
from app.tourcms.modules.homepage.api import bp as homepage_bp
from app.tourcms.modules.media.api import bp as media_bp, files_bp
from app.tourcms.modules.partners.api import bp as partners_bp
from app.tourcms.modules.site_settings.api import bp as site_settings_bp
from app.tourcms.modules.social_media.api import bp as social_media_bp
from app.tourcms.modules.visitor_stats.api import bp as visitor_stats_bp

API_BLUEPRINTS = (
    catalog_bp,
    blog_bp,
    gallery_bp,
    homepage_bp,
    partners_bp,
    social_media_bp,
    site_settings_bp,
    media_bp,
    visitor_stats_bp,
    cart_bp,
)


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__)
    app.config.from_mapping(load_config())
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(hours=app.config["SESSION_HOURS"])
    app.config["SESSION_REFRESH_EACH_REQUEST"] = True
    app.json.sort_keys = False
    app.logger.setLevel(app.config["LOG_LEVEL"])

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if not app.config.get("DATABASE_URL") or str(app.config["DATABASE_URL"]).strip() == "":
            raise RuntimeError("DATABASE_URL is required in production.")
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")

    init_db(app)

    def _dispose_engine_on_fork() -> None:
        if hasattr(os, "register_at_fork"):
            def _after_fork_child():
                engine = app.extensions.get("sqlalchemy_engine")
                if engine:
                    engine.dispose()
                    app.logger.info("Disposed DB engine after fork (pid=%s)", os.getpid())

            os.register_at_fork(after_in_child=_after_fork_child)

    _dispose_engine_on_fork()

    if app.config.get("STORAGE_BACKEND") == "s3":
        missing_s3 = [
            key
            for key in ("S3_ENDPOINT", "S3_BUCKET", "S3_ACCESS_KEY_ID", "S3_SECRET_ACCESS_KEY")
            if not app.config.get(key)
        ]
        if missing_s3:
            app.logger.error("STORAGE CONFIG ERROR: Missing required S3 env vars: %s", ", ".join(missing_s3))
    else:
        os.makedirs(os.path.join(app.config["UPLOAD_ROOT"], "uploads"), exist_ok=True)

    register_error_handlers(app)

    app.register_blueprint(routes_bp)
    app.register_blueprint(files_bp)
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    for bp in API_BLUEPRINTS:
        app.register_blueprint(bp, url_prefix="/api")

    app.before_request(load_current_user)
    app.teardown_appcontext(teardown_db_session)

    logging.getLogger(__name__).info(
        "create_app() complete; env=%s storage=%s", env or "development", app.config.get("STORAGE_BACKEND")
    )
    return app
