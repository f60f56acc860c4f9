from datetime import datetime
import logging

from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_wtf import CSRFProtect


from .config_db import (
    load_env_once,
    resolve_database_uri,
    resolve_demo_mode,
    resolve_log_level,
    resolve_request_timeout,
    resolve_secret_key,
    resolve_sheet_api_url,
)

db = SQLAlchemy()
migrate = Migrate()
csrf = CSRFProtect()


def format_rupiah(value):
    try:
        number = float(value or 0)
    except (TypeError, ValueError):
        number = 0.0
    sign = "-" if number < 0 else ""
    return f"{sign}Rp {abs(number):,.0f}".replace(",", ".")


def _configure_logging(app):
    level = app.config.get("LOG_LEVEL", logging.INFO)
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )
    app.logger.setLevel(level)
    logging.getLogger("amsa_pos").setLevel(level)


def create_app(config_overrides=None):
    app = Flask(__name__)

    # Load .env dan resolve DSN/SECRET/endpoint
    load_env_once()
    app.config["SQLALCHEMY_DATABASE_URI"] = resolve_database_uri()
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config["SECRET_KEY"] = resolve_secret_key()
    # CSRF token dibiarkan tidak kedaluwarsa agar kasir yang lama idle tidak gagal bayar
    app.config["WTF_CSRF_TIME_LIMIT"] = None
    app.config["SHEET_API_URL"] = resolve_sheet_api_url()
    app.config["SHEET_DEMO_MODE"] = resolve_demo_mode()
    app.config["SHEET_TIMEOUT"] = resolve_request_timeout()
    app.config["LOG_LEVEL"] = resolve_log_level()
    if config_overrides:
        app.config.update(config_overrides)

    _configure_logging(app)

    db.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)
    app.jinja_env.filters["rupiah"] = format_rupiah

    from .demo_sheet import DemoSheet
    from .records import Snapshot
    from .time_utils import format_period_id, format_tanggal_id

    app.jinja_env.filters["tanggal_id"] = format_tanggal_id
    app.jinja_env.filters["periode_id"] = format_period_id

    # state per aplikasi: backend demo dan snapshot terakhir yang berhasil dimuat
    app.extensions["amsa_pos"] = {
        "demo_sheet": DemoSheet(),
        "last_snapshot": Snapshot(),
    }

    from .routes import bp

    app.register_blueprint(bp)

    @app.context_processor
    def inject_template_globals():
        from .routes import get_current_user, is_demo_mode

        return {
            "current_year": datetime.utcnow().year,
            "current_user": get_current_user(),
            "demo_mode": is_demo_mode(),
        }

    @app.shell_context_processor
    def _ctx():
        from . import models

        return {"db": db, "AppSetting": models.AppSetting}

    return app
