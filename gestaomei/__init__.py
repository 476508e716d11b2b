"""GestaoMEI application factory and bootstrap."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from flask import Flask

from gestaomei.config import config_by_name
from gestaomei.core.utils.clock import SystemClock
from gestaomei.extensions import init_extensions


def create_app(config_name: Optional[str] = None) -> Flask:
    """Create and configure the GestaoMEI Flask application."""
    env_name = (config_name or os.environ.get("APP_ENV") or "development").lower()
    project_root = Path(__file__).resolve().parent.parent
    instance_root = project_root / "instance"

    app = Flask(
        __name__,
        instance_path=str(instance_root),
        instance_relative_config=True,
    )
    config_cls = config_by_name.get(env_name, config_by_name["development"])
    app.config.from_object(config_cls)

    instance_root.mkdir(parents=True, exist_ok=True)

    # Normalize sqlite path to absolute to avoid "unable to open database file"
    db_uri = app.config.get("SQLALCHEMY_DATABASE_URI")
    is_sqlite = db_uri and db_uri.startswith("sqlite:")
    if is_sqlite and db_uri.startswith("sqlite:///"):
        db_path = db_uri.replace("sqlite:///", "", 1)
        abs_path = project_root / db_path
        abs_path.parent.mkdir(parents=True, exist_ok=True)
        app.config["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{abs_path}"

    if not is_sqlite:
        # Remove sqlite-specific connect_args that break Postgres/MySQL drivers
        engine_opts = app.config.setdefault("SQLALCHEMY_ENGINE_OPTIONS", {})
        connect_args = engine_opts.get("connect_args") or {}
        connect_args.pop("detect_types", None)
        if "timeout" in connect_args:
            timeout_val = connect_args.pop("timeout")
            if db_uri.startswith("postgresql"):
                connect_args.setdefault("connect_timeout", timeout_val)
        if not connect_args and "connect_args" in engine_opts:
            engine_opts.pop("connect_args")
        else:
            engine_opts["connect_args"] = connect_args

    init_extensions(app)

    # Shared services: time source and fiscal tables
    from gestaomei.domains.tax.fiscal_tables import load_fiscal_tables

    app.extensions["clock"] = SystemClock()
    app.extensions["fiscal_tables"] = load_fiscal_tables(app.config["FISCAL_TABLES_PATH"])

    _register_auth_handlers(app)
    _register_blueprints(app)
    _register_error_handlers(app)

    @app.get("/health")
    def health():
        return {"ok": True}, 200

    from gestaomei.core.billing.commands import register_commands

    register_commands(app)

    return app


def _register_auth_handlers(app: Flask) -> None:
    from gestaomei.core.auth.auth_service import is_token_revoked
    from gestaomei.extensions import jwt

    @jwt.token_in_blocklist_loader
    def _check_revoked(jwt_header, jwt_payload) -> bool:
        return is_token_revoked(jwt_payload.get("jti", ""))


def _register_blueprints(app: Flask) -> None:
    """Lazy import and register all controllers."""
    from gestaomei.core.auth.controllers import auth_bp
    from gestaomei.core.billing.controllers import billing_api_bp
    from gestaomei.domains.alerts.controllers import alerts_api_bp
    from gestaomei.domains.ledger.controllers.dashboard_api import dashboard_api_bp
    from gestaomei.domains.ledger.controllers.backup_api import backup_api_bp
    from gestaomei.domains.ledger.controllers.entries_api import entries_api_bp
    from gestaomei.domains.ledger.controllers.bills_api import bills_api_bp
    from gestaomei.domains.notifications.controllers import notifications_api_bp
    from gestaomei.domains.tax.controllers import tax_api_bp

    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(billing_api_bp, url_prefix="/api/billing")
    app.register_blueprint(entries_api_bp, url_prefix="/api/ledger")
    app.register_blueprint(bills_api_bp, url_prefix="/api/ledger")
    app.register_blueprint(dashboard_api_bp, url_prefix="/api")
    app.register_blueprint(backup_api_bp, url_prefix="/api")
    app.register_blueprint(tax_api_bp, url_prefix="/api/tax")
    app.register_blueprint(alerts_api_bp, url_prefix="/api/alerts")
    app.register_blueprint(notifications_api_bp, url_prefix="/api/settings")


def _register_error_handlers(app: Flask) -> None:
    """Basic JSON error responses."""
    from werkzeug.exceptions import HTTPException

    from gestaomei.domains.ledger.services.ledger_service import LedgerValidationError
    from gestaomei.domains.tax.fiscal_tables import FiscalConfigError
    from gestaomei.domains.tax.services import TaxValidationError

    @app.errorhandler(HTTPException)
    def _http_error(exc: HTTPException):
        return {"ok": False, "error": exc.description}, exc.code

    @app.errorhandler(LedgerValidationError)
    @app.errorhandler(TaxValidationError)
    def _domain_validation_error(exc: ValueError):
        return {"ok": False, "error": "validation_error", "details": [{"msg": str(exc)}]}, 400

    @app.errorhandler(FiscalConfigError)
    def _fiscal_config_error(exc: FiscalConfigError):
        app.logger.error("Fiscal configuration error: %s", exc)
        return {"ok": False, "error": "configuration_error", "message": str(exc)}, 500

    @app.errorhandler(Exception)
    def _generic_error(exc: Exception):
        app.logger.exception("Unhandled error: %s", exc)
        # In debug/testing, surface the exception message to speed up diagnosis
        if app.debug or app.testing:
            return {"ok": False, "error": str(exc)}, 500
        return {"ok": False, "error": "unexpected_error"}, 500
