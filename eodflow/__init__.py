"""
EOD Flow
Flask Application Factory.

Usage:
    from eodflow import create_app
    app = create_app()           # defaults to "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

import click
from flask import Flask
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy import engine as _sa_engine
from sqlalchemy import event as _sa_event

from eodflow.config import config
from eodflow.middleware.jwt_auth import init_jwt_middleware
from eodflow.middleware.logging_config import configure_logging
from eodflow.middleware.rate_limiter import init_rate_limits
from eodflow.models import db
from eodflow.utils.errors import register_error_handlers

logger = logging.getLogger(__name__)


@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],                     # per-blueprint limits only
)


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name]())

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── JWT auth middleware (sets g.actor; must run before the limiter hook) ─
    init_jwt_middleware(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # ── Import all models so Alembic can detect them ─────────────────────
    from eodflow.models import auth as _auth_models      # noqa: F401
    from eodflow.models import report as _report_models  # noqa: F401
    from eodflow.models import audit as _audit_models    # noqa: F401

    if config_name != "production":
        if app.config["SQLALCHEMY_DATABASE_URI"].startswith("sqlite:///") and ":memory:" not in app.config["SQLALCHEMY_DATABASE_URI"]:
            os.makedirs(app.instance_path, exist_ok=True)
        with app.app_context():
            db.create_all()

    # ── Blueprints ───────────────────────────────────────────────────────
    from eodflow.blueprints.health_bp import health_bp
    from eodflow.blueprints.permission_bp import permission_bp
    from eodflow.blueprints.report_bp import report_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(report_bp)
    app.register_blueprint(permission_bp)

    # ── Error handlers ───────────────────────────────────────────────────
    register_error_handlers(app)

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    # ── CLI commands ─────────────────────────────────────────────────────
    @app.cli.command("seed-roles")
    @click.argument("tenant_id", type=int)
    def seed_roles_cmd(tenant_id):
        """Seed the system roles (Tenant Admin, Manager, Team Lead, Employee) for a tenant."""
        from eodflow.services.role_service import seed_default_roles
        created = seed_default_roles(tenant_id)
        logger.info("Seeded %s roles for tenant %s.", len(created), tenant_id)

    @app.cli.command("migrate-role-permissions")
    @click.argument("tenant_id", type=int)
    def migrate_role_permissions_cmd(tenant_id):
        """Bring a tenant's system roles up to the current permission templates."""
        from eodflow.services.role_service import migrate_role_permissions
        summary = migrate_role_permissions(tenant_id)
        logger.info("Role permission migration: %s", summary)

    return app
