"""
Flask-Migrate / Alembic entry point.

Usage:
    flask db init       # first time only (creates migrations/ scaffolding)
    flask db upgrade
    flask seed-roles <tenant_id>
"""

from eodflow import create_app

app = create_app()
