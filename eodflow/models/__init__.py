"""
EOD Flow — SQLAlchemy model package.

Every model module imports ``db`` from here so the process holds exactly
one Flask-SQLAlchemy instance, bound to the app in ``create_app``.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
