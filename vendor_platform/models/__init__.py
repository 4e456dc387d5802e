"""
Vendor Onboarding Platform
Model package: shared SQLAlchemy handle.

Every model module imports ``db`` from here so that a single metadata
object covers all tables.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
