"""
WSGI / Flask-Migrate entry point.

Usage:
    flask --app wsgi db upgrade
    flask --app wsgi recompute-metrics
"""

from vendor_platform import create_app

app = create_app()
