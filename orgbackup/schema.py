"""
Database schema bootstrap for orgbackup.
"""

import logging
from sqlalchemy import inspect
from sqlalchemy.exc import OperationalError
from orgbackup import db

logger = logging.getLogger(__name__)


def init_database_schema(app):
    """
    Create any missing tables.

    Safe to call from several server processes at once: a worker that loses
    the race to create a table logs the conflict and carries on.
    """
    with app.app_context():
        inspector = inspect(db.engine)
        existing_tables = set(inspector.get_table_names())
        expected_tables = set(db.metadata.tables.keys())
        missing = expected_tables - existing_tables

        if not missing:
            logger.debug("Database schema up to date")
            return

        logger.info(f"Creating missing tables: {', '.join(sorted(missing))}")
        try:
            db.create_all()
            logger.info("Database schema created successfully")
        except OperationalError as e:
            # Another worker created the tables between inspect and create
            logger.warning(f"Schema creation raced with another worker: {e}")
