"""
Test configuration.

The engine in rivo_scheduling.config.database is built at import time, so the
environment has to point at SQLite before anything from the package is imported.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["NOTIFICATIONS_ENABLED"] = "false"
os.environ["DEFAULT_TIMEZONE"] = "America/New_York"
