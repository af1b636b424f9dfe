"""Waitlist store adapters.

Services depend on ``AbstractWaitlistStore`` only; the SQLAlchemy-backed
implementation can be pointed at SQLite (default) or any async-capable
database through ``DATABASE_URL``.
"""
