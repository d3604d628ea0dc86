# backend/athena/routes/__init__.py
"""HTTP routers for the Athena session engine."""
