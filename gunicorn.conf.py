"""Gunicorn config for the Portfolio Timeline API.

Run with: gunicorn portfolio_timeline.main:app -c gunicorn.conf.py
"""
import os

# Bind to the platform's PORT or default 8000
bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"

# Uvicorn async workers, each replays the inbox ledger into its own timeline.
# Uploads only reach the worker that served them; keep 1 worker unless the
# inbox is the only data source. Tune via WEB_CONCURRENCY env var.
worker_class = "uvicorn.workers.UvicornWorker"
workers = int(os.environ.get("WEB_CONCURRENCY", "1"))

# Timeout: a multi-year ledger replay plus Excel export stays well under this
timeout = 60

# Graceful timeout for shutdown
graceful_timeout = 30

# Keep-alive must exceed the proxy keep-alive (typically 60s)
keepalive = 65

# Logging
accesslog = "-"
errorlog = "-"
loglevel = "info"
