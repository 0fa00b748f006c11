"""
Gunicorn configuration for the PulseBloom analytics API.

Run with:  gunicorn -c gunicorn.conf.py

Env vars that override defaults:
  PORT       TCP port to bind (default: 8000)
  WORKERS    number of worker processes (default: 2)
  LOG_LEVEL  gunicorn log level (default: info)
"""
import os

wsgi_app = "pulsebloom.main:app"

bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"

# Analytics requests are CPU-light; two workers fit a 512 MB container.
workers = int(os.environ.get("WORKERS", "2"))
worker_class = "uvicorn.workers.UvicornWorker"

keepalive = 5

# GET /insights may wait on the language model (INSIGHT_TIMEOUT_SECONDS).
timeout = 90
graceful_timeout = 30

# Recycle workers periodically to bound memory growth.
max_requests = 2000
max_requests_jitter = 200

loglevel = os.environ.get("LOG_LEVEL", "info").lower()
accesslog = "-"
errorlog = "-"
access_log_format = '%(h)s "%(r)s" %(s)s %(b)sB %(D)sus'
