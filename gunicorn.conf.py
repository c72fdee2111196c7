"""
Gunicorn Configuration

Serves the CRM Analytics API with Uvicorn workers.

    gunicorn crm_analytics.main:app -c gunicorn.conf.py
"""

import multiprocessing
import os

# Server socket
bind = os.getenv("BIND", f"0.0.0.0:{os.getenv('API_PORT', '8000')}")
backlog = 2048

# Worker processes; each opens its own database engine and Redis pool
workers = int(os.getenv("WORKERS", multiprocessing.cpu_count() * 2 + 1))
worker_class = "uvicorn.workers.UvicornWorker"
max_requests = 10000
max_requests_jitter = 1000
# Year-range exports scan a full table
timeout = int(os.getenv("WORKER_TIMEOUT", 120))
keepalive = 5
graceful_timeout = 30

proc_name = "crm-analytics-api"

daemon = False
pidfile = os.getenv("PIDFILE", "/tmp/crm-analytics.pid")

# Logging; application logs go through structlog on stdout
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()
accesslog = os.getenv("ACCESS_LOG", "-")
access_log_format = '%(h)s "%(r)s" %(s)s %(b)s %(D)s "%({x-request-id}o)s"'


def post_fork(server, worker):
    """Called after a worker has been forked."""
    server.log.info("Worker spawned (pid: %s)", worker.pid)


def worker_abort(worker):
    """Called when a worker times out."""
    worker.log.warning("Worker aborted (pid: %s)", worker.pid)
