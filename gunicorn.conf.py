"""Gunicorn production configuration for the approvals API."""
import multiprocessing
import os

wsgi_app = "premium_freight.main:app"
chdir = os.path.join(os.path.dirname(os.path.abspath(__file__)), "backend")

bind = os.getenv("PF_BIND", "0.0.0.0:8000")
workers = int(os.getenv("PF_WORKERS", multiprocessing.cpu_count() * 2 + 1))
worker_class = "uvicorn.workers.UvicornWorker"
timeout = 60
graceful_timeout = 30
keepalive = 5
max_requests = 1000
max_requests_jitter = 100
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("PF_LOG_LEVEL", "info")
