"""
Gunicorn configuration for the SkillBridge API.

Run with: gunicorn -c deploy/gunicorn.conf.py skillbridge.main:app

Profile locks are per process; writes across workers are kept
consistent by the version compare-and-swap in ProfileStore.
"""
import os
import multiprocessing

bind = os.environ.get("BIND", "0.0.0.0:8000")
backlog = 2048

workers = int(os.environ.get("WEB_CONCURRENCY", multiprocessing.cpu_count() * 2 + 1))
worker_class = "uvicorn.workers.UvicornWorker"
timeout = 60
keepalive = 5

accesslog = "-"
errorlog = "-"
loglevel = os.environ.get("LOG_LEVEL", "info").lower()
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s %(D)s'

proc_name = "skillbridge"
daemon = False

limit_request_line = 4094
limit_request_fields = 100
limit_request_field_size = 8190

max_requests = 1000
max_requests_jitter = 50


def on_starting(server):
    server.log.info("Starting SkillBridge API")


def worker_exit(server, worker):
    server.log.info(f"Worker {worker.pid} exited")
