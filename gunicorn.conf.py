"""
Gunicorn configuration file for the Asset Movement Ledger
"""

import os

# Server socket
bind = os.environ.get('GUNICORN_BIND', "0.0.0.0:5000")
backlog = 2048

# Worker processes
# Per-asset locks are in-process; across workers the asset row lock
# (SELECT ... FOR UPDATE on PostgreSQL) serializes ledger writes
workers = int(os.environ.get('GUNICORN_WORKERS', 2))
worker_class = "gthread"
threads = int(os.environ.get('GUNICORN_THREADS', 4))
max_requests = 1000  # Restart workers after this many requests
max_requests_jitter = 50
timeout = 30  # Worker timeout in seconds
keepalive = 2

# Process naming
proc_name = "asset_movement_ledger"

# Logging
accesslog = "-"  # Log to stdout
errorlog = "-"  # Log to stderr
loglevel = "info"
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'

# Process management
daemon = False  # Run in foreground (use with systemd/supervisord)
pidfile = None
umask = 0


# Server hooks
def on_starting(server):
    """Called just before the master process is initialized."""
    print("Starting Asset Movement Ledger server...")


def when_ready(server):
    """Called just after the server is started."""
    print(f"Asset Movement Ledger ready. Listening on {bind}")


def post_fork(server, worker):
    """Called just after a worker has been forked."""
    print(f"Worker spawned (pid: {worker.pid})")


def worker_abort(worker):
    """Called when a worker received the SIGABRT signal."""
    print(f"Worker received SIGABRT signal (pid: {worker.pid})")
