"""
Gunicorn configuration for Keyforge
"""
import os
import multiprocessing

bind = f"0.0.0.0:{os.environ.get('PORT', '5000')}"

# Each worker holds its own memory:// counters; point RATELIMIT_STORAGE_URI
# at redis when running more than one
workers = int(os.environ.get('GUNICORN_WORKERS', multiprocessing.cpu_count() * 2 + 1))
worker_class = 'sync'
timeout = 30
max_requests = 1000
max_requests_jitter = 50

# Logging
accesslog = '-'
errorlog = '-'
loglevel = os.environ.get('LOG_LEVEL', 'info').lower()

proc_name = 'keyforge'

# Small JSON API: keep header limits tight
limit_request_line = 4094
limit_request_fields = 100
limit_request_field_size = 8190


def when_ready(server):
    server.log.info(f"Keyforge is ready. Listening on {bind}")
