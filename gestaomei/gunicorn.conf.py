import multiprocessing
import os

wsgi_app = "gestaomei.wsgi:app"
bind = os.environ.get("GUNICORN_BIND", "0.0.0.0:8000")

# Requests are short CRUD/aggregation calls; a few threaded workers suffice.
workers = int(os.environ.get("GUNICORN_WORKERS", str(min(multiprocessing.cpu_count() + 1, 4))))
worker_class = "gthread"
threads = int(os.environ.get("GUNICORN_THREADS", "4"))
timeout = int(os.environ.get("GUNICORN_TIMEOUT", "30"))
proc_name = "gestaomei"

accesslog = "-"
errorlog = "-"
loglevel = os.environ.get("GUNICORN_LOGLEVEL", "info")
