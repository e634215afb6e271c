import multiprocessing


wsgi_app = "driver_attendance:create_app()"
bind = "0.0.0.0:8000"
workers = max(2, multiprocessing.cpu_count() * 2 + 1)
# Requests run synchronously; photo uploads are the slow part.
worker_class = "sync"
timeout = 120
graceful_timeout = 30
keepalive = 5
accesslog = "-"
errorlog = "-"
