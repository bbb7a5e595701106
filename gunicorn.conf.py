from __future__ import annotations

import os

wsgi_app = "config.wsgi:application"
chdir = os.path.join(os.path.dirname(os.path.abspath(__file__)), "ballotbox_app")
bind = os.environ.get("GUNICORN_BIND", "0.0.0.0:8000")
workers = int(os.environ.get("GUNICORN_WORKERS", "3"))
# Sync workers: every vote, reconciliation or lifecycle call is one short
# request with its own database transaction.
worker_class = "sync"
timeout = int(os.environ.get("GUNICORN_TIMEOUT", "30"))

_log_level = os.environ.get("LOG_LEVEL", "info").upper()

accesslog = "-"
errorlog = "-"
capture_output = True
loglevel = _log_level.lower()
forwarded_allow_ips = "*"
# Request duration (seconds) last, so slow vote commits stand out.
access_log_format = '%({x-forwarded-for}i)s "%(r)s" %(s)s %(b)s "%(a)s" %(L)s'

logconfig_dict = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "skip_health_probes": {
            "()": "config.logging_filters.HealthEndpointFilter",
        },
    },
    "formatters": {
        "plain": {"format": "%(message)s"},
        "default": {
            "format": "[{asctime}] {levelname} {name}: {message}",
            "style": "{",
        },
    },
    "handlers": {
        "access": {
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout",
            "formatter": "plain",
            "filters": ["skip_health_probes"],
        },
        "console": {
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stderr",
            "formatter": "default",
        },
    },
    "loggers": {
        "gunicorn.access": {"handlers": ["access"], "level": "INFO", "propagate": False},
        "gunicorn.error": {"handlers": ["console"], "level": _log_level, "propagate": False},
    },
    "root": {"handlers": ["console"], "level": "WARNING"},
}
