"""WSGI entrypoint: ``gunicorn -c gestaomei/gunicorn.conf.py gestaomei.wsgi:app``."""

from __future__ import annotations

import os

from gestaomei import create_app

app = create_app(os.environ.get("APP_ENV", "production"))

if __name__ == "__main__":
    app.run(
        host=os.environ.get("FLASK_RUN_HOST", "127.0.0.1"),
        port=int(os.environ.get("FLASK_RUN_PORT", "5001")),
    )
