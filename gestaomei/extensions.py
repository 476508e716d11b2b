"""Flask extension singletons, bound to the app in ``create_app``."""

from pathlib import Path

from flask_bcrypt import Bcrypt
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy(session_options={"expire_on_commit": False})
migrate = Migrate()
jwt = JWTManager()
bcrypt = Bcrypt()
# RATELIMIT_ENABLED, RATELIMIT_DEFAULT and RATELIMIT_STORAGE_URI come from app config.
limiter = Limiter(key_func=get_remote_address)

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"


def init_extensions(app) -> None:
    db.init_app(app)
    migrate.init_app(app, db, directory=str(MIGRATIONS_DIR))
    jwt.init_app(app)
    bcrypt.init_app(app)
    limiter.init_app(app)
