# alembic/env.py
import os
import pathlib
import sys
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

config = context.config
if config.config_file_name and os.path.exists(config.config_file_name):
    fileConfig(config.config_file_name)

from wsgi import app  # noqa: E402
from reviewdesk.extensions import db  # noqa: E402


def _database_url():
    """DATABASE_URL wins; otherwise the app's configured URI.

    Relative sqlite files live under instance/, like Flask's instance folder.
    """
    url = os.getenv("DATABASE_URL") or app.config.get("SQLALCHEMY_DATABASE_URI")
    prefix = "sqlite:///"
    if url and url.startswith(prefix) and not url.startswith(prefix + "/"):
        instance = ROOT / "instance"
        instance.mkdir(parents=True, exist_ok=True)
        url = prefix + (instance / url[len(prefix):]).as_posix()
    return url


with app.app_context():
    import reviewdesk.models  # noqa: F401,E402
    url = _database_url()
    target_metadata = db.metadata

# sqlite needs batch mode for ALTER TABLE
OPTIONS = dict(target_metadata=target_metadata, compare_type=True, render_as_batch=True)


def run_migrations_offline():
    context.configure(url=url, literal_binds=True, **OPTIONS)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    engine = engine_from_config({"sqlalchemy.url": url}, prefix="sqlalchemy.", poolclass=pool.NullPool)
    with engine.connect() as connection:
        context.configure(connection=connection, **OPTIONS)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
