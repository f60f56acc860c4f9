from logging.config import fileConfig
from alembic import context
from flask import current_app
from sqlalchemy import create_engine, pool

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def _target_metadata():
    return current_app.extensions["migrate"].db.metadata


def _get_url():
    try:
        return str(current_app.extensions["migrate"].db.engine.url)
    except RuntimeError:
        # tanpa app context: resolve langsung dari ENV/.env
        from amsa_pos.config_db import load_env_once, resolve_database_uri
        load_env_once()
        return resolve_database_uri()


def _configure_kwargs(url):
    # SQLite (bawaan) tidak bisa ALTER kolom, jadi pakai batch mode
    return {
        "target_metadata": _target_metadata(),
        "compare_type": True,
        "render_as_batch": url.startswith("sqlite"),
    }


def run_migrations_offline():
    url = _get_url()
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_kwargs(url),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    url = _get_url()
    connectable = create_engine(url, poolclass=pool.NullPool)
    with connectable.connect() as connection:
        context.configure(connection=connection, **_configure_kwargs(url))
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
