"""
Alembic migration environment for the gear reservation schema.

Migrations run through the synchronous driver (DATABASE_URL_SYNC); the
application itself uses the async URL. SQLite targets (local experiments)
get batch mode so ALTER TABLE migrations work there too.
"""

from logging.config import fileConfig
from sqlalchemy import engine_from_config, pool
from alembic import context

from gearhub.db.base import Base
from gearhub.models import Item, Event, Reservation, Allocation, EventRequest, AuditLog  # noqa: F401 - registers tables on Base.metadata
from gearhub.core.config import get_settings

config = context.config
settings = get_settings()

config.set_main_option("sqlalchemy.url", settings.DATABASE_URL_SYNC)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _configure_options(url: str) -> dict:
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        "render_as_batch": url.startswith("sqlite"),
    }


def run_migrations_offline() -> None:
    """Emit the migration SQL as a script instead of executing it."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_options(url),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            **_configure_options(str(connectable.url)),
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
