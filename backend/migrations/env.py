from alembic import context
from sqlalchemy import engine_from_config, pool

from order_tracker import create_app
from order_tracker.extensions import db

config = context.config

# Logging config is not required for migrations to run; fileConfig() is
# skipped because hosted environments resolve the ini path inconsistently.

target_metadata = db.metadata


def get_url():
    app = create_app()
    url = app.config["SQLALCHEMY_DATABASE_URI"]
    if not url:
        raise RuntimeError("DATABASE_URL is empty; nothing to migrate")
    return url


def run_migrations_offline():
    url = get_url()
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
        render_as_batch=url.startswith("sqlite"),
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    configuration = config.get_section(config.config_ini_section) or {}
    configuration["sqlalchemy.url"] = get_url()

    connectable = engine_from_config(
        configuration,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
        future=True,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=connection.dialect.name == "sqlite",
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
