import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from timeline.db.models import Base

config = context.config

# Keep application loggers enabled when migrations run inside the test process
if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

if context.is_offline_mode():
    raise RuntimeError("Offline (--sql) migrations are not supported; run against a database")

# DATABASE_URL wins over alembic.ini, like the application engine
url = os.getenv("DATABASE_URL") or config.get_main_option("sqlalchemy.url")
connectable = create_engine(url, poolclass=pool.NullPool)

with connectable.connect() as connection:
    context.configure(
        connection=connection,
        target_metadata=Base.metadata,
        # SQLite can only alter tables by copying them
        render_as_batch=connection.dialect.name == "sqlite",
    )
    with context.begin_transaction():
        context.run_migrations()
