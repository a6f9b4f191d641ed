"""
Schema migrations via alembic.

The configured directory holds ordinary alembic revision modules (no env.py
is needed; the environment is configured here). Every pending revision up to
head is applied in one transaction, so a failing revision leaves nothing
half-applied, and a second run with nothing pending is a no-op. Revision
ordering and discovery stay with alembic.
"""

import asyncio
import logging
import os

from alembic.config import Config
from alembic.runtime.environment import EnvironmentContext
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine
from sqlalchemy.pool import NullPool

from pgscope.core.config import MigrationSettings, PostgresSettings
from pgscope.core.errors import MigrationConfigError

_log = logging.getLogger(__name__)


class MigrationRunner:
    def __init__(
        self,
        settings: MigrationSettings | None,
        default_connection: PostgresSettings,
    ) -> None:
        self._settings = settings
        self._default_connection = default_connection

    async def run(self) -> None:
        """Apply pending migrations (alembic is synchronous; runs in a worker thread)."""
        await asyncio.to_thread(self.upgrade)

    def upgrade(self) -> None:
        settings = self._settings
        if settings is None:
            raise MigrationConfigError(
                "Migration error: can't run migrations without a migrations configuration"
            )
        if not settings.path:
            raise MigrationConfigError(
                "Error running database migrations, no path provided: "
                "set migrations.path to the directory holding the revision files"
            )
        directory = os.path.abspath(settings.path)
        if not os.path.isdir(directory):
            raise MigrationConfigError(f"Migrations directory {directory} does not exist")

        connection_settings = settings.connection or self._default_connection

        config = Config()
        config.set_main_option("script_location", directory.replace("%", "%%"))
        script = ScriptDirectory(directory, version_locations=[directory])

        # same callback alembic.command.upgrade passes to EnvironmentContext
        def do_upgrade(rev, context):
            return script._upgrade_revs("heads", rev)

        _log.debug("Running db migrations from %s...", directory)
        engine = create_engine(connection_settings.sqlalchemy_url(), poolclass=NullPool)
        try:
            with engine.connect() as connection:
                with EnvironmentContext(
                    config,
                    script,
                    fn=do_upgrade,
                    destination_rev="heads",
                ) as env:
                    env.configure(connection=connection, version_table=settings.table)
                    with env.begin_transaction():
                        env.run_migrations()
        finally:
            engine.dispose()
        _log.debug("Migrations completed.")
