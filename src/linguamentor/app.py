"""Main application entry point."""
import asyncio
import logging
import signal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine
from telegram.ext import Application, CallbackQueryHandler, CommandHandler

from linguamentor.bot import (
    DEFAULT_LANGUAGE,
    USER_SERVICE,
    VOCABULARY_SERVICE,
    handle_callback,
    handle_daily,
    handle_error,
    handle_language,
    handle_start,
    handle_stats,
)
from linguamentor.config import Settings
from linguamentor.models.base import init_db, make_engine, make_session_factory
from linguamentor.monitoring import start_monitoring
from linguamentor.services.catalog import CatalogRegistry
from linguamentor.services.storage import Storage
from linguamentor.services.user_service import UserService
from linguamentor.services.vocabulary_service import VocabularyService


class LinguaMentorApp:
    """Main application class."""

    def __init__(self, settings: Settings):
        """Initialize the application."""
        self.settings = settings
        self.application: Optional[Application] = None
        self.engine: Optional[AsyncEngine] = None
        self.storage: Optional[Storage] = None
        self.catalogs: Optional[CatalogRegistry] = None
        self.running = False
        self.logger = logging.getLogger(__name__)

    async def init_storage(self) -> Storage:
        """Create the engine and tables and return the storage."""
        self.engine = make_engine(self.settings.database)
        await init_db(self.engine)
        self.storage = Storage(
            make_session_factory(self.engine),
            max_retries=self.settings.database.max_retries,
            retry_delay=self.settings.database.retry_delay,
        )
        self.logger.info("Database initialized")
        return self.storage

    async def start(self) -> None:
        """Start the application."""
        if self.running:
            return

        try:
            self.settings.validate_bot()
            await self.init_storage()

            self.catalogs = CatalogRegistry.load(
                self.settings.learning.languages, self.settings.paths.catalogs_dir
            )
            self.logger.info(f"Catalogs loaded: {', '.join(self.catalogs.languages)}")

            self.application = Application.builder().token(self.settings.bot.token).build()
            self.application.bot_data[VOCABULARY_SERVICE] = VocabularyService(
                self.catalogs, self.storage, self.settings.learning
            )
            self.application.bot_data[USER_SERVICE] = UserService(
                self.storage, self.settings.bot.owner_ids
            )
            self.application.bot_data[DEFAULT_LANGUAGE] = self.settings.learning.default_language
            self.logger.info("Application created")

            self.application.add_handler(CommandHandler("start", handle_start))
            self.application.add_handler(CommandHandler("daily", handle_daily))
            self.application.add_handler(CommandHandler("stats", handle_stats))
            self.application.add_handler(CommandHandler("language", handle_language))
            self.application.add_handler(CallbackQueryHandler(handle_callback))
            self.application.add_error_handler(handle_error)
            self.logger.info("Handlers added")

            if self.settings.monitoring.enabled:
                start_monitoring(self.settings.monitoring.port)
                self.logger.info(f"Metrics served on port {self.settings.monitoring.port}")

            await self.application.initialize()
            await self.application.start()
            await self.application.updater.start_polling()
            self.logger.info("Application started")

            self.running = True

        except Exception as e:
            self.logger.error("Failed to start application: %s", str(e))
            await self._shutdown()
            raise

    async def stop(self) -> None:
        """Stop the application."""
        if not self.running:
            return
        await self._shutdown()

    async def _shutdown(self) -> None:
        try:
            if self.application:
                if self.application.running:
                    await self.application.updater.stop()
                    await self.application.stop()
                await self.application.shutdown()
                self.application = None
                self.logger.info("Application stopped")

            if self.engine:
                await self.engine.dispose()
                self.engine = None
                self.logger.info("Database engine disposed")

        except Exception as e:
            self.logger.error("Error while stopping application: %s", str(e))
            raise
        finally:
            self.running = False
            self.application = None
            self.engine = None

    async def seed(self) -> None:
        """Write the configured profile for every owner."""
        try:
            storage = await self.init_storage()
            profiles = await UserService(storage, self.settings.bot.owner_ids).seed_profiles(
                self.settings.profile
            )
            self.logger.info(f"Seeded {len(profiles)} profile(s)")
        finally:
            if self.engine:
                await self.engine.dispose()
                self.engine = None

    async def run_until_stopped(self) -> None:
        """Run until SIGINT or SIGTERM."""
        stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, stop_event.set)

        await self.start()
        try:
            await stop_event.wait()
            self.logger.info("Received exit signal, shutting down...")
        finally:
            await self.stop()
