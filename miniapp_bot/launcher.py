#!/usr/bin/env python3

import logging

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update, WebAppInfo
from telegram.error import TelegramError
from telegram.ext import Application, CallbackContext, CommandHandler, ContextTypes

from miniapp_bot.config import Config
from miniapp_bot.log_utils import LoggerHelper

logger = logging.getLogger(__name__)
log_helper = LoggerHelper(logger)


def build_webapp_keyboard(url: str, text: str) -> InlineKeyboardMarkup:
    """Return a one-button keyboard that opens ``url`` as a WebApp."""

    return InlineKeyboardMarkup(
        [[InlineKeyboardButton(text, web_app=WebAppInfo(url=url))]]
    )


class MiniAppBot:
    """Bot that hands users the deep link into the mini-app."""

    def __init__(self, cfg: Config) -> None:
        cfg.validate()
        self._cfg = cfg
        self._log = log_helper.bind(webapp_url=cfg.WEBAPP_URL)

        self._application: Application = (
            Application.builder()
            .token(cfg.BOT_TOKEN)
            .connect_timeout(cfg.CONNECT_TIMEOUT)
            .read_timeout(cfg.READ_TIMEOUT)
            .build()
        )
        self.register(self._application)

        self._log.info("BotInit", "MiniAppBot initialized")

    def register(self, application: Application) -> None:
        application.add_handler(CommandHandler("start", self.handle_start))
        application.add_handler(CommandHandler("app", self.handle_app))
        application.add_error_handler(self._error_handler)

    def _keyboard(self, text: str) -> InlineKeyboardMarkup:
        return build_webapp_keyboard(self._cfg.WEBAPP_URL, text)

    def _message(self, update: Update, command: str):
        message = update.effective_message
        if message is None:
            self._log.warn("NoMessage", "Command update carries no message", command=command)
        return message

    async def handle_start(
        self,
        update: Update,
        context: ContextTypes.DEFAULT_TYPE,
    ) -> None:
        message = self._message(update, "start")
        if message is None:
            return
        await message.reply_text(
            self._cfg.WELCOME_TEXT,
            reply_markup=self._keyboard(self._cfg.OPEN_BUTTON_TEXT),
        )

    async def handle_app(
        self,
        update: Update,
        context: ContextTypes.DEFAULT_TYPE,
    ) -> None:
        message = self._message(update, "app")
        if message is None:
            return
        await message.reply_text("Open:", reply_markup=self._keyboard("Open"))

    async def _error_handler(
        self,
        update: object,
        context: CallbackContext,
    ) -> None:
        """Global error handler for all bot operations."""
        self._log.error(
            "BotError",
            "Exception while handling update",
            update=update,
            exc_info=context.error,
        )

    def run(self) -> None:
        """Start the bot in polling mode."""
        self._log.info("BotPolling", "Starting polling mode")
        try:
            self._application.run_polling(
                drop_pending_updates=True,
                allowed_updates=Update.ALL_TYPES,
            )
        except TelegramError as exc:
            self._log.error("BotRun", "Fatal error during bot execution", error=str(exc), exc_info=True)
            raise
        finally:
            self._log.info("BotShutdown", "Bot shut down complete")
