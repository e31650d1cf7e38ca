"""Telegram front end built on python-telegram-bot.

Translates Telegram updates into Events for the ConversationController and
implements DeliveryChannel on top of the Bot API.
"""

import asyncio
from typing import Optional

from telegram import Bot, InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.error import BadRequest, Forbidden, TelegramError
from telegram.ext import Application, CallbackQueryHandler, ContextTypes, MessageHandler, filters

from bot.channel import CALLBACK, COMMAND, MESSAGE, ChannelError, Controls, DeliveryChannel, Event
from bot import replies
from bot.controller import ConversationController
from categorization import Classifier
from config import Config
from llm.factory import get_llm_provider
from llm.providers.base import LLMProvider
from logger import get_logger
from parsing import ExpenseParser
from services.base import Services
from tools.recurring import track_recurring_expenses

logger = get_logger()

# Substrings of BadRequest messages for messages that can no longer be edited
_STALE_MESSAGES = (
    "too old",
    "can't be edited",
    "message to edit not found",
    "message not found",
    "message is not modified",
)


def to_channel_error(error: TelegramError) -> ChannelError:
    """Classify a Telegram API error."""
    message = str(error)
    if isinstance(error, Forbidden):
        return ChannelError(ChannelError.PERMISSION, message)
    if isinstance(error, BadRequest):
        lowered = message.lower()
        if "not enough rights" in lowered:
            return ChannelError(ChannelError.PERMISSION, message)
        if any(marker in lowered for marker in _STALE_MESSAGES):
            return ChannelError(ChannelError.STALE, message)
    return ChannelError(ChannelError.OTHER, message)


def to_markup(controls: Optional[Controls]) -> Optional[InlineKeyboardMarkup]:
    if not controls:
        return None
    return InlineKeyboardMarkup(
        [
            [
                InlineKeyboardButton(button.label, url=button.url)
                if button.url
                else InlineKeyboardButton(button.label, callback_data=button.action)
                for button in row
            ]
            for row in controls
        ]
    )


class TelegramChannel(DeliveryChannel):
    """DeliveryChannel backed by a python-telegram-bot Bot."""

    def __init__(self, bot: Bot):
        self.bot = bot

    async def send(self, chat_id, text, controls=None) -> None:
        try:
            await self.bot.send_message(chat_id=chat_id, text=text, reply_markup=to_markup(controls))
        except TelegramError as e:
            raise to_channel_error(e) from e

    async def answer(self, callback_id, text=None, alert=False) -> None:
        try:
            await self.bot.answer_callback_query(callback_id, text=text, show_alert=alert)
        except TelegramError as e:
            raise to_channel_error(e) from e

    async def clear_controls(self, chat_id, message_id) -> None:
        try:
            await self.bot.edit_message_reply_markup(chat_id=chat_id, message_id=message_id, reply_markup=None)
        except TelegramError as e:
            raise to_channel_error(e) from e


def event_from_update(update: Update) -> Optional[Event]:
    """Build an Event from a Telegram update, or None for updates the bot ignores."""
    user = update.effective_user
    chat = update.effective_chat
    if user is None or chat is None:
        return None

    query = update.callback_query
    if query is not None:
        return Event(
            kind=CALLBACK,
            user_id=str(user.id),
            chat_id=chat.id,
            callback_data=query.data,
            callback_id=query.id,
            message_id=query.message.message_id if query.message else None,
        )

    message = update.message
    if message is not None and message.text:
        return Event(
            kind=COMMAND if message.text.startswith("/") else MESSAGE,
            user_id=str(user.id),
            chat_id=chat.id,
            text=message.text,
            message_id=message.message_id,
        )

    return None


def build_application(
    config: Config,
    services: Services,
    provider: Optional[LLMProvider] = None,
) -> Application:
    """Create the Telegram application with handlers and scheduled jobs.

    Args:
        config: Application configuration (needs telegram_bot_token).
        services: Services container.
        provider: Optional LLM provider for classification, refinement and chat.

    Raises:
        ValueError: If no bot token is configured.
    """
    if not config.telegram_bot_token:
        raise ValueError(
            "telegram.bot_token not configured (set it in the config file or TELEGRAM_BOT_TOKEN)"
        )

    application = (
        Application.builder()
        .token(config.telegram_bot_token)
        .concurrent_updates(True)
        .build()
    )

    channel = TelegramChannel(application.bot)
    controller = ConversationController(
        services=services,
        classifier=Classifier(provider, services.learned_examples),
        parser=ExpenseParser(provider if config.llm_refine_descriptions else None),
        channel=channel,
        dashboard_url=config.dashboard_url,
        chat_provider=provider if config.llm_chat_replies else None,
    )
    application.bot_data["controller"] = controller

    async def on_update(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        event = event_from_update(update)
        if event is not None:
            await controller.handle(event)

    async def on_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
        logger.error(f"Unhandled Telegram error: {context.error}", exc_info=context.error)

    async def on_track_recurring(context: ContextTypes.DEFAULT_TYPE) -> None:
        try:
            created = await asyncio.to_thread(track_recurring_expenses, services)
        except Exception as e:
            logger.error(f"Recurring expense tracking failed: {e}")
            return

        for expense in created:
            reply = replies.recurring_tracked(expense)
            try:
                # Private chats share the user's id
                await channel.send(int(expense.user_id), reply.text, reply.controls)
            except (ChannelError, ValueError) as e:
                logger.warning(f"Could not notify user {expense.user_id} of expense {expense.id}: {e}")

    application.add_handler(CallbackQueryHandler(on_update))
    application.add_handler(MessageHandler(filters.TEXT, on_update))
    application.add_error_handler(on_error)

    if application.job_queue is not None:
        application.job_queue.run_repeating(
            on_track_recurring,
            interval=config.recurring_check_interval_minutes * 60,
            first=10,
            name="track_recurring",
        )
    else:
        logger.warning("Job queue unavailable; recurring expenses will not be tracked automatically")

    return application


def run_bot(config: Config) -> None:
    """Apply migrations and run the bot until interrupted."""
    services = Services(config)

    applied = services.db_manager.apply_pending_migrations()
    if applied:
        logger.info(f"Applied {len(applied)} migration(s): {', '.join(applied)}")

    try:
        provider = get_llm_provider(config)
    except ValueError as e:
        logger.error(f"LLM fallback disabled: {e}")
        provider = None

    application = build_application(config, services, provider)
    logger.info("Starting Hornerito bot...")
    application.run_polling(allowed_updates=Update.ALL_TYPES)
