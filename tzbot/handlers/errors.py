import logging
from telegram import Update
from telegram.error import TelegramError
from telegram.ext import ContextTypes

logger = logging.getLogger(__name__)

async def on_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    # PTB recommends not raising; just log it
    logger.exception(
        "Unhandled exception while handling update=%r. error=%r",
        update,
        context.error,
    )
    if isinstance(update, Update) and update.effective_chat:
        try:
            await update.effective_chat.send_message("⚠️ Something went wrong. Please try again.")
        except TelegramError as e:
            logger.warning("on_error: could not notify chat %s: %s", update.effective_chat.id, e)
