import logging

from telegram import LinkPreviewOptions, Update
from telegram.constants import ParseMode
from telegram.ext import ContextTypes

from tzbot.utils.report import build_report
from tzbot.utils.storage import load_calendar, load_cities

logger = logging.getLogger(__name__)


async def convert_text(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Reply with the time in every watched city if the message mentions one, e.g. "18p"."""
    message = update.message
    if not message or not message.text:
        return
    cities = load_cities(context.chat_data)
    report = build_report(message.text, cities, load_calendar(context.chat_data))
    if report is None:
        return
    logger.debug("chat %s: conversion for %r", update.effective_chat.id, message.text)
    await update.effective_chat.send_message(
        report,
        parse_mode=ParseMode.HTML,
        link_preview_options=LinkPreviewOptions(is_disabled=True),
    )
