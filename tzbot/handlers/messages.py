import logging

from telegram import Update
from telegram.ext import ContextTypes

from tzbot.handlers.calendar import rename_received, title_received
from tzbot.handlers.convert import convert_text
from tzbot.handlers.wizard import aliases_received, choice_received, city_name_received, removal_received
from tzbot.utils.session_utils import (
    AwaitingAliasCodes,
    AwaitingCalendarTitle,
    AwaitingCityName,
    AwaitingDisambiguationChoice,
    AwaitingRemovalChoice,
    RenamingCalendarTitle,
)
from tzbot.utils.storage import get_pending

logger = logging.getLogger(__name__)

STEP_HANDLERS = {
    AwaitingCityName: city_name_received,
    AwaitingDisambiguationChoice: choice_received,
    AwaitingAliasCodes: aliases_received,
    AwaitingRemovalChoice: removal_received,
    AwaitingCalendarTitle: title_received,
    RenamingCalendarTitle: rename_received,
}


async def on_text(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Entry point for every plain text message.

    A pending /addcity, /removecity or /calendar dialog of the sender takes the
    message first; otherwise it is checked for a time to convert.
    """
    if not update.message or not update.message.text:
        return
    user = update.effective_user
    if user is not None:
        state = get_pending(context.chat_data, user.id)
        if state is not None:
            logger.debug("chat %s user %s: continuing %s", update.effective_chat.id, user.id, state.step)
            await STEP_HANDLERS[type(state)](update, context, state)
            return
    await convert_text(update, context)
