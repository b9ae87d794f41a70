import html

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.ext import ContextTypes

from tzbot.constants import CB_CAL_DISABLE, CB_CAL_KEEP
from tzbot.utils.session_utils import (
    AwaitingCalendarTitle,
    CalendarSettings,
    RenamingCalendarTitle,
    button_data,
    parse_button_data,
)
from tzbot.utils.storage import clear_pending, get_pending, load_calendar, save_calendar, set_pending

MAX_TITLE_LENGTH = 100
NOT_YOUR_BUTTON = "This button belongs to someone else's dialog."


def _rename_keyboard(user_id: int) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        [
            [
                InlineKeyboardButton("🚫 Disable links", callback_data=button_data(CB_CAL_DISABLE, user_id)),
                InlineKeyboardButton("👌 Keep as is", callback_data=button_data(CB_CAL_KEEP, user_id)),
            ]
        ]
    )


def _title_from(update: Update) -> str:
    message = update.message or update.edited_message
    text = (message.text or "").strip() if message else ""
    return text[:MAX_TITLE_LENGTH]


async def calendar_cmd(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Turn the "Add to calendar" link on, rename its event title, or turn it off."""
    settings = load_calendar(context.chat_data)
    user_id = update.effective_user.id
    if settings.enabled:
        set_pending(context.chat_data, user_id, RenamingCalendarTitle())
        await update.effective_chat.send_message(
            f"Calendar links are on. Event title: <b>{html.escape(settings.title)}</b>\n"
            "Send a new title to rename it, or choose below.",
            reply_markup=_rename_keyboard(user_id),
        )
        return
    set_pending(context.chat_data, user_id, AwaitingCalendarTitle())
    await update.effective_chat.send_message(
        "Calendar links are off. Send an event title to turn them on.",
        reply_markup=InlineKeyboardMarkup(
            [[InlineKeyboardButton("👌 Keep off", callback_data=button_data(CB_CAL_KEEP, user_id))]]
        ),
    )


async def title_received(update: Update, context: ContextTypes.DEFAULT_TYPE, state: AwaitingCalendarTitle) -> None:
    title = _title_from(update)
    if not title:
        await update.effective_chat.send_message("Send a title for the calendar event.")
        return
    clear_pending(context.chat_data, update.effective_user.id)
    if not save_calendar(context.chat_data, CalendarSettings(enabled=True, title=title)):
        await update.effective_chat.send_message("⚠️ Couldn't save calendar settings. Please try again.")
        return
    await update.effective_chat.send_message(
        f"Calendar links are on. Event title: <b>{html.escape(title)}</b>"
    )


async def rename_received(update: Update, context: ContextTypes.DEFAULT_TYPE, state: RenamingCalendarTitle) -> None:
    title = _title_from(update)
    if not title:
        return
    settings = load_calendar(context.chat_data)
    settings.enabled = True
    settings.title = title
    if not save_calendar(context.chat_data, settings):
        clear_pending(context.chat_data, update.effective_user.id)
        await update.effective_chat.send_message("⚠️ Couldn't save calendar settings. Please try again.")
        return
    # Stay in rename mode so the next message can rename again
    set_pending(context.chat_data, update.effective_user.id, state)
    await update.effective_chat.send_message(
        f"Renamed to <b>{html.escape(title)}</b>. Send another title, or choose below.",
        reply_markup=_rename_keyboard(update.effective_user.id),
    )


async def calendar_button(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    query = update.callback_query
    user_id = update.effective_user.id
    action, owner = parse_button_data(query.data)
    if owner is not None and owner != user_id:
        await query.answer(NOT_YOUR_BUTTON, show_alert=True)
        return
    await query.answer()
    if isinstance(get_pending(context.chat_data, user_id), (AwaitingCalendarTitle, RenamingCalendarTitle)):
        clear_pending(context.chat_data, user_id)
    settings = load_calendar(context.chat_data)

    if action == CB_CAL_DISABLE:
        settings.enabled = False
        if not save_calendar(context.chat_data, settings):
            await query.edit_message_text("⚠️ Couldn't save calendar settings. Please try again.")
            return
        await query.edit_message_text("Calendar links are off. Use /calendar to turn them back on.")
        return

    if settings.enabled:
        await query.edit_message_text(f"Keeping event title <b>{html.escape(settings.title)}</b>.")
    else:
        await query.edit_message_text("Calendar links stay off.")
