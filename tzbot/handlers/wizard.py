import html
import logging
from typing import List

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.ext import ContextTypes

from tzbot.constants import BD_LOOKUP, CB_ACCEPT_ALIASES, CB_CANCEL
from tzbot.exceptions import (
    AliasConflict,
    CityNotFound,
    CollaboratorUnavailable,
    DuplicateCity,
    InvalidSelection,
    LastCityError,
)
from tzbot.utils.geocoding import Candidate, search_cities
from tzbot.utils.registry import City, CityList
from tzbot.utils.session_utils import (
    AwaitingAliasCodes,
    AwaitingCityName,
    AwaitingDisambiguationChoice,
    AwaitingRemovalChoice,
    button_data,
    parse_button_data,
)
from tzbot.utils.storage import clear_pending, get_pending, load_cities, save_cities, set_pending

logger = logging.getLogger(__name__)

SAVE_FAILED = "⚠️ Couldn't save the city list. Please try again."
NOT_YOUR_BUTTON = "This button belongs to someone else's dialog."
CITY_STATES = (AwaitingCityName, AwaitingDisambiguationChoice, AwaitingAliasCodes, AwaitingRemovalChoice)


def _cancel_keyboard(user_id: int) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([[InlineKeyboardButton("❌ Cancel", callback_data=button_data(CB_CANCEL, user_id))]])


def _aliases_keyboard(reserved: List[str], user_id: int) -> InlineKeyboardMarkup:
    rows = []
    if reserved:
        accept = InlineKeyboardButton(
            f"✅ Use {' '.join(reserved)}", callback_data=button_data(CB_ACCEPT_ALIASES, user_id)
        )
        rows.append([accept])
    rows.append([InlineKeyboardButton("❌ Cancel", callback_data=button_data(CB_CANCEL, user_id))])
    return InlineKeyboardMarkup(rows)


def _message_text(update: Update) -> str:
    message = update.message or update.edited_message
    return (message.text or "").strip() if message else ""


def _codes(aliases: List[str]) -> str:
    return ", ".join(f"<code>{html.escape(a)}</code>" for a in aliases)


def pick_candidate(candidates: List[Candidate], text: str) -> Candidate:
    try:
        index = int(text.strip())
    except ValueError:
        raise InvalidSelection(text, len(candidates)) from None
    if not 1 <= index <= len(candidates):
        raise InvalidSelection(text, len(candidates))
    return candidates[index - 1]


def parse_indices(text: str, size: int) -> List[int]:
    """1-based indices from ``text``; non-numbers and out-of-range values are dropped."""
    picks = []
    for token in text.split():
        try:
            n = int(token)
        except ValueError:
            continue
        if 1 <= n <= size and n not in picks:
            picks.append(n)
    return picks


async def _lookup(context: ContextTypes.DEFAULT_TYPE, name: str) -> List[Candidate]:
    lookup = context.bot_data.get(BD_LOOKUP) or search_cities
    try:
        candidates = await lookup(name)
    except CollaboratorUnavailable as e:
        logger.warning("city lookup unavailable: %s", e)
        candidates = []
    if not candidates:
        raise CityNotFound(name)
    return candidates


# ---------- /addcity ----------

async def addcity_cmd(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    name = " ".join(context.args or []).strip()
    if not name:
        set_pending(context.chat_data, update.effective_user.id, AwaitingCityName())
        await update.effective_chat.send_message(
            "Which city should I add? Send its name.",
            reply_markup=_cancel_keyboard(update.effective_user.id),
        )
        return
    await lookup_and_advance(update, context, name)


async def lookup_and_advance(update: Update, context: ContextTypes.DEFAULT_TYPE, name: str) -> None:
    user_id = update.effective_user.id
    existing = load_cities(context.chat_data).find_by_name(name)
    if existing is not None:
        clear_pending(context.chat_data, user_id)
        await update.effective_chat.send_message(f"{html.escape(existing.name)} is already in the list.")
        return

    try:
        candidates = await _lookup(context, name)
    except CityNotFound:
        clear_pending(context.chat_data, user_id)
        await update.effective_chat.send_message(
            f"Couldn't find a city called “{html.escape(name)}”. Check the spelling and try /addcity again."
        )
        return

    if len(candidates) == 1:
        await _ask_aliases(update, context, candidates[0])
        return

    set_pending(context.chat_data, user_id, AwaitingDisambiguationChoice(candidates))
    lines = [
        f"{i}. {html.escape(c.display_name)} ({c.timezone_id})"
        for i, c in enumerate(candidates, start=1)
    ]
    await update.effective_chat.send_message(
        "Several places match. Reply with the number of the one you mean:\n" + "\n".join(lines),
        reply_markup=_cancel_keyboard(update.effective_user.id),
    )


async def _ask_aliases(update: Update, context: ContextTypes.DEFAULT_TYPE, candidate: Candidate) -> None:
    user_id = update.effective_user.id
    existing = load_cities(context.chat_data).find_by_name(candidate.name)
    if existing is not None:
        clear_pending(context.chat_data, user_id)
        await update.effective_chat.send_message(f"{html.escape(existing.name)} is already in the list.")
        return
    set_pending(context.chat_data, user_id, AwaitingAliasCodes(candidate.name, candidate.timezone_id))
    await update.effective_chat.send_message(
        f"Found {html.escape(candidate.display_name)} ({candidate.timezone_id}).\n"
        "Send one or more short codes for it, separated by spaces (e.g. <code>l lon</code>).",
        reply_markup=_cancel_keyboard(update.effective_user.id),
    )


async def city_name_received(update: Update, context: ContextTypes.DEFAULT_TYPE, state: AwaitingCityName) -> None:
    name = _message_text(update)
    if not name:
        await update.effective_chat.send_message("Send the city name, or /cancel.")
        return
    await lookup_and_advance(update, context, name)


async def choice_received(
    update: Update, context: ContextTypes.DEFAULT_TYPE, state: AwaitingDisambiguationChoice
) -> None:
    try:
        candidate = pick_candidate(state.candidates, _message_text(update))
    except InvalidSelection as e:
        set_pending(context.chat_data, update.effective_user.id, state)
        await update.effective_chat.send_message(
            f"Reply with a number from 1 to {e.upper}, or /cancel.",
            reply_markup=_cancel_keyboard(update.effective_user.id),
        )
        return
    await _ask_aliases(update, context, candidate)


async def aliases_received(update: Update, context: ContextTypes.DEFAULT_TYPE, state: AwaitingAliasCodes) -> None:
    tokens = list(dict.fromkeys(_message_text(update).lower().split()))
    if not tokens:
        set_pending(context.chat_data, update.effective_user.id, state)
        await update.effective_chat.send_message(
            "Send at least one code, separated by spaces.",
            reply_markup=_aliases_keyboard(state.reserved, update.effective_user.id),
        )
        return

    cities = load_cities(context.chat_data)
    accepted = list(state.reserved)
    rejected = {}
    for token in tokens:
        owner = cities.find_by_alias(token)
        if owner is not None:
            rejected[token] = owner.name
        elif not token[0].isalpha():
            rejected[token] = "must start with a letter"
        elif token not in accepted:
            accepted.append(token)

    if not rejected:
        await commit_city(update, context, AwaitingAliasCodes(state.city_name, state.timezone_id, accepted))
        return

    await _reprompt_aliases(update, context, AwaitingAliasCodes(state.city_name, state.timezone_id, accepted), rejected)


async def _reprompt_aliases(update, context, state: AwaitingAliasCodes, rejected) -> None:
    set_pending(context.chat_data, update.effective_user.id, state)
    lines = [f"✖ {html.escape(code)} — {html.escape(reason)}" for code, reason in rejected.items()]
    reserved = f"Reserved so far: {_codes(state.reserved)}" if state.reserved else "Nothing reserved yet."
    await update.effective_chat.send_message(
        "These codes can't be used:\n" + "\n".join(lines) + f"\n\n{reserved}\n"
        "Send replacement codes, or use the buttons below.",
        reply_markup=_aliases_keyboard(state.reserved, update.effective_user.id),
    )


async def commit_city(update: Update, context: ContextTypes.DEFAULT_TYPE, state: AwaitingAliasCodes) -> None:
    user_id = update.effective_user.id
    # Reload: another message may have changed the list since the dialog started
    cities = load_cities(context.chat_data)
    try:
        city = cities.add(City(state.city_name, state.timezone_id, state.reserved))
    except DuplicateCity as e:
        clear_pending(context.chat_data, user_id)
        await update.effective_chat.send_message(f"{html.escape(e.name)} is already in the list.")
        return
    except AliasConflict as e:
        remaining = [a for a in state.reserved if a not in e.conflicts]
        await _reprompt_aliases(
            update, context, AwaitingAliasCodes(state.city_name, state.timezone_id, remaining), e.conflicts
        )
        return

    clear_pending(context.chat_data, user_id)
    if not save_cities(context.chat_data, cities):
        await update.effective_chat.send_message(SAVE_FAILED)
        return
    logger.info("chat %s: added %s (%s) as %s", update.effective_chat.id, city.name, city.timezone_id, city.aliases)
    await update.effective_chat.send_message(
        f"Added {html.escape(city.name)} ({city.timezone_id}) with codes {_codes(city.aliases)}.\n"
        f"Try: <code>18{html.escape(city.aliases[0])}</code>"
    )


# ---------- /removecity ----------

def _city_line(index: int, city: City) -> str:
    return f"{index}. {html.escape(city.name)} ({_codes(city.aliases)})"


async def removecity_cmd(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    cities = load_cities(context.chat_data)
    query = " ".join(context.args or []).strip()
    if query:
        city = cities.find(query)
        if city is None:
            await update.effective_chat.send_message(
                f"No city matches “{html.escape(query)}”. See /cities for the list."
            )
            return
        await _remove(update, context, cities, [city])
        return

    snapshot = list(cities)
    set_pending(context.chat_data, update.effective_user.id, AwaitingRemovalChoice(snapshot))
    lines = [_city_line(i, c) for i, c in enumerate(snapshot, start=1)]
    await update.effective_chat.send_message(
        "Which cities should I remove? Reply with their numbers separated by spaces:\n" + "\n".join(lines),
        reply_markup=_cancel_keyboard(update.effective_user.id),
    )


async def removal_received(update: Update, context: ContextTypes.DEFAULT_TYPE, state: AwaitingRemovalChoice) -> None:
    clear_pending(context.chat_data, update.effective_user.id)
    picks = parse_indices(_message_text(update), len(state.snapshot))
    if not picks:
        await update.effective_chat.send_message("Nothing selected, removal cancelled.")
        return
    cities = load_cities(context.chat_data)
    targets = [cities.find_by_name(state.snapshot[n - 1].name) for n in picks]
    targets = [c for c in targets if c is not None]
    if not targets:
        await update.effective_chat.send_message("Those cities are no longer in the list.")
        return
    await _remove(update, context, cities, targets)


async def _remove(update: Update, context: ContextTypes.DEFAULT_TYPE, cities: CityList, targets: List[City]) -> None:
    try:
        removed = cities.remove_many(targets)
    except LastCityError:
        await update.effective_chat.send_message(
            "I need at least one city in the list. Add another city before removing this one."
        )
        return
    if not save_cities(context.chat_data, cities):
        await update.effective_chat.send_message(SAVE_FAILED)
        return
    names = ", ".join(html.escape(c.name) for c in removed)
    logger.info("chat %s: removed %s", update.effective_chat.id, [c.name for c in removed])
    await update.effective_chat.send_message(f"Removed: {names}.")


# ---------- buttons & /cancel ----------

async def wizard_button(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    query = update.callback_query
    user_id = update.effective_user.id
    action, owner = parse_button_data(query.data)
    if owner is not None and owner != user_id:
        await query.answer(NOT_YOUR_BUTTON, show_alert=True)
        return
    await query.answer()

    if action == CB_CANCEL:
        # Only a city dialog; a calendar dialog started since stays put
        if isinstance(get_pending(context.chat_data, user_id), CITY_STATES):
            clear_pending(context.chat_data, user_id)
        await query.edit_message_reply_markup(reply_markup=None)
        return

    if action == CB_ACCEPT_ALIASES:
        state = get_pending(context.chat_data, user_id)
        if not isinstance(state, AwaitingAliasCodes):
            await query.edit_message_reply_markup(reply_markup=None)
            await update.effective_chat.send_message("This dialog has expired. Start again with /addcity.")
            return
        if not state.reserved:
            await update.effective_chat.send_message("No codes reserved yet. Send at least one code.")
            return
        await query.edit_message_reply_markup(reply_markup=None)
        await commit_city(update, context, state)


async def cancel_cmd(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if clear_pending(context.chat_data, update.effective_user.id):
        await update.effective_chat.send_message("Cancelled.")
    else:
        await update.effective_chat.send_message("Nothing to cancel.")
