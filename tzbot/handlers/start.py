import html
from datetime import datetime, timezone

from telegram import Update
from telegram.ext import ContextTypes

from tzbot.utils.storage import load_cities
from tzbot.utils.time_utils import format_local

HELP_TEXT = (
    "Mention a time with a city code and I’ll show it in every watched city.\n"
    "Examples: <code>18p</code>, <code>9:30 e</code>, <code>7.15m</code>\n\n"
    "• /cities — watched cities and their codes\n"
    "• /addcity <code>name</code> — watch another city\n"
    "• /removecity <code>code</code> — stop watching a city (no argument: pick from a list)\n"
    "• /calendar — “Add to calendar” link settings\n"
    "• /cancel — abandon the current dialog"
)


async def start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    user = update.effective_user
    first_name = html.escape(user.first_name) if user and user.first_name else "there"
    await update.effective_chat.send_message(f"Hi {first_name}! {HELP_TEXT}")


async def help_cmd(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await update.effective_chat.send_message(HELP_TEXT)


async def cities_cmd(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """List watched cities with their codes and current local time."""
    now = datetime.now(timezone.utc)
    lines = []
    for city in load_cities(context.chat_data):
        codes = ", ".join(f"<code>{html.escape(a)}</code>" for a in city.aliases) or "no codes"
        lines.append(f"{format_local(now, city.timezone_id)} {html.escape(city.name)} — {codes}")
    await update.effective_chat.send_message("Watched cities:\n" + "\n".join(lines))
