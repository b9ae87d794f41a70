import logging
from telegram import LinkPreviewOptions
from telegram.constants import ParseMode
from telegram.ext import (
    Application,
    CommandHandler,
    MessageHandler,
    CallbackQueryHandler,
    Defaults,
    PicklePersistence,
    filters,
)

from tzbot.config import TELEGRAM_TOKEN, PERSISTENCE_FILE, LOG_LEVEL
from tzbot.handlers.calendar import calendar_cmd, calendar_button
from tzbot.handlers.errors import on_error
from tzbot.handlers.messages import on_text
from tzbot.handlers.start import start, help_cmd, cities_cmd
from tzbot.handlers.wizard import addcity_cmd, removecity_cmd, cancel_cmd, wizard_button


def build_app() -> Application:
    persistence = PicklePersistence(filepath=PERSISTENCE_FILE)
    defaults = Defaults(
        parse_mode=ParseMode.HTML,
        link_preview_options=LinkPreviewOptions(is_disabled=True),
    )

    app = (
        Application.builder()
        .token(TELEGRAM_TOKEN)
        .persistence(persistence)
        .defaults(defaults)
        .build()
    )

    app.add_handler(CommandHandler("start", start))
    app.add_handler(CommandHandler("help", help_cmd))
    app.add_handler(CommandHandler("cities", cities_cmd))

    # City list dialogs
    app.add_handler(CommandHandler("addcity", addcity_cmd))
    app.add_handler(CommandHandler("removecity", removecity_cmd))
    app.add_handler(CommandHandler("calendar", calendar_cmd))
    app.add_handler(CommandHandler("cancel", cancel_cmd))
    app.add_handler(CallbackQueryHandler(wizard_button, pattern=r"^wiz:"))
    app.add_handler(CallbackQueryHandler(calendar_button, pattern=r"^cal:"))

    # Pending dialog step, otherwise "18p"-style conversion
    app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, on_text))

    app.add_error_handler(on_error)
    return app


def configure_logging() -> None:
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        level=getattr(logging, LOG_LEVEL, logging.INFO),
    )
    # httpx logs every request URL at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def main():
    configure_logging()
    if not TELEGRAM_TOKEN or TELEGRAM_TOKEN == "PUT-YOUR-TOKEN-HERE":
        raise SystemExit(
            "Missing bot token.\n"
            "Set BOT_TOKEN in your environment or .env file (or TELEGRAM_TOKEN for backward-compat).\n"
            "Example .env:\n"
            "  BOT_TOKEN=123456:ABC-DEF...\n"
        )
    app = build_app()
    app.run_polling()


if __name__ == "__main__":
    main()
