import os

from tzbot.main import build_app, configure_logging
from tzbot.config import TELEGRAM_TOKEN
from tzbot.utils.links import build_webhook_url

# ENV:
# WEBHOOK_URL         - full public base URL of your deployment (e.g., https://example.com)
# WEBHOOK_PATH        - request path for Telegram to call (default: /telegram)
# WEBHOOK_SECRET      - optional secret token to validate Telegram requests
# LISTEN_ADDR         - bind address (default: 0.0.0.0)
# PORT                - listen port (default: 8080)

def main():
    configure_logging()

    if not TELEGRAM_TOKEN or TELEGRAM_TOKEN == "PUT-YOUR-TOKEN-HERE":
        raise SystemExit(
            "Missing bot token.\n"
            "Set BOT_TOKEN in your environment or .env file (or TELEGRAM_TOKEN for backward-compat)."
        )

    base_url = os.getenv("WEBHOOK_URL")
    if not base_url:
        raise SystemExit("WEBHOOK_URL not set (e.g., https://your.domain)")

    path = os.getenv("WEBHOOK_PATH", "/telegram")
    secret = os.getenv("WEBHOOK_SECRET", None)
    host = os.getenv("LISTEN_ADDR", "0.0.0.0")
    port = int(os.getenv("PORT", "8080"))

    app = build_app()
    app.run_webhook(
        listen=host,
        port=port,
        url_path=path.lstrip("/"),
        webhook_url=build_webhook_url(base_url, path),
        secret_token=secret,
    )


if __name__ == "__main__":
    main()
