import logging
import os

from dotenv import load_dotenv

from application.services import build_casino_service
from application.settings import CasinoSettings
from infrastructure.db.factory import create_account_repository
from interfaces.telegram.handlers import create_telegram_bot


load_dotenv()

TELEGRAM_TOKEN = os.environ.get("TELEGRAM_TOKEN")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


def main() -> None:
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not TELEGRAM_TOKEN:
        raise RuntimeError("TELEGRAM_TOKEN environment variable is not set.")

    settings = CasinoSettings.from_env()
    casino = build_casino_service(create_account_repository(settings), settings)
    if settings.seed_demo_account:
        casino.seed_demo_account()

    bot = create_telegram_bot(TELEGRAM_TOKEN, casino)
    bot.infinity_polling()


if __name__ == "__main__":
    main()
