import logging
import os

from dotenv import load_dotenv

from application.services import build_casino_service
from application.settings import CasinoSettings
from infrastructure.db.factory import create_account_repository
from interfaces.discord.handlers import create_discord_bot


load_dotenv()

DISCORD_TOKEN = os.environ.get("DISCORD_TOKEN")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


def main() -> None:
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not DISCORD_TOKEN:
        raise RuntimeError("DISCORD_TOKEN environment variable is not set.")

    settings = CasinoSettings.from_env()
    casino = build_casino_service(create_account_repository(settings), settings)
    if settings.seed_demo_account:
        casino.seed_demo_account()

    bot = create_discord_bot(casino)
    bot.run(DISCORD_TOKEN, log_handler=None)


if __name__ == "__main__":
    main()
