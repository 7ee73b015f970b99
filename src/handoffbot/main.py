"""Application entry point — configures logging, loads settings, runs polling.

Active dialogs live in memory only; a restart drops them.
"""

import logging
import sys


def main() -> None:
    """Main entry point."""
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.WARNING,
    )

    from .bot_context import create_bot_context
    from .settings import load_settings

    try:
        config = load_settings()
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}\n")
        print("Check your settings.toml configuration.")
        sys.exit(1)

    logging.getLogger("handoffbot").setLevel(logging.DEBUG)
    logger = logging.getLogger(__name__)

    bot_ctx = create_bot_context(config)
    logger.info(
        "Support chat=%s, admins=%s, dialog_timeout=%ss, cleanup_interval=%ss",
        config.support_chat_id,
        sorted(config.admins),
        config.dialog_timeout,
        config.cleanup_interval,
    )

    from .bot import create_bot

    logger.info("Starting Telegram bot...")
    application = create_bot(bot_ctx)
    application.run_polling(allowed_updates=["message", "callback_query"])


if __name__ == "__main__":
    main()
