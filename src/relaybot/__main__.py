# python -m relaybot
import asyncio
import logging
import time

import discord
from discord.ext import commands
from dotenv import load_dotenv

from relaybot.api_log import configure_api_log
from relaybot.cogs.chat import ChatCog
from relaybot.conversation import MessageFormatter, SessionStore, Summarizer
from relaybot.errors import ConfigError
from relaybot.files import UploadStore
from relaybot.settings import Settings, load_settings
from relaybot.text_generators import get_text_generator
from relaybot.web import create_app, start_file_server

logger = logging.getLogger("relaybot")


def build_bot(settings: Settings, store: SessionStore) -> tuple[commands.Bot, ChatCog]:
    intents = discord.Intents.default()
    intents.message_content = True
    bot = commands.Bot(
        command_prefix=commands.when_mentioned_or("!"),
        intents=intents,
        case_insensitive=True,
        help_command=None,
    )

    @bot.event
    async def on_ready():
        logger.info("Bot is ready. Logged in as %s (ID: %s)", bot.user, bot.user.id)

    cog = ChatCog(
        bot,
        store=store,
        formatter=MessageFormatter(store, settings.system_prompt),
        summarizer=Summarizer(store),
        generator=get_text_generator(
            "anthropic",
            settings.anthropic_model,
            api_key=settings.anthropic_api_key,
            max_tokens=settings.anthropic_max_tokens,
        ),
        uploads=UploadStore(settings.uploads_dir, settings.server_url),
        temperature=settings.anthropic_temperature,
    )
    return bot, cog


async def main(settings: Settings, store: SessionStore) -> None:
    bot, cog = build_bot(settings, store)
    runner = await start_file_server(create_app(settings.uploads_dir), settings.port)
    try:
        async with bot:
            await bot.add_cog(cog)
            logger.info("starting bot with model %s", settings.anthropic_model)
            await bot.start(settings.discord_token)
    finally:
        await runner.cleanup()


def run() -> None:
    load_dotenv()
    try:
        settings = load_settings()
    except ConfigError as exc:
        logging.basicConfig(level=logging.INFO)
        logger.error("%s", exc)
        raise SystemExit(1) from exc
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    configure_api_log(settings.api_log_file)

    # One store for the life of the process; it survives reconnect retries.
    store = SessionStore(settings.max_history_pairs)
    # Retry on transient connect errors (e.g., gateway timeouts)
    while True:
        try:
            asyncio.run(main(settings, store))
            break
        except KeyboardInterrupt:
            break
        except discord.LoginFailure:
            logger.exception("Discord rejected the bot token; not retrying")
            raise SystemExit(1)
        except Exception as e:  # noqa: BLE001
            logger.exception("Bot crashed during startup/connect; retrying in 5s: %s", e)
            time.sleep(5)


if __name__ == "__main__":
    run()
