"""Interactive terminal chat: ``python -m chatrelay``."""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from . import ChatRelay
from .commands import Message
from .models import Complete, Delta, Error
from .session import ChatSession
from .settings import get_settings
from .store import SQLite

logger = logging.getLogger(__name__)

EXIT_COMMANDS = ("/exit", "/quit")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chatrelay",
        description="Chat with any configured LLM provider from the terminal.",
    )
    parser.add_argument("--provider", help="provider id to start with")
    parser.add_argument("--model", help="model to start with")
    parser.add_argument("--temperature", type=float, help="sampling temperature")
    parser.add_argument("--max-tokens", type=int, help="maximum response tokens")
    parser.add_argument(
        "--no-stream",
        action="store_true",
        help="wait for whole replies instead of streaming them",
    )
    parser.add_argument("--db", help="SQLite file to save conversations to")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser


def create_relay(args: argparse.Namespace) -> ChatRelay:
    relay = ChatRelay(settings=get_settings())
    changes = {
        "provider_id": args.provider,
        "model": args.model,
        "temperature": args.temperature,
        "max_tokens": args.max_tokens,
    }
    changes = {key: value for key, value in changes.items() if value is not None}
    if changes:
        relay.update_configuration(lambda config: config.with_changes(**changes))
    return relay


async def reply(session: ChatSession, text: str, stream: bool) -> None:
    if not stream:
        response = await session.send(text)
        print(response.text)
        return

    async for event in session.stream(text):
        if isinstance(event, Delta):
            print(event.text, end="", flush=True)
        elif isinstance(event, Complete):
            print()
        elif isinstance(event, Error):
            print(f"\nError: {event.message}")


async def handle_line(session: ChatSession, text: str, stream: bool = True) -> None:
    """Runs one line of user input: a slash command or a chat message.

    A failed request is reported and the session carries on.
    """
    result = session.submit(text)
    if isinstance(result, Message):
        print(result.text)
        return
    if result is not None:
        print("Conversation cleared.")
        return

    try:
        await reply(session, text, stream=stream)
    except Exception as e:
        logger.debug("Request failed", exc_info=True)
        print(f"Error: {str(e) or type(e).__name__}")


async def run(args: argparse.Namespace) -> None:
    relay = create_relay(args)
    store = SQLite(args.db) if args.db else None
    session = ChatSession(relay, store=store)

    config = relay.get_configuration()
    print(f"chatrelay: {config.provider_id}/{config.model}. Type /help for commands.")

    while True:
        try:
            text = await asyncio.to_thread(input, "> ")
        except EOFError:
            print()
            break
        text = text.strip()
        if not text:
            continue
        if text.lower() in EXIT_COMMANDS:
            break
        await handle_line(session, text, stream=not args.no_stream)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        asyncio.run(run(args))
    except KeyboardInterrupt:
        logger.debug("Interrupted")
    return 0


if __name__ == "__main__":
    sys.exit(main())
