#!/usr/bin/env python3
"""Stream top of book for the asset ids given on the command line."""

import asyncio
import sys

from src.stream import MarketChannel
from src.stream.config import StreamConfig
from src.stream.log import setup_logging
from src.stream.model import BookSnapshot


def print_book(asset_id: str, book: BookSnapshot) -> None:
    print(book.format_top_of_book())


async def main(asset_ids: list[str]) -> None:
    config = StreamConfig.from_env()
    setup_logging(config.log_level, config.log_json)

    channel = MarketChannel(config)
    channel.set_on_book_update(print_book)
    channel.start(asset_ids)
    try:
        await asyncio.Event().wait()
    finally:
        await channel.close()


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: run_stream.py ASSET_ID [ASSET_ID ...]")
        sys.exit(1)
    print("Starting market stream...")
    print("Press Ctrl+C to quit")
    print("-" * 50)
    try:
        asyncio.run(main(sys.argv[1:]))
    except KeyboardInterrupt:
        pass
