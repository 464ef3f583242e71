#!/usr/bin/env python3
"""
Console Chat — talk to a support flow in the terminal.

Usage:
    python scripts/chat.py                       # default dialog (greeting)
    python scripts/chat.py --dialog tech_support
    python scripts/chat.py --dialog order_status --order-number 12345

Type 'quit' to leave, 'reset' to cancel the current dialog.
"""
import asyncio
import os
import sys
import argparse

# Ensure app root is on path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


async def run_chat(dialog_id: str = None, config_path: str = None, seed: dict = None):
    from config.settings import load_settings
    settings = load_settings(config_path)

    from channels.base import ConsoleChannel
    from core.bot import create_support_bot
    from models.schemas import DialogTurnStatus, UserProfile

    bot = create_support_bot(settings=settings, channel=ConsoleChannel())
    conversation = "console"
    dialog_id = dialog_id or settings.bot.default_dialog

    if seed:
        profile = await bot.user_profile.get(conversation)
        await bot.user_profile.set(conversation, (profile or UserProfile()).model_copy(update=seed))

    print(f"Dialogs: {', '.join(bot.dialogs.list_ids())}")
    result = await bot.on_turn(conversation, dialog_id=dialog_id)
    try:
        while True:
            if result.status != DialogTurnStatus.WAITING:
                print(f"[{dialog_id} finished: {result.status.value}]")
                break
            text = await asyncio.to_thread(input, "you> ")
            if text.strip().lower() == "quit":
                break
            if text.strip().lower() == "reset":
                await bot.reset(conversation)
                result = await bot.on_turn(conversation, dialog_id=dialog_id)
                continue
            result = await bot.on_turn(conversation, text)
    except (EOFError, KeyboardInterrupt):
        print()
    finally:
        await bot.lookup.close()


def main():
    parser = argparse.ArgumentParser(description="Chat with a support flow in the terminal")
    parser.add_argument("--dialog", default=None, help="Dialog id to start (default from settings)")
    parser.add_argument("--config", default=None, help="Path to settings.yaml")
    parser.add_argument("--name", default=None, help="Pre-set the user's name")
    parser.add_argument("--service-tag", default=None, help="Pre-set the service tag")
    parser.add_argument("--order-number", default=None, help="Pre-set the order number")
    args = parser.parse_args()

    seed = {k: v for k, v in {
        "name": args.name,
        "service_tag_id": args.service_tag,
        "order_number": args.order_number,
    }.items() if v}

    asyncio.run(run_chat(dialog_id=args.dialog, config_path=args.config, seed=seed))


if __name__ == "__main__":
    main()
