from __future__ import annotations

import logging
import os
from typing import Dict, List

from telegram import Update
from telegram.ext import Application, CommandHandler, ContextTypes, MessageHandler, filters

import eliza
from session import Session, SessionState

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# One conversation per chat; an ended conversation is dropped.
SESSIONS: Dict[int, Session] = {}


async def start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Open a fresh session for the chat and send its greeting."""
    try:
        session = eliza.new_session()
        SESSIONS[update.effective_chat.id] = session
        await update.message.reply_text(session.respond(""))
    except Exception:  # pragma: no cover
        logger.exception("error starting session")


async def handle_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Answer incoming text with the chat's session."""
    try:
        chat_id = update.effective_chat.id
        text = update.message.text or ""
        lines: List[str] = []

        session = SESSIONS.get(chat_id)
        if session is None:
            session = SESSIONS[chat_id] = eliza.new_session()
            lines.append(session.respond(text))
        lines.append(session.respond(text))

        if session.state is SessionState.ENDED:
            logger.info(f"session for chat {chat_id} ended")
            del SESSIONS[chat_id]

        await update.message.reply_text("\n".join(lines))
    except Exception:
        logger.exception("error handling message")


def main() -> None:
    """Run the Telegram bot."""
    token = os.environ.get("TELEGRAM_TOKEN")
    if not token:
        raise RuntimeError("TELEGRAM_TOKEN not set")

    # Fail before polling if the script is broken.
    eliza.get_script()

    application = Application.builder().token(token).build()
    application.add_handler(CommandHandler("start", start))
    application.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handle_message))

    logger.info("polling for messages")
    application.run_polling()


if __name__ == "__main__":  # pragma: no cover - manual run
    main()
