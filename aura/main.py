"""CLI entry point for the A.U.R.A. agent.

This provides a simple terminal-based chat interface for testing and
development. For production, use the FastAPI server (aura/server.py).

Usage:
    uv run python -m aura.main            # normal mode (quiet)
    uv run python -m aura.main --debug    # debug mode (shows API calls)
    uv run python -m aura.main --agent    # start in FasterBook Agent Mode

Commands inside the chat:
    mode            toggle between General and FasterBook Agent Mode
    upload <path>   attach a plain-text file as a document
    files           list attached documents
    remove <name>   detach a document
    new             start a fresh session
    quit            exit
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import mimetypes
import uuid
from pathlib import Path

from dotenv import load_dotenv

from aura.agent import AuraAgent
from aura.models import ConversationMode, Document

logger = logging.getLogger(__name__)


def _configure_logging(debug: bool = False) -> None:
    """Set up logging: WARNING by default, DEBUG when --debug is passed."""
    root_level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=root_level,
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
    )

    if not debug:
        # Silence chatty HTTP loggers even if root is WARNING
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)

    logging.getLogger("aura").setLevel(logging.DEBUG if debug else logging.INFO)


def load_text_document(path: Path) -> Document:
    """Read a plain-text file into a ``Document``.

    Raises:
        ValueError: the file is not valid UTF-8 text.
    """
    raw = path.read_bytes()
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ValueError(f"{path.name} is not a plain-text file") from exc
    mime_type = mimetypes.guess_type(path.name)[0] or "text/plain"
    return Document(name=path.name, mime_type=mime_type, raw_text=text, byte_size=len(raw))


def _banner(mode: ConversationMode) -> None:
    print("\n" + "=" * 60)
    print("  A.U.R.A. - CLI Chat")
    print("=" * 60)
    print("  Type your message and press Enter.")
    print("  Commands: 'mode', 'upload <path>', 'files', 'remove <name>',")
    print("            'new' for a new session, 'quit' to exit.")
    print(f"  Current mode: {mode.display_name}")
    print("=" * 60 + "\n")


async def _handle_command(agent, session_id: str, user_input: str) -> bool:
    """Run a CLI command.  Returns ``False`` when *user_input* is a chat message."""
    command, _, argument = user_input.partition(" ")
    command = command.lower()
    argument = argument.strip()

    if command == "mode" and not argument:
        _, announcement = agent.toggle_mode(session_id)
        print(f"\n>> {announcement}\n")
        return True

    if command == "upload" and argument:
        path = Path(argument).expanduser()
        try:
            entry = agent.documents(session_id).add(load_text_document(path))
        except (OSError, ValueError) as e:
            print(f"\n>> Could not upload {argument}: {e}\n")
        else:
            print(f"\n>> Uploaded {entry.document.name} ({len(entry.chunks)} chunk(s))\n")
        return True

    if command == "files" and not argument:
        entries = agent.documents(session_id).snapshot()
        if not entries:
            print("\n>> No documents uploaded.\n")
        for entry in entries:
            doc = entry.document
            print(f">> {doc.name}  {doc.mime_type}  {doc.byte_size} bytes")
        return True

    if command == "remove" and argument:
        removed = agent.documents(session_id).remove(argument)
        print(f"\n>> {'Removed' if removed else 'No document named'} {argument}\n")
        return True

    return False


async def run(start_mode: ConversationMode) -> None:
    """Run the interactive CLI chat loop."""
    agent = AuraAgent()
    session_id = str(uuid.uuid4())
    agent.set_mode(session_id, start_mode)
    logger.info("Started new session: %s", session_id)
    _banner(start_mode)

    while True:
        try:
            user_input = (await asyncio.to_thread(input, "You: ")).strip()
        except (KeyboardInterrupt, EOFError):
            print("\n\nGoodbye!")
            break

        if not user_input:
            continue

        if user_input.lower() in ("exit", "quit", "q"):
            print("\nGoodbye!")
            break

        if user_input.lower() == "new":
            mode = agent.context(session_id).mode
            agent.end_session(session_id)
            session_id = str(uuid.uuid4())
            agent.set_mode(session_id, mode)
            print(f"\n>> New session started: {session_id[:8]}...\n")
            continue

        if await _handle_command(agent, session_id, user_input):
            continue

        try:
            answer = await agent.chat(user_input, session_id)
            print(f"\nA.U.R.A: {answer.reply}\n")
        except Exception as e:
            logger.exception("Error processing message")
            print(f"\nA.U.R.A: I'm sorry, something went wrong: {e}")
            print("     Please try again or type 'new' to start a fresh session.\n")


def main():
    parser = argparse.ArgumentParser(description="A.U.R.A. agent CLI")
    parser.add_argument(
        "--debug", action="store_true",
        help="Show all log messages including HTTP requests",
    )
    parser.add_argument(
        "--agent", action="store_true",
        help="Start in FasterBook Agent Mode",
    )
    args = parser.parse_args()

    load_dotenv()
    _configure_logging(debug=args.debug)

    start_mode = ConversationMode.AGENT_BOOKING if args.agent else ConversationMode.GENERAL
    try:
        asyncio.run(run(start_mode))
    except KeyboardInterrupt:
        print("\n\nGoodbye!")


if __name__ == "__main__":
    main()
