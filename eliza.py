"""Console host for the responder.

Loads a script once (``ELIZA_SCRIPT`` or ``--script``, defaulting to the
bundled Rogerian psychotherapist) and runs a line-oriented conversation
until the farewell.
"""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
from typing import List, Optional, Union

import eliza_scripts

from script import Script, ScriptIntegrityError, load_script
from session import Session, SessionState

logger = logging.getLogger(__name__)

DEFAULT_SCRIPT = eliza_scripts.DOCTOR

# Loaded scripts keyed by resolved path
_script_cache: dict = {}


def script_path(path: Optional[Union[str, Path]] = None) -> Path:
    """Resolve the script location from *path*, the environment or the default."""
    if path is None:
        path = os.environ.get("ELIZA_SCRIPT") or DEFAULT_SCRIPT
    return Path(path).expanduser().resolve()


def get_script(path: Optional[Union[str, Path]] = None) -> Script:
    """Load the script at *path* once and return the shared instance."""
    resolved = script_path(path)
    if resolved not in _script_cache:
        _script_cache[resolved] = load_script(resolved)
    return _script_cache[resolved]


def clear_cache() -> None:
    """Forget loaded scripts. Useful for testing."""
    _script_cache.clear()


def new_session(path: Optional[Union[str, Path]] = None) -> Session:
    return Session(get_script(path))


def converse(session: Session) -> None:
    """Run *session* against standard input until it ends."""
    print(session.respond(""))
    while session.state is not SessionState.ENDED:
        try:
            line = input("> ")
        except (EOFError, KeyboardInterrupt):
            print()
            logger.info("input closed before farewell")
            return
        print(session.respond(line))


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Talk to a script-driven ELIZA.")
    parser.add_argument("--script", help="path to a JSON script")
    parser.add_argument("--debug", action="store_true", help="log the reply pipeline")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO)
    try:
        session = new_session(args.script)
    except ScriptIntegrityError as exc:
        logger.error(f"Script rejected: {exc}")
        return 1

    converse(session)
    return 0


if __name__ == "__main__":  # pragma: no cover - manual run
    raise SystemExit(main())
