from __future__ import annotations

import os
import shlex
import subprocess
import tempfile

from loguru import logger

from llmc.errors import InvalidArgumentError


def compose_message(environ: dict[str, str] | None = None) -> str:
    """Open $EDITOR on a scratch file and return what the user wrote, stripped."""
    env = os.environ if environ is None else environ
    editor = env.get("EDITOR", "").strip()
    if not editor:
        raise InvalidArgumentError("EDITOR environment variable is not set")

    with tempfile.NamedTemporaryFile(mode="w", suffix=".txt", prefix="llmc-", delete=False) as f:
        path = f.name
    try:
        logger.debug(f"Opening editor: {editor} {path}")
        try:
            completed = subprocess.run([*shlex.split(editor), path], check=False)
        except (OSError, ValueError) as ex:
            raise InvalidArgumentError(f"failed to open editor: {ex}") from ex
        if completed.returncode != 0:
            raise InvalidArgumentError(f"failed to open editor: {editor} exited with status {completed.returncode}")
        with open(path, encoding="utf-8") as f:
            return f.read().strip()
    finally:
        try:
            os.remove(path)
        except OSError as ex:
            logger.warning(f"Could not remove editor file {path}: {ex}")
