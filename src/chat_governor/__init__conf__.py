"""Static package metadata surfaced by the CLI ``info`` command.

Keep these values aligned with ``pyproject.toml``; they are read at runtime
without requiring the distribution metadata to be installed.
"""

from __future__ import annotations

from typing import Callable

name = "chat_governor"
title = "Per-identity rate governor and context windower for chat assistants"
version = "0.1.0"
homepage = "https://github.com/chat-governor/chat_governor"
author = "chat_governor maintainers"
author_email = ""
shell_command = "chat-governor"


def print_info(writer: Callable[[str], None] | None = None) -> None:
    """Emit the metadata banner line by line.

    Parameters
    ----------
    writer:
        Callable receiving each line (including the trailing newline). Defaults
        to :func:`print` without an additional newline.

    Examples
    --------
    >>> lines = []
    >>> print_info(writer=lines.append)
    >>> lines[0]
    'Info for chat_governor:\\n'
    """

    emit = writer if writer is not None else (lambda text: print(text, end=""))
    fields = [
        ("name", name),
        ("title", title),
        ("version", version),
        ("homepage", homepage),
        ("author", author),
        ("shell_command", shell_command),
    ]
    pad = max(len(label) for label, _ in fields)
    emit(f"Info for {name}:\n")
    emit("\n")
    for label, value in fields:
        emit(f"    {label.ljust(pad)} = {value}\n")
