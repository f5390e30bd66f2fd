# Copyright (c) 2025 The Cosmos Fundraiser developers
# Distributed under the MIT software license

"""
Cosmos Fundraiser CLI - Terminal prompts and output

Prompter is what the donation flow asks questions through; TerminalPrompter
reads stdin on a daemon thread so each prompt is an await point. ConsoleUI
prints text and progress lines.

Erasing the wallet phrase (ConsoleUI.erase) only moves the cursor and clears
the screen below it. Scrollback, terminal logs and screen recorders still have
the phrase; it is not a confidentiality control.
"""

import asyncio
import sys
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Callable, Iterator, Optional, Sequence, TextIO


class Prompter(ABC):
    """Interactive questions asked during a donation session."""

    @abstractmethod
    async def confirm(self, message: str, default: bool = False) -> bool: ...

    @abstractmethod
    async def select(self, message: str, choices: Sequence[str]) -> str: ...

    @abstractmethod
    async def text(self, message: str) -> str: ...


class TerminalPrompter(Prompter):
    """
    Prompts on stdin/stdout.

    EOF on stdin (non-interactive run) raises EOFError, which ends the
    session as a failure.
    """

    YES = ("y", "yes")
    NO = ("n", "no")

    def __init__(self, input_fn: Callable[[str], str] = input,
                 stream: Optional[TextIO] = None):
        self.input_fn = input_fn
        self.stream = stream or sys.stdout

    async def _ask(self, prompt: str) -> str:
        """Read one answer. A read still blocked after Ctrl-C must not hold the process open."""
        loop = asyncio.get_running_loop()
        answer = loop.create_future()

        def settle(result, error):
            if answer.done():
                return
            if error is not None:
                answer.set_exception(error)
            else:
                answer.set_result(result)

        def read():
            try:
                result, error = self.input_fn(prompt), None
            except Exception as e:
                result, error = None, e
            if not loop.is_closed():
                loop.call_soon_threadsafe(settle, result, error)

        threading.Thread(target=read, name="prompt-reader", daemon=True).start()
        return await answer

    async def confirm(self, message: str, default: bool = False) -> bool:
        suffix = "(Y/n)" if default else "(y/N)"
        while True:
            answer = (await self._ask(f"? {message} {suffix} ")).strip().lower()
            if not answer:
                return default
            if answer in self.YES:
                return True
            if answer in self.NO:
                return False
            print("Please answer yes or no.", file=self.stream)

    async def select(self, message: str, choices: Sequence[str]) -> str:
        print(f"? {message}", file=self.stream)
        for i, choice in enumerate(choices, 1):
            print(f"  {i}) {choice}", file=self.stream)
        while True:
            answer = (await self._ask("  Answer: ")).strip()
            if answer.isdigit() and 1 <= int(answer) <= len(choices):
                return choices[int(answer) - 1]
            for choice in choices:
                if answer.lower() == choice.lower():
                    return choice
            print(f"Please enter a number between 1 and {len(choices)}.", file=self.stream)

    async def text(self, message: str) -> str:
        return await self._ask(f"? {message} ")


class Progress:
    """Handle yielded by ConsoleUI.progress"""

    def __init__(self, ui: "ConsoleUI", message: str):
        self.ui = ui
        self.message = message

    def succeed(self, message: Optional[str] = None):
        self.ui.show(f"[ok] {message or self.message}")


class ConsoleUI:
    """Plain text output for the donation session."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdout

    def show(self, text: str = ""):
        print(text, file=self.stream, flush=True)

    def show_secret(self, text: str) -> int:
        """Print a block containing the wallet phrase. Returns its line count."""
        self.show(text)
        return len(text.splitlines()) or 1

    def erase(self, lines: int):
        """Best-effort removal of the last `lines` lines (TTY only)."""
        if lines <= 0 or not getattr(self.stream, "isatty", lambda: False)():
            return
        # Cursor up N lines, clear to end of screen
        self.stream.write(f"\x1b[{lines}A\x1b[J")
        self.stream.flush()

    @contextmanager
    def progress(self, message: str) -> Iterator[Progress]:
        self.show(f"... {message}")
        handle = Progress(self, message)
        try:
            yield handle
        except BaseException:
            self.show(f"[failed] {message}")
            raise
