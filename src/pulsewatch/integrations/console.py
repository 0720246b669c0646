"""Terminal implementations of the confirmation and notification surfaces."""

import asyncio
from typing import Callable, Optional, TextIO

import structlog

log = structlog.get_logger()

YES_ANSWERS = ("y", "yes")


class ConsoleConfirmer:
    """Asks yes/no questions on the terminal.

    With assume_yes the prompt is printed and accepted without reading input.
    """

    def __init__(
        self,
        assume_yes: bool = False,
        input_func: Callable[[str], str] = input,
        print_func: Callable[..., None] = print,
    ) -> None:
        self._assume_yes = assume_yes
        self._input = input_func
        self._print = print_func

    async def confirm(self, prompt: str) -> bool:
        if self._assume_yes:
            self._print(f"{prompt} [y/N] y")
            return True
        try:
            # input() blocks, so keep it off the event loop
            answer = await asyncio.to_thread(self._input, f"{prompt} [y/N] ")
        except EOFError:
            return False
        return answer.strip().lower() in YES_ANSWERS


class ConsoleNotifier:
    """Prints banners to a text stream and mirrors them to the log."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream
        self._log = log.bind(component="notifier")

    def _emit(self, label: str, title: str, detail: str) -> None:
        lines = [f"[{label}] {title}"]
        if detail:
            lines.append(f"    {detail}")
        print("\n".join(lines), file=self._stream)

    def version_info(self, text: str) -> None:
        print(text, file=self._stream)

    def success(self, title: str, detail: str = "") -> None:
        self._emit("OK", title, detail)

    def warning(self, title: str, detail: str = "") -> None:
        self._emit("WARN", title, detail)

    def failure(self, title: str, detail: str = "") -> None:
        self._log.warning("failure_banner_shown", title=title, detail=detail)
        self._emit("FAIL", title, detail)
