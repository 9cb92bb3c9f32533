"""
Presentation Layer

The interface the shell writes its visible output through, and three
implementations: one that discards everything, one that records
everything (used by tests and embedding code) and one that writes to a
terminal.

Author: YSNRFD
Version: 1.0.0
"""

import html
import re
import sys
from typing import List, Optional, TextIO, Tuple


_TAG = re.compile(r'<[^>]+>')


class Renderer:
    """
    Presentation contract.

    The shell calls these methods and never inspects renderer state.
    """

    def write_output(self, data: str, css_class: Optional[str] = None) -> None:
        """Line-oriented output. ``css_class`` is 'output-error' for stderr."""

    def write_html(self, markup: str) -> None:
        """Block output that carries its own markup."""

    def write_command(self, prompt: str, command: str) -> None:
        """Echo a submitted command next to its prompt."""

    def update_prompt(self, cwd: str, home: str) -> None:
        """Refresh the prompt after a command line completes."""

    def show_completions(self, items: List[str]) -> None:
        """Display completion candidates."""

    def show_hint(self, text: str) -> None:
        """Display a search or usage hint."""

    def clear(self) -> None:
        """Clear the output area."""


class NullRenderer(Renderer):
    """Discards all output."""


class BufferRenderer(Renderer):
    """
    Records everything written to it.

    Example:
        >>> renderer = BufferRenderer()
        >>> renderer.write_output('hi\\n')
        >>> renderer.text
        'hi\\n'
    """

    def __init__(self):
        self.outputs: List[Tuple[str, Optional[str]]] = []
        self.html: List[str] = []
        self.commands: List[Tuple[str, str]] = []
        self.prompts: List[Tuple[str, str]] = []
        self.completions: List[List[str]] = []
        self.hints: List[str] = []

    def write_output(self, data: str, css_class: Optional[str] = None) -> None:
        self.outputs.append((data, css_class))

    def write_html(self, markup: str) -> None:
        self.html.append(markup)

    def write_command(self, prompt: str, command: str) -> None:
        self.commands.append((prompt, command))

    def update_prompt(self, cwd: str, home: str) -> None:
        self.prompts.append((cwd, home))

    def show_completions(self, items: List[str]) -> None:
        self.completions.append(list(items))

    def show_hint(self, text: str) -> None:
        self.hints.append(text)

    def clear(self) -> None:
        self.outputs.clear()
        self.html.clear()

    @property
    def text(self) -> str:
        """Everything written to stdout."""
        return ''.join(data for data, css in self.outputs if css != 'output-error')

    @property
    def error_text(self) -> str:
        """Everything written to stderr."""
        return ''.join(data for data, css in self.outputs if css == 'output-error')


class ConsoleRenderer(Renderer):
    """Writes to a text terminal."""

    RED = '\033[31m'
    RESET = '\033[0m'

    def __init__(
        self,
        out: Optional[TextIO] = None,
        err: Optional[TextIO] = None,
        use_colors: bool = True
    ):
        self._out = out or sys.stdout
        self._err = err or sys.stderr
        self._use_colors = use_colors and hasattr(self._err, 'isatty') and self._err.isatty()
        self._at_line_start = True

    def write_output(self, data: str, css_class: Optional[str] = None) -> None:
        if not data:
            return
        if css_class == 'output-error':
            text = f"{self.RED}{data}{self.RESET}" if self._use_colors else data
            self._err.write(text)
            self._err.flush()
        else:
            self._out.write(data)
            self._out.flush()
        self._at_line_start = data.endswith('\n')

    def write_html(self, markup: str) -> None:
        self.write_output(html.unescape(_TAG.sub('', markup)))

    def write_command(self, prompt: str, command: str) -> None:
        # The terminal already echoed what was typed
        self._at_line_start = True

    def update_prompt(self, cwd: str, home: str) -> None:
        if not self._at_line_start:
            self._out.write('\n')
            self._out.flush()
            self._at_line_start = True

    def show_completions(self, items: List[str]) -> None:
        self._out.write('  '.join(items) + '\n')

    def show_hint(self, text: str) -> None:
        self._err.write(text + '\n')

    def clear(self) -> None:
        self._out.write('\033[2J\033[H')
        self._out.flush()
