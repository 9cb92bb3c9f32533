"""
Command Parser Module

Splits shell input into commands, pipeline stages, redirections and raw
argument tokens. Tokens keep their original quoting and backslashes;
removing them is the expander's job, which needs to know what was
quoted (glob expansion only applies to unquoted wildcards).

Author: YSNRFD
Version: 1.0.0
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List

from pysh.exceptions import ShellSyntaxError


class TokenType(Enum):
    """Token types for command parsing."""
    WORD = "word"
    REDIRECT_OUT = "redirect_out"
    REDIRECT_APPEND = "redirect_append"
    REDIRECT_ERR = "redirect_err"
    MERGE_ERR = "merge_err"
    HERE_STRING = "here_string"


_TARGET_OPERATORS = {
    TokenType.REDIRECT_OUT: '>',
    TokenType.REDIRECT_APPEND: '>>',
    TokenType.REDIRECT_ERR: '2>',
}


@dataclass
class Token:
    """A scanned token. WORD values are raw, quoting included."""
    type: TokenType
    value: str


@dataclass
class Redirections:
    """Redirections requested by the final pipeline stage."""
    stdout: Optional[str] = None
    append: bool = False
    stderr: Optional[str] = None
    merge_stderr: bool = False

    @property
    def redirects_stdout(self) -> bool:
        return self.stdout is not None

    @property
    def redirects_stderr(self) -> bool:
        return self.merge_stderr or self.stderr is not None


@dataclass
class TokenizedCommand:
    """Raw tokens of one stage plus the raw here-string word, if any."""
    tokens: List[str] = field(default_factory=list)
    here_string: Optional[str] = None


class CommandParser:
    """
    Parses shell command lines.

    Handles:
    - Command separators (; and newlines) and pipes (|)
    - Stdout/stderr redirections on the last stage (>, >>, 2>, 2>&1)
    - Here-strings (<<< word)
    - Single quotes, double quotes and backslash escapes
    - $(...) substitutions, which are never split apart

    Example:
        >>> parser = CommandParser()
        >>> parser.split_pipeline('cat a.txt | echo')
        ['cat a.txt', 'echo']
    """

    @staticmethod
    def _split_unquoted(text: str, separators: str) -> List[str]:
        """Split on separator characters outside quotes, escapes and $(...)."""
        parts: List[str] = []
        current: List[str] = []
        in_single = False
        in_double = False
        depth = 0
        i = 0

        while i < len(text):
            char = text[i]

            if char == '\\' and not in_single and i + 1 < len(text):
                current.append(text[i:i + 2])
                i += 2
                continue

            if char == "'" and not in_double and depth == 0:
                in_single = not in_single
            elif char == '"' and not in_single:
                in_double = not in_double
            elif not in_single and text.startswith('$(', i):
                depth += 1
                current.append('$(')
                i += 2
                continue
            elif char == '(' and depth:
                depth += 1
            elif char == ')' and depth:
                depth -= 1
            elif char in separators and not in_single and not in_double and depth == 0:
                parts.append(''.join(current))
                current = []
                i += 1
                continue

            current.append(char)
            i += 1

        parts.append(''.join(current))
        return parts

    def split_commands(self, text: str) -> List[str]:
        """
        Split script text into individual command lines.

        Blank lines and full-line comments are dropped; each remaining
        line is split on unquoted ';'.
        """
        commands: List[str] = []
        for line in text.split('\n'):
            stripped = line.strip()
            if not stripped or stripped.startswith('#'):
                continue
            for part in self._split_unquoted(stripped, ';'):
                if part.strip():
                    commands.append(part.strip())
        return commands

    def split_pipeline(self, line: str) -> List[str]:
        """Split a line into stages on unquoted '|', dropping empty stages."""
        return [
            stage.strip()
            for stage in self._split_unquoted(line, '|')
            if stage.strip()
        ]

    def _scan(self, text: str, redirects: bool = False) -> List[Token]:
        """
        Scan one stage into raw words and operators.

        ``<<<`` is always an operator; ``>``, ``>>``, ``2>`` and ``2>&1``
        only when ``redirects`` is set.
        """
        tokens: List[Token] = []
        current: List[str] = []
        in_single = False
        in_double = False
        depth = 0
        i = 0

        def push_word() -> None:
            if current:
                tokens.append(Token(TokenType.WORD, ''.join(current)))
                current.clear()

        while i < len(text):
            char = text[i]

            if in_single:
                current.append(char)
                if char == "'":
                    in_single = False
                i += 1
                continue

            if char == '\\':
                current.append(text[i:i + 2])
                i += 2
                continue

            if char == '"':
                in_double = not in_double
                current.append(char)
                i += 1
                continue

            if in_double:
                current.append(char)
                i += 1
                continue

            if char == "'":
                in_single = True
                current.append(char)
                i += 1
                continue

            if text.startswith('$(', i):
                depth += 1
                current.append('$(')
                i += 2
                continue

            if depth:
                if char == '(':
                    depth += 1
                elif char == ')':
                    depth -= 1
                current.append(char)
                i += 1
                continue

            if char.isspace():
                push_word()
                i += 1
                continue

            if text.startswith('<<<', i):
                push_word()
                tokens.append(Token(TokenType.HERE_STRING, '<<<'))
                i += 3
                continue

            if redirects and char == '>':
                if ''.join(current) == '2':
                    current.clear()
                    if text.startswith('>&1', i):
                        tokens.append(Token(TokenType.MERGE_ERR, '2>&1'))
                        i += 3
                    else:
                        tokens.append(Token(TokenType.REDIRECT_ERR, '2>'))
                        i += 1
                    continue
                push_word()
                if text.startswith('>>', i):
                    tokens.append(Token(TokenType.REDIRECT_APPEND, '>>'))
                    i += 2
                else:
                    tokens.append(Token(TokenType.REDIRECT_OUT, '>'))
                    i += 1
                continue

            current.append(char)
            i += 1

        push_word()
        return tokens

    @staticmethod
    def _join(tokens: List[Token]) -> str:
        return ' '.join(token.value for token in tokens)

    def split_redirections(self, stage: str) -> tuple[str, Redirections]:
        """
        Strip redirections from the final stage.

        ``2>&1`` merges stderr into stdout; the last ``2> TARGET`` wins;
        for stdout an ``>>`` takes priority over ``>`` (the last target of
        the chosen kind is used). Targets are returned raw.

        Returns:
            The stage text without redirections, and the redirections

        Raises:
            ShellSyntaxError: If an operator has no target word
        """
        tokens = self._scan(stage, redirects=True)
        redirections = Redirections()
        remaining: List[Token] = []
        write_target: Optional[str] = None
        append_target: Optional[str] = None

        i = 0
        while i < len(tokens):
            token = tokens[i]

            if token.type == TokenType.MERGE_ERR:
                redirections.merge_stderr = True
                i += 1
                continue

            if token.type in _TARGET_OPERATORS:
                if i + 1 >= len(tokens) or tokens[i + 1].type != TokenType.WORD:
                    following = tokens[i + 1].value if i + 1 < len(tokens) else 'newline'
                    raise ShellSyntaxError(following)
                target = tokens[i + 1].value
                if token.type == TokenType.REDIRECT_ERR:
                    redirections.stderr = target
                elif token.type == TokenType.REDIRECT_APPEND:
                    append_target = target
                else:
                    write_target = target
                i += 2
                continue

            remaining.append(token)
            i += 1

        if append_target is not None:
            redirections.stdout = append_target
            redirections.append = True
        elif write_target is not None:
            redirections.stdout = write_target

        return self._join(remaining), redirections

    def tokenize(self, stage: str) -> TokenizedCommand:
        """
        Split a stage into raw argument tokens.

        The word after the first ``<<<`` becomes the here-string; later
        here-strings are dropped and a trailing ``<<<`` with no word is
        kept as a literal token.
        """
        result = TokenizedCommand()
        tokens = self._scan(stage)

        i = 0
        while i < len(tokens):
            token = tokens[i]
            if token.type == TokenType.HERE_STRING:
                if i + 1 < len(tokens) and tokens[i + 1].type == TokenType.WORD:
                    if result.here_string is None:
                        result.here_string = tokens[i + 1].value
                    i += 2
                    continue
                result.tokens.append(token.value)
            else:
                result.tokens.append(token.value)
            i += 1

        return result
