"""
Expander Module

Turns raw tokens into arguments: quote removal, escape handling,
variable expansion and filename globbing.

Quoting rules:
- Single quotes: everything literal, no expansion, no escapes
- Double quotes: only \\", \\\\ and \\$ are escapes; variables expand
- Unquoted: a backslash makes the next character literal

Variables: ``$NAME``, ``${NAME}`` and ``$?``; unset names expand to
the empty string.

Author: YSNRFD
Version: 1.0.0
"""

import re
from typing import List, Mapping, Optional, Tuple

from pysh.exceptions import FileSystemException
from pysh.filesystem.path_resolver import PathResolver


_NAME_START = re.compile(r'[A-Za-z_]')
_NAME_CHAR = re.compile(r'[A-Za-z0-9_]')
_BRACED = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}')
_STATUS = re.compile(r'(^|[^$])\$\?')
_PLAIN = re.compile(r'(^|[^$])\$([A-Za-z_][A-Za-z0-9_]*)')
_ESCAPED_DOLLAR = '\x00DOLLAR\x00'


class Expander:
    """
    Token expansion.

    Commands registered with ``raw_args`` (echo) skip the shell-level
    pass and globbing entirely; they call ``strip_enclosing_quotes``,
    ``expand_variables`` and ``expand_token`` themselves, word by word.
    """

    @staticmethod
    def _read_variable(token: str, index: int) -> Optional[Tuple[str, int]]:
        """Read a variable name starting right after a '$'."""
        if index >= len(token):
            return None

        char = token[index]
        if char == '{':
            end = token.find('}', index + 1)
            if end == -1:
                return None
            return token[index + 1:end], end + 1
        if char == '?':
            return '?', index + 1
        if _NAME_START.match(char):
            end = index + 1
            while end < len(token) and _NAME_CHAR.match(token[end]):
                end += 1
            return token[index:end], end
        return None

    @staticmethod
    def expand_token(token: str, env: Mapping[str, str]) -> str:
        """
        Remove quoting from a raw token and expand its variables.

        Example:
            >>> Expander.expand_token('"$USER"\\'s $HOME', {'USER': 'a', 'HOME': '/h'})
            "a's /h"
        """
        out: List[str] = []
        in_single = False
        in_double = False
        i = 0

        while i < len(token):
            char = token[i]

            if char == "'" and not in_double:
                in_single = not in_single
                i += 1
                continue

            if char == '"' and not in_single:
                in_double = not in_double
                i += 1
                continue

            if char == '\\':
                if in_single:
                    out.append(char)
                elif in_double:
                    following = token[i + 1:i + 2]
                    if following in ('"', '\\', '$'):
                        out.append(following)
                        i += 1
                    else:
                        out.append(char)
                elif i + 1 < len(token):
                    out.append(token[i + 1])
                    i += 1
                i += 1
                continue

            if char == '$' and not in_single:
                variable = Expander._read_variable(token, i + 1)
                if variable is not None:
                    name, end = variable
                    out.append(str(env.get(name, '')))
                    i = end
                    continue

            out.append(char)
            i += 1

        return ''.join(out)

    @staticmethod
    def strip_enclosing_quotes(arg: str) -> Tuple[str, str]:
        """
        Remove one pair of matching outer quotes.

        Returns:
            (text, quote) where quote is 'single', 'double' or 'none'
        """
        if len(arg) >= 2 and arg[0] == arg[-1] == "'":
            return arg[1:-1], 'single'
        if len(arg) >= 2 and arg[0] == arg[-1] == '"':
            return arg[1:-1], 'double'
        return arg, 'none'

    @staticmethod
    def strip_outer_quotes(text: str) -> str:
        return Expander.strip_enclosing_quotes(text)[0]

    @staticmethod
    def expand_variables(text: str, env: Mapping[str, str]) -> str:
        """
        Expand variables in already unquoted text.

        ``\\$`` stays a literal dollar sign. Used by commands that do
        their own quote handling.
        """
        text = text.replace('\\$', _ESCAPED_DOLLAR)
        text = _BRACED.sub(lambda m: str(env.get(m.group(1), '')), text)
        text = _STATUS.sub(lambda m: m.group(1) + str(env.get('?', '')), text)
        text = _PLAIN.sub(lambda m: m.group(1) + str(env.get(m.group(2), '')), text)
        return text.replace(_ESCAPED_DOLLAR, '$')

    @staticmethod
    def has_unquoted_glob(raw: str) -> bool:
        """Whether a raw token holds a '*' or '?' outside quotes and escapes."""
        in_single = False
        in_double = False
        i = 0

        while i < len(raw):
            char = raw[i]
            if char == '\\' and not in_single:
                i += 2
                continue
            if char == "'" and not in_double:
                in_single = not in_single
            elif char == '"' and not in_single:
                in_double = not in_double
            elif char in '*?' and not in_single and not in_double:
                # $? is the status variable, not a wildcard
                if not (char == '?' and i > 0 and raw[i - 1] == '$'):
                    return True
            i += 1

        return False

    @staticmethod
    def glob_to_regex(pattern: str) -> 're.Pattern[str]':
        """Translate '*' and '?' to a regex; everything else is literal."""
        parts = []
        for char in pattern:
            if char == '*':
                parts.append('.*')
            elif char == '?':
                parts.append('.')
            else:
                parts.append(re.escape(char))
        return re.compile('^' + ''.join(parts) + '$', re.DOTALL)

    @staticmethod
    def expand_globs(expanded: str, context) -> List[str]:
        """
        Expand wildcards in the last path segment of an expanded token.

        A wildcard in the directory part, a failed listing or zero
        matches all yield the token unchanged.
        """
        slash = expanded.rfind('/')
        directory_part = expanded[:slash + 1] if slash >= 0 else ''
        pattern = expanded[slash + 1:] if slash >= 0 else expanded

        if '*' in directory_part or '?' in directory_part or not pattern:
            return [expanded]

        if directory_part.startswith('/'):
            base_dir = PathResolver.normalize(directory_part)
        else:
            base_dir = PathResolver.resolve(directory_part or '.', context.cwd)

        try:
            entries = context.fs.list_directory(
                base_dir,
                context.user,
                context.group,
                show_hidden=pattern.startswith('.'),
            )
        except FileSystemException:
            return [expanded]

        regex = Expander.glob_to_regex(pattern)
        matches = sorted(
            directory_part + entry.name
            for entry in entries
            if regex.match(entry.name)
        )
        return matches or [expanded]

    @staticmethod
    def expand_arguments(raw_tokens: List[str], context) -> List[str]:
        """Expand a list of raw tokens, globbing where the raw token allows it."""
        args: List[str] = []
        for raw in raw_tokens:
            expanded = Expander.expand_token(raw, context.env)
            if Expander.has_unquoted_glob(raw):
                args.extend(Expander.expand_globs(expanded, context))
            else:
                args.append(expanded)
        return args
