"""
Script interpreter interface.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List


@dataclass
class Script:
    """A script file about to run."""
    interpreter_id: str
    path: str
    source: str
    args: List[str] = field(default_factory=list)

    @property
    def body(self) -> str:
        """Source without its shebang line."""
        if self.source.startswith('#!'):
            newline = self.source.find('\n')
            return '' if newline == -1 else self.source[newline + 1:]
        return self.source


class ScriptInterpreter(ABC):
    """
    Base class for interpreters.

    ``run`` writes only through ``io`` and returns the script's exit
    status. Errors it cannot report itself may propagate; the registry
    turns them into a failure status.
    """

    name: str = "interpreter"

    @abstractmethod
    async def run(self, script: Script, context, io) -> int:
        ...
