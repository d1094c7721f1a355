"""
Execution context interface for the introspector.

An execution context runs config source in a fresh global scope and
reports what was defined before and after. Each call must use its own
disposable scope: nothing leaks from one introspection into the next.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from wpconf.model import EnvironmentSnapshot


@dataclass(frozen=True)
class ExecutionTrace:
    """Snapshots captured around one execution of the config source."""
    before: EnvironmentSnapshot
    after: EnvironmentSnapshot


class ExecutionContext(ABC):
    """
    Runs config source and captures environment snapshots.

    Subclasses list the variable names their own instrumentation creates
    in `bookkeeping_names` so the introspector never reports them.
    """

    bookkeeping_names: Tuple[str, ...] = ()

    @abstractmethod
    def execute(self, source: str, path: Path) -> ExecutionTrace:
        """
        Execute source as if it were the file at path.

        Raises:
            ExecutionFailedError: The source could not be executed
        """
