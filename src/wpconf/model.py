"""
Core Config Model Objects

Defines the data structures shared by the introspector and the transformer.

These are pure data classes representing:
    - Definitions (a constant or variable statement found in the file text)
    - Entries (a name/value/type record produced by executing the file)
    - Snapshots (what an execution context defines at a point in time)
    - Anchors (where new definitions are inserted)

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about reading or writing files
        - Are immutable where they describe file state
        - Are computed fresh on every call, never cached
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple


DEFAULT_ANCHOR = "/* That's all, stop editing!"
DEFAULT_SEPARATOR = "\n"


class Kind(Enum):
    """
    Namespace of a definition.

    Constants and variables are namespaced separately: the same name may
    exist as both at once. ALL is a query kind only, it never describes
    a concrete definition.
    """

    CONSTANT = "constant"
    VARIABLE = "variable"
    ALL = "all"

    @property
    def is_concrete(self) -> bool:
        return self is not Kind.ALL


class EntryType(Enum):
    """Type column of an introspection entry."""
    CONSTANT = "constant"
    VARIABLE = "variable"
    INCLUDES = "includes"


class Placement(Enum):
    """Where a new definition goes relative to the anchor line."""
    BEFORE = "before"
    AFTER = "after"


@dataclass(frozen=True)
class Definition:
    """
    A single definition statement located in the raw file text.

    Examples:
        define( 'DB_NAME', 'wordpress' );
        $table_prefix = 'wp_';

    Properties:
        name: Constant or variable name (without the leading $)
        kind: Kind.CONSTANT or Kind.VARIABLE
        value: Logical value. Decoded when the value is a plain quoted
            string literal, otherwise the raw expression text.
        raw_value: Source text of the value expression
        span: (start, end) offsets of the whole statement, end is just
            past the terminating semicolon
        value_span: (start, end) offsets of the value expression
        quoted: True when the value is a plain quoted string literal
    """

    name: str
    kind: Kind
    value: str
    raw_value: str
    span: Tuple[int, int]
    value_span: Tuple[int, int]
    quoted: bool = False

    @property
    def start(self) -> int:
        return self.span[0]

    @property
    def end(self) -> int:
        return self.span[1]


@dataclass(frozen=True)
class IncludeRecord:
    """A file loaded by the config file during execution. Read-only metadata."""

    path: str

    @property
    def name(self) -> str:
        return os.path.basename(self.path)


@dataclass(frozen=True)
class ConfigEntry:
    """
    One row of an introspection listing.

    Properties:
        name: Constant/variable name, or file basename for includes
        value: Runtime value as decoded from the execution context
        type: EntryType
    """

    name: str
    value: Any
    type: EntryType

    def to_dict(self) -> dict:
        return {"name": self.name, "value": self.value, "type": self.type.value}


def _freeze(mapping: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class EnvironmentSnapshot:
    """
    Immutable capture of what an execution context defines at one moment.

    Taken twice per introspection (before and after executing the file)
    and never persisted. Mappings keep the context's insertion order,
    which follows declaration order in the executed file.
    """

    constants: Mapping[str, Any] = field(default_factory=dict)
    variables: Mapping[str, Any] = field(default_factory=dict)
    included_files: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "constants", _freeze(self.constants))
        object.__setattr__(self, "variables", _freeze(self.variables))
        object.__setattr__(self, "included_files", tuple(self.included_files))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EnvironmentSnapshot":
        # json_encode turns empty PHP arrays into lists
        constants = data.get("constants") or {}
        variables = data.get("variables") or {}
        return cls(
            constants=constants if isinstance(constants, Mapping) else {},
            variables=variables if isinstance(variables, Mapping) else {},
            included_files=tuple(data.get("included_files") or ()),
        )


@dataclass(frozen=True)
class AnchorSpec:
    """
    Describes where new definitions are inserted.

    Properties:
        marker_text: Text the anchor line must contain
        placement: Placement.BEFORE or Placement.AFTER the anchor line
        separator: String placed between the new statement and the anchor
    """

    marker_text: str = DEFAULT_ANCHOR
    placement: Placement = Placement.BEFORE
    separator: str = DEFAULT_SEPARATOR


@dataclass(frozen=True)
class TransformOptions:
    """
    Options for ConfigTransformer.update.

    Properties:
        raw: Insert the value verbatim as a PHP expression instead of
            as an escaped single-quoted string
        add: Create the definition at the anchor when it is missing
        anchor: AnchorSpec used when adding
    """

    raw: bool = False
    add: bool = True
    anchor: AnchorSpec = field(default_factory=AnchorSpec)


@dataclass(frozen=True)
class UpdateResult:
    """Outcome of ConfigTransformer.update."""

    kind: Kind
    name: str
    created: bool = False
