"""
Lumen Runtime Objects
=====================
The values produced by evaluation. Data variants (Num, Bool, NoneObject)
flow through expressions; control variants (ReturnObject, ErrorObject,
UnmetIf) only ever travel upward through blocks to the program driver.
Every object is immutable.
"""
from dataclasses import dataclass
from enum import Enum, auto
from typing import Union

from .builtins import BuiltinType


class ObjectType(Enum):
    NUMBER   = auto()
    BOOLEAN  = auto()
    NONE     = auto()
    RETURN   = auto()
    ERROR    = auto()
    UNMET_IF = auto()
    BUILTIN  = auto()


def format_number(value: float) -> str:
    """Render a float the way the language prints it: 3 not 3.0."""
    if value.is_integer():
        return str(int(value))
    return repr(value)


@dataclass(frozen=True, eq=False)
class Num:
    value: float

    @property
    def type(self) -> ObjectType:
        return ObjectType.NUMBER

    def literal(self) -> str:
        return format_number(self.value)

    # IEEE-754: Num(nan) is not equal to itself
    def __eq__(self, other):
        if not isinstance(other, Num):
            return NotImplemented
        return self.value == other.value

    def __hash__(self):
        return hash(self.value)


@dataclass(frozen=True)
class Bool:
    value: bool

    @property
    def type(self) -> ObjectType:
        return ObjectType.BOOLEAN

    def literal(self) -> str:
        return "true" if self.value else "false"


@dataclass(frozen=True)
class NoneObject:
    @property
    def type(self) -> ObjectType:
        return ObjectType.NONE

    def literal(self) -> str:
        return "none"


@dataclass(frozen=True)
class ReturnObject:
    """Wraps the value of a `return` while it propagates out of blocks."""
    value: "Object"

    @property
    def type(self) -> ObjectType:
        return ObjectType.RETURN

    def literal(self) -> str:
        return self.value.literal()


@dataclass(frozen=True)
class ErrorObject:
    """A recoverable evaluation failure. Terminal: it becomes the program result."""
    message: str

    @property
    def type(self) -> ObjectType:
        return ObjectType.ERROR

    def literal(self) -> str:
        return f"ERROR: {self.message}"


@dataclass(frozen=True)
class UnmetIf:
    """No branch of a conditional chain matched and there was no else."""

    @property
    def type(self) -> ObjectType:
        return ObjectType.UNMET_IF

    def literal(self) -> str:
        return "unmet if"


@dataclass(frozen=True)
class BuiltInFunction:
    """Receipt of a built-in invocation: which built-in ran, with what."""
    builtin: BuiltinType
    args: tuple["Object", ...] = ()

    @property
    def type(self) -> ObjectType:
        return ObjectType.BUILTIN

    def literal(self) -> str:
        args = ", ".join(a.literal() for a in self.args)
        return f"<builtin {self.builtin.name.lower()}({args})>"


Object = Union[Num, Bool, NoneObject, ReturnObject, ErrorObject, UnmetIf, BuiltInFunction]

TRUE = Bool(True)
FALSE = Bool(False)
NONE = NoneObject()
UNMET_IF = UnmetIf()


def native_bool_to_object(value: bool) -> Bool:
    return TRUE if value else FALSE
