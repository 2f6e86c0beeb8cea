"""
Lumen Built-in Registry
=======================
Maps each built-in function name to its descriptor. The interpreter
consults this registry when it evaluates a call whose callee is a bare
identifier; the behaviour itself lives in the interpreter, keyed by
BuiltinType.
"""
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class BuiltinType(Enum):
    """The built-in primitives of Lumen."""
    PRINT = auto()  # print(a, b, ...)


@dataclass(frozen=True)
class BuiltinInfo:
    """
    A Lumen built-in.

      - name:          Name the call site uses
      - builtin_type:  Which primitive runs
      - arity:         Exact argument count, or None for variadic
      - description:   One-line summary for REPL help
    """
    name: str
    builtin_type: BuiltinType
    arity: Optional[int]
    description: str


BUILTIN_REGISTRY: dict[str, BuiltinInfo] = {

    "print": BuiltinInfo(
        name="print",
        builtin_type=BuiltinType.PRINT,
        arity=None,
        description="Write the arguments, separated by spaces, followed by a newline.",
    ),
}


def lookup(name: str) -> BuiltinInfo | None:
    """Look up a built-in by the name used at the call site."""
    return BUILTIN_REGISTRY.get(name)


def describe_all() -> str:
    """Return a formatted table of all built-ins for REPL help."""
    lines = ["Built-ins:"]
    for name, info in BUILTIN_REGISTRY.items():
        arity = "..." if info.arity is None else str(info.arity)
        lines.append(f"  {name}({arity}) - {info.description}")
    return "\n".join(lines)
