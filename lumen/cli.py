"""
Lumen CLI
=========
Run Lumen source files or start an interactive session.

Usage:
    lumen run script.lm
    lumen run script.lm --ast --verbose
    lumen repl

Environment:
    LUMEN_LOG_LEVEL   default log level (DEBUG, INFO, WARNING, ...)
"""
import argparse
import os
import sys

from .builtins import describe_all
from .config import LumenConfig, configure_logging
from .interpreter import Interpreter, LumenError
from .lexer import Lexer
from .objects import Object, ErrorObject, BuiltInFunction, NONE
from .parser import Parser, IllegalTokenError, Program, format_node


HELP_TEXT = """
Lumen quick reference

  var x = 1 + 2          global binding
  local y = x * 2        binding visible in the current block
  const z = 10           binding that cannot be redeclared
  if x > 2 { print(x) } elseif x == 2 { print(0) } else { print(-1) }
  return x               stop the program with a value

Operators: + - * / == != > < >= <= and prefix ! - +

{builtins}

Commands: help, env, ast <source>, clear, exit
"""


# ─────────────────────────────────────────────────────────────
#  Pipeline
# ─────────────────────────────────────────────────────────────

def parse_source(source: str, config: LumenConfig) -> Program:
    """Lex and parse source, printing non-fatal diagnostics if configured.

    Raises IllegalTokenError when the source contains an illegal token.
    """
    tokens = Lexer(source, file_path=config.file_path).tokenize()
    parser = Parser(tokens, file_path=config.file_path)
    program = parser.parse()

    if parser.errors and config.show_parse_errors:
        print(f"⚠ {len(parser.errors)} parse error(s):")
        for error in parser.errors:
            print(f"  {error}")
        print()

    return program


def should_display(result: Object) -> bool:
    """A run's result is echoed unless it is none or a built-in receipt."""
    return result != NONE and not isinstance(result, BuiltInFunction)


def run_file(filepath: str, config: LumenConfig | None = None) -> int:
    """
    Execute a Lumen source file.

    Args:
        filepath: Path to the source file
        config:   Run settings; file_path is overridden with filepath

    Returns:
        0 on success, 1 on error
    """
    config = config or LumenConfig()
    config.file_path = filepath

    if not os.path.exists(filepath):
        print(f"Error: File not found: {filepath}")
        return 1

    with open(filepath, "r", encoding="utf-8") as f:
        source = f.read()

    try:
        program = parse_source(source, config)
    except IllegalTokenError as e:
        print("✘ Syntax Error:")
        for error in e.errors:
            print(f"  {error}")
        return 1

    if config.show_ast:
        print(format_node(program))
        print()

    interp = Interpreter()
    try:
        result = interp.evaluate(program)
    except LumenError as e:
        print(f"⚠ Lumen Error: {e}")
        return 1

    if isinstance(result, ErrorObject):
        print(f"✘ {result.literal()}")
        return 1

    if should_display(result):
        print(f"=> {result.literal()}")
    return 0


# ─────────────────────────────────────────────────────────────
#  REPL
# ─────────────────────────────────────────────────────────────

def run_repl(config: LumenConfig | None = None, input_fn=input):
    """Run the interactive Lumen REPL until exit or end of input."""
    config = config or LumenConfig()
    interp = Interpreter()
    print("Lumen REPL. Type 'help' for a reference, 'exit' to quit.")

    while True:
        try:
            line = input_fn("lumen> ")
        except (EOFError, KeyboardInterrupt):
            print()
            break

        line = line.strip()
        if not line:
            continue

        command = line.lower()
        if command in ("exit", "quit"):
            break

        if command == "help":
            print(HELP_TEXT.replace("{builtins}", describe_all()))
            continue

        if command == "env":
            if interp.globals.store:
                for name, value in interp.globals.store.items():
                    print(f"  {name} = {value.literal()}")
            else:
                print("  (no bindings)")
            continue

        if command == "clear":
            interp = Interpreter()
            print("  State cleared.")
            continue

        if command.startswith("ast "):
            try:
                print(format_node(parse_source(line[4:], config)))
            except IllegalTokenError as e:
                print(f"  ✘ {e}")
            continue

        try:
            program = parse_source(line, config)
            result = interp.evaluate(program)
        except IllegalTokenError as e:
            print(f"  ✘ {e}")
            continue
        except LumenError as e:
            print(f"  ⚠ Lumen Error: {e}")
            continue

        if should_display(result):
            print(f"  => {result.literal()}")


# ─────────────────────────────────────────────────────────────
#  Entry point
# ─────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lumen",
        description="Run Lumen scripts or start an interactive session.",
    )
    sub = parser.add_subparsers(dest="command")

    run = sub.add_parser("run", help="Execute a source file")
    run.add_argument("file", help="Path to the .lm source file")
    run.add_argument("--ast", action="store_true", help="Print the parsed program first")
    run.add_argument("--quiet-errors", action="store_true",
                     help="Do not print non-fatal parse diagnostics")
    run.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level")

    repl = sub.add_parser("repl", help="Start the interactive REPL")
    repl.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level")

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command is None:
        build_parser().print_help()
        return 1

    config = LumenConfig.from_env(
        log_level="DEBUG" if args.verbose else None,
        show_ast=getattr(args, "ast", None) or None,
        show_parse_errors=False if getattr(args, "quiet_errors", False) else None,
    )
    configure_logging(config)

    if args.command == "run":
        return run_file(args.file, config)

    run_repl(config)
    return 0


if __name__ == "__main__":
    sys.exit(main())
