"""
Lumen Lexer
===========
Tokenizes Lumen source code into a stream of typed tokens.
Handles keywords, operators, string/number literals, and identifiers.
Never raises: anything it cannot make sense of becomes an ILLEGAL token
and the parser decides what to do with it.
"""
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator


class TokenType(Enum):
    """All token types in the Lumen language."""
    # Keywords
    VAR          = auto()   # var
    CONST        = auto()   # const
    LOCAL        = auto()   # local
    RETURN       = auto()   # return
    IF           = auto()   # if
    ELSEIF       = auto()   # elseif
    ELSE         = auto()   # else
    WHILE        = auto()   # while
    FOR          = auto()   # for
    FUNC         = auto()   # func
    TRUE         = auto()   # true
    FALSE        = auto()   # false
    NONE         = auto()   # none

    # Literals
    IDENT        = auto()   # variable/function names
    NUMBER       = auto()   # 42, 3.14
    STRING       = auto()   # "..."

    # Operators
    ASSIGN       = auto()   # =
    PLUS         = auto()   # +
    MINUS        = auto()   # -
    MULTIPLY     = auto()   # *
    DIVIDE       = auto()   # /
    BANG         = auto()   # !
    EQUAL        = auto()   # ==
    NOTEQUAL     = auto()   # !=
    GREATTHAN    = auto()   # >
    LESSTHAN     = auto()   # <
    GREATOREQUAL = auto()   # >=
    LESSOREQUAL  = auto()   # <=

    # Delimiters
    LPARENT      = auto()   # (
    RPARENT      = auto()   # )
    LCURLY       = auto()   # {
    RCURLY       = auto()   # }
    LSQUAREBRAC  = auto()   # [
    RSQUAREBRAC  = auto()   # ]
    COMMA        = auto()   # ,
    COLON        = auto()   # :

    # Special
    EOL          = auto()
    EOF          = auto()
    ILLEGAL      = auto()


@dataclass(frozen=True)
class Token:
    """A single token from the Lumen source."""
    type: TokenType
    value: str
    line: int
    col: int
    offset: int = 0

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, L{self.line}:{self.col})"


SINGLE_CHAR_TOKENS = {
    "=": TokenType.ASSIGN,
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.MULTIPLY,
    "/": TokenType.DIVIDE,
    "!": TokenType.BANG,
    ">": TokenType.GREATTHAN,
    "<": TokenType.LESSTHAN,
    "(": TokenType.LPARENT,
    ")": TokenType.RPARENT,
    "{": TokenType.LCURLY,
    "}": TokenType.RCURLY,
    "[": TokenType.LSQUAREBRAC,
    "]": TokenType.RSQUAREBRAC,
    ",": TokenType.COMMA,
    ":": TokenType.COLON,
}

DOUBLE_CHAR_TOKENS = {
    "==": TokenType.EQUAL,
    "!=": TokenType.NOTEQUAL,
    ">=": TokenType.GREATOREQUAL,
    "<=": TokenType.LESSOREQUAL,
}

KEYWORDS = {
    "var": TokenType.VAR,
    "const": TokenType.CONST,
    "local": TokenType.LOCAL,
    "return": TokenType.RETURN,
    "if": TokenType.IF,
    "elseif": TokenType.ELSEIF,
    "else": TokenType.ELSE,
    "while": TokenType.WHILE,
    "for": TokenType.FOR,
    "func": TokenType.FUNC,
    "true": TokenType.TRUE,
    "false": TokenType.FALSE,
    "none": TokenType.NONE,
}


class Lexer:
    """
    Tokenizes Lumen source code.

    Usage:
        lexer = Lexer(source_code, file_path="script.lm")
        tokens = lexer.tokenize()
    """

    def __init__(self, source: str, file_path: str = "<stdin>"):
        self.source = source
        self.file_path = file_path
        self.pos = 0
        self.line = 1
        self.col = 1

    def _current(self) -> str | None:
        if self.pos >= len(self.source):
            return None
        return self.source[self.pos]

    def _peek(self, offset: int = 1) -> str | None:
        idx = self.pos + offset
        if idx >= len(self.source):
            return None
        return self.source[idx]

    def _advance(self) -> str:
        ch = self.source[self.pos]
        self.pos += 1
        if ch == "\n":
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        return ch

    def _skip_whitespace(self):
        """Skip spaces and tabs, but NOT newlines."""
        while self.pos < len(self.source) and self.source[self.pos] in (" ", "\t", "\r"):
            self._advance()

    def _skip_comment(self):
        """Skip a line comment starting with #, leaving the newline."""
        while self.pos < len(self.source) and self._current() != "\n":
            self._advance()

    def _read_string(self) -> Token:
        """Read a double-quoted string literal."""
        start_line, start_col, start = self.line, self.col, self.pos
        self._advance()  # consume opening "
        chars = []
        while self.pos < len(self.source):
            ch = self._current()
            if ch == "\n":
                break
            self._advance()
            if ch == '"':
                return Token(TokenType.STRING, "".join(chars), start_line, start_col, start)
            if ch == "\\" and self.pos < len(self.source):
                next_ch = self._advance()
                escape_map = {"n": "\n", "t": "\t", "\\": "\\", '"': '"'}
                chars.append(escape_map.get(next_ch, next_ch))
            else:
                chars.append(ch)
        # Unterminated: hand the raw text to the parser as ILLEGAL
        return Token(TokenType.ILLEGAL, self.source[start:self.pos], start_line, start_col, start)

    def _read_number(self) -> Token:
        """Read a numeric literal: digits with at most one dot."""
        start_line, start_col, start = self.line, self.col, self.pos
        chars = []
        has_dot = False
        while self.pos < len(self.source):
            ch = self._current()
            if ch is not None and ch.isdigit():
                chars.append(self._advance())
            elif ch == "." and not has_dot and (self._peek() or "").isdigit():
                has_dot = True
                chars.append(self._advance())
            else:
                break
        return Token(TokenType.NUMBER, "".join(chars), start_line, start_col, start)

    def _read_identifier(self) -> Token:
        """Read an identifier or keyword."""
        start_line, start_col, start = self.line, self.col, self.pos
        chars = []
        while self.pos < len(self.source):
            ch = self._current()
            if ch is not None and (ch.isalnum() or ch == "_"):
                chars.append(self._advance())
            else:
                break
        word = "".join(chars)
        token_type = KEYWORDS.get(word, TokenType.IDENT)
        return Token(token_type, word, start_line, start_col, start)

    def tokenize(self) -> list[Token]:
        """Tokenize the entire source into a list of tokens ending in EOF."""
        tokens = list(self._iter_tokens())
        tokens.append(Token(TokenType.EOF, "", self.line, self.col, self.pos))
        return tokens

    def _iter_tokens(self) -> Iterator[Token]:
        """Generate tokens one at a time."""
        while self.pos < len(self.source):
            self._skip_whitespace()

            if self.pos >= len(self.source):
                break

            ch = self._current()

            if ch == "\n":
                yield Token(TokenType.EOL, "\\n", self.line, self.col, self.pos)
                self._advance()
                continue

            if ch == "#":
                self._skip_comment()
                continue

            if ch == '"':
                yield self._read_string()
                continue

            if ch.isdigit():
                yield self._read_number()
                continue

            pair = ch + (self._peek() or "")
            if pair in DOUBLE_CHAR_TOKENS:
                line, col, offset = self.line, self.col, self.pos
                self._advance()
                self._advance()
                yield Token(DOUBLE_CHAR_TOKENS[pair], pair, line, col, offset)
                continue

            if ch in SINGLE_CHAR_TOKENS:
                yield Token(SINGLE_CHAR_TOKENS[ch], ch, self.line, self.col, self.pos)
                self._advance()
                continue

            if ch.isalpha() or ch == "_":
                yield self._read_identifier()
                continue

            yield Token(TokenType.ILLEGAL, ch, self.line, self.col, self.pos)
            self._advance()
