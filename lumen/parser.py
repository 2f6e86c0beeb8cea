"""
Lumen Parser
============
Precedence-climbing (Pratt) parser that builds an Abstract Syntax Tree
from the token stream produced by the Lexer.

Supports:
  - var / const / local declarations and return statements
  - Prefix, infix, grouped, call and index expressions
  - if / elseif / else chains (a linked list through `alternative`)
  - Error accumulation: unexpected tokens are recorded and parsing
    continues; only an ILLEGAL token aborts the whole parse
"""
import logging
from dataclasses import dataclass, field
from enum import Enum, IntEnum, auto
from typing import Callable, Optional

from .lexer import Token, TokenType

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────
#  AST Node Types
# ─────────────────────────────────────────────────────────────

class Operator(Enum):
    """Prefix and infix operators, keyed by their source symbol."""
    PLUS         = "+"
    MINUS        = "-"
    MULTIPLY     = "*"
    DIVIDE       = "/"
    BANG         = "!"
    EQUAL        = "=="
    NOTEQUAL     = "!="
    GREATTHAN    = ">"
    LESSTHAN     = "<"
    GREATOREQUAL = ">="
    LESSOREQUAL  = "<="


class IfType(Enum):
    """Position of a link in an if / elseif / else chain."""
    IF     = auto()
    ELSEIF = auto()
    ELSE   = auto()


@dataclass
class ASTNode:
    """Base class for all AST nodes."""
    node_type: str = ""
    line: int = 0
    col: int = 0


@dataclass
class Identifier(ASTNode):
    """A reference to a name."""
    value: str = ""

    def __post_init__(self):
        self.node_type = "Identifier"


# Statements

@dataclass
class VarStatement(ASTNode):
    """var name = value (binds in the global environment)."""
    name: Identifier | None = None
    value: ASTNode | None = None

    def __post_init__(self):
        self.node_type = "Var"


@dataclass
class ConstStatement(ASTNode):
    """const name = value (binds once in the current environment)."""
    name: Identifier | None = None
    value: ASTNode | None = None

    def __post_init__(self):
        self.node_type = "Const"


@dataclass
class LocalStatement(ASTNode):
    """local name = value (binds in the current block environment)."""
    name: Identifier | None = None
    value: ASTNode | None = None

    def __post_init__(self):
        self.node_type = "Local"


@dataclass
class ReturnStatement(ASTNode):
    """return [value]."""
    return_value: ASTNode | None = None

    def __post_init__(self):
        self.node_type = "Return"


@dataclass
class ExpressionStatement(ASTNode):
    """An expression in statement position."""
    expression: ASTNode | None = None

    def __post_init__(self):
        self.node_type = "ExpressionStatement"


@dataclass
class EmptyStatement(ASTNode):
    def __post_init__(self):
        self.node_type = "EmptyStatement"


@dataclass
class BlockStatement(ASTNode):
    """A brace-delimited sequence of statements."""
    statements: list[ASTNode] = field(default_factory=list)

    def __post_init__(self):
        self.node_type = "Block"


# Expressions

@dataclass
class NumberLiteral(ASTNode):
    value: float = 0.0

    def __post_init__(self):
        self.node_type = "Number"


@dataclass
class StringLiteral(ASTNode):
    value: str = ""

    def __post_init__(self):
        self.node_type = "String"


@dataclass
class BooleanLiteral(ASTNode):
    value: bool = False

    def __post_init__(self):
        self.node_type = "Boolean"


@dataclass
class NoneLiteral(ASTNode):
    def __post_init__(self):
        self.node_type = "None"


@dataclass
class PrefixExpression(ASTNode):
    """A unary operation: !x, -x, +x."""
    operator: Operator | None = None
    right: ASTNode | None = None

    def __post_init__(self):
        self.node_type = "Prefix"


@dataclass
class InfixExpression(ASTNode):
    """A binary operation: left <op> right."""
    left: ASTNode | None = None
    operator: Operator | None = None
    right: ASTNode | None = None

    def __post_init__(self):
        self.node_type = "Infix"


@dataclass
class IfExpression(ASTNode):
    """One link of an if / elseif / else chain.

    `alternative` points at the next link. An ELSE link has no condition
    and terminates the chain.
    """
    if_type: IfType = IfType.IF
    condition: ASTNode | None = None
    consequence: BlockStatement = field(default_factory=BlockStatement)
    alternative: Optional["IfExpression"] = None

    def __post_init__(self):
        self.node_type = "If"


@dataclass
class WhileExpression(ASTNode):
    condition: ASTNode | None = None
    body: BlockStatement = field(default_factory=BlockStatement)

    def __post_init__(self):
        self.node_type = "While"


@dataclass
class ForExpression(ASTNode):
    variable: Identifier | None = None
    iterable: ASTNode | None = None
    body: BlockStatement = field(default_factory=BlockStatement)

    def __post_init__(self):
        self.node_type = "For"


@dataclass
class FunctionLiteral(ASTNode):
    parameters: list[Identifier] = field(default_factory=list)
    body: BlockStatement = field(default_factory=BlockStatement)

    def __post_init__(self):
        self.node_type = "Func"


@dataclass
class CallExpression(ASTNode):
    """function(args...)."""
    function: ASTNode | None = None
    args: list[ASTNode] = field(default_factory=list)

    def __post_init__(self):
        self.node_type = "Call"


@dataclass
class ListLiteral(ASTNode):
    elements: list[ASTNode] = field(default_factory=list)

    def __post_init__(self):
        self.node_type = "List"


@dataclass
class IndexExpression(ASTNode):
    left: ASTNode | None = None
    index: ASTNode | None = None

    def __post_init__(self):
        self.node_type = "Index"


@dataclass
class AnnotationExpression(ASTNode):
    """A type annotation: name: type."""
    target: ASTNode | None = None
    annotation: str = ""

    def __post_init__(self):
        self.node_type = "Annotation"


@dataclass
class EmptyExpression(ASTNode):
    def __post_init__(self):
        self.node_type = "EmptyExpression"


@dataclass
class Program(ASTNode):
    """Root node containing all top-level statements."""
    statements: list[ASTNode] = field(default_factory=list)

    def __post_init__(self):
        self.node_type = "Program"


# ─────────────────────────────────────────────────────────────
#  Source rendering
# ─────────────────────────────────────────────────────────────

def format_node(node: ASTNode | None) -> str:
    """Render a node back to source with every operation parenthesised."""
    if node is None:
        return ""
    match node.node_type:
        case "Program":
            return "\n".join(format_node(s) for s in node.statements)
        case "Block":
            inner = "; ".join(format_node(s) for s in node.statements)
            return "{ " + inner + " }" if inner else "{ }"
        case "Var" | "Const" | "Local":
            keyword = node.node_type.lower()
            return f"{keyword} {node.name.value} = {format_node(node.value)}"
        case "Return":
            if node.return_value is None:
                return "return"
            return f"return {format_node(node.return_value)}"
        case "ExpressionStatement":
            return format_node(node.expression)
        case "Identifier":
            return node.value
        case "Number":
            value = node.value
            return str(int(value)) if value.is_integer() else repr(value)
        case "String":
            return '"' + node.value.replace("\\", "\\\\").replace('"', '\\"') + '"'
        case "Boolean":
            return "true" if node.value else "false"
        case "None":
            return "none"
        case "Prefix":
            return f"({node.operator.value}{format_node(node.right)})"
        case "Infix":
            return f"({format_node(node.left)} {node.operator.value} {format_node(node.right)})"
        case "If":
            return _format_if(node)
        case "Call":
            args = ", ".join(format_node(a) for a in node.args)
            return f"{format_node(node.function)}({args})"
        case "List":
            return "[" + ", ".join(format_node(e) for e in node.elements) + "]"
        case "Index":
            return f"({format_node(node.left)}[{format_node(node.index)}])"
        case _:
            return f"<{node.node_type}>"


def _format_if(node: IfExpression) -> str:
    parts = []
    link = node
    while link is not None:
        body = format_node(link.consequence)
        match link.if_type:
            case IfType.IF:
                parts.append(f"if {format_node(link.condition)} {body}")
            case IfType.ELSEIF:
                parts.append(f"elseif {format_node(link.condition)} {body}")
            case IfType.ELSE:
                parts.append(f"else {body}")
        link = link.alternative
    return " ".join(parts)


# ─────────────────────────────────────────────────────────────
#  Parse Errors
# ─────────────────────────────────────────────────────────────

@dataclass
class ParseError:
    """A single non-fatal parse diagnostic with location."""
    message: str
    line: int
    col: int

    def __str__(self) -> str:
        return self.message


class IllegalTokenError(SyntaxError):
    """Fatal parse failure: the token stream contains an ILLEGAL token.

    Carries every diagnostic accumulated up to and including the
    illegal token.
    """

    def __init__(self, errors: list[ParseError]):
        self.errors = list(errors)
        super().__init__("\n".join(str(e) for e in self.errors))


# ─────────────────────────────────────────────────────────────
#  Precedence
# ─────────────────────────────────────────────────────────────

class Precedence(IntEnum):
    LOWEST           = auto()
    EQUALS           = auto()  # == or !=
    LESSGREATER      = auto()  # > or <
    LESSGREATEREQUAL = auto()  # >= or <=
    SUM              = auto()  # + or -
    PRODUCT          = auto()  # * or /
    PREFIX           = auto()  # -x, +x or !x
    CALL             = auto()  # print(x), xs[0]


PRECEDENCES: dict[TokenType, Precedence] = {
    TokenType.EQUAL: Precedence.EQUALS,
    TokenType.NOTEQUAL: Precedence.EQUALS,
    TokenType.GREATTHAN: Precedence.LESSGREATER,
    TokenType.LESSTHAN: Precedence.LESSGREATER,
    TokenType.GREATOREQUAL: Precedence.LESSGREATEREQUAL,
    TokenType.LESSOREQUAL: Precedence.LESSGREATEREQUAL,
    TokenType.PLUS: Precedence.SUM,
    TokenType.MINUS: Precedence.SUM,
    TokenType.MULTIPLY: Precedence.PRODUCT,
    TokenType.DIVIDE: Precedence.PRODUCT,
    TokenType.LPARENT: Precedence.CALL,
    TokenType.LSQUAREBRAC: Precedence.CALL,
}


# ─────────────────────────────────────────────────────────────
#  Parser
# ─────────────────────────────────────────────────────────────

class Parser:
    """
    Precedence-climbing parser for Lumen source.

    Usage:
        parser = Parser(tokens, file_path="script.lm")
        program = parser.parse()
        for error in parser.errors:
            print(error)

    A statement that cannot be parsed leaves no node in the program and
    one diagnostic in `errors`. An ILLEGAL token raises IllegalTokenError.
    """

    def __init__(self, tokens: list[Token], file_path: str = "<stdin>"):
        if not tokens or tokens[-1].type != TokenType.EOF:
            last = tokens[-1] if tokens else None
            eof = Token(TokenType.EOF, "",
                        last.line if last else 1,
                        last.col + len(last.value) if last else 1,
                        last.offset + len(last.value) if last else 0)
            tokens = list(tokens) + [eof]
        self.tokens = tokens
        self.file_path = file_path
        self.pos = 0
        self.errors: list[ParseError] = []
        # only used for diagnostics
        self.line_count = 1

        self.cur_token = self._token_at(0)
        self.peek_token = self._token_at(1)

        self._prefix_parse_fns: dict[TokenType, Callable[[], ASTNode | None]] = {
            TokenType.IDENT: self._parse_identifier,
            TokenType.NUMBER: self._parse_number_literal,
            TokenType.STRING: self._parse_string_literal,
            TokenType.TRUE: self._parse_boolean,
            TokenType.FALSE: self._parse_boolean,
            TokenType.NONE: self._parse_none,
            TokenType.BANG: self._parse_prefix_expression,
            TokenType.MINUS: self._parse_prefix_expression,
            TokenType.PLUS: self._parse_prefix_expression,
            TokenType.LPARENT: self._parse_grouped_expression,
            TokenType.LSQUAREBRAC: self._parse_list_literal,
            TokenType.IF: self._parse_if_expression,
        }
        self._infix_parse_fns: dict[TokenType, Callable[[ASTNode], ASTNode | None]] = {
            TokenType.PLUS: self._parse_infix_expression,
            TokenType.MINUS: self._parse_infix_expression,
            TokenType.MULTIPLY: self._parse_infix_expression,
            TokenType.DIVIDE: self._parse_infix_expression,
            TokenType.EQUAL: self._parse_infix_expression,
            TokenType.NOTEQUAL: self._parse_infix_expression,
            TokenType.GREATTHAN: self._parse_infix_expression,
            TokenType.LESSTHAN: self._parse_infix_expression,
            TokenType.GREATOREQUAL: self._parse_infix_expression,
            TokenType.LESSOREQUAL: self._parse_infix_expression,
            TokenType.LPARENT: self._parse_call_expression,
            TokenType.LSQUAREBRAC: self._parse_index_expression,
        }

    # ─────────────────────────────────────────────────────────
    #  Token window
    # ─────────────────────────────────────────────────────────

    def _token_at(self, idx: int) -> Token:
        if idx >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[idx]

    def next_token(self):
        self.pos += 1
        self.cur_token = self.peek_token
        if self.cur_token.type == TokenType.EOL:
            self.line_count += 1
        self.peek_token = self._token_at(self.pos + 1)

    def _cur_token_is(self, token_type: TokenType) -> bool:
        return self.cur_token.type == token_type

    def _peek_token_is(self, token_type: TokenType) -> bool:
        return self.peek_token.type == token_type

    def _expect_peek(self, token_type: TokenType) -> bool:
        if self._peek_token_is(token_type):
            self.next_token()
            return True
        self._peek_error(token_type)
        return False

    def _peek_precedence(self) -> Precedence:
        return PRECEDENCES.get(self.peek_token.type, Precedence.LOWEST)

    def _cur_precedence(self) -> Precedence:
        return PRECEDENCES.get(self.cur_token.type, Precedence.LOWEST)

    def _synchronize(self):
        """Skip to the last token of the current statement.

        Skipping never passes over an ILLEGAL token; reaching one aborts.
        """
        while (self.cur_token.type != TokenType.EOF
               and self.peek_token.type not in (TokenType.EOL, TokenType.EOF, TokenType.RCURLY)):
            self.next_token()
            if self._cur_token_is(TokenType.ILLEGAL):
                self._illegal_token()

    # ─────────────────────────────────────────────────────────
    #  Diagnostics
    # ─────────────────────────────────────────────────────────

    def _location(self, token: Token) -> str:
        return f"{self.file_path}:{self.line_count}:{token.col}"

    def _record_error(self, message: str, token: Token):
        self.errors.append(ParseError(message, self.line_count, token.col))

    def _peek_error(self, token_type: TokenType):
        peek = self.peek_token
        self._record_error(
            f"expected next token to be {token_type.name}, found {peek.type.name} instead. "
            f"error at: {self._location(peek)}",
            peek,
        )

    def _no_prefix_parse_error(self, token: Token):
        self._record_error(
            f"no prefix parse function for {token.type.name} found. "
            f"error at: {self._location(token)}",
            token,
        )

    def _illegal_token(self):
        token = self.cur_token
        self._record_error(
            f"Illegal token: '{token.value}' at: {self._location(token)} is not a valid token",
            token,
        )
        logger.debug("aborting parse of %s on illegal token %r", self.file_path, token)
        raise IllegalTokenError(self.errors)

    # ─────────────────────────────────────────────────────────
    #  Top-Level Parsing
    # ─────────────────────────────────────────────────────────

    def parse(self) -> Program:
        """Parse the token stream into a Program."""
        program = Program(line=1, col=1)

        while not self._cur_token_is(TokenType.EOF):
            statement = self._parse_statement()
            if statement is not None:
                program.statements.append(statement)
            self.next_token()

        if self.errors:
            logger.info("%d parse error(s) in %s", len(self.errors), self.file_path)

        return program

    def _parse_statement(self) -> ASTNode | None:
        match self.cur_token.type:
            case TokenType.VAR:
                return self._parse_declaration(VarStatement)
            case TokenType.CONST:
                return self._parse_declaration(ConstStatement)
            case TokenType.LOCAL:
                return self._parse_declaration(LocalStatement)
            case TokenType.RETURN:
                return self._parse_return_statement()
            case TokenType.ILLEGAL:
                self._illegal_token()
            case TokenType.EOL:
                return None
            case _:
                return self._parse_expression_statement()

    def _parse_declaration(self, node_cls: type) -> ASTNode | None:
        """Parse: (var | const | local) name = expression."""
        token = self.cur_token
        if not self._expect_peek(TokenType.IDENT):
            self._synchronize()
            return None
        name = Identifier(value=self.cur_token.value, line=self.cur_token.line, col=self.cur_token.col)

        if not self._expect_peek(TokenType.ASSIGN):
            self._synchronize()
            return None

        self.next_token()
        value = self._parse_expression(Precedence.LOWEST)
        if value is None:
            self._synchronize()
            return None

        return node_cls(name=name, value=value, line=token.line, col=token.col)

    def _parse_return_statement(self) -> ReturnStatement | None:
        token = self.cur_token
        statement = ReturnStatement(line=token.line, col=token.col)
        if self.peek_token.type in (TokenType.EOL, TokenType.EOF, TokenType.RCURLY):
            return statement

        self.next_token()
        statement.return_value = self._parse_expression(Precedence.LOWEST)
        if statement.return_value is None:
            self._synchronize()
            return None
        return statement

    def _parse_expression_statement(self) -> ExpressionStatement | None:
        token = self.cur_token
        logger.debug("expression statement at %r", token)
        expression = self._parse_expression(Precedence.LOWEST)
        if expression is None:
            self._synchronize()
            return None
        return ExpressionStatement(expression=expression, line=token.line, col=token.col)

    def _parse_block_statement(self) -> BlockStatement | None:
        """Parse { statements }. Expects cur_token to be LCURLY; ends on RCURLY."""
        token = self.cur_token
        block = BlockStatement(line=token.line, col=token.col)
        self.next_token()

        while not self._cur_token_is(TokenType.RCURLY):
            if self._cur_token_is(TokenType.EOF):
                self._record_error(
                    f"expected next token to be RCURLY, found EOF instead. "
                    f"error at: {self._location(self.cur_token)}",
                    self.cur_token,
                )
                return None
            statement = self._parse_statement()
            if statement is not None:
                block.statements.append(statement)
            self.next_token()

        return block

    # ─────────────────────────────────────────────────────────
    #  Expressions
    # ─────────────────────────────────────────────────────────

    def _parse_expression(self, precedence: Precedence) -> ASTNode | None:
        if self._cur_token_is(TokenType.ILLEGAL):
            self._illegal_token()
        prefix = self._prefix_parse_fns.get(self.cur_token.type)
        if prefix is None:
            self._no_prefix_parse_error(self.cur_token)
            return None

        left = prefix()
        if left is None:
            return None

        while (self.peek_token.type not in (TokenType.EOL, TokenType.EOF)
               and precedence < self._peek_precedence()):
            infix = self._infix_parse_fns.get(self.peek_token.type)
            if infix is None:
                return left
            self.next_token()
            left = infix(left)
            if left is None:
                return None

        return left

    def _parse_identifier(self) -> Identifier:
        token = self.cur_token
        return Identifier(value=token.value, line=token.line, col=token.col)

    def _parse_number_literal(self) -> NumberLiteral | None:
        token = self.cur_token
        try:
            value = float(token.value)
        except ValueError:
            self._record_error(
                f"invalid number literal '{token.value}'. error at: {self._location(token)}",
                token,
            )
            return None
        return NumberLiteral(value=value, line=token.line, col=token.col)

    def _parse_string_literal(self) -> StringLiteral:
        token = self.cur_token
        return StringLiteral(value=token.value, line=token.line, col=token.col)

    def _parse_boolean(self) -> BooleanLiteral:
        token = self.cur_token
        return BooleanLiteral(value=token.type == TokenType.TRUE, line=token.line, col=token.col)

    def _parse_none(self) -> NoneLiteral:
        token = self.cur_token
        return NoneLiteral(line=token.line, col=token.col)

    def _parse_prefix_expression(self) -> PrefixExpression | None:
        token = self.cur_token
        self.next_token()
        right = self._parse_expression(Precedence.PREFIX)
        if right is None:
            return None
        return PrefixExpression(operator=Operator(token.value), right=right,
                                line=token.line, col=token.col)

    def _parse_infix_expression(self, left: ASTNode) -> InfixExpression | None:
        token = self.cur_token
        precedence = self._cur_precedence()
        self.next_token()
        right = self._parse_expression(precedence)
        if right is None:
            return None
        return InfixExpression(left=left, operator=Operator(token.value), right=right,
                               line=token.line, col=token.col)

    def _parse_grouped_expression(self) -> ASTNode | None:
        self.next_token()
        expression = self._parse_expression(Precedence.LOWEST)
        if expression is None:
            return None
        if not self._expect_peek(TokenType.RPARENT):
            return None
        return expression

    def _parse_expression_list(self, end: TokenType) -> list[ASTNode] | None:
        """Parse comma-separated expressions up to `end`, which is consumed."""
        items: list[ASTNode] = []
        if self._peek_token_is(end):
            self.next_token()
            return items

        self.next_token()
        item = self._parse_expression(Precedence.LOWEST)
        if item is None:
            return None
        items.append(item)

        while self._peek_token_is(TokenType.COMMA):
            self.next_token()
            self.next_token()
            item = self._parse_expression(Precedence.LOWEST)
            if item is None:
                return None
            items.append(item)

        if not self._expect_peek(end):
            return None
        return items

    def _parse_call_expression(self, function: ASTNode) -> CallExpression | None:
        token = self.cur_token
        args = self._parse_expression_list(TokenType.RPARENT)
        if args is None:
            return None
        return CallExpression(function=function, args=args, line=token.line, col=token.col)

    def _parse_list_literal(self) -> ListLiteral | None:
        token = self.cur_token
        elements = self._parse_expression_list(TokenType.RSQUAREBRAC)
        if elements is None:
            return None
        return ListLiteral(elements=elements, line=token.line, col=token.col)

    def _parse_index_expression(self, left: ASTNode) -> IndexExpression | None:
        token = self.cur_token
        self.next_token()
        index = self._parse_expression(Precedence.LOWEST)
        if index is None:
            return None
        if not self._expect_peek(TokenType.RSQUAREBRAC):
            return None
        return IndexExpression(left=left, index=index, line=token.line, col=token.col)

    def _parse_if_expression(self, if_type: IfType = IfType.IF) -> IfExpression | None:
        """Parse: if cond { ... } [elseif cond { ... }]* [else { ... }]."""
        token = self.cur_token
        self.next_token()
        condition = self._parse_expression(Precedence.LOWEST)
        if condition is None:
            return None

        if not self._expect_peek(TokenType.LCURLY):
            return None
        consequence = self._parse_block_statement()
        if consequence is None:
            return None

        node = IfExpression(if_type=if_type, condition=condition, consequence=consequence,
                            line=token.line, col=token.col)

        if self._peek_token_is(TokenType.ELSEIF):
            self.next_token()
            node.alternative = self._parse_if_expression(IfType.ELSEIF)
            if node.alternative is None:
                return None
        elif self._peek_token_is(TokenType.ELSE):
            self.next_token()
            else_token = self.cur_token
            if not self._expect_peek(TokenType.LCURLY):
                return None
            body = self._parse_block_statement()
            if body is None:
                return None
            node.alternative = IfExpression(if_type=IfType.ELSE, consequence=body,
                                            line=else_token.line, col=else_token.col)

        return node
