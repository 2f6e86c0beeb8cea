"""
Lumen Interpreter
=================
Tree-walking interpreter that evaluates the AST produced by the Parser.

Evaluation threads three control signals upward alongside ordinary
values:
  - ReturnObject: stops the enclosing blocks; unwrapped by the program
  - ErrorObject:  stops everything; becomes the program result
  - UnmetIf:      an if-chain with no matching branch and no else;
                  at program level it contributes no value
"""
import logging
import math
from collections import deque
from typing import Callable

from .builtins import BuiltinInfo, BuiltinType, lookup
from .objects import (
    Object, Num, Bool, NoneObject, ReturnObject, ErrorObject, UnmetIf,
    BuiltInFunction, TRUE, FALSE, NONE, UNMET_IF, native_bool_to_object,
)
from .parser import (
    ASTNode, Program, BlockStatement, VarStatement, ConstStatement, LocalStatement,
    ReturnStatement, ExpressionStatement, Identifier, NumberLiteral, BooleanLiteral,
    PrefixExpression, InfixExpression, IfExpression, IfType, CallExpression, Operator,
)

logger = logging.getLogger(__name__)

# Results that abort whatever expression or statement produced them
PROPAGATING = (ReturnObject, ErrorObject)

CALL_LOG_LIMIT = 1000


class LumenError(Exception):
    """Runtime failure inside the interpreter.

    Raised where a check fails deep in evaluation and turned into an
    ErrorObject at the expression or statement that caused it.
    """
    pass


class Environment:
    """A name → object map with an optional enclosing environment.

    Names declared with `const` cannot be declared again in the same
    environment.
    """

    def __init__(self, outer: "Environment | None" = None):
        self.outer = outer
        self.store: dict[str, Object] = {}
        self.constants: set[str] = set()

    def get(self, name: str) -> Object | None:
        env = self
        while env is not None:
            if name in env.store:
                return env.store[name]
            env = env.outer
        return None

    def declare(self, name: str, value: Object, constant: bool = False):
        if name in self.constants:
            raise LumenError(f"cannot redeclare constant '{name}'")
        self.store[name] = value
        if constant:
            self.constants.add(name)

    def enclosed(self) -> "Environment":
        return Environment(outer=self)

    def root(self) -> "Environment":
        env = self
        while env.outer is not None:
            env = env.outer
        return env


def is_truthy(obj: Object) -> bool:
    """Only booleans and none may be used as conditions."""
    match obj:
        case Bool(value=value):
            return value
        case NoneObject():
            return False
        case _:
            raise LumenError(f"invalid condition: {obj.literal()}")


def ieee_divide(left: float, right: float) -> float:
    """Float division that yields inf/nan on a zero divisor instead of raising."""
    if right == 0.0:
        if left == 0.0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


class Interpreter:
    """
    Tree-walking interpreter for Lumen programs.

    Usage:
        interp = Interpreter()
        result = interp.evaluate(program)

    The interpreter keeps its global environment between calls, so a REPL
    can feed it one program per line. `call_log` holds the most recent
    built-in receipts, at most `call_log_limit` of them.
    """

    def __init__(self, output_fn: Callable[[str], None] | None = None,
                 call_log_limit: int = CALL_LOG_LIMIT):
        self.globals = Environment()
        self.env = self.globals
        self.output_fn = output_fn or (lambda s: print(s))
        self.call_log: deque[BuiltInFunction] = deque(maxlen=call_log_limit)

    def evaluate(self, program: Program) -> Object:
        """Run a whole program and return its single result object."""
        return self.execute(program)

    def execute(self, node: ASTNode) -> Object:
        """Evaluate an AST node and return the resulting object."""
        method = f"_exec_{node.node_type.lower()}"
        executor = getattr(self, method, None)
        if executor is None:
            raise LumenError(f"Unknown node type: {node.node_type}")
        return executor(node)

    def _eval_operand(self, node: ASTNode) -> Object:
        """Evaluate a node whose result is used as a value.

        An if-chain with no matching branch reads as none here; its
        UnmetIf marker only has meaning at statement level.
        """
        value = self.execute(node)
        if isinstance(value, UnmetIf):
            return NONE
        return value

    # ─────────────────────────────────────────────────────────
    #  Program & Statements
    # ─────────────────────────────────────────────────────────

    def _exec_program(self, node: Program) -> Object:
        """Fold statements left to right, stopping on return or error."""
        result: Object | None = NONE
        for statement in node.statements:
            logger.debug("evaluating %s at L%d:%d", statement.node_type, statement.line, statement.col)
            value = self.execute(statement)
            match value:
                case ReturnObject(value=inner):
                    return inner
                case ErrorObject():
                    logger.info("program stopped at L%d: %s", statement.line, value.message)
                    return value
                case UnmetIf():
                    result = None
                case _:
                    result = value
        # No observable value (e.g. a trailing unmatched if) reads as none
        return NONE if result is None else result

    def _exec_block(self, node: BlockStatement) -> Object:
        """Run a block in its own environment; return/error objects stay wrapped."""
        result: Object = NONE
        previous = self.env
        self.env = previous.enclosed()
        try:
            for statement in node.statements:
                result = self.execute(statement)
                if isinstance(result, PROPAGATING):
                    return result
        finally:
            self.env = previous
        return result

    def _exec_expressionstatement(self, node: ExpressionStatement) -> Object:
        return self.execute(node.expression)

    def _exec_emptystatement(self, node: ASTNode) -> Object:
        return NONE

    def _exec_return(self, node: ReturnStatement) -> Object:
        if node.return_value is None:
            return ReturnObject(NONE)
        value = self._eval_operand(node.return_value)
        if isinstance(value, PROPAGATING):
            return value
        return ReturnObject(value)

    def _exec_var(self, node: VarStatement) -> Object:
        return self._declare(node, self.env.root())

    def _exec_local(self, node: LocalStatement) -> Object:
        return self._declare(node, self.env)

    def _exec_const(self, node: ConstStatement) -> Object:
        return self._declare(node, self.env, constant=True)

    def _declare(self, node: ASTNode, env: Environment, constant: bool = False) -> Object:
        value = self._eval_operand(node.value)
        if isinstance(value, PROPAGATING):
            return value
        try:
            env.declare(node.name.value, value, constant=constant)
        except LumenError as e:
            return ErrorObject(str(e))
        return NONE

    # ─────────────────────────────────────────────────────────
    #  Literals & Names
    # ─────────────────────────────────────────────────────────

    def _exec_number(self, node: NumberLiteral) -> Object:
        return Num(node.value)

    def _exec_boolean(self, node: BooleanLiteral) -> Object:
        return native_bool_to_object(node.value)

    def _exec_none(self, node: ASTNode) -> Object:
        return NONE

    def _exec_string(self, node: ASTNode) -> Object:
        # Strings have no runtime representation yet
        return NONE

    def _exec_identifier(self, node: Identifier) -> Object:
        value = self.env.get(node.value)
        if value is None:
            return ErrorObject(f"identifier not found: {node.value}")
        return value

    def _exec_emptyexpression(self, node: ASTNode) -> Object:
        return ErrorObject("cannot evaluate empty expression")

    # ─────────────────────────────────────────────────────────
    #  Operators
    # ─────────────────────────────────────────────────────────

    def _exec_prefix(self, node: PrefixExpression) -> Object:
        right = self._eval_operand(node.right)
        if isinstance(right, PROPAGATING):
            return right

        match node.operator:
            case Operator.BANG:
                return self._eval_bang(right)
            case Operator.PLUS:
                return right
            case Operator.MINUS:
                return self._eval_minus(right)
            case _:
                return ErrorObject(f"illegal prefix operation: {node.operator.value}")

    def _eval_bang(self, right: Object) -> Object:
        match right:
            case Bool(value=value):
                return FALSE if value else TRUE
            case NoneObject():
                return right
            case _:
                return ErrorObject(f"unknown operation: !{right.literal()}")

    def _eval_minus(self, right: Object) -> Object:
        # Non-numbers pass through untouched
        if isinstance(right, Num):
            return Num(-right.value)
        return right

    def _exec_infix(self, node: InfixExpression) -> Object:
        left = self._eval_operand(node.left)
        if isinstance(left, PROPAGATING):
            return left
        right = self._eval_operand(node.right)
        if isinstance(right, PROPAGATING):
            return right
        operator = node.operator

        if isinstance(left, Num) and isinstance(right, Num):
            return self._eval_number_infix(operator, left.value, right.value)
        if operator == Operator.EQUAL:
            return native_bool_to_object(left == right)
        if operator == Operator.NOTEQUAL:
            return native_bool_to_object(left != right)
        return ErrorObject(
            f"unknown operation: left: {left.literal()}, right: {right.literal()}, "
            f"operator: {operator.value}"
        )

    def _eval_number_infix(self, operator: Operator, left: float, right: float) -> Object:
        match operator:
            case Operator.PLUS:
                return Num(left + right)
            case Operator.MINUS:
                return Num(left - right)
            case Operator.MULTIPLY:
                return Num(left * right)
            case Operator.DIVIDE:
                return Num(ieee_divide(left, right))
            case Operator.GREATTHAN:
                return native_bool_to_object(left > right)
            case Operator.LESSTHAN:
                return native_bool_to_object(left < right)
            case Operator.GREATOREQUAL:
                return native_bool_to_object(left >= right)
            case Operator.LESSOREQUAL:
                return native_bool_to_object(left <= right)
            case Operator.EQUAL:
                return native_bool_to_object(left == right)
            case Operator.NOTEQUAL:
                return native_bool_to_object(left != right)
            case _:
                return ErrorObject(f"unknown number operation: {operator.value}")

    # ─────────────────────────────────────────────────────────
    #  Conditionals
    # ─────────────────────────────────────────────────────────

    def _exec_if(self, node: IfExpression) -> Object:
        """Walk the chain; the first link whose condition holds wins."""
        if node.if_type == IfType.ELSE:
            return self.execute(node.consequence)

        if node.condition is None:
            condition = NONE
        else:
            condition = self._eval_operand(node.condition)
            if isinstance(condition, PROPAGATING):
                return condition

        try:
            taken = condition != NONE and is_truthy(condition)
        except LumenError as e:
            return ErrorObject(f"{e} at L{node.line}:{node.col}")

        if taken:
            return self.execute(node.consequence)
        if node.alternative is not None:
            return self._exec_if(node.alternative)
        return UNMET_IF

    # ─────────────────────────────────────────────────────────
    #  Calls
    # ─────────────────────────────────────────────────────────

    def _exec_call(self, node: CallExpression) -> Object:
        if not isinstance(node.function, Identifier):
            return ErrorObject(f"not a function: {node.function.node_type}")

        info = lookup(node.function.value)
        if info is None:
            return ErrorObject(f"unknown function: {node.function.value}")

        args = []
        for arg in node.args:
            value = self._eval_operand(arg)
            if isinstance(value, PROPAGATING):
                return value
            args.append(value)

        if info.arity is not None and len(args) != info.arity:
            return ErrorObject(
                f"{info.name} expects {info.arity} argument(s), got {len(args)}"
            )
        return self._invoke_builtin(info, args)

    def _invoke_builtin(self, info: BuiltinInfo, args: list[Object]) -> Object:
        logger.debug("calling builtin %s with %d argument(s)", info.name, len(args))
        match info.builtin_type:
            case BuiltinType.PRINT:
                self.output_fn(" ".join(a.literal() for a in args))
        receipt = BuiltInFunction(info.builtin_type, tuple(args))
        self.call_log.append(receipt)
        return receipt

    # ─────────────────────────────────────────────────────────
    #  Unsupported forms
    # ─────────────────────────────────────────────────────────

    def _unsupported(self, node: ASTNode) -> Object:
        return ErrorObject(f"unsupported expression: {node.node_type} at L{node.line}:{node.col}")

    _exec_while = _unsupported
    _exec_for = _unsupported
    _exec_func = _unsupported
    _exec_list = _unsupported
    _exec_index = _unsupported
    _exec_annotation = _unsupported
