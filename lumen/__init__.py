# Lumen: a small scripting language
"""
Lumen: a small scripting language with a precedence-climbing parser
and a tree-walking interpreter.
"""
from .builtins import BUILTIN_REGISTRY, BuiltinInfo, BuiltinType
from .lexer import Lexer, Token, TokenType
from .parser import (
    Parser, ParseError, IllegalTokenError, Precedence, format_node,
    ASTNode, Program, BlockStatement, ExpressionStatement, IfExpression, IfType,
)
from .objects import (
    Object, ObjectType, Num, Bool, NoneObject, ReturnObject, ErrorObject,
    UnmetIf, BuiltInFunction, TRUE, FALSE, NONE, UNMET_IF,
)
from .interpreter import Interpreter, Environment, LumenError
from .config import LumenConfig, configure_logging

__version__ = "0.1.0"
__all__ = [
    "BUILTIN_REGISTRY", "BuiltinInfo", "BuiltinType",
    "Lexer", "Token", "TokenType",
    "Parser", "ParseError", "IllegalTokenError", "Precedence", "format_node",
    "ASTNode", "Program", "BlockStatement", "ExpressionStatement",
    "IfExpression", "IfType",
    "Object", "ObjectType", "Num", "Bool", "NoneObject", "ReturnObject",
    "ErrorObject", "UnmetIf", "BuiltInFunction",
    "TRUE", "FALSE", "NONE", "UNMET_IF",
    "Interpreter", "Environment", "LumenError",
    "LumenConfig", "configure_logging",
]
