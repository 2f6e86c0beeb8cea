"""
Interpreter Test Suite
======================
Evaluation of expressions, conditionals, returns, errors and built-ins.

Usage:
    python -m pytest tests/test_interpreter.py -v
    python tests/test_interpreter.py
"""
import sys
import os
import math
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from lumen.lexer import Lexer
from lumen.parser import Parser, Program, ASTNode, EmptyExpression, EmptyStatement, WhileExpression
from lumen.interpreter import (
    Interpreter, Environment, LumenError, is_truthy, ieee_divide, CALL_LOG_LIMIT,
)
from lumen.objects import (
    Num, ErrorObject, ReturnObject, BuiltInFunction, TRUE, FALSE, NONE, UNMET_IF,
)
from lumen.builtins import BuiltinType


def parse(source: str) -> Program:
    return Parser(Lexer(source).tokenize()).parse()


def run(source: str, output: list[str] | None = None):
    """Evaluate source with print output captured into `output`."""
    sink = output if output is not None else []
    return Interpreter(output_fn=sink.append).evaluate(parse(source))


class TestArithmetic(unittest.TestCase):

    def test_operators(self):
        self.assertEqual(run("1 + 2 * 3"), Num(7))
        self.assertEqual(run("(1 + 2) * 3"), Num(9))
        self.assertEqual(run("10 - 4 - 3"), Num(3))
        self.assertEqual(run("5 / 2"), Num(2.5))

    def test_division_by_zero_follows_ieee(self):
        self.assertEqual(run("1 / 0"), Num(math.inf))
        self.assertEqual(run("-1 / 0"), Num(-math.inf))
        self.assertEqual(run("1 / -0"), Num(-math.inf))
        self.assertTrue(math.isnan(run("0 / 0").value))

    def test_ieee_divide_helper(self):
        self.assertEqual(ieee_divide(6.0, 3.0), 2.0)
        self.assertEqual(ieee_divide(-2.0, 0.0), -math.inf)
        self.assertTrue(math.isnan(ieee_divide(math.nan, 0.0)))

    def test_comparisons(self):
        self.assertIs(run("1 < 2"), TRUE)
        self.assertIs(run("2 <= 2"), TRUE)
        self.assertIs(run("3 > 4"), FALSE)
        self.assertIs(run("4 >= 5"), FALSE)
        self.assertIs(run("1 == 1"), TRUE)
        self.assertIs(run("1 != 1"), FALSE)

    def test_nan_is_not_equal_to_itself(self):
        self.assertIs(run("0 / 0 == 0 / 0"), FALSE)
        self.assertIs(run("0 / 0 != 0 / 0"), TRUE)


class TestPrefixAndEquality(unittest.TestCase):

    def test_bang(self):
        self.assertIs(run("!true"), FALSE)
        self.assertIs(run("!false"), TRUE)
        self.assertIs(run("!none"), NONE)

    def test_bang_on_number_is_an_error(self):
        result = run("!1")
        self.assertIsInstance(result, ErrorObject)
        self.assertEqual(result.message, "unknown operation: !1")

    def test_minus_and_plus(self):
        self.assertEqual(run("-5"), Num(-5))
        self.assertEqual(run("--5"), Num(5))
        self.assertEqual(run("+5"), Num(5))
        self.assertIs(run("+true"), TRUE)

    def test_minus_passes_non_numbers_through(self):
        self.assertIs(run("-true"), TRUE)
        self.assertIs(run("-none"), NONE)

    def test_mixed_equality_is_structural(self):
        self.assertIs(run("true == true"), TRUE)
        self.assertIs(run("none == none"), TRUE)
        self.assertIs(run("1 == true"), FALSE)
        self.assertIs(run("none != false"), TRUE)

    def test_mixed_arithmetic_is_an_error(self):
        result = run("1 + true")
        self.assertIsInstance(result, ErrorObject)
        self.assertEqual(result.message, "unknown operation: left: 1, right: true, operator: +")

    def test_strings_evaluate_to_none(self):
        self.assertIs(run('"hello"'), NONE)


class TestConditionals(unittest.TestCase):

    def test_if_else(self):
        self.assertEqual(run("if true { 1 } else { 2 }"), Num(1))
        self.assertEqual(run("if false { 1 } else { 2 }"), Num(2))

    def test_first_matching_link_wins(self):
        source = "if false { 1 } elseif true { 2 } elseif true { 3 } else { 4 }"
        self.assertEqual(run(source), Num(2))

    def test_later_conditions_are_not_evaluated(self):
        out: list[str] = []
        run("if true { 1 } elseif print(9) { 2 }", out)
        self.assertEqual(out, [])

    def test_unmet_if_as_expression(self):
        program = parse("if false { 1 }")
        self.assertIs(Interpreter().execute(program.statements[0]), UNMET_IF)

    def test_unmet_if_at_program_level_is_none(self):
        self.assertIs(run("if false { 1 }"), NONE)
        self.assertIs(run("1\nif false { 2 }"), NONE)
        self.assertEqual(run("if false { 1 }\n7"), Num(7))

    def test_none_condition_is_falsy(self):
        self.assertEqual(run("if none { 1 } else { 2 }"), Num(2))

    def test_non_boolean_condition_is_an_error(self):
        result = run("if 1 { 2 } else { 3 }")
        self.assertIsInstance(result, ErrorObject)
        self.assertEqual(result.message, "invalid condition: 1 at L1:1")

    def test_condition_error_propagates(self):
        result = run("if missing { 1 }")
        self.assertEqual(result, ErrorObject("identifier not found: missing"))

    def test_empty_block_is_none(self):
        self.assertIs(run("if true { }"), NONE)


class TestReturns(unittest.TestCase):

    def test_return_short_circuits_program(self):
        out: list[str] = []
        self.assertEqual(run("return 5\nprint(6)", out), Num(5))
        self.assertEqual(out, [])

    def test_return_inside_block_stops_block_and_program(self):
        out: list[str] = []
        source = "if true {\n  print(1)\n  return 2\n  print(3)\n}\nprint(4)"
        self.assertEqual(run(source, out), Num(2))
        self.assertEqual(out, ["1"])

    def test_return_stays_wrapped_below_program(self):
        program = parse("if true { return 2 }")
        self.assertEqual(Interpreter().execute(program.statements[0]), ReturnObject(Num(2)))

    def test_nested_return(self):
        source = "if true {\n  if true { return 1 }\n  2\n}\n3"
        self.assertEqual(run(source), Num(1))

    def test_bare_return_is_none(self):
        self.assertIs(run("return\n5"), NONE)

    def test_return_of_error_is_the_error(self):
        self.assertEqual(run("return nope"), ErrorObject("identifier not found: nope"))


class TestOperandPropagation(unittest.TestCase):
    """A return or error inside an operand ends the program; it is never a value."""

    def test_return_in_infix_operands(self):
        self.assertEqual(run("(if true { return 5 }) == (if true { return 5 })"), Num(5))
        self.assertEqual(run("1 + (if true { return 5 })"), Num(5))

    def test_return_in_prefix_operand(self):
        self.assertEqual(run("-(if true { return 5 })"), Num(5))
        self.assertIs(run("!(if true { return true })"), TRUE)

    def test_return_in_declaration_value(self):
        interp = Interpreter()
        result = interp.evaluate(parse("var x = if true { return 5 }\nx + 1"))
        self.assertEqual(result, Num(5))
        self.assertIsNone(interp.globals.get("x"))

    def test_return_in_call_argument(self):
        out: list[str] = []
        self.assertEqual(run("print(1, if true { return 5 })", out), Num(5))
        self.assertEqual(out, [])

    def test_return_in_condition(self):
        self.assertEqual(run("if (if true { return 5 }) { 1 } else { 2 }"), Num(5))

    def test_return_of_return_is_unwrapped_once(self):
        self.assertEqual(run("return if true { return 5 }"), Num(5))

    def test_return_in_operand_inside_block(self):
        out: list[str] = []
        source = "if true {\n  var y = if true { return 7 }\n  print(1)\n}\n2"
        self.assertEqual(run(source, out), Num(7))
        self.assertEqual(out, [])

    def test_error_in_every_operand_position(self):
        for source in ("-nope", "!nope", "1 + nope", "nope + 1", "print(nope)",
                       "var z = nope", "if nope { 1 }", "return nope"):
            with self.subTest(source=source):
                self.assertEqual(run(source), ErrorObject("identifier not found: nope"))


class TestUnmetIfOperand(unittest.TestCase):
    """An unmatched if used as a value reads as none."""

    def test_comparison(self):
        self.assertIs(run("(if false { 1 }) == none"), TRUE)
        self.assertIs(run("(if false { 1 }) == (if false { 2 })"), TRUE)

    def test_binding(self):
        interp = Interpreter()
        self.assertIs(interp.evaluate(parse("var u = if false { 1 }\nu")), NONE)
        self.assertIs(interp.globals.get("u"), NONE)

    def test_argument_and_prefix(self):
        out: list[str] = []
        run("print(if false { 1 })", out)
        self.assertEqual(out, ["none"])
        self.assertIs(run("!(if false { 1 })"), NONE)


class TestErrors(unittest.TestCase):

    def test_error_short_circuits_program(self):
        out: list[str] = []
        result = run("var x = 1 + true\nprint(1)", out)
        self.assertIsInstance(result, ErrorObject)
        self.assertEqual(out, [])

    def test_error_stops_block(self):
        out: list[str] = []
        result = run("if true {\n  1 + true\n  print(9)\n}", out)
        self.assertIsInstance(result, ErrorObject)
        self.assertEqual(out, [])

    def test_error_literal(self):
        self.assertEqual(run("y").literal(), "ERROR: identifier not found: y")

    def test_unsupported_forms(self):
        result = run("[1, 2]")
        self.assertEqual(result, ErrorObject("unsupported expression: List at L1:1"))
        node = WhileExpression(line=3, col=4)
        self.assertEqual(Interpreter().execute(node),
                         ErrorObject("unsupported expression: While at L3:4"))

    def test_empty_expression_and_statement(self):
        interp = Interpreter()
        self.assertIsInstance(interp.execute(EmptyExpression()), ErrorObject)
        self.assertIs(interp.execute(EmptyStatement()), NONE)

    def test_unknown_node_type_raises(self):
        with self.assertRaises(LumenError):
            Interpreter().execute(ASTNode(node_type="Mystery"))

    def test_parse_errors_do_not_block_evaluation(self):
        self.assertEqual(run("var = 1\n2 + 3"), Num(5))

    def test_empty_program(self):
        self.assertIs(run(""), NONE)


class TestBuiltins(unittest.TestCase):

    def test_print_output_and_receipt(self):
        out: list[str] = []
        result = run("print(1, 2.5, true, none)", out)
        self.assertEqual(out, ["1 2.5 true none"])
        self.assertEqual(result, BuiltInFunction(BuiltinType.PRINT, (Num(1), Num(2.5), TRUE, NONE)))
        self.assertEqual(result.literal(), "<builtin print(1, 2.5, true, none)>")

    def test_arguments_are_evaluated_first(self):
        out: list[str] = []
        run("print(print(1), print(2))", out)
        self.assertEqual(out, ["1", "2", "<builtin print(1)> <builtin print(2)>"])

    def test_argument_error_aborts_call(self):
        out: list[str] = []
        result = run("print(1, x)", out)
        self.assertEqual(result, ErrorObject("identifier not found: x"))
        self.assertEqual(out, [])

    def test_unknown_function(self):
        self.assertEqual(run("shout(1)"), ErrorObject("unknown function: shout"))

    def test_call_log(self):
        interp = Interpreter(output_fn=lambda s: None)
        interp.evaluate(parse("print(1)\nprint(2)"))
        self.assertEqual(len(interp.call_log), 2)
        self.assertEqual(interp.call_log[1].args, (Num(2),))

    def test_call_log_is_bounded(self):
        self.assertEqual(Interpreter().call_log.maxlen, CALL_LOG_LIMIT)
        interp = Interpreter(output_fn=lambda s: None, call_log_limit=2)
        interp.evaluate(parse("print(1)\nprint(2)\nprint(3)"))
        self.assertEqual([r.args for r in interp.call_log], [(Num(2),), (Num(3),)])


class TestBindings(unittest.TestCase):

    def test_var_binds_globally(self):
        self.assertEqual(run("if true { var x = 1 }\nx"), Num(1))

    def test_local_is_block_scoped(self):
        self.assertEqual(run("if true { local y = 1 }\ny"),
                         ErrorObject("identifier not found: y"))

    def test_local_shadows_outer(self):
        out: list[str] = []
        source = "var x = 1\nif true {\n  local x = 2\n  print(x)\n}\nx"
        self.assertEqual(run(source, out), Num(1))
        self.assertEqual(out, ["2"])

    def test_const_cannot_be_redeclared(self):
        self.assertEqual(run("const c = 1\nconst c = 2"),
                         ErrorObject("cannot redeclare constant 'c'"))

    def test_var_can_be_redeclared(self):
        self.assertEqual(run("var v = 1\nvar v = v + 1\nv"), Num(2))

    def test_state_persists_between_programs(self):
        interp = Interpreter()
        interp.evaluate(parse("var x = 2"))
        self.assertEqual(interp.evaluate(parse("x * 21")), Num(42))

    def test_environment_chain(self):
        root = Environment()
        root.declare("a", Num(1))
        inner = root.enclosed()
        inner.declare("b", Num(2), constant=True)
        self.assertEqual(inner.get("a"), Num(1))
        self.assertIsNone(root.get("b"))
        self.assertIs(inner.root(), root)
        with self.assertRaises(LumenError):
            inner.declare("b", Num(3))


class TestObjects(unittest.TestCase):

    def test_number_equality(self):
        self.assertEqual(Num(1), Num(1.0))
        self.assertNotEqual(Num(1), TRUE)
        self.assertNotEqual(Num(math.nan), Num(math.nan))
        self.assertEqual(hash(Num(2)), hash(Num(2.0)))

    def test_number_literal(self):
        self.assertEqual(Num(3.0).literal(), "3")
        self.assertEqual(Num(0.5).literal(), "0.5")
        self.assertEqual(Num(-math.inf).literal(), "-inf")

    def test_is_truthy(self):
        self.assertTrue(is_truthy(TRUE))
        self.assertFalse(is_truthy(FALSE))
        self.assertFalse(is_truthy(NONE))
        with self.assertRaises(LumenError):
            is_truthy(Num(1))


if __name__ == "__main__":
    unittest.main()
