import unittest

from lambdalab.lang.error import ParseError
from lambdalab.lang.macro import MacroTable
from lambdalab.pure.lexical import Abstraction, Application, MacroRef, Variable
from lambdalab.pure.parser import parse
from lambdalab.pure.reduce import Strategy
from lambdalab.pure.scanner import Scanner


class ScannerTestCase(unittest.TestCase):

    def test_scan(self):
        scanner = Scanner("abc  DEF")
        self.assertIsNone(scanner.scan(r"[A-Z]+"))
        self.assertEqual(0, scanner.offset)

        self.assertEqual("abc", scanner.scan(r"[a-z]+"))
        scanner.skip_whitespace()
        self.assertEqual(5, scanner.offset)
        self.assertEqual("DEF", scanner.rest)
        self.assertFalse(scanner.done())

        self.assertEqual("DEF", scanner.scan(r"[A-Z]+"))
        self.assertTrue(scanner.done())

    def test_error(self):
        scanner = Scanner("x y")
        scanner.scan(r"x ")
        error = scanner.error("oops")
        self.assertIsInstance(error, ParseError)
        self.assertEqual(2, error.offset)
        self.assertEqual(2, error.pos)
        self.assertEqual("oops", str(error))


class ParserTestCase(unittest.TestCase):

    def test_parse_errors(self):
        should_fail = {
            "": ("expected term", 0),
            "   ": ("expected term", 3),
            "(x": ("unbalanced parentheses", 2),
            "()": ("expected term", 1),
            "x)": ("unexpected token", 1),
            "x ^": ("unexpected token", 2),
            "λ. x": ("expected variable name after lambda", 1),
            "λx x": ("expected dot after variable name", 3),
            "a FOO": ("macro undefined", 2),
        }
        for case, (msg, offset) in should_fail.items():
            with self.assertRaises(ParseError, msg=case) as context:
                parse(case)
            self.assertEqual(msg, context.exception.msg, case)
            self.assertEqual(offset, context.exception.offset, case)

    def test_parse(self):
        a, b, c, x, y = (Variable(name) for name in "abcxy")
        cases = {
            "x": x,
            "a b c": Application(Application(a, b), c),
            "a (b c)": Application(a, Application(b, c)),
            "λx. x y": Abstraction("x", Application(x, y)),
            "\\x. x": Abstraction("x", x),
            "λx.λy.x": Abstraction("x", Abstraction("y", x)),
            "(λx. x) y": Application(Abstraction("x", x), y),
            "((a))": a,
            "  a  b  ": Application(a, b),
            "x10 y2": Application(Variable("x10"), Variable("y2")),
        }
        for case, result in cases.items():
            self.assertEqual(result, parse(case), case)

    def test_macros(self):
        macros = MacroTable()
        macros.define("I ≜ λx. x")

        term = parse("I y", macros)
        self.assertEqual(Application(MacroRef("I", None), Variable("y")), term)
        self.assertEqual(parse("λx. x"), term.left.body)

    def test_macros_per_strategy(self):
        macros = MacroTable()
        # has a call-by-name value, but no call-by-value value and no normal form
        macros.define("M ≜ (λx. λy. (λz. z z) (λz. z z)) ((λx. x x) (λx. x x))")

        unreduced = parse("(λx. λy. (λz. z z) (λz. z z)) ((λx. x x) (λx. x x))")
        cases = {
            Strategy.CBN: parse("λy. (λz. z z) (λz. z z)"),
            Strategy.CBV: unreduced,
            Strategy.NORMAL: unreduced,
        }
        for strategy, result in cases.items():
            self.assertEqual(result, parse("M", macros, strategy).body, strategy)


if __name__ == '__main__':
    unittest.main()
