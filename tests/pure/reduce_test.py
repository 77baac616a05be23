import unittest

from lambdalab.pure.lexical import Application, MacroRef, TIMED_OUT, Variable, pretty
from lambdalab.pure.parser import parse
from lambdalab.pure.reduce import ARROW, EQUALS, ApplicativeOrderReducer, CallByNameReducer, CallByValueReducer
from lambdalab.pure.reduce import NormalOrderReducer, Strategy, normal_form, reducer_for, run, timed_out

OMEGA = "(λx. x x) (λx. x x)"


class StrategyTestCase(unittest.TestCase):

    def test_parse(self):
        should_fail = ["lazy", "", "cbvv"]
        for case in should_fail:
            self.assertRaises(ValueError, Strategy.parse, case)

        cases = {
            "cbv": Strategy.CBV,
            "value": Strategy.CBV,
            "CBN": Strategy.CBN,
            "name": Strategy.CBN,
            " normal ": Strategy.NORMAL,
            "full": Strategy.NORMAL,
            "applicative": Strategy.APPLICATIVE,
            "appl": Strategy.APPLICATIVE,
        }
        for case, result in cases.items():
            self.assertIs(result, Strategy.parse(case), case)

    def test_reducer_for(self):
        cases = {
            Strategy.CBV: CallByValueReducer,
            "cbn": CallByNameReducer,
            Strategy.NORMAL: NormalOrderReducer,
            "appl": ApplicativeOrderReducer,
        }
        for case, result in cases.items():
            self.assertIsInstance(reducer_for(case), result, case)


class ReducerTestCase(unittest.TestCase):

    def assertSteps(self, reducer, cases):
        for case, result in cases.items():
            next_term, info = reducer.step(parse(case))
            if result is None:
                self.assertIsNone(next_term, case)
                self.assertIsNone(info, case)
            else:
                self.assertEqual(result, pretty(next_term), case)

    def test_call_by_value(self):
        self.assertSteps(CallByValueReducer(), {
            "(λx. x) (λy. y)": "λy. y",
            "(λx. x) ((λy. y) z)": "(λx. x) z",
            "((λx. x) (λy. y)) ((λz. z) a)": "(λy. y) ((λz. z) a)",
            "λx. (λy. y) x": None,
            "x y": None,
            "x": None,
        })

    def test_call_by_name(self):
        self.assertSteps(CallByNameReducer(), {
            "(λx. x) (λy. y)": "λy. y",
            "(λx. x) ((λy. y) z)": "(λy. y) z",
            "x ((λy. y) z)": None,
            "λx. (λy. y) x": None,
        })

    def test_normal_order(self):
        self.assertSteps(NormalOrderReducer(), {
            "λx. (λy. y) x": "λx. x",
            "(λx. (λy. y) x) z": "(λy. y) z",
            "x ((λy. y) z)": "x z",
            f"(λx. λy. y) ({OMEGA})": "λy. y",
            "x y": None,
        })

    def test_applicative_order(self):
        self.assertSteps(ApplicativeOrderReducer(), {
            "λx. (λy. y) x": "λx. x",
            "(λx. (λy. y) x) z": "(λx. x) z",
            "x ((λy. y) z)": "x z",
            "x y": None,
        })

    def test_beta_info(self):
        term = parse("(λx. x x) y")
        next_term, info = CallByValueReducer().step(term)

        self.assertTrue(info.beta)
        self.assertIs(term.left, info.abstraction)
        self.assertIs(term.right, info.target)
        self.assertEqual("x", info.variable)
        self.assertEqual([next_term.left, next_term.right], info.substituted)

    def test_macro_expansion(self):
        identity = MacroRef("ID", parse("λx. x"))
        for reducer in (CallByValueReducer(), CallByNameReducer(), NormalOrderReducer(), ApplicativeOrderReducer()):
            next_term, info = reducer.step(Application(identity, Variable("y")))
            self.assertEqual(parse("(λx. x) y"), next_term, reducer)
            self.assertFalse(info.beta)
            self.assertIs(identity, info.macro)

        # macros in argument position are values unless their expansion still needs reducing
        self.assertEqual((None, None), CallByValueReducer().step(Application(Variable("y"), identity)))

        stuck = MacroRef("A", parse("(λx. x) z"))
        next_term, info = CallByValueReducer().step(Application(Variable("y"), stuck))
        self.assertEqual(parse("y ((λx. x) z)"), next_term)
        self.assertFalse(info.beta)

    def test_macro_argument(self):
        identity = MacroRef("ID", parse("λx. x"))
        stuck = MacroRef("STUCK", parse("(λx. x) z"))

        for reducer in (NormalOrderReducer(), ApplicativeOrderReducer()):
            next_term, info = reducer.step(Application(Variable("x"), stuck))
            self.assertEqual(parse("x ((λx. x) z)"), next_term, reducer)
            self.assertFalse(info.beta)
            self.assertIs(stuck, info.macro)

            self.assertEqual((None, None), reducer.step(Application(Variable("x"), identity)), reducer)

        # call-by-name substitutes the argument without unfolding it
        next_term, info = CallByNameReducer().step(Application(parse("λx. x"), stuck))
        self.assertIsInstance(next_term, MacroRef)
        self.assertEqual("STUCK", next_term.name)
        self.assertTrue(info.beta)
        self.assertEqual((None, None), CallByNameReducer().step(Application(Variable("x"), stuck)))


class RunTestCase(unittest.TestCase):

    def test_run(self):
        self.assertEqual([], run(None, 10, CallByValueReducer()))

        trace = run(parse("(λx. x) (λy. y)"), 10, CallByValueReducer())
        self.assertEqual(["", ARROW], [label for label, __, __ in trace])
        self.assertEqual("λy. y", pretty(trace[-1][1]))
        self.assertTrue(trace[0][2].beta)
        self.assertIsNone(trace[-1][2])
        self.assertFalse(timed_out(trace))
        self.assertEqual(parse("λy. y"), normal_form(trace))

    def test_labels(self):
        trace = run(Application(MacroRef("ID", parse("λx. x")), Variable("y")), 10, CallByValueReducer())
        self.assertEqual(["", EQUALS, ARROW], [label for label, __, __ in trace])
        self.assertEqual(Variable("y"), normal_form(trace))

    def test_timeout(self):
        trace = run(parse(OMEGA), 10, CallByValueReducer())
        self.assertEqual(11, len(trace))
        self.assertIs(TIMED_OUT, trace[-1][2])
        self.assertTrue(timed_out(trace))
        self.assertIsNone(normal_form(trace))
        self.assertFalse(TIMED_OUT)

        # exactly timeout steps to a normal form is not a timeout
        trace = run(parse("(λx. x) y"), 1, CallByValueReducer())
        self.assertFalse(timed_out(trace))
        self.assertEqual(Variable("y"), normal_form(trace))

        self.assertTrue(timed_out(run(parse("(λx. x) ((λx. x) y)"), 1, CallByValueReducer())))

    def test_value_implies_name(self):
        terminating = ["(λx. x) (λy. y)", "(λx. λy. x) a b", "(λf. f a) (λx. x)", "x ((λy. y) z)"]
        for case in terminating:
            self.assertIsNotNone(normal_form(run(parse(case), 32, CallByValueReducer())), case)
            self.assertIsNotNone(normal_form(run(parse(case), 32, CallByNameReducer())), case)

        case = parse(f"(λx. λy. y) ({OMEGA})")
        self.assertTrue(timed_out(run(case, 10, CallByValueReducer())))
        self.assertEqual(parse("λy. y"), normal_form(run(case, 10, CallByNameReducer())))

    def test_normal_order_finds_normal_form(self):
        case = parse(f"(λx. λy. y) ({OMEGA}) (λz. (λw. w) z)")
        self.assertEqual(parse("λz. z"), normal_form(run(case, 32, NormalOrderReducer())))

        # applicative order reduces the function body first, which never finishes here
        case = parse(f"(λx. x (λy. {OMEGA})) (λf. z)")
        self.assertEqual(Variable("z"), normal_form(run(case, 32, NormalOrderReducer())))
        self.assertTrue(timed_out(run(case, 32, ApplicativeOrderReducer())))


if __name__ == '__main__':
    unittest.main()
