import contextlib
import io
import os
import tempfile
import unittest

from lambdalab.main import main


class MainTestCase(unittest.TestCase):

    def run_file(self, source, *args):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "main.lc")
            with open(path, "w", encoding="utf-8") as file:
                file.write(source)

            out = io.StringIO()
            with contextlib.redirect_stdout(out):
                main([path, *args])
            return out.getvalue()

    def test_file(self):
        source = ";; identity\n(λx. x) (λy. y)\nTWO ≜ SUCC ONE\nPLUS ONE ONE\n"
        self.assertEqual(["ID", "TWO"], self.run_file(source, "-s", "normal").splitlines())

    def test_options(self):
        self.assertEqual("λy. y\n", self.run_file("(λx. x) (λy. y)\n", "--no-resugar"))
        self.assertEqual("λy. y\n", self.run_file("(λx. x) (λy. y)\n", "--no-prelude"))
        self.assertIn("no normal form within 3 steps", self.run_file("(λx. x x) (λx. x x)\n", "-t", "3"))

    def test_errors(self):
        should_fail = [("x y\n", "-s", "lazy"), ("FOO\n",), ("K ≜ λx. y\n",), ("x\n", "-t", "-3")]
        for case, *args in should_fail:
            with self.assertRaises(SystemExit, msg=case):
                self.run_file(case, *args)


if __name__ == '__main__':
    unittest.main()
