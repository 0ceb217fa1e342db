import io
import shutil
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory

from pymealy import MealyMachine, load_fsm, parse_fsm

FSM = """s0(3)
---
0
1
2
---
0 1 "a" "x"
1 2 "b" "y"
2 1 "a" "z"
"""

ETF = """begin state
id:id
end state
begin edge
input:input
output:output
end edge
begin init
0
end init
begin sort id
"0"
"1"
"2"
end sort
begin trans
0/1 0 0
1/2 1 1
2/1 0 2
end trans
begin sort input
"a"
"b"
end sort
begin sort output
"x"
"y"
"z"
end sort
"""


class TestMealyMachine(unittest.TestCase):
    """Test building and querying machines"""

    def setUp(self):
        self.m = MealyMachine(alphabet=['a'])
        self.q0 = self.m.add_state(name='q0')
        self.q1 = self.m.add_state()
        self.m.initialstate = self.q0
        self.m.add_transition(self.q0, 'a', self.q1, 'x')
        self.m.add_transition(self.q1, 'b', self.q0, 'y')
        self.m.add_transition(self.q1, 'a', self.q1, 'x')

    def test_builder(self):
        self.assertEqual(len(self.m), 2)
        self.assertEqual(self.m.arccount(), 3)
        self.assertEqual(self.m.alphabet, ['a', 'b'])
        self.assertEqual(self.m.symbol_index('b'), 1)
        self.assertEqual(self.m.stateid(self.q1), 1)
        self.assertEqual(self.q0.name, 'q0')

    def test_queries(self):
        self.assertIs(self.m.successor(self.q0, 'a'), self.q1)
        self.assertEqual(self.m.output(self.q1, 'b'), 'y')
        self.assertIsNone(self.m.transition(self.q0, 'b'))
        self.assertIsNone(self.m.successor(self.q0, 'b'))
        self.assertIsNone(self.m.output(self.q0, 'b'))
        self.assertEqual(self.m.outputs, ['x', 'y'])
        self.assertEqual(self.q1.all_targets(), {self.q0, self.q1})

    def test_apply(self):
        self.assertEqual(self.m.apply("aaba"), ['x', 'x', 'y', 'x'])
        self.assertEqual(self.m.apply(['a', 'b']), ['x', 'y'])
        self.assertEqual(self.m.apply(""), [])
        self.assertIsNone(self.m.apply("b"))

    def test_str(self):
        self.assertEqual(str(self.m), "0\t1\ta\tx\n1\t1\ta\tx\n1\t0\tb\ty\n")

    def test_replace_transition(self):
        self.m.add_transition(self.q0, 'a', self.q0, 'w')
        self.assertEqual(self.m.apply("aa"), ['w', 'w'])
        self.assertEqual(self.m.arccount(), 3)


class TestIO(unittest.TestCase):
    """Test loading FSM files and writing ETF"""

    def test_etf(self):
        m = MealyMachine.from_fsmstring(FSM)
        self.assertEqual(m.to_etfstring(), ETF)
        self.assertEqual(str(m), "0\t1\ta\tx\n1\t2\tb\ty\n2\t1\ta\tz\n")

    def test_etf_is_not_fsm(self):
        with self.assertRaises(SyntaxError):
            MealyMachine.from_fsmstring(ETF)

    def test_files(self):
        with TemporaryDirectory() as tempdir:
            path = Path(tempdir)
            (path / "m.fsm").write_text(FSM, encoding="utf-8")
            m = MealyMachine.load_fsm(str(path / "m.fsm"))
            self.assertEqual(m.apply("ab"), ['x', 'y'])
            m.save_etf(str(path / "m.etf"))
            self.assertEqual((path / "m.etf").read_text(encoding="utf-8"), ETF)
            self.assertEqual(str(load_fsm(str(path / "m.fsm"))), str(m))

    def test_load_error_names_file(self):
        with TemporaryDirectory() as tempdir:
            path = Path(tempdir) / "bad.fsm"
            path.write_text("---\n0\n---\n0 0 \"a\"\n", encoding="utf-8")
            with self.assertRaises(SyntaxError) as cm:
                MealyMachine.load_fsm(str(path))
            self.assertEqual(cm.exception.filename, str(path))

    def test_etf_without_initial_state(self):
        m = MealyMachine()
        m.add_state()
        with self.assertRaises(ValueError):
            m.to_etfstring()

    def test_parse_fsm(self):
        m = parse_fsm(io.StringIO("---\n0\n1\n2\n---\n0 1 \"a\"\n1 2 \"x\"\n"), semantics='alternating')
        self.assertEqual(m.apply("a"), ['x'])
        self.assertEqual(m.outputs, ['x'])

    @unittest.skipUnless(shutil.which("dot"), "Graphviz executable not installed")
    def test_view(self):
        g = MealyMachine.from_fsmstring(FSM).view()
        for label in ("a/x", "b/y", "a/z", "bold"):
            self.assertIn(label, g.source)


if __name__ == "__main__":
    unittest.main()
