import io
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from tempfile import TemporaryDirectory

from pymealy.__main__ import main


class TestCommandLine(unittest.TestCase):

    def run_main(self, *argv):
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            status = main(list(argv))
        return status, out.getvalue(), err.getvalue()

    def test_alternating_to_stdout(self):
        with TemporaryDirectory() as tempdir:
            path = Path(tempdir) / "m.fsm"
            path.write_text("---\n0\n1\n2\n---\n0 1 \"a\"\n1 2 \"x\"\n", encoding="utf-8")
            status, out, _ = self.run_main(str(path), "--alternating")
            self.assertEqual(status, 0)
            self.assertIn("begin trans\n0/1 0 0\nend trans\n", out)

    def test_etf_file(self):
        with TemporaryDirectory() as tempdir:
            path = Path(tempdir)
            (path / "m.fsm").write_text("---\n0\n1\n---\n0 1 \"a\" \"x\"\n", encoding="utf-8")
            status, out, _ = self.run_main(str(path / "m.fsm"), "--etf", str(path / "m.etf"))
            self.assertEqual(status, 0)
            self.assertEqual(out, "")
            self.assertTrue((path / "m.etf").read_text(encoding="utf-8").startswith("begin state\n"))

    def test_parse_error(self):
        with TemporaryDirectory() as tempdir:
            path = Path(tempdir) / "m.fsm"
            path.write_text("---\n0\n1\n---\n0 1 \"a\" \"x\"\n1 0 \"b\" \"y\"\n", encoding="utf-8")
            status, _, err = self.run_main(str(path))
            self.assertEqual(status, 1)
            self.assertIn(":7:1: no initial state found", err)

    def test_undecodable_file(self):
        with TemporaryDirectory() as tempdir:
            path = Path(tempdir) / "m.fsm"
            path.write_bytes(b'---\n0\n1\n---\n0 1 "\xff" "x"\n')
            status, _, err = self.run_main(str(path))
            self.assertEqual(status, 1)
            self.assertIn(f"{path}:1:1: cannot decode input", err)

    def test_missing_file(self):
        status, _, err = self.run_main("/nonexistent/m.fsm")
        self.assertEqual(status, 1)
        self.assertTrue(err.startswith("pymealy: "))


if __name__ == "__main__":
    unittest.main()
