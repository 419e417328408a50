"""
Test suite for the tsa command-line front end.
"""

import unittest
import io
import json
import os
import sys
import tempfile
from contextlib import redirect_stderr, redirect_stdout
from unittest import mock

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

from tsanalyzer.cli import build_argument_parser, main, options_from_args
from tsanalyzer.lexer import TokenType


class TestCLI(unittest.TestCase):

    def setUp(self):
        handle, self.path = tempfile.mkstemp(suffix=".ts")
        with os.fdopen(handle, 'w', encoding='utf-8') as f:
            f.write("let x = 1.2.3;\nfoo(x);\n")

    def tearDown(self):
        os.remove(self.path)

    def run_main(self, argv):
        stdout, stderr = io.StringIO(), io.StringIO()
        with redirect_stdout(stdout), redirect_stderr(stderr):
            code = main(argv)
        return code, stdout.getvalue(), stderr.getvalue()

    def test_default_output(self):
        code, out, err = self.run_main([self.path])
        data = json.loads(out)

        self.assertEqual(code, 0)
        self.assertEqual(set(data), {"tokens", "ast", "diagnostics"})
        self.assertEqual(data["ast"]["type"], "Program")
        self.assertEqual(data["diagnostics"][0]["code"], "L003")
        self.assertEqual(err, "")

    def test_lex_only(self):
        code, out, _ = self.run_main(["--lex-only", self.path])

        self.assertEqual(code, 0)
        self.assertNotIn("ast", json.loads(out))

    def test_filters(self):
        _, out, _ = self.run_main(["--filter", "identifier", "--no-whitespace", self.path])
        tokens = json.loads(out)["tokens"]

        self.assertEqual([t["value"] for t in tokens], ["x", "foo", "x"])

    def test_only_malformed(self):
        _, out, _ = self.run_main(["--only-malformed", self.path])
        tokens = json.loads(out)["tokens"]

        self.assertEqual([t["malformed"] for t in tokens], ["number with multiple decimal points (2)"])

    def test_stats_go_to_stderr(self):
        _, out, err = self.run_main(["--stats", self.path])

        self.assertIn("malformed: 1", err)
        self.assertNotIn("malformed: 1", out)
        self.assertNotIn("statistics", json.loads(out))

    def test_stdin(self):
        with mock.patch('sys.stdin', io.StringIO("const a = 'b';")):
            code, out, _ = self.run_main(["--stdin", "--lex-only"])

        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out)["tokens"][0]["value"], "const")

    def test_surrogate_escapes_encode_as_utf8(self):
        with open(self.path, 'w', encoding='utf-8') as f:
            f.write('let s = "\\uD83D\\uDE00", t = "\\uD800";\n')
        stdout = io.TextIOWrapper(io.BytesIO(), encoding='utf-8')
        with redirect_stdout(stdout), redirect_stderr(io.StringIO()):
            code = main([self.path])
        stdout.flush()
        data = json.loads(stdout.buffer.getvalue().decode('utf-8'))
        declarators = data["ast"]["body"][0]["declarations"]

        self.assertEqual(code, 0)
        self.assertEqual([d["init"]["value"] for d in declarators], ["\U0001F600", "\ufffd"])

    def test_long_chain_serializes(self):
        with open(self.path, 'w', encoding='utf-8') as f:
            f.write("let x = " + " + ".join(["a"] * 3000) + ";\n")
        code, out, _ = self.run_main([self.path])
        data = json.loads(out)

        self.assertEqual(code, 0)
        self.assertEqual([d["code"] for d in data["diagnostics"]], ["P011"])
        self.assertEqual(data["ast"]["body"][0]["type"], "VariableDeclaration")

    def test_missing_file(self):
        code, out, err = self.run_main([self.path + ".missing"])

        self.assertEqual(code, 1)
        self.assertEqual(out, "")
        self.assertIn("error:", err)

    def test_no_input(self):
        code, out, _ = self.run_main([])

        self.assertEqual(code, 1)
        self.assertEqual(out, "")

    def test_unknown_filter_is_a_usage_error(self):
        with self.assertRaises(SystemExit) as ctx:
            self.run_main(["--filter", "bogus", self.path])
        self.assertEqual(ctx.exception.code, 2)

    def test_options_from_args(self):
        args = build_argument_parser().parse_args(["--filter", "keyword,comment", "--lex-only", "f.ts"])
        options = options_from_args(args)

        self.assertTrue(options.lexical_only)
        self.assertEqual(options.token_types, frozenset({TokenType.KEYWORD, TokenType.COMMENT}))


if __name__ == '__main__':
    unittest.main()
