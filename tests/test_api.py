"""
Test suite for the analysis API.

Tests cover:
- The structured result and its serialization
- Token selection options and statistics
- Totality on arbitrary input
- Source acquisition from files and streams
- Independence of concurrent analyses
"""

import unittest
import io
import json
import os
import random
import sys
import tempfile
from concurrent.futures import ThreadPoolExecutor

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

from tsanalyzer import (
    AnalysisOptions, SourceAcquisitionError, TokenType, analyze, analyze_file,
    compute_statistics, load_source,
)
from tsanalyzer.api import _check_coverage
from tsanalyzer.errors import CoverageError
from tsanalyzer.lexer import tokenize_string
from tsanalyzer.parser import Program


class TestAnalyze(unittest.TestCase):
    """Result structure for typical inputs."""

    def test_result_shape(self):
        result = analyze("let x = 42;")
        data = result.to_dict()

        self.assertEqual(list(data.keys()), ["tokens", "ast", "diagnostics"])
        self.assertEqual(data["tokens"][0], {
            "type": "keyword",
            "value": "let",
            "position": {"start": 0, "end": 3, "line": 1, "column": 1},
        })
        self.assertEqual(data["ast"]["type"], "Program")
        self.assertEqual(data["diagnostics"], [])
        self.assertFalse(result.has_errors)

    def test_malformed_token_serialization(self):
        data = analyze("let s = 'abc").to_dict()
        literal = data["tokens"][-1]

        self.assertEqual(literal["malformed"], "unterminated string")
        self.assertEqual(data["diagnostics"][0]["code"], "L002")

    def test_lexical_only_skips_parsing(self):
        result = analyze("let = ;", AnalysisOptions(lexical_only=True))

        self.assertIsNone(result.ast)
        self.assertNotIn("ast", result.to_dict())
        self.assertEqual(result.diagnostics, [])

    def test_diagnostics_are_in_source_order(self):
        result = analyze("let = 1;\nlet s = 'abc")

        self.assertEqual([d.code for d in result.diagnostics], ["P001", "L002"])
        self.assertEqual([d.location.line for d in result.diagnostics], [1, 2])

    def test_scanner_and_parser_share_diagnostics(self):
        result = analyze("let x = 100@;")

        self.assertEqual([d.code for d in result.diagnostics], ["L001", "P001"])
        self.assertTrue(result.has_errors)
        self.assertEqual(result.ast.body[0].declarations[0].id.name, "x")

    def test_unsupported_construct_is_reported(self):
        result = analyze("while (true) {}")
        levels = [d.severity.value for d in result.diagnostics]

        self.assertIn("info", levels)
        self.assertIn("error", levels)


class TestTokenSelection(unittest.TestCase):
    """Filters only shape the returned tokens."""

    SOURCE = "let x = 1.2.3; // done\nfoo(x)"

    def test_exclude_whitespace(self):
        result = analyze(self.SOURCE, AnalysisOptions(exclude_whitespace=True))
        types = {t.type for t in result.tokens}

        self.assertNotIn(TokenType.WHITESPACE, types)
        self.assertNotIn(TokenType.NEWLINE, types)
        self.assertIn(TokenType.COMMENT, types)

    def test_only_malformed(self):
        result = analyze(self.SOURCE, AnalysisOptions(only_malformed=True))

        self.assertEqual([t.lexeme for t in result.tokens], ["1.2.3"])

    def test_type_filter(self):
        options = AnalysisOptions.from_type_names(["keyword", " Identifier "])
        result = analyze(self.SOURCE, options)

        self.assertEqual([t.lexeme for t in result.tokens], ["let", "x", "foo", "x"])

    def test_filters_do_not_change_the_ast(self):
        full = analyze(self.SOURCE)
        filtered = analyze(self.SOURCE, AnalysisOptions(only_malformed=True))

        self.assertEqual(full.ast, filtered.ast)
        self.assertEqual(full.diagnostics, filtered.diagnostics)

    def test_unknown_type_name(self):
        with self.assertRaises(ValueError):
            AnalysisOptions.from_type_names(["keyword", "bogus"])


class TestStatistics(unittest.TestCase):

    def test_counts(self):
        stats = compute_statistics(tokenize_string("let x = 1.2.3;"))

        self.assertEqual(stats.total, 8)
        self.assertEqual(stats.malformed, 1)
        self.assertEqual(stats.by_type["whitespace"], 3)
        self.assertEqual(stats.by_type["keyword"], 1)
        self.assertEqual(stats.by_type["comment"], 0)
        self.assertEqual(set(stats.by_type), {t.value for t in TokenType})

    def test_statistics_ignore_filters(self):
        result = analyze("let x = 1;", AnalysisOptions(exclude_whitespace=True))

        self.assertEqual(result.statistics.total, 8)
        self.assertEqual(len(result.tokens), 5)

    def test_statistics_not_serialized(self):
        self.assertNotIn("statistics", analyze("x").to_dict())


class TestTotality(unittest.TestCase):
    """analyze() returns a result for every input string."""

    FRAGMENTS = [
        "let", "const", "function", "return", "if", "(", ")", "{", "}", "[", "]",
        ";", ",", ".", ":", "=", "+", "*", "||", "!", "typeof", "x", "42", "1.2.3",
        "'s", '"t"', "`", "/*", "*/", "//", "\n", "\r\n", " ", "@", "😀", "é",
    ]

    def assertTotal(self, source):
        result = analyze(source)
        self.assertIsInstance(result.ast, Program)
        self.assertEqual("".join(t.lexeme for t in result.tokens), source)

    def test_random_fragments(self):
        rng = random.Random(7)
        for _ in range(300):
            source = "".join(rng.choice(self.FRAGMENTS) for _ in range(rng.randint(0, 40)))
            with self.subTest(source=source):
                self.assertTotal(source)

    def test_random_characters(self):
        rng = random.Random(11)
        for _ in range(100):
            source = "".join(chr(rng.randint(0, 0x2FF)) for _ in range(rng.randint(0, 50)))
            with self.subTest(source=source):
                self.assertTotal(source)

    def test_large_flat_input(self):
        source = "let a = 1;\n" * 5000
        result = analyze(source)

        self.assertEqual(len(result.ast.body), 5000)
        self.assertEqual(result.diagnostics, [])

    def test_result_is_strict_json(self):
        sources = [
            "let x = " + " * ".join(["a"] * 4000) + ";",
            "f" + "(1)" * 4000 + ";",
            "a" + ".b[c]" * 2000 + ";",
            "let big = 1" + "0" * 400 + ".5;",
            'let s = "\\uD83D\\uDE00\\uDC00";',
        ]
        for source in sources:
            with self.subTest(source=source[:20]):
                text = json.dumps(analyze(source).to_dict(), allow_nan=False, ensure_ascii=False)
                text.encode("utf-8")


class TestConcurrency(unittest.TestCase):

    def test_concurrent_calls_match_sequential_results(self):
        sources = [
            "let a = 1;",
            "function f(x: number): number { return x * 2; }",
            "let = ;\n}",
            "'open\n/* open",
        ] * 10

        expected = [analyze(s).to_dict() for s in sources]
        with ThreadPoolExecutor(max_workers=8) as executor:
            actual = list(executor.map(lambda s: analyze(s).to_dict(), sources))

        self.assertEqual(actual, expected)


class TestSourceAcquisition(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        for name in os.listdir(self.temp_dir):
            os.remove(os.path.join(self.temp_dir, name))
        os.rmdir(self.temp_dir)

    def write(self, name, data: bytes):
        path = os.path.join(self.temp_dir, name)
        with open(path, 'wb') as f:
            f.write(data)
        return path

    def test_reads_file_preserving_line_endings(self):
        path = self.write("a.ts", b"let a = 1;\r\nlet b = 2;")

        self.assertEqual(load_source(path=path), "let a = 1;\r\nlet b = 2;")

    def test_invalid_utf8_is_replaced(self):
        path = self.write("bad.ts", b"let a = '\xff';")

        self.assertEqual(load_source(path=path), "let a = '\ufffd';")

    def test_missing_file(self):
        missing = os.path.join(self.temp_dir, "missing.ts")

        with self.assertRaises(SourceAcquisitionError) as ctx:
            load_source(path=missing)
        self.assertEqual(ctx.exception.path, missing)

    def test_stream(self):
        self.assertEqual(load_source(stream=io.StringIO("x;")), "x;")

    def test_no_input(self):
        with self.assertRaises(SourceAcquisitionError):
            load_source()

    def test_analyze_file(self):
        path = self.write("ok.ts", b"const greeting = 'hi';")
        result = analyze_file(path)

        self.assertEqual(result.ast.body[0].declarations[0].init.value, "hi")


class TestCoverageCheck(unittest.TestCase):

    def test_gap_is_an_internal_error(self):
        tokens = tokenize_string("ab cd")

        with self.assertRaises(CoverageError):
            _check_coverage("ab cd", tokens[:1] + tokens[2:])

    def test_short_cover_is_an_internal_error(self):
        tokens = tokenize_string("ab cd")

        with self.assertRaises(CoverageError):
            _check_coverage("ab cd!", tokens)


if __name__ == '__main__':
    unittest.main()
