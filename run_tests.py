#!/usr/bin/env python3
"""
Main test runner for the tsanalyzer test suite.

Runs a quick end-to-end smoke check, then discovers and runs everything
under tests/.
"""

import sys
import os
import unittest

# Add the project root to the Python path
project_root = os.path.abspath(os.path.dirname(__file__))
sys.path.insert(0, project_root)


def smoke_check() -> bool:
    """Analyze a small program with one error of each stage."""
    print("Testing analysis pipeline...")
    try:
        from tsanalyzer import analyze

        code = """
        function hello(name: string): string {
            return "Hello, " + name;
        }
        let x = 100@;
        let s = 'unterminated
        """

        result = analyze(code)
        print(f"  Generated {result.statistics.total} tokens "
              f"({result.statistics.malformed} malformed)")
        print(f"  Generated AST with {len(result.ast.body)} top-level statements")
        for diagnostic in result.diagnostics:
            print(f"  {diagnostic.severity.value}: {diagnostic.message} "
                  f"at {diagnostic.location.line}:{diagnostic.location.column}")

        if len(result.ast.body) != 3 or not result.has_errors:
            print("  Pipeline check FAILED: unexpected result")
            return False

    except Exception as e:
        print(f"  Pipeline check FAILED: {e}")
        import traceback
        traceback.print_exc()
        return False

    print("  Pipeline check PASSED")
    print()
    return True


def run_all_tests() -> bool:
    """Run all tsanalyzer tests."""
    print("tsanalyzer Test Suite")
    print("=" * 60)

    if not smoke_check():
        return False

    suite = unittest.defaultTestLoader.discover(os.path.join(project_root, "tests"))
    result = unittest.TextTestRunner(verbosity=2).run(suite)
    return result.wasSuccessful()


if __name__ == "__main__":
    success = run_all_tests()
    sys.exit(0 if success else 1)
