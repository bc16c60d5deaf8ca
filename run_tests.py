#!/usr/bin/env python3
"""
Test runner for the log template mining system.
"""

import sys
import unittest
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))


def run_tests():
    """Run all tests."""
    loader = unittest.TestLoader()
    suite = loader.discover(str(project_root / 'tests'), pattern='test_*.py',
                            top_level_dir=str(project_root))

    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)

    return 0 if result.wasSuccessful() else 1


def run_specific_test(test_name):
    """Run a specific test module."""
    loader = unittest.TestLoader()

    try:
        suite = loader.loadTestsFromName(f'tests.{test_name}')
    except (ImportError, AttributeError) as e:
        print(f"Error loading test {test_name}: {e}")
        return 1

    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)
    return 0 if result.wasSuccessful() else 1


if __name__ == '__main__':
    if len(sys.argv) > 1:
        exit_code = run_specific_test(sys.argv[1])
    else:
        exit_code = run_tests()

    sys.exit(exit_code)
