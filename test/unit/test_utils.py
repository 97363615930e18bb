"""
Unit tests for source and frame utilities
"""

import inspect
import os
import unittest

from pysealed.utils import (
    find_caller_frame,
    get_all_accessible_symbols,
    get_function_file_and_source,
    get_function_start_line,
)

MODULE_CONSTANT = 42


def module_level(x):
    return x + MODULE_CONSTANT


class TestSourceHelpers(unittest.TestCase):
    """Test reading function source"""

    def test_source_is_dedented(self):
        def nested(y):
            return y

        source_file, source = get_function_file_and_source(nested)
        self.assertEqual(os.path.abspath(source_file), os.path.abspath(__file__))
        self.assertTrue(source.startswith("def nested(y):"))

    def test_start_line(self):
        self.assertEqual(get_function_start_line(module_level),
                         inspect.getsourcelines(module_level)[1])

    def test_no_source(self):
        with self.assertRaises(RuntimeError):
            get_function_file_and_source(eval("lambda: 0"))


class TestAccessibleSymbols(unittest.TestCase):
    """Test the name lookup chain"""

    def test_lookup_order(self):
        captured = "closure"
        local_only = "caller"

        def inner():
            return captured

        symbols = get_all_accessible_symbols(inner, inspect.currentframe())
        self.assertEqual(symbols['captured'], "closure")
        self.assertEqual(symbols['local_only'], "caller")
        self.assertEqual(symbols['MODULE_CONSTANT'], 42)
        self.assertIs(symbols['len'], len)

    def test_unbound_cell_is_skipped(self):
        def outer():
            def recursive():
                return later
            symbols = get_all_accessible_symbols(recursive)
            later = 1
            return symbols

        self.assertNotIn('later', outer())

    def test_globals_stay_live(self):
        symbols = get_all_accessible_symbols(module_level)
        globals()['ADDED_LATER'] = 1
        try:
            self.assertEqual(symbols['ADDED_LATER'], 1)
        finally:
            del globals()['ADDED_LATER']

    def test_find_caller_frame(self):
        frame = find_caller_frame()
        self.assertEqual(frame.f_code.co_name, 'test_find_caller_frame')


if __name__ == '__main__':
    unittest.main()
