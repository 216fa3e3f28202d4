"""
# rplc: test_replacers.py

Licensed under "MIT No Attribution" (MIT-0), see LICENSE.

Perform unit testing for `replacers.py`.
"""

import unittest
from unittest import mock

import regex

from rplc.exceptions import CompileException, InvalidCaptureException, MatchEngineFailureException
from rplc.replacers import (
    ConstrainedReplacer,
    ExpressiveReplacer,
    build_word_bounded_pattern,
    find_prohibited_syntax,
)

REPLACER_CLASSES = [ConstrainedReplacer, ExpressiveReplacer]
BLUE = b'\x1b[34m'
RESET = b'\x1b[0m'


class TestReplacers(unittest.TestCase):
    def assert_replaced(self, look_for, replace_with, is_literal, flags, content, expected_content):
        for replacer_class in REPLACER_CLASSES:
            with self.subTest(replacer_class=replacer_class.__name__):
                replacer = replacer_class(look_for, replace_with, is_literal=is_literal, flags=flags)
                self.assertEqual(replacer.replace(content.encode()), expected_content.encode())

    def test_default_global(self):
        self.assert_replaced('a', 'b', False, None, 'aaa', 'bbb')

    def test_escaped_character_preservation(self):
        self.assert_replaced('a', 'b', False, None, 'a\\n', 'b\\n')

    def test_case_sensitive_default(self):
        self.assert_replaced('abc', 'x', False, None, 'abcABC', 'xABC')
        self.assert_replaced('abc', 'x', True, None, 'abcABC', 'xABC')

    def test_case_flags(self):
        self.assert_replaced('abc', 'x', False, 'i', 'abcABC', 'xx')
        self.assert_replaced('abc', 'x', True, 'i', 'abcABC', 'xx')
        self.assert_replaced('abc', 'x', False, 'ic', 'abcABC', 'xABC')
        self.assert_replaced('abc', 'x', False, 'ci', 'abcABC', 'xx')
        self.assert_replaced('abc', 'x', False, 'qz', 'abcABC', 'xABC')

    def test_literal_replacements(self):
        self.assert_replaced('((special[]))', 'x', True, None, '((special[]))y', 'xy')
        self.assert_replaced('a.c', '$0', True, None, 'abc a.c', 'abc $0')

    def test_unescape_replacements(self):
        self.assert_replaced('test', r'\n', False, None, 'testtest', '\n\n')
        self.assert_replaced('test', r'\q\n', False, None, 'test', r'\q\n')

    def test_no_unescape_literal_replacements(self):
        self.assert_replaced('test', r'\n', True, None, 'testtest', r'\n\n')

    def test_full_word_replace(self):
        self.assert_replaced('abc', 'def', False, 'w', 'abcd abc', 'abcd def')
        self.assert_replaced('a|b', 'x', False, 'w', 'ab a b', 'ab x x')

    def test_capture_references(self):
        self.assert_replaced(r'(\w+)@(\w+)', '$2 at ${1}_', False, None, 'me@home', 'home at me_')
        self.assert_replaced(r'(?P<key>\w+)=(?P<value>\w+)', '$value=$key', False, None, 'a=1 b=2', '1=a 2=b')
        self.assert_replaced(r'(x)', '$$1 [$5]', False, None, 'x', '$1 []')

    def test_non_utf8_content(self):
        for replacer_class in REPLACER_CLASSES:
            with self.subTest(replacer_class=replacer_class.__name__):
                replacer = replacer_class('b', 'é')
                self.assertEqual(replacer.replace(b'a\xffb\xfe'), b'a\xff\xc3\xa9\xfe')

    def test_non_ascii_characters(self):
        self.assert_replaced('.', 'x', False, None, 'é€', 'xx')
        self.assert_replaced('[é€]', 'x', False, None, 'é-€', 'x-x')
        self.assert_replaced('É', 'x', False, 'i', 'éÉ', 'xx')
        self.assert_replaced(r'\w+', 'x', False, None, 'café naïve', 'x x')
        self.assert_replaced('café', 'x', False, 'w', 'café cafés', 'x cafés')

    def test_empty_matches(self):
        self.assert_replaced('x*', '-', False, None, 'abxc', '-a-b--c-')
        self.assert_replaced('', '-', False, None, 'é', '-é-')

    def test_no_match(self):
        for replacer_class in REPLACER_CLASSES:
            with self.subTest(replacer_class=replacer_class.__name__):
                replacer = replacer_class('z', 'y')
                self.assertIsNone(replacer.replace(b'aaa'))
                self.assertIsNone(replacer.replace(b''))
                self.assertIsNone(replacer.replace(b'aaa', only_matched=True, use_colour=True))

    def test_matched_but_identical(self):
        for replacer_class in REPLACER_CLASSES:
            with self.subTest(replacer_class=replacer_class.__name__):
                replacer = replacer_class('a', 'a')
                self.assertEqual(replacer.replace(b'aaa'), b'aaa')

    def test_replacement_limit(self):
        for replacer_class in REPLACER_CLASSES:
            with self.subTest(replacer_class=replacer_class.__name__):
                self.assertEqual(replacer_class('a', 'b', replacement_limit=0).replace(b'aaa'), b'bbb')
                self.assertEqual(replacer_class('a', 'b', replacement_limit=1).replace(b'aaa'), b'baa')
                self.assertEqual(replacer_class('a', 'b', replacement_limit=2).replace(b'aaa'), b'bba')
                self.assertEqual(replacer_class('a', 'b', replacement_limit=5).replace(b'aaa'), b'bbb')
                self.assertEqual(
                    replacer_class('a', 'b', replacement_limit=1).replace(b'aaa', only_matched=True),
                    b'b',
                )
                self.assertRaises(ValueError, replacer_class, 'a', 'b', replacement_limit=-1)

    def test_only_matched(self):
        for replacer_class in REPLACER_CLASSES:
            with self.subTest(replacer_class=replacer_class.__name__):
                self.assertEqual(replacer_class('a', 'b').replace(b'aaa', only_matched=True), b'bbb')
                self.assertEqual(replacer_class('a', 'b').replace(b'xaxa-', only_matched=True), b'bb')
                self.assertEqual(
                    replacer_class(r'(\d+)', '<$1>').replace(b'a1b22', only_matched=True, use_colour=True),
                    b'<1><22>',
                )

    def test_colour(self):
        for replacer_class in REPLACER_CLASSES:
            with self.subTest(replacer_class=replacer_class.__name__):
                self.assertEqual(
                    replacer_class('b', 'X').replace(b'abcb', use_colour=True),
                    b'a' + BLUE + b'X' + RESET + b'c' + BLUE + b'X' + RESET,
                )
                self.assertEqual(
                    replacer_class('b', 'X', replacement_limit=1).replace(b'abcb', use_colour=True),
                    b'a' + BLUE + b'X' + RESET + b'cb',
                )

    def test_invalid_capture(self):
        for replacer_class in REPLACER_CLASSES:
            with self.subTest(replacer_class=replacer_class.__name__):
                self.assertRaises(InvalidCaptureException, replacer_class, 'a', '$1a')
                replacer_class('a', '$1a', is_literal=True)
                replacer_class('a', '${1}a')
                replacer_class('a', '$1!')

    def test_invalid_pattern(self):
        for replacer_class in REPLACER_CLASSES:
            with self.subTest(replacer_class=replacer_class.__name__):
                self.assertRaises(CompileException, replacer_class, '(unclosed', 'x')
                replacer_class('(unclosed', 'x', is_literal=True)

    def test_properties(self):
        replacer = ConstrainedReplacer('a.b', 'x', is_literal=True, flags='i', replacement_limit=3)
        self.assertEqual(replacer.dialect, 'constrained')
        self.assertEqual(replacer.look_for, regex.escape('a.b'))
        self.assertTrue(replacer.is_literal)
        self.assertEqual(replacer.flags, 'i')
        self.assertEqual(replacer.replacement_limit, 3)

        replacer = ExpressiveReplacer('a', 'x')
        self.assertEqual(replacer.dialect, 'expressive')
        self.assertEqual(replacer.flags, '')

    def test_build_word_bounded_pattern(self):
        self.assertEqual(build_word_bounded_pattern('abc'), r'\b(?:abc)\b')

    def test_constrained_compute_regex_options(self):
        compute_regex_options = ConstrainedReplacer.compute_regex_options
        self.assertEqual(compute_regex_options(''), (regex.MULTILINE, False))
        self.assertEqual(compute_regex_options('i'), (regex.MULTILINE | regex.IGNORECASE, False))
        self.assertEqual(compute_regex_options('ic'), (regex.MULTILINE, False))
        self.assertEqual(compute_regex_options('e'), (0, False))
        self.assertEqual(compute_regex_options('s'), (regex.DOTALL, False))
        self.assertEqual(compute_regex_options('sm'), (regex.MULTILINE | regex.DOTALL, False))
        self.assertEqual(compute_regex_options('iw'), (0, True))
        self.assertEqual(compute_regex_options('wi'), (regex.IGNORECASE, True))
        self.assertEqual(compute_regex_options('xyz'), (regex.MULTILINE, False))

    def test_expressive_compute_regex_options(self):
        compute_regex_options = ExpressiveReplacer.compute_regex_options
        self.assertEqual(compute_regex_options(''), (0, False))
        self.assertEqual(compute_regex_options('es'), (0, False))
        self.assertEqual(compute_regex_options('i'), (regex.IGNORECASE, False))
        self.assertEqual(compute_regex_options('iwi'), (regex.IGNORECASE, True))

    def test_constrained_multi_line(self):
        content = b'one\ntwo\n'
        self.assertEqual(ConstrainedReplacer('^', '> ').replace(content), b'> one\n> two\n> ')
        self.assertEqual(ConstrainedReplacer('^', '> ', flags='e').replace(content), b'> one\ntwo\n')
        self.assertEqual(ConstrainedReplacer('^t.*', 'X').replace(content), b'one\nX\n')
        self.assertEqual(ConstrainedReplacer('^o.*', 'X', flags='s').replace(content), b'X')
        self.assertEqual(ConstrainedReplacer('^t.*', 'X', flags='s').replace(content), None)

    def test_expressive_lookaround(self):
        replacer = ExpressiveReplacer(r'(?<=\$)\d+', 'N')
        self.assertEqual(replacer.replace(b'$12 and 34'), b'$N and 34')
        self.assertRaises(CompileException, ConstrainedReplacer, r'(?<=a+)b', 'x')
        self.assertEqual(ExpressiveReplacer(r'(?<=a+)b', 'x').replace(b'aab'), b'aax')

    def test_find_prohibited_syntax(self):
        self.assertEqual(find_prohibited_syntax(r'(?<=a)b'), 'lookaround')
        self.assertEqual(find_prohibited_syntax(r'(?<!a)b'), 'lookaround')
        self.assertEqual(find_prohibited_syntax(r'a(?=b)'), 'lookaround')
        self.assertEqual(find_prohibited_syntax(r'a(?!b)'), 'lookaround')
        self.assertEqual(find_prohibited_syntax(r'(a)\1'), 'backreference')
        self.assertEqual(find_prohibited_syntax(r'(?P<x>a)(?P=x)'), 'backreference')
        self.assertEqual(find_prohibited_syntax(r'(?P<x>a)\g<x>'), 'backreference')
        self.assertEqual(find_prohibited_syntax(r'[\]]\1'), 'backreference')
        self.assertEqual(find_prohibited_syntax(r'[]a](?=b)'), 'lookaround')

        self.assertIsNone(find_prohibited_syntax(''))
        self.assertIsNone(find_prohibited_syntax(r'(?P<x>a)(?:b)(?i:c)'))
        self.assertIsNone(find_prohibited_syntax(r'(?<x>a)'))
        self.assertIsNone(find_prohibited_syntax(r'\(?=\\1'))
        self.assertIsNone(find_prohibited_syntax(r'[(?=][\1][[:alpha:]]'))

    def test_constrained_rejects_lookaround_and_backreferences(self):
        for look_for in [r'(?<=a)b', r'a(?!b)', r'(a)\1', r'(?P<x>a)(?P=x)', r'(?P<x>a)\g<x>']:
            with self.subTest(look_for=look_for):
                with self.assertRaisesRegex(CompileException, 'not supported'):
                    ConstrainedReplacer(look_for, 'x')
                ExpressiveReplacer(look_for, 'x')

        self.assertEqual(ConstrainedReplacer(r'\(?=', 'x').replace(b'(= ='), b'x x')
        self.assertEqual(ConstrainedReplacer(r'[(?=]+', 'x').replace(b'a(?=b'), b'axb')
        self.assertEqual(ConstrainedReplacer('(?=', 'x', is_literal=True).replace(b'a(?=b'), b'axb')

    def test_expressive_match_engine_failure(self):
        replacer = ExpressiveReplacer('a', 'b', match_timeout=0.5)
        replacer._regex = mock.Mock(search=mock.Mock(side_effect=TimeoutError('regex timed out')))

        with self.assertRaises(MatchEngineFailureException):
            replacer.replace(b'aaa')

    def test_expressive_timeout_applies_to_each_search(self):
        replacer = ExpressiveReplacer('a', 'b', match_timeout=0.5)
        compiled_pattern = replacer._regex
        replacer._regex = mock.Mock(search=mock.Mock(side_effect=compiled_pattern.search))

        self.assertEqual(replacer.replace(b'aba'), b'bbb')
        self.assertEqual(
            replacer._regex.search.call_args_list,
            [
                mock.call('aba', 0, concurrent=True, timeout=0.5),
                mock.call('aba', 1, concurrent=True, timeout=0.5),
                mock.call('aba', 3, concurrent=True, timeout=0.5),
            ],
        )

    def test_expressive_many_matches(self):
        content = b'ab' * 50000
        replacer = ExpressiveReplacer('a', 'c', match_timeout=5)
        self.assertEqual(replacer.replace(content), b'cb' * 50000)

    def test_replace_memory_map_like_buffers(self):
        for replacer_class in REPLACER_CLASSES:
            with self.subTest(replacer_class=replacer_class.__name__):
                self.assertEqual(replacer_class('a', 'b').replace(bytearray(b'cat')), b'cbt')
                self.assertEqual(replacer_class('a', 'b').replace(memoryview(b'cat')), b'cbt')


if __name__ == '__main__':
    unittest.main()
