"""
# rplc: replacers.py

Licensed under "MIT No Attribution" (MIT-0), see LICENSE.

Replacers for the two pattern dialects.

Both dialects match text decoded from the buffer (see `decode_content`),
so that `.` and character classes match whole characters, never partial UTF-8 sequences.
"""

import re
from typing import Iterator, Optional

import regex

from rplc.bases import Replacer
from rplc.constants import EXPRESSIVE_MATCH_TIMEOUT_SECONDS
from rplc.exceptions import CompileException, MatchEngineFailureException


PATTERN_TOKEN_PATTERN_COMPILED = re.compile(
    pattern=r'''
        (?P<backreference>
            \\ [1-9]
                |
            \\ [gk] [<{]
                |
            [(] [?] P [=]
        )
            |
        (?P<lookaround> [(] [?] [<]? [=!] )
            |
        \\ [\s\S]
            |
        [\[] \^? \]? (?: \\ [\s\S] | \[ : [a-z]+ : \] | [^\]] )* [\]]
            |
        [\s\S]
    ''',
    flags=re.VERBOSE,
)


def build_word_bounded_pattern(look_for: str) -> str:
    return rf'\b(?:{look_for})\b'


def find_prohibited_syntax(look_for: str) -> Optional[str]:
    """
    Find lookaround or backreference syntax in a pattern, outside of escapes and character classes.

    Returns the name of the construct found, or None.
    """
    for match in PATTERN_TOKEN_PATTERN_COMPILED.finditer(look_for):
        if match.group('backreference') is not None:
            return 'backreference'

        if match.group('lookaround') is not None:
            return 'lookaround'

    return None


class ConstrainedReplacer(Replacer):
    """
    A replacer for the constrained dialect, without lookaround or backreferences.

    Patterns using either are rejected with CompileException.
    Multi-line mode (`^` and `$` matching at every line boundary) is on by default.
    Recognised flags:
    ````
    c   case-sensitive
    i   case-insensitive
    e   disable multi-line mode
    s   make `.` match line terminators, and disable multi-line mode
        (unless the flags contain `m`)
    w   match whole words only (discards options set by earlier flags)
    ````
    """
    _regex: 'regex.Pattern'

    @property
    def dialect(self) -> str:
        return 'constrained'

    @staticmethod
    def compute_regex_options(flags: str) -> tuple[int, bool]:
        """
        Compute the `regex` options and whether the pattern is to be word-bounded.
        """
        options = regex.MULTILINE
        is_word_bounded = False

        for flag in flags:
            if flag == 'c':
                options &= ~regex.IGNORECASE
            elif flag == 'i':
                options |= regex.IGNORECASE
            elif flag == 'e':
                options &= ~regex.MULTILINE
            elif flag == 's':
                # `m` is never handled as a flag in its own right
                if 'm' not in flags:
                    options &= ~regex.MULTILINE
                options |= regex.DOTALL
            elif flag == 'w':
                options = 0
                is_word_bounded = True

        return options, is_word_bounded

    def _escape(self, look_for: str) -> str:
        return regex.escape(look_for)

    def _compile(self, look_for: str, flags: str):
        prohibited_syntax = find_prohibited_syntax(look_for)
        if prohibited_syntax is not None:
            raise CompileException(
                f'invalid pattern `{look_for}`: {prohibited_syntax} is not supported '
                f'(use the expressive dialect)'
            )

        options, is_word_bounded = ConstrainedReplacer.compute_regex_options(flags)
        if is_word_bounded:
            look_for = build_word_bounded_pattern(look_for)

        try:
            self._regex = regex.compile(look_for, options)
        except regex.error as pattern_error:
            raise CompileException(f'invalid pattern `{look_for}`: {pattern_error}') from pattern_error

    def _iterate_matches(self, subject: str) -> Iterator['regex.Match']:
        return self._regex.finditer(subject, concurrent=True)


class ExpressiveReplacer(Replacer):
    """
    A replacer for the expressive dialect, matching with the backtracking `regex` engine.

    Supports lookaround and backreferences, at the cost of possible catastrophic backtracking.
    Each search for the next match is abandoned after `match_timeout` seconds,
    in which case `replace(...)` raises MatchEngineFailureException.
    Multi-line mode is off by default.
    Recognised flags:
    ````
    c   case-sensitive
    i   case-insensitive
    w   match whole words only (discards options set by earlier flags)
    ````
    """
    _regex: 'regex.Pattern'
    _match_timeout: Optional[float]

    def __init__(
        self,
        look_for: str,
        replace_with: str,
        is_literal: bool = False,
        flags: Optional[str] = None,
        replacement_limit: int = 0,
        match_timeout: Optional[float] = EXPRESSIVE_MATCH_TIMEOUT_SECONDS,
    ):
        self._match_timeout = match_timeout
        super().__init__(look_for, replace_with, is_literal, flags, replacement_limit)

    @property
    def dialect(self) -> str:
        return 'expressive'

    @staticmethod
    def compute_regex_options(flags: str) -> tuple[int, bool]:
        options = 0
        is_word_bounded = False

        for flag in flags:
            if flag == 'c':
                options &= ~regex.IGNORECASE
            elif flag == 'i':
                options |= regex.IGNORECASE
            elif flag == 'w':
                options = 0
                is_word_bounded = True

        return options, is_word_bounded

    def _escape(self, look_for: str) -> str:
        return regex.escape(look_for)

    def _compile(self, look_for: str, flags: str):
        options, is_word_bounded = ExpressiveReplacer.compute_regex_options(flags)
        if is_word_bounded:
            look_for = build_word_bounded_pattern(look_for)

        try:
            self._regex = regex.compile(look_for, options)
        except regex.error as pattern_error:
            raise CompileException(f'invalid pattern `{look_for}`: {pattern_error}') from pattern_error

    def _iterate_matches(self, subject: str) -> Iterator['regex.Match']:
        """
        Iterate over matches, with the timeout applying to each search separately.

        After an empty match the search resumes one character further on.
        """
        position = 0
        while position <= len(subject):
            try:
                match = self._regex.search(subject, position, concurrent=True, timeout=self._match_timeout)
            except TimeoutError as timeout_error:
                raise MatchEngineFailureException(
                    f'matching `{self._look_for}` at offset {position} '
                    f'abandoned after {self._match_timeout} seconds'
                ) from timeout_error

            if match is None:
                return

            yield match

            if match.end() == match.start():
                position = match.end() + 1
            else:
                position = match.end()

