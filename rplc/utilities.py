"""
# rplc: utilities.py

Licensed under "MIT No Attribution" (MIT-0), see LICENSE.

Common utility functions.
"""

import re
from typing import Optional


CHARACTER_FROM_SIMPLE_ESCAPE = {
    'b': '\b',
    'f': '\f',
    'n': '\n',
    'r': '\r',
    't': '\t',
    '0': '\0',
    '\\': '\\',
    "'": "'",
    '"': '"',
    '/': '/',
}
ESCAPE_SEQUENCE_PATTERN_COMPILED = re.compile(
    pattern=r'''
        \\
        (?:
            (?P<simple> [bfnrt0\\'"/] )
                |
            u [{] (?P<braced_hex> [0-9a-fA-F]{1,6} ) [}]
                |
            u (?P<four_hex> [0-9a-fA-F]{4} )
                |
            x (?P<two_hex> [0-9a-fA-F]{2} )
                |
            (?P<invalid> [\s\S]? )
        )
    ''',
    flags=re.ASCII | re.VERBOSE,
)
MAX_CODE_POINT = 0x10FFFF
SURROGATE_CODE_POINTS = range(0xD800, 0xE000)


def unescape(string: str) -> Optional[str]:
    """
    Unescape backslash escape sequences.

    Recognised sequences are `\\b \\f \\n \\r \\t \\0 \\\\ \\' \\" \\/`,
    `\\u{«hex»}` (1 to 6 digits), `\\u«hex»` (4 digits) and `\\x«hex»` (2 digits).
    Returns None if the string contains any other escape sequence,
    a dangling backslash, or an escape for an invalid code point.
    """
    pieces = []
    literal_start = 0

    for match in ESCAPE_SEQUENCE_PATTERN_COMPILED.finditer(string):
        if match.group('invalid') is not None:
            return None

        simple = match.group('simple')
        if simple is not None:
            character = CHARACTER_FROM_SIMPLE_ESCAPE[simple]
        else:
            hex_digits = match.group('braced_hex') or match.group('four_hex') or match.group('two_hex')
            code_point = int(hex_digits, 16)
            if code_point > MAX_CODE_POINT or code_point in SURROGATE_CODE_POINTS:
                return None
            character = chr(code_point)

        pieces.append(string[literal_start:match.start()])
        pieces.append(character)
        literal_start = match.end()

    pieces.append(string[literal_start:])

    return ''.join(pieces)


def unescape_or_raw(string: str) -> str:
    unescaped_string = unescape(string)
    if unescaped_string is None:
        return string

    return unescaped_string


def decode_content(content) -> str:
    """
    Decode a byte buffer (bytes, or a memory map) as UTF-8.

    Undecodable bytes become lone surrogates, which `encode_text` turns back into
    the original bytes, so that content is never corrupted by a round trip.
    """
    return str(content, encoding='utf-8', errors='surrogateescape')


def encode_text(text: str) -> bytes:
    return text.encode('utf-8', errors='surrogateescape')
