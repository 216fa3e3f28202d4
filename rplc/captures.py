"""
# rplc: captures.py

Licensed under "MIT No Attribution" (MIT-0), see LICENSE.

Capture references in replacement text.

A replacement is a template in which `$` introduces a capture reference:
````
$$              a literal dollar sign
${«name»}       group «name» (a group number if «name» is all digits)
$«name»         group «name», where «name» is the longest run of [_0-9a-zA-Z]
````
A `$` not followed by any of the above is kept literally.
A reference to a group that does not exist (or did not participate in the match)
expands to the empty string.
"""

import re
from typing import NamedTuple, Union

from rplc.exceptions import InvalidCaptureException


CAPTURE_REFERENCE_PATTERN_COMPILED = re.compile(
    pattern=r'''
        [$]
        (?:
            (?P<escaped_dollar> [$] )
                |
            [{] (?P<braced_name> [^}]+ ) [}]
                |
            (?P<bare_name> [_0-9a-zA-Z]+ )
        )
    ''',
    flags=re.ASCII | re.VERBOSE,
)
AMBIGUOUS_NAME_PATTERN_COMPILED = re.compile(
    pattern=r'(?P<digits> [0-9]+ ) (?= [_a-zA-Z] )',
    flags=re.ASCII | re.VERBOSE,
)


def validate_replacement(replacement: str):
    """
    Reject a replacement containing an ambiguous capture reference.

    A bare reference such as `$1a` could mean group `1` followed by `a`,
    or a group named `1a`; the braced forms `${1}a` and `${1a}` are unambiguous.
    `$$` and braced references are skipped, so `$$1a` is accepted.
    """
    for match in CAPTURE_REFERENCE_PATTERN_COMPILED.finditer(replacement):
        bare_name = match.group('bare_name')
        if bare_name is None:
            continue

        ambiguous_match = AMBIGUOUS_NAME_PATTERN_COMPILED.match(bare_name)
        if ambiguous_match is not None:
            raise InvalidCaptureException(
                replacement,
                start=match.start(),
                end=match.end(),
                digit_count=len(ambiguous_match.group('digits')),
            )


def compute_group_name(name: str) -> Union[int, str]:
    if name.isascii() and name.isdigit():
        return int(name)

    return name


class CaptureReference(NamedTuple):
    name: Union[int, str]


class ReplacementTemplate:
    """
    A replacement parsed once into literal chunks and capture references.
    """
    _parts: tuple[Union[str, CaptureReference], ...]
    _empty: str

    def __init__(self, parts: list[Union[str, CaptureReference]], empty: str = ''):
        self._parts = tuple(parts)
        self._empty = empty

    @classmethod
    def parse(cls, replacement: str) -> 'ReplacementTemplate':
        parts: list[Union[str, CaptureReference]] = []
        literal = ''
        literal_start = 0

        for match in CAPTURE_REFERENCE_PATTERN_COMPILED.finditer(replacement):
            literal += replacement[literal_start:match.start()]
            literal_start = match.end()

            if match.group('escaped_dollar') is not None:
                literal += '$'
                continue

            if literal:
                parts.append(literal)
                literal = ''

            name = match.group('braced_name') or match.group('bare_name')
            parts.append(CaptureReference(compute_group_name(name)))

        literal += replacement[literal_start:]
        if literal:
            parts.append(literal)

        return cls(parts)

    @classmethod
    def literal(cls, replacement: str) -> 'ReplacementTemplate':
        """
        Build a template that expands to the replacement verbatim.
        """
        if replacement:
            return cls([replacement])

        return cls([])

    @property
    def parts(self) -> tuple[Union[str, CaptureReference], ...]:
        return self._parts

    @property
    def empty(self) -> str:
        return self._empty

    def expand(self, match) -> str:
        pieces = []
        for part in self._parts:
            if isinstance(part, CaptureReference):
                pieces.append(self._group_or_empty(match, part.name))
            else:
                pieces.append(part)

        return self._empty.join(pieces)

    def _group_or_empty(self, match, name: Union[int, str]) -> str:
        try:
            group = match.group(name)
        except IndexError:  # no such group
            group = None

        if group is None:
            return self._empty

        return group
