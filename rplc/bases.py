"""
# rplc: bases.py

Licensed under "MIT No Attribution" (MIT-0), see LICENSE.

Base class for replacers.
"""

import abc
from typing import Iterator, Optional

from rplc.captures import ReplacementTemplate, validate_replacement
from rplc.constants import COLOUR_END_MARKER, COLOUR_START_MARKER
from rplc.utilities import decode_content, encode_text, unescape_or_raw


class Replacer(abc.ABC):
    """
    Base class for a pattern replacer.

    A replacer is built once from a pattern, a replacement, and options,
    and may then be applied to any number of buffers (concurrently, as it holds no mutable state).

    If `is_literal` is set, the pattern is matched verbatim
    and the replacement is used as-is (no capture references, no unescaping).
    Otherwise the replacement is validated (see `validate_replacement`),
    then unescaped (falling back to the raw replacement if unescaping fails).

    `flags` is read character by character, later characters overriding earlier ones;
    unrecognised characters are ignored. See the subclasses for the flags they recognise.

    `replacement_limit` is the maximum number of matches replaced (0 for unlimited).
    """
    _look_for: str
    _is_literal: bool
    _flags: str
    _replacement_limit: int
    _template: ReplacementTemplate

    def __init__(
        self,
        look_for: str,
        replace_with: str,
        is_literal: bool = False,
        flags: Optional[str] = None,
        replacement_limit: int = 0,
    ):
        if replacement_limit < 0:
            raise ValueError('error: `replacement_limit` cannot be negative')

        if is_literal:
            look_for = self._escape(look_for)
            template = ReplacementTemplate.literal(replace_with)
        else:
            validate_replacement(replace_with)
            template = ReplacementTemplate.parse(unescape_or_raw(replace_with))

        if flags is None:
            flags = ''

        self._look_for = look_for
        self._is_literal = is_literal
        self._flags = flags
        self._replacement_limit = replacement_limit
        self._template = template
        self._compile(look_for, flags)

    @property
    @abc.abstractmethod
    def dialect(self) -> str:
        raise NotImplementedError

    @property
    def look_for(self) -> str:
        return self._look_for

    @property
    def is_literal(self) -> bool:
        return self._is_literal

    @property
    def flags(self) -> str:
        return self._flags

    @property
    def replacement_limit(self) -> int:
        return self._replacement_limit

    @property
    def template(self) -> ReplacementTemplate:
        return self._template

    def replace(self, content, only_matched: bool = False, use_colour: bool = False) -> Optional[bytes]:
        """
        Replace matches in a byte buffer.

        Returns the new content, or None if there is no match at all
        (as distinct from content that happens to be unchanged by replacement).
        If `only_matched` is set, only the expanded replacements are returned, concatenated.
        If `use_colour` is set (and `only_matched` is not), each replacement is highlighted.
        """
        subject = self._prepare_subject(content)
        replacement_limit = self._replacement_limit

        pieces = []
        last_match_end = 0
        has_matched = False

        for index, match in enumerate(self._iterate_matches(subject)):
            has_matched = True

            if not only_matched:
                pieces.append(subject[last_match_end:match.start()])
                if use_colour:
                    pieces.append(COLOUR_START_MARKER)

            pieces.append(self._template.expand(match))

            if not only_matched and use_colour:
                pieces.append(COLOUR_END_MARKER)

            last_match_end = match.end()
            if replacement_limit > 0 and index >= replacement_limit - 1:
                break

        if not has_matched:
            return None

        if not only_matched:
            pieces.append(subject[last_match_end:])

        return self._finish(self._template.empty.join(pieces))

    @abc.abstractmethod
    def _escape(self, look_for: str) -> str:
        """
        Escape a pattern so that it matches verbatim.
        """
        raise NotImplementedError

    @abc.abstractmethod
    def _compile(self, look_for: str, flags: str):
        """
        Compile the pattern, applying flags.

        Shall raise CompileException for an invalid pattern.
        """
        raise NotImplementedError

    @abc.abstractmethod
    def _iterate_matches(self, subject: str) -> Iterator:
        """
        Iterate over matches in the subject, left to right.
        """
        raise NotImplementedError

    @staticmethod
    def _prepare_subject(content) -> str:
        if isinstance(content, str):
            return content

        return decode_content(content)

    @staticmethod
    def _finish(result: str) -> bytes:
        return encode_text(result)
