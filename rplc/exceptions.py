"""
# rplc: exceptions.py

Licensed under "MIT No Attribution" (MIT-0), see LICENSE.

Exception classes.
"""


class CompileException(Exception):
    pass


class InvalidCaptureException(CompileException):
    """
    A replacement containing a capture reference like `$1a`.

    Such a reference is ambiguous between group `1` followed by `a`
    and a (nonexistent) group named `1a`.
    """
    _replacement: str
    _start: int
    _end: int
    _digit_count: int

    def __init__(self, replacement: str, start: int, end: int, digit_count: int):
        self._replacement = replacement
        self._start = start
        self._end = end
        self._digit_count = digit_count
        super().__init__(self._build_message())

    @property
    def replacement(self) -> str:
        return self._replacement

    @property
    def span(self) -> tuple[int, int]:
        return self._start, self._end

    def _build_message(self) -> str:
        reference = self._replacement[self._start:self._end]
        number = reference[1:1 + self._digit_count]
        trailing = reference[1 + self._digit_count:]
        underline = ' ' * self._start + '^' * (self._end - self._start)

        return (
            f'the numbered capture group `${number}` in the replacement text is ambiguous\n'
            f'    {self._replacement}\n'
            f'    {underline}\n'
            f'hint: use curly braces to disambiguate it `${{{number}}}{trailing}`'
        )


class InvalidPathException(Exception):
    _path: str

    def __init__(self, path: str):
        self._path = path
        super().__init__(f'invalid path: `{path}`')

    @property
    def path(self) -> str:
        return self._path


class MatchEngineFailureException(Exception):
    pass


class WriteBackException(Exception):
    _failed_jobs: list[tuple[str, Exception]]

    def __init__(self, failed_jobs: list[tuple[str, Exception]]):
        self._failed_jobs = list(failed_jobs)
        super().__init__(self._build_message())

    @property
    def failed_jobs(self) -> list[tuple[str, Exception]]:
        return self._failed_jobs

    def _build_message(self) -> str:
        lines = ['failed to write back the following files:']
        for path, error in self._failed_jobs:
            lines.append(f'    {path}: {error}')

        return '\n'.join(lines)
