"""
# rplc: cli.py

Licensed under "MIT No Attribution" (MIT-0), see LICENSE.

Command-line interface.
"""

import argparse
import sys
from typing import Optional

from rplc._version import __version__
from rplc.bases import Replacer
from rplc.constants import COMMAND_LINE_ERROR_EXIT_CODE, GENERIC_ERROR_EXIT_CODE
from rplc.core import run_substitution
from rplc.exceptions import CompileException, WriteBackException
from rplc.replacers import ConstrainedReplacer, ExpressiveReplacer
from rplc.sources import sources_from_paths

DESCRIPTION = '''
    Find and replace text in files (in place) or standard input.
'''
FIND_HELP = '''
    pattern to find (a regular expression, unless -F is given)
'''
REPLACE_WITH_HELP = '''
    replacement; `$1`, `${1}`, `$name`, and `${name}` refer to capture groups,
    `$$` is a literal dollar sign, and escape sequences such as `\\n` are unescaped
'''
FILES_HELP = '''
    files to modify in place (standard input if none; `-` also means standard input)
'''
PREVIEW_HELP = '''
    print the result instead of modifying files
'''
FIXED_STRINGS_HELP = '''
    treat FIND and REPLACE_WITH as literal strings
'''
MAX_REPLACEMENTS_HELP = '''
    maximum number of replacements per input (0 for unlimited)
'''
FLAGS_HELP = '''
    regex flags, later flags overriding earlier ones:
    c (case-sensitive), i (case-insensitive), w (whole words only),
    e (disable multi-line matching), s (`.` matches newlines, disables multi-line matching);
    e and s apply only to the default dialect
'''
EXPRESSIVE_HELP = '''
    use the backtracking dialect (supports lookaround and backreferences)
'''
ONLY_MATCHED_HELP = '''
    output only the replacements, discarding unmatched text
'''
COLOUR_HELP = '''
    highlight replacements
'''
VERBOSE_MODE_HELP = '''
    run in verbose mode (reports the outcome for every input)
'''
LITERAL_PROHIBITED_FLAGS = 'es'


def parse_command_line_arguments(arguments: Optional[list[str]] = None) -> argparse.Namespace:
    argument_parser = argparse.ArgumentParser(description=DESCRIPTION)
    argument_parser.add_argument(
        '-v', '--version',
        action='version',
        version=f'{argument_parser.prog} version {__version__}',
    )
    argument_parser.add_argument(
        '-p', '--preview',
        dest='preview_mode_enabled',
        action='store_true',
        help=PREVIEW_HELP,
    )
    argument_parser.add_argument(
        '-F', '--fixed-strings',
        dest='literal_mode_enabled',
        action='store_true',
        help=FIXED_STRINGS_HELP,
    )
    argument_parser.add_argument(
        '-n', '--max-replacements',
        dest='replacement_limit',
        type=int,
        default=0,
        metavar='N',
        help=MAX_REPLACEMENTS_HELP,
    )
    argument_parser.add_argument(
        '-f', '--flags',
        dest='flags',
        default=None,
        help=FLAGS_HELP,
    )
    argument_parser.add_argument(
        '-E', '--expressive',
        dest='expressive_mode_enabled',
        action='store_true',
        help=EXPRESSIVE_HELP,
    )
    argument_parser.add_argument(
        '-o', '--only-matched',
        dest='only_matched_mode_enabled',
        action='store_true',
        help=ONLY_MATCHED_HELP,
    )
    argument_parser.add_argument(
        '-c', '--colour', '--color',
        dest='colour_mode_enabled',
        action='store_true',
        help=COLOUR_HELP,
    )
    argument_parser.add_argument(
        '-x', '--verbose',
        dest='verbose_mode_enabled',
        action='store_true',
        help=VERBOSE_MODE_HELP,
    )
    argument_parser.add_argument('find', help=FIND_HELP)
    argument_parser.add_argument('replace_with', help=REPLACE_WITH_HELP)
    argument_parser.add_argument(
        'files',
        default=[],
        help=FILES_HELP,
        metavar='FILES',
        nargs='*',
    )

    return argument_parser.parse_args(arguments)


def find_usage_error(parsed_arguments: argparse.Namespace) -> Optional[str]:
    if parsed_arguments.replacement_limit < 0:
        return 'error: option -n (or --max-replacements) cannot be negative'

    flags = parsed_arguments.flags or ''
    if parsed_arguments.literal_mode_enabled and any(flag in flags for flag in LITERAL_PROHIBITED_FLAGS):
        return (
            f'error: option -F (or --fixed-strings) cannot be used with flags '
            f'`{"` or `".join(LITERAL_PROHIBITED_FLAGS)}`'
        )

    return None


def build_replacer(parsed_arguments: argparse.Namespace) -> Replacer:
    if parsed_arguments.expressive_mode_enabled:
        replacer_class = ExpressiveReplacer
    else:
        replacer_class = ConstrainedReplacer

    return replacer_class(
        parsed_arguments.find,
        parsed_arguments.replace_with,
        is_literal=parsed_arguments.literal_mode_enabled,
        flags=parsed_arguments.flags,
        replacement_limit=parsed_arguments.replacement_limit,
    )


def main(arguments: Optional[list[str]] = None):
    parsed_arguments = parse_command_line_arguments(arguments)

    usage_error = find_usage_error(parsed_arguments)
    if usage_error is not None:
        print(usage_error, file=sys.stderr)
        sys.exit(COMMAND_LINE_ERROR_EXIT_CODE)

    try:
        replacer = build_replacer(parsed_arguments)
    except CompileException as compile_exception:
        print(f'error: {compile_exception}', file=sys.stderr)
        sys.exit(GENERIC_ERROR_EXIT_CODE)

    try:
        run_substitution(
            replacer,
            sources_from_paths(parsed_arguments.files),
            preview=parsed_arguments.preview_mode_enabled,
            only_matched=parsed_arguments.only_matched_mode_enabled,
            use_colour=parsed_arguments.colour_mode_enabled,
            verbose_mode_enabled=parsed_arguments.verbose_mode_enabled,
        )
    except WriteBackException as write_back_exception:
        print(f'error: {write_back_exception}', file=sys.stderr)
        sys.exit(GENERIC_ERROR_EXIT_CODE)
    except OSError as os_error:
        print(f'error: cannot write output: {os_error}', file=sys.stderr)
        sys.exit(GENERIC_ERROR_EXIT_CODE)


if __name__ == '__main__':
    main()
