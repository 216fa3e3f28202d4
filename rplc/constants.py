"""
# rplc: constants.py

Licensed under "MIT No Attribution" (MIT-0), see LICENSE.

Constants.
"""

GENERIC_ERROR_EXIT_CODE = 1
COMMAND_LINE_ERROR_EXIT_CODE = 2

COLOUR_START_MARKER = '\x1b[34m'
COLOUR_END_MARKER = '\x1b[0m'

PREVIEW_SEPARATOR_FORMAT = '----- {} -----\n'
STANDARD_INPUT_DISPLAY_NAME = '<stdin>'
STANDARD_INPUT_PATH_ARGUMENT = '-'

LARGE_FILE_WARNING_THRESHOLD_BYTES = 1024 * 1024
EXPRESSIVE_MATCH_TIMEOUT_SECONDS = 10.0
