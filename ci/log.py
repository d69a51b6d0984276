# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

import copy
import logging
import sys


class Bcolors:
    RESET_ALL = '\033[0m'
    BOLD = '\033[1m'
    RED = '\033[31m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    BLUE = '\033[34m'


_LEVEL_COLOURS = {
    logging.DEBUG: Bcolors.BLUE,
    logging.INFO: Bcolors.GREEN,
    logging.WARNING: Bcolors.YELLOW,
    logging.ERROR: Bcolors.RED,
    logging.CRITICAL: Bcolors.RED,
}

# libraries that log each request on INFO-level
_CHATTY_LOGGERS = (
    'github3',
    'urllib3',
    'cachecontrol',
)


class ChangelogFormatter(logging.Formatter):
    '''
    formatter offering `%(levelprefix)s`, which is the (coloured, if writing to a terminal)
    level-name.
    '''
    def __init__(self, fmt: str, colourise: bool=False):
        super().__init__(fmt=fmt)
        self.colourise = colourise

    def levelprefix(self, record: logging.LogRecord) -> str:
        if not self.colourise or not (colour := _LEVEL_COLOURS.get(record.levelno)):
            return record.levelname

        return f'{Bcolors.BOLD}{colour}{record.levelname}{Bcolors.RESET_ALL}'

    def formatMessage(self, record: logging.LogRecord):
        record = copy.copy(record)
        record.levelprefix = self.levelprefix(record)
        return super().formatMessage(record)


def default_fmt_string(print_thread_id: bool=False):
    tid = 'TID:%(thread)d ' if print_thread_id else ''
    return f'%(asctime)s [%(levelprefix)s] {tid}%(name)s: %(message)s'


def configure_default_logging(
    stdout_level=None,
    force=True,
    print_thread_id=False,
    custom_format_string: str='',
):
    '''
    configures the root logger to emit to stderr (stdout is reserved for the rendered changelog).
    '''
    if not stdout_level:
        stdout_level = logging.INFO

    # make sure to have a clean root logger (in case setup is called multiple times)
    if force:
        for handler in list(logging.root.handlers):
            logging.root.removeHandler(handler)
            handler.close()

    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setLevel(stdout_level)
    handler.setFormatter(ChangelogFormatter(
        fmt=custom_format_string or default_fmt_string(print_thread_id=print_thread_id),
        colourise=sys.stderr.isatty(),
    ))

    logging.root.addHandler(hdlr=handler)
    logging.root.setLevel(level=stdout_level)

    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
