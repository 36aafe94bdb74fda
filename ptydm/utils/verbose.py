# -*- coding: utf-8 -*-
"""\
Verbose package, based on the standard logging library.

Use as:
from verbose import logger
logger.warning('This is a warning')
logger.info('This is an information')
...

or with integer verbosity levels (0 is quiet, 5 is debug):
log(3, 'Probe amplitude corrected by 1.2')

This file is part of the PTYDM package.

    :copyright: Copyright 2024 by the PTYDM team, see AUTHORS.
    :license: see LICENSE for details.
"""
import sys
import time
import logging
from time import perf_counter

__all__ = ['logger', 'set_level', 'get_level', 'enabled', 'report', 'log', 'headerline', 'LogTime']

# custom logging levels
INSPECT = 15

CONSOLE_FORMAT = {logging.ERROR: 'ERROR %(name)s - %(message)s',
                  logging.WARNING: 'WARNING %(name)s - %(message)s',
                  logging.INFO: '%(message)s',
                  INSPECT: 'INSPECT %(message)s',
                  logging.DEBUG: 'DEBUG %(pathname)s [%(lineno)d] - %(message)s'}

# How many characters per line in console
LINEMAX = 80


# Logging formatter
class CustomFormatter(logging.Formatter):
    """
    Flexible formatting, depending on the logging level.

    Adapted from https://stackoverflow.com/questions/14844970
    """
    DEFAULT = '%(levelname)s: %(message)s'

    def __init__(self, FORMATS=None):
        logging.Formatter.__init__(self)
        self.FORMATS = {} if FORMATS is None else FORMATS

    def format(self, record):
        self._style._fmt = self.FORMATS.get(record.levelno, self.DEFAULT)
        return logging.Formatter.format(self, record)

# Create logger
logger = logging.getLogger("ptydm")

# Default level - should be changed as soon as possible
logger.setLevel(logging.WARNING)

# Create console handler
consolehandler = logging.StreamHandler(stream=sys.stdout)
logger.addHandler(consolehandler)

# Add formatter
consoleformatter = CustomFormatter(CONSOLE_FORMAT)
consolehandler.setFormatter(consoleformatter)

# Capture warnings and log them
logging.captureWarnings(True)

level_from_verbosity = {0: logging.CRITICAL, 1: logging.ERROR, 2: logging.WARN, 3: logging.INFO, 4: INSPECT, 5: logging.DEBUG}
level_from_string = {'CRITICAL': logging.CRITICAL, 'ERROR': logging.ERROR, 'WARN': logging.WARN, 'WARNING': logging.WARN,
                     'INFO': logging.INFO, 'INSPECT': INSPECT, 'DEBUG': logging.DEBUG}
vlevel_from_logging = dict([(v, k) for k, v in level_from_verbosity.items()])
slevel_from_logging = dict([(v, k) for k, v in level_from_string.items()])


def log(level, msg):
    if isinstance(level, int):
        _level = level_from_verbosity[level]
    elif isinstance(level, str):
        _level = level_from_string[level.upper()]
    else:
        raise TypeError("Verbosity level should be an integer or a string")
    logger.log(_level, msg)


def set_level(level):
    """
    Set verbosity level, either as integer (0-5) or as logging level name.
    """
    if isinstance(level, str):
        if level.upper() not in level_from_string:
            raise KeyError("Verbosity level %s does not exist" % level)
        logger.setLevel(level_from_string[level.upper()])
    elif isinstance(level, int):
        logger.setLevel(level_from_verbosity[level])
    else:
        raise TypeError("Verbosity level should be an integer or a string")
    logger.info('Verbosity set to %s' % str(level))


def get_level():
    """
    inverse to set level
    """
    if logger.level in vlevel_from_logging:
        return vlevel_from_logging[logger.level]
    return slevel_from_logging[logger.level]


def enabled(level):
    """
    True if a message at integer verbosity `level` would be emitted.
    """
    return logger.isEnabledFor(level_from_verbosity[level])


def headerline(info='', align='c', fill='-'):
    li = len(info)
    if li >= 60:
        return headerline(info[li//2:], align, fill) + '\n' + headerline(info[:li//2], align, fill)
    if li != 0:
        li += 2
        info = ' ' + info + ' '
    empty = LINEMAX - li
    if align == 'c':
        left = empty // 2
        right = empty - left
    elif align == 'l':
        left = 4
        right = empty - left
    else:
        right = 4
        left = empty - right
    return fill * left + info + fill * right


def report(thing, depth=4, noheader=False):
    """
    Formats nested dicts / Params for the log.
    no protection for circular references
    """
    import numpy as np

    indent = report.indent
    maxchar = report.maxchar
    hn = report.headernewline
    star = report.asterisk

    header = '\n---- ' + time.asctime() + ' -----\n'

    def _(label, level, obj):
        pre = " " * indent * level + star + ' '
        extra = type(obj).__name__
        pre += str(label) if label is not None else "id" + np.base_repr(id(obj), base=32)
        if len(pre) >= 25:
            pre = pre[:21] + '... '
        return "%-25s:" % pre, extra

    def _format_dict(label, level, obj):
        header, extra = _(label, level, obj)
        header += ' %s(%d)' % (extra, len(obj)) + hn
        if level <= depth:
            for k, v in obj.items():
                header += _format(k, level + 1, v)
        return header

    def _format_other(label, level, obj):
        header, extra = _(label, level, obj)
        if np.isscalar(obj):
            header += ' ' + str(obj)
        else:
            header += ' ' + extra + ' = ' + str(obj)
        return header[:maxchar] + '\n'

    def _format_numpy(key, level, a):
        header, extra = _(key, level, a)
        if a.ndim == 1 and len(a) < 5:
            return header + ' [array = ' + str(a.ravel()) + ']\n'
        return header + ' [' + (('%dx' * (a.ndim - 1) + '%d') % a.shape) + ' ' + str(a.dtype) + ' array]\n'

    def _format(key, level, obj):
        if hasattr(obj, 'items'):
            return _format_dict(key, level, obj)
        elif type(obj) is np.ndarray:
            return _format_numpy(key, level, obj)
        elif obj is None:
            return _(key, level, obj)[0] + ' None\n'
        return _format_other(key, level, obj)

    if noheader:
        return _format(None, 0, thing)
    return header + _format(None, 0, thing)

report.indent = 2
report.maxchar = LINEMAX
report.headernewline = '\n'
report.asterisk = '*'


class LogTime:
    """
    Context manager measuring wall time of a block when `active`.
    """
    def __init__(self, active=False):
        self.active = active
        self.duration = 0.
        self.readout = ''

    def __enter__(self):
        if self.active:
            self.time = perf_counter()
        return self

    def __exit__(self, type, value, traceback):
        if self.active:
            self.duration = perf_counter() - self.time
            self.readout = f'{self.duration:.3f} seconds'
