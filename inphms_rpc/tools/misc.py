# Part of Inphms, see License file for full copyright and licensing details.
"""
Miscellaneous tools used by Inphms RPC.
"""
from __future__ import annotations

import datetime
import typing

from collections.abc import Iterable, Iterator

K = typing.TypeVar('K')
T = typing.TypeVar('T')

__all__ = [
    'DEFAULT_SERVER_DATETIME_FORMAT',
    'DEFAULT_SERVER_DATE_FORMAT',
    'DEFAULT_SERVER_TIME_FORMAT',
    'FILTER_DATETIME_FORMAT',
    'DATE_LENGTH',
    'as_id',
    'unique',
]

DEFAULT_SERVER_DATE_FORMAT = "%Y-%m-%d"
DEFAULT_SERVER_TIME_FORMAT = "%H:%M:%S"
DEFAULT_SERVER_DATETIME_FORMAT = "%s %s" % (
    DEFAULT_SERVER_DATE_FORMAT,
    DEFAULT_SERVER_TIME_FORMAT)

# search domains compare datetimes to the minute
FILTER_DATETIME_FORMAT = "%s %s" % (DEFAULT_SERVER_DATE_FORMAT, "%H:%M")

DATE_LENGTH = len(datetime.date.today().strftime(DEFAULT_SERVER_DATE_FORMAT))


#----------------------------------------------------------
# iterables
#----------------------------------------------------------
def unique(it: Iterable[T]) -> Iterator[T]:
    """ "Uniquifier" for the provided iterable: will output each element of
    the iterable once.

    The iterable's elements must be hashahble.

    :param Iterable it:
    :rtype: Iterator
    """
    seen = set()
    for e in it:
        if e not in seen:
            seen.add(e)
            yield e


def as_id(value) -> int:
    """ Return the record id held by ``value``.

    Relational values read from the server come as ``[id, display_name]``
    pairs; numbers may come as floats or numeric strings (``"1.0"``).

    :raise ValueError: if no integer can be extracted
    """
    if isinstance(value, (list, tuple)):
        if not value:
            raise ValueError("empty relational value")
        value = value[0]
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    return int(float(str(value)))
