# Part of Inphms, see License file for full copyright and licensing details.

"""The Inphms RPC API module defines the user context sent along remote calls
and the type aliases shared by the client modules.
"""
from __future__ import annotations

__all__ = [
    'Context',
    'DomainType', 'ContextType', 'ValuesType',
]

import logging
import typing
from collections.abc import Mapping

DomainType = list[str | tuple[str, str, typing.Any]]
ContextType = Mapping[str, typing.Any]
ValuesType = dict[str, typing.Any]

_logger = logging.getLogger(__name__)


class Context(dict):
    """ The user context, as returned by ``res.users.context_get``.

    It is a plain dictionary, so that it can be marshalled as is; the
    properties below cover the keys the client relies upon.
    """
    ACTIVE_TEST = 'active_test'
    LANG = 'lang'
    TIMEZONE = 'tz'

    @property
    def active_test(self) -> bool | None:
        """ Whether searches skip archived records. """
        return self.get(self.ACTIVE_TEST)

    @active_test.setter
    def active_test(self, value: bool):
        self[self.ACTIVE_TEST] = value

    @property
    def lang(self) -> str | None:
        return self.get(self.LANG)

    @lang.setter
    def lang(self, value: str):
        self[self.LANG] = value

    @property
    def tz(self) -> str | None:
        """ Timezone of the user, ``None`` when not set on the server. """
        value = self.get(self.TIMEZONE)
        return value or None

    @tz.setter
    def tz(self, value: str | None):
        self[self.TIMEZONE] = value or False
