# -*- coding: utf-8 -*-
# Part of Inphms, see License file for full copyright and licensing details.
import logging

_logger = logging.getLogger(__name__)


def list_databases(transport):
    """ Databases served by the server. Listing can be disabled server side
    (``list_db = False``), in which case the call raises a fault.
    """
    result = transport.call('db', 'list', [])
    return [str(name) for name in result or []]


def check_database_presence(transport, db_name):
    """ Raise :class:`LookupError` if ``db_name`` is not listed by the server. """
    databases = list_databases(transport)
    if db_name not in databases:
        raise LookupError(
            "Error while connecting to the server. Database [%s] was not found "
            "in the following list:\n\n%s\n" % (db_name, "\n".join(databases)))
