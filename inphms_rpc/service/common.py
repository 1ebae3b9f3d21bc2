# -*- coding: utf-8 -*-
# Part of Inphms, see License file for full copyright and licensing details.

import logging
import re

from inphms_rpc.exceptions import AccessDenied

_logger = logging.getLogger(__name__)

UNKNOWN = -1


class Version(object):
    """ Server version, parsed from ``major.minor-build`` (e.g. ``16.0``,
    ``8.0-20150101``).

    Parts that cannot be parsed are ``-1``; a missing build is ``"0"``.
    """
    __slots__ = ['full_version', 'major', 'minor', 'build']

    def __init__(self, version):
        self.full_version = version = str(version)
        if '-' in version and len(version) > 1:
            major_minor, self.build = version.split('-', 1)
        else:
            major_minor, self.build = version, "0"

        parts = major_minor.split('.')
        self.major = _parse_int(parts[0])
        self.minor = _parse_int(parts[1]) if len(parts) > 1 else UNKNOWN

    def __str__(self):
        return self.full_version

    def __repr__(self):
        return "<Version %s (major=%d, minor=%d, build=%s)>" % (
            self.full_version, self.major, self.minor, self.build)

    def __eq__(self, other):
        return isinstance(other, Version) and self.full_version == other.full_version

    def __hash__(self):
        return hash(self.full_version)


def _parse_int(value):
    try:
        return int(value)
    except ValueError:
        return UNKNOWN


def get_server_version(transport):
    """ Ask the ``common`` service for the server version. """
    info = transport.call('common', 'version', [])
    if isinstance(info, dict):
        info = info.get('server_version', '')
    version = Version(info)
    if version.major == UNKNOWN:
        # saas builds report e.g. "saas~16.2+e"
        match = re.search(r'(\d+)\.(\d+)', str(info))
        if match:
            version.major, version.minor = int(match[1]), int(match[2])
    _logger.debug("server version %r", version)
    return version


def login(transport, db, user, password):
    """ Authenticate on ``db`` and return the user id.

    :raise AccessDenied: if the server refused the credentials
    """
    uid = transport.call('common', 'login', [db, user, password])
    if not isinstance(uid, int) or isinstance(uid, bool):
        _logger.warning("Login failed for db:%s login:%s", db, user)
        raise AccessDenied("Incorrect username and/or password. Login Failed.")
    _logger.info("Login successful for db:%s login:%s uid:%s", db, user, uid)
    return uid
