# Part of Inphms, see License file for full copyright and licensing details.

from . import common
from . import db
from . import command
from . import importer
from . import model

#.apidoc title: RPC Services

""" Modules of this package implement the calls the client makes to the
    services of an Inphms (or Odoo) server: ``common`` (version, login),
    ``db`` (database listing) and ``object`` (ORM methods).

    :class:`~inphms_rpc.service.model.ObjectAdapter` is the entry point for
    application code; the other modules are mostly utilities dealing with the
    differences between server versions.
"""
