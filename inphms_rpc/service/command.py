# -*- coding: utf-8 -*-
# Part of Inphms, see License file for full copyright and licensing details.

""" One remote call per server operation.

The argument layout of several ORM methods changed across server versions
(mostly where the user context goes); :class:`Command` hides those
differences from the rest of the client.
"""
from __future__ import annotations

import logging
import typing

if typing.TYPE_CHECKING:
    from inphms_rpc.http import Session
    from inphms_rpc.service.common import Version

_logger = logging.getLogger(__name__)

# workflows were removed in 11.0
LAST_WORKFLOW_MAJOR = 10


class Command:
    """ Issue ORM calls on behalf of a started :class:`~inphms_rpc.http.Session`. """

    def __init__(self, session: Session):
        self.session = session

    @property
    def server_version(self) -> Version:
        return self.session.get_server_version()

    @property
    def context(self):
        return self.session.context

    def search_object(self, model, domain, offset=-1, limit=-1, order=None, count=False):
        """ Return the ids matching ``domain``, or their number when ``count``.

        A negative ``offset`` or ``limit`` and an empty ``order`` are sent as
        ``False``, meaning no offset, no limit and the default order.
        """
        offset = False if offset is None or offset < 0 else offset
        limit = False if limit is None or limit < 0 else limit
        order = order or False
        domain = list(domain)

        if self.server_version.major < 10:
            # the context goes between order and count
            params = [domain, offset, limit, order, dict(self.context), count]
            return self.session.execute(model, 'search', params)
        params = [domain, offset, limit, order, count]
        return self.session.execute_with_context(model, 'search', params)

    def get_fields(self, model, field_names=()) -> dict:
        """ Return the ``fields_get`` description of the model, restricted to
        ``field_names`` when given.
        """
        if self.server_version.major >= 8:
            params = [list(field_names)]
        else:
            params = [list(field_names), dict(self.context)]
        return self.session.execute(model, 'fields_get', params)

    def read_object(self, model, ids, field_names) -> list[dict]:
        if self.server_version.major >= 8:
            return self.session.execute_with_context(model, 'read', [list(ids), list(field_names)])
        return self.session.execute(model, 'read', [list(ids), list(field_names), dict(self.context)])

    def write_object(self, model, record_id, values) -> bool:
        if self.server_version.major < 10:
            return self.session.execute(model, 'write', [record_id, values])
        return self.session.execute_with_context(model, 'write', [record_id, values])

    def create_object(self, model, values):
        if self.server_version.major < 10:
            return self.session.execute(model, 'create', [values])
        return self.session.execute_with_context(model, 'create', [values])

    def unlink_object(self, model, ids) -> bool:
        return self.session.execute(model, 'unlink', [list(ids)])

    def import_data(self, model, field_names, rows) -> list:
        """ Legacy bulk import, returns ``[count, row, message, ...]``. """
        params = [list(field_names), rows, "init", "", False, dict(self.context)]
        return self.session.execute(model, 'import_data', params)

    def load(self, model, field_names, rows) -> dict:
        """ Bulk import, returns ``{'ids': [...] or False, 'messages': [...]}``. """
        return self.session.execute(model, 'load', [list(field_names), rows])

    def name_get(self, model, ids) -> list:
        """ Return ``[id, display_name]`` pairs. """
        if self.server_version.major >= 17:
            # name_get was removed in favour of the display_name field
            records = self.read_object(model, ids, ['display_name'])
            return [[record['id'], record['display_name']] for record in records]
        return self.session.execute(model, 'name_get', [list(ids)])

    def call_object_function(self, model, function_name, params):
        return self.session.execute(model, function_name, list(params))

    def execute_workflow(self, model, signal, record_id):
        return self.session.execute_workflow(model, signal, record_id)
