# Part of Inphms, see License file for full copyright and licensing details.
from __future__ import annotations

import logging
import typing
from collections.abc import Iterable, Mapping
from datetime import date

from inphms_rpc.exceptions import ValidationError
from inphms_rpc.fields import Field, FieldCollection, FieldType
from inphms_rpc.models import Row, RowCollection
from inphms_rpc.modules.registry import Registry
from inphms_rpc.osv import expression
from inphms_rpc.tools import as_id

from .command import LAST_WORKFLOW_MAJOR
from .importer import ImportStrategy

if typing.TYPE_CHECKING:
    from inphms_rpc.osv.expression import FilterCollection
    from .command import Command
    from .common import Version

_logger = logging.getLogger(__name__)


def _guess_type(value) -> FieldType:
    """ Type of a field only known by one of its values. """
    match value:
        case bool():
            return FieldType.BOOLEAN
        case int():
            return FieldType.INTEGER
        case float():
            return FieldType.FLOAT
        case date():
            return FieldType.DATE
        case _:
            return FieldType.CHAR


class ObjectAdapter:
    """ Access to the records of one model.

    :param command: the command layer of a started session
    :param model_name: technical name of the model, e.g. ``res.partner``
    :param server_version: version of the server, defaults to the one of the
        session behind ``command``
    :param registry: the cache of model names and workflow signals, shared
        by the adapters of a database

    The model is checked against the registry and its fields are fetched
    once, at construction. Values are converted from and to the wire format
    with the field definitions, see :class:`~inphms_rpc.fields.Field`.
    """

    def __init__(self, command: Command, model_name: str, server_version: Version | None = None,
                 registry: Registry | None = None):
        self.command = command
        self.model_name = model_name
        self.server_version = server_version or command.server_version
        if registry is None:
            registry = getattr(command.session, 'registry', None) or Registry('default')
        self.registry = registry

        self.registry.check_model(command, model_name)
        self._fields = self.get_fields()
        self._importer = ImportStrategy.for_version(self.server_version)(command, model_name)

    def __repr__(self):
        return "<%s %s>" % (type(self).__name__, self.model_name)

    @property
    def all_fields(self) -> FieldCollection:
        """ All the fields of the model, as fetched at construction. """
        return self._fields

    #
    # Fields
    #
    def get_fields(self, field_names: Iterable[str] = ()) -> FieldCollection:
        """ Fetch the definition of ``field_names`` (all fields by default). """
        description = self.command.get_fields(self.model_name, list(field_names))
        return FieldCollection(Field(name, properties) for name, properties in description.items())

    def get_field_names(self) -> list[str]:
        return self.get_fields().names()

    def _known_fields(self, field_names: Iterable[str]) -> FieldCollection:
        """ The cached definitions of ``field_names``, unknown names skipped. """
        return FieldCollection(
            self._fields.get(name) for name in field_names if name in self._fields
        )

    #
    # Search and read
    #
    def validate_filters(self, filters: FilterCollection | None) -> list:
        """ Return ``filters`` as a domain, with values coerced to the types of
        the fields they are compared with.
        """
        return expression.validate_filters(filters, self._fields)

    def search_and_read_object(self, filters: FilterCollection | None = None, fields: Iterable[str] | None = None,
                               offset: int = -1, limit: int = -1, order: str = "") -> RowCollection:
        """ Search records and read ``fields`` of the ones found.

        :param offset: number of records to skip, negative for none
        :param limit: maximum number of records, negative for no limit
        :param order: order clause such as ``"name desc, id"``, empty for the model default
        """
        domain = self.validate_filters(filters)
        ids = self.command.search_object(self.model_name, domain, offset, limit, order, False)
        return self.read_object(ids, list(fields or []))

    def get_object_count(self, filters: FilterCollection | None = None) -> int:
        domain = self.validate_filters(filters)
        return int(self.command.search_object(self.model_name, domain, -1, -1, None, True))

    def read_object(self, ids: Iterable[int], fields: Iterable[str]) -> RowCollection:
        """ Read ``fields`` of the records ``ids``.

        Rows come in the order returned by the server, which is not
        necessarily the order of ``ids``.
        """
        ids = list(ids or [])
        field_names = list(fields)
        field_col = self._known_fields(field_names)
        if not ids:
            return RowCollection([], field_col)
        results = self.command.read_object(self.model_name, ids, field_names)
        return RowCollection(results, field_col)

    #
    # Write
    #
    def format_value_for_write(self, field: Field, value):
        """ Convert ``value`` to what ``write`` and ``create`` expect for ``field``. """
        return field.convert_to_write(value)

    def _collect_values(self, row: Row, changes_only: bool) -> dict:
        fields = row.changed_fields if changes_only else row.fields
        return {field.name: self.format_value_for_write(field, row.get(field)) for field in fields}

    def get_new_row(self, fields: FieldCollection | Iterable[str]) -> Row:
        """ Return an empty row to be filled in and passed to
        :meth:`create_object`.
        """
        if not isinstance(fields, FieldCollection):
            fields = self._known_fields(fields)
        return Row({}, fields)

    def create_object(self, row: Row) -> int:
        """ Create a record with the values of ``row`` and set its id. """
        values = self._collect_values(row, changes_only=False)
        if not values:
            raise ValidationError("Row doesn't have any fields to update")
        record_id = self.command.create_object(self.model_name, values)
        row.put('id', record_id)
        row.changes_applied()
        _logger.debug("%s: created record %s", self.model_name, record_id)
        return record_id

    def write_object(self, rows: Row | Iterable[Row], changes_only: bool = True):
        """ Save ``rows`` on the server.

        :param changes_only: only write the values changed since the row was
            read, instead of all of them
        :return: for a single row, ``False`` when there was nothing to write
            and the server answer otherwise; for several rows, the list of
            those results
        :raise ValidationError: if a row has no database id
        """
        if not isinstance(rows, Row):
            return [self.write_object(row, changes_only) for row in rows]
        row = rows

        raw_id = row.get('id')
        try:
            record_id = as_id(raw_id) if raw_id is not None else 0
        except ValueError:
            record_id = 0
        if record_id <= 0:
            raise ValidationError("Please set the id field with the database ID of the object")

        values = self._collect_values(row, changes_only)
        if not values:
            return False
        success = self.command.write_object(self.model_name, record_id, values)
        if success:
            row.changes_applied()
        return bool(success)

    def unlink_object(self, rows: Row | Iterable[Row]) -> bool:
        """ Delete the records of ``rows``. """
        if isinstance(rows, Row):
            rows = [rows]
        ids = [row.id for row in rows]
        return self.command.unlink_object(self.model_name, ids)

    def import_data(self, rows: Iterable[Row]) -> bool:
        """ Create or update ``rows`` in bulk.

        Rows without id are created and their new id is set on them. Existing
        and new rows are sent in separate calls when the server needs it.

        :raise ValidationError: if a value cannot be imported or the server
            rejected the batch
        """
        rows = list(rows)
        if not rows:
            return True
        batches = self._importer.partition(rows)
        if len(batches) > 1:
            # each batch sets the ids of its own rows
            return all([self.import_data(batch) for batch in batches])
        self._importer.run(rows)
        return True

    #
    # Workflows and arbitrary functions
    #
    def execute_workflow(self, row: Row, signal: str) -> None:
        """ Send ``signal`` to the workflow instance of ``row``. """
        if self.server_version.major <= LAST_WORKFLOW_MAJOR:
            self.registry.check_signal(self.command, self.model_name, signal)
        self.command.execute_workflow(self.model_name, signal, row.id)

    def call_function(self, function_name: str, params: Iterable = (),
                      fields: FieldCollection | None = None) -> RowCollection:
        """ Call a method of the model returning records.

        :param fields: the fields of the returned records; by default they are
            guessed from the first record
        """
        results = self.command.call_object_function(self.model_name, function_name, list(params))
        results = _as_list(results)
        if fields is None:
            fields = self._fields_from_results(results)
        return RowCollection(results, fields)

    def call_fields_function(self, function_name: str, params: Iterable = ()) -> FieldCollection:
        """ Call a method of the model and describe the keys of the first
        record it returns as fields.
        """
        results = self.command.call_object_function(self.model_name, function_name, list(params))
        return self._fields_from_results(_as_list(results))

    @staticmethod
    def _fields_from_results(results: list) -> FieldCollection:
        fields = FieldCollection()
        if not results or not isinstance(results[0], Mapping):
            return fields
        for name, value in results[0].items():
            # a nested mapping is taken as a field description
            properties = dict(value) if isinstance(value, Mapping) else {}
            properties.setdefault('name', name)
            properties.setdefault('string', name)
            if 'type' not in properties:
                properties['type'] = _guess_type(value).value
            fields.add(Field(name, properties))
        return fields


def _as_list(results) -> list:
    if results is None or results is False:
        return []
    if isinstance(results, (list, tuple)):
        return list(results)
    return [results]
