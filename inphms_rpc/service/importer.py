# -*- coding: utf-8 -*-
# Part of Inphms, see License file for full copyright and licensing details.

""" Bulk import of rows.

Servers before 7.0 only offer the positional ``import_data`` method; later
ones offer ``load``. Both take a list of column names and a list of rows of
string-ish values, with the record id in a ``.id`` column. The strategy is
chosen once per adapter from the server version.
"""
from __future__ import annotations

import logging
import typing
from collections.abc import Sequence

from inphms_rpc.exceptions import ValidationError
from inphms_rpc.fields import Field, FieldCollection, FieldType
from inphms_rpc.tools import as_id

if typing.TYPE_CHECKING:
    from inphms_rpc.models import Row
    from inphms_rpc.service.command import Command
    from inphms_rpc.service.common import Version

_logger = logging.getLogger(__name__)

ID_COLUMN = '.id'
LOAD_MIN_MAJOR = 7


class ImportStrategy:
    """ Encode rows for a bulk import call and check its answer. """
    method = None

    def __init__(self, command: Command, model_name: str):
        self.command = command
        self.model_name = model_name
        # relation -> {str(id): display name}, valid for one import call
        self.name_cache: dict[str, dict[str, str]] = {}

    @classmethod
    def for_version(cls, version: Version) -> type[ImportStrategy]:
        if version.major >= LOAD_MIN_MAJOR:
            return LoadImportStrategy
        return LegacyImportStrategy

    def partition(self, rows: Sequence[Row]) -> list[list[Row]]:
        """ Split ``rows`` into batches the server accepts in one call. """
        return [list(rows)]

    def run(self, rows: Sequence[Row]) -> None:
        """ Import one batch of rows.

        :raise ValidationError: if a value cannot be encoded or the server
            reports a failure
        """
        self.name_cache.clear()
        field_names = self.get_field_names(rows[0].fields)
        import_rows = [self.encode_row(row) for row in rows]
        _logger.info("%s: importing %d rows with %s", self.model_name, len(import_rows), self.method)
        self.send(rows, field_names, import_rows)

    def send(self, rows, field_names, import_rows):
        raise NotImplementedError()

    @staticmethod
    def get_field_names(fields: FieldCollection) -> list[str]:
        # many2one columns are given as database ids, not display names
        return [ID_COLUMN] + [
            field.name + '.id' if field.type == FieldType.MANY2ONE else field.name
            for field in fields
        ]

    def encode_row(self, row: Row) -> list:
        raw_id = row.get('id')
        values = [0 if raw_id in (None, False) else as_id(raw_id)]
        for field in row.fields:
            value = row.get(field)
            try:
                values.append(self.encode_value(field, value))
            except ValidationError as exc:
                raise ValidationError("Row %s: %s" % (values[0] or "new", exc.args[0])) from exc
        return values

    def encode_value(self, field: Field, value):
        if field.type == FieldType.MANY2ONE:
            return 0 if value is None else as_id(value)
        if value is None:
            return False
        if field.type == FieldType.MANY2MANY:
            return self._encode_many2many(field, value)
        value = field.convert_to_write(value)
        if field.type == FieldType.SELECTION:
            return self._encode_selection(field, value)
        return str(value)

    def _encode_selection(self, field: Field, value) -> str:
        # imports take the label, not the stored code
        value = str(value)
        for option in field.get_selection_options() or []:
            if option.code == value:
                return option.value
            if option.value == value:
                return value
        raise ValidationError(
            "Could not find a valid value for selection field %s with value %s" % (field.name, value))

    def _encode_many2many(self, field: Field, value) -> str:
        # imports identify many2many records by display name
        names = self._get_names(field.relation)
        ids = value.split(',') if isinstance(value, str) else value
        result = []
        for record_id in ids:
            key = str(record_id).strip()
            if key not in names:
                raise ValidationError("Could not find %s with ID %s" % (field.relation, key))
            result.append(names[key])
        return ','.join(result)

    def _get_names(self, relation: str) -> dict[str, str]:
        try:
            return self.name_cache[relation]
        except KeyError:
            pass
        ids = self.command.search_object(relation, [])
        pairs = self.command.name_get(relation, ids) if ids else []
        names = self.name_cache[relation] = {str(record_id): str(name) for record_id, name in pairs}
        _logger.debug("%s: cached %d display names", relation, len(names))
        return names


class LegacyImportStrategy(ImportStrategy):
    """ ``import_data``, answering ``[count, row, message, ...]``. """
    method = 'import_data'

    def send(self, rows, field_names, import_rows):
        result = self.command.import_data(self.model_name, field_names, import_rows)
        # the number of imported rows, -1 on error
        if not result or result[0] != len(import_rows):
            row = result[1] if len(result) > 1 else None
            message = result[2] if len(result) > 2 else "import failed"
            raise ValidationError("%s\nRow :%s" % (message, row))


class LoadImportStrategy(ImportStrategy):
    """ ``load``, answering ``{'ids': [...] or False, 'messages': [...]}``.

    New and existing rows cannot be loaded in the same call.
    """
    method = 'load'

    def partition(self, rows):
        new_rows = [row for row in rows if row.id == 0]
        old_rows = [row for row in rows if row.id != 0]
        if new_rows and old_rows:
            return [old_rows, new_rows]
        return [list(rows)]

    def send(self, rows, field_names, import_rows):
        if rows[0].id == 0:
            # load() rejects a .id column holding only new rows
            field_names = field_names[1:]
            import_rows = [values[1:] for values in import_rows]

        result = self.command.load(self.model_name, field_names, import_rows)
        ids = result.get('ids')
        if not isinstance(ids, list):
            raise ValidationError(self.format_messages(result.get('messages') or []))
        # ids come back in the order rows were sent
        for row, record_id in zip(rows, ids):
            row.put('id', record_id)

    @staticmethod
    def format_messages(messages) -> str:
        lines = []
        for message in messages:
            if not isinstance(message, dict):
                lines.append(str(message))
                continue
            lines.append("%s: row %s, field %s: %s" % (
                message.get('type', 'error'),
                message.get('record', '?'),
                message.get('field', '?'),
                message.get('message', ''),
            ))
        return "\n".join(lines) or "load failed"
