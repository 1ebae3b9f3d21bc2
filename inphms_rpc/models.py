# -*- coding: utf-8 -*-
# Part of Inphms, see License file for full copyright and licensing details.

"""
    Object relational mapping to database records, seen from the client side.

    A :class:`Row` wraps the raw values of one record as returned by ``read``,
    together with the :class:`~inphms_rpc.fields.FieldCollection` describing
    them. Values are decoded on access and changes are tracked per field, so
    that only modified values need to be written back.
"""
from __future__ import annotations

import logging
import typing
from collections.abc import Callable, Iterable, Mapping

from .exceptions import UserError, ValidationError
from .fields import Field, FieldCollection, FieldType
from .tools import as_id, unique

_logger = logging.getLogger(__name__)

ID_FIELD = 'id'

RowChangedListener = Callable[[Field, 'Row'], typing.Any]


def _same_value(old, value) -> bool:
    if old is value:
        return True
    # 1 == True and 1 == 1.0, but those are different wire values
    return type(old) is type(value) and old == value


class Row:
    """ One record of a model.

    :param values: raw values as read from the server, keyed by field name;
        an empty mapping creates a new row, with id ``0`` and every field set
        to ``None``
    :param fields: the fields of the model this row holds values for

    ``row[name]`` is :meth:`get` and ``row[name] = value`` is :meth:`put`.
    """
    __slots__ = ['_values', '_fields', '_changed', '_listeners']

    def __init__(self, values: Mapping[str, typing.Any] | None = None, fields: FieldCollection | None = None):
        self._values: dict[str, typing.Any] = dict(values or {})
        self._fields = fields if fields is not None else FieldCollection()
        self._changed = FieldCollection()
        self._listeners: list[RowChangedListener] = []

        if not self._values:
            self.put(ID_FIELD, 0)
            for field in self._fields:
                self.put(field.name, None)

    def copy(self) -> Row:
        """ Return a new row holding the same values and a copy of the field
        collection. Changes and listeners are not copied.
        """
        row = Row.__new__(Row)
        row._values = dict(self._values)
        row._fields = self._fields.clone()
        row._changed = FieldCollection()
        row._listeners = []
        return row

    def __repr__(self):
        return "<%s id=%r %s>" % (type(self).__name__, self._values.get(ID_FIELD), self._fields.names())

    def __getitem__(self, name):
        return self.get(name)

    def __setitem__(self, name, value):
        self.put(name, value)

    @property
    def id(self) -> int:
        """ Database id of the record, ``0`` for a row not created yet. """
        value = self._values.get(ID_FIELD)
        if value is None or value is False:
            return 0
        return as_id(value)

    @property
    def fields(self) -> FieldCollection:
        return self._fields

    @property
    def changed_fields(self) -> FieldCollection:
        """ Fields modified since the row was read or last saved. """
        return self._changed

    def add_row_changed_listener(self, listener: RowChangedListener) -> None:
        """ Register ``listener(field, row)``, called after every actual
        change of a value. Registering a listener twice has no effect.
        """
        if listener not in self._listeners:
            self._listeners.append(listener)

    def get(self, field: str | Field):
        """ Return the decoded value of ``field``.

        ``id`` is returned as is. Unknown fields read as ``None``, so do
        ``False`` on non-boolean fields and empty lists. Date and datetime
        strings are parsed; unparsable ones read as ``None``.
        """
        name = field.name if isinstance(field, Field) else field
        if name == ID_FIELD:
            return self._values.get(ID_FIELD)
        fld = self._fields.get(name)
        if fld is None:
            return None
        return fld.convert_to_read(self._values.get(name))

    def put(self, field: str | Field, value) -> None:
        """ Set the raw value of ``field``.

        The field is marked as changed and the listeners are notified only
        when the value actually differs from the current one.

        :raise UserError: if the field is not part of this row
        """
        name = field.name if isinstance(field, Field) else field
        if name == ID_FIELD:
            self._values[ID_FIELD] = value
            return

        fld = self._fields.get(name)
        if fld is None:
            raise UserError("Field '%s' was not found in row" % name)

        if fld.type == FieldType.ONE2MANY and value is not None:
            value = [value, None]

        if name in self._values and _same_value(self._values[name], value):
            return

        self._values[name] = value
        self._changed.add(fld)
        for listener in self._listeners:
            listener(fld, self)

    def put_many2many_value(self, field: str | Field, values: Iterable, append: bool) -> None:
        """ Set the ids of a many2many field, keeping the current ids when
        ``append`` is set. Ids are never duplicated.

        :raise ValidationError: if the field is not a many2many field
        """
        name = field.name if isinstance(field, Field) else field
        fld = self._fields.get(name)
        if fld is None:
            raise UserError("Field '%s' was not found in row" % name)
        if fld.type != FieldType.MANY2MANY:
            raise ValidationError("Field '%s' is not a many2many field" % name)

        current = (self.get(name) if append else None) or []
        self.put(name, list(unique([*current, *values])))

    def changes_applied(self) -> None:
        """ Forget about changes, once they have been saved on the server. """
        self._changed.clear()


class RowCollection(list):
    """ Rows of one model, in the order the server returned them.

    :param results: raw records, e.g. the result of ``read``
    :param fields: the fields shared by all the rows
    """

    def __init__(self, results: Iterable[Mapping | Row] | None = (), fields: FieldCollection | None = None):
        self.fields = fields if fields is not None else FieldCollection()
        super().__init__(
            record if isinstance(record, Row) else Row(record, self.fields)
            for record in results or ()
        )

    def __repr__(self):
        return "%s(%s)" % (type(self).__name__, super().__repr__())

    def ids(self) -> list[int]:
        return [row.id for row in self]
