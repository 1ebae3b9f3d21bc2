# -*- coding: utf-8 -*-
# Part of Inphms, see License file for full copyright and licensing details.

""" Client-side view of model fields, as described by ``fields_get``. """
from __future__ import annotations

import enum
import logging
import typing
from collections.abc import Iterable, Mapping, MutableSequence
from datetime import date, datetime
from operator import attrgetter

import pytz

from .exceptions import ValidationError
from .tools import (
    DEFAULT_SERVER_DATE_FORMAT as DATE_FORMAT,
    DEFAULT_SERVER_DATETIME_FORMAT as DATETIME_FORMAT,
    as_id,
)

_logger = logging.getLogger(__name__)

DEFAULT_SIZE = 64


class FieldType(str, enum.Enum):
    """ Field types understood by the client. """
    INTEGER = 'integer'
    CHAR = 'char'
    TEXT = 'text'
    BINARY = 'binary'
    BOOLEAN = 'boolean'
    FLOAT = 'float'
    DATETIME = 'datetime'
    DATE = 'date'
    MANY2ONE = 'many2one'
    ONE2MANY = 'one2many'
    MANY2MANY = 'many2many'
    SELECTION = 'selection'

    @classmethod
    def from_string(cls, value) -> FieldType:
        """ Return the member matching ``value`` case-insensitively.

        Types the client does not know about (``html``, ``monetary``,
        ``reference``...) are handled as ``char``.
        """
        if isinstance(value, str):
            try:
                return cls(value.lower())
            except ValueError:
                pass
        return cls.CHAR


RELATIONAL_TYPES = (FieldType.MANY2ONE, FieldType.ONE2MANY, FieldType.MANY2MANY)
INTEGER_TYPES = (FieldType.INTEGER, FieldType.ONE2MANY, FieldType.MANY2MANY, FieldType.MANY2ONE)


class SelectionOption(typing.NamedTuple):
    """ One ``(code, value)`` pair of a selection field. """
    code: str
    value: str


class Field:
    """ Read-only description of one model attribute.

    :param str name: the field name
    :param dict properties: the property mapping returned by ``fields_get``
        for that field (``type``, ``string``, ``required``, ``relation``...)

    Missing properties fall back to the server defaults: not required, not
    readonly, stored, selectable, size 64, no relation.
    """
    __slots__ = ['name', '_properties']

    def __init__(self, name: str, properties: Mapping[str, typing.Any] | None = None):
        self.name = name
        self._properties = dict(properties or {})

    def __str__(self):
        return self.name

    def __repr__(self):
        return "<%s %s (%s)>" % (type(self).__name__, self.name, self.type.value)

    def __eq__(self, other):
        return (
            isinstance(other, Field)
            and self.name == other.name
            and self._properties == other._properties
        )

    def __hash__(self):
        return hash(self.name)

    def get_field_property(self, name: str, default=None):
        """ Any property not covered by an attribute, for example ``'domain'``. """
        return self._properties.get(name, default)

    def get_state_properties(self, name: str) -> list[list]:
        """ Return ``[state, value]`` pairs of property ``name`` from the
        ``states`` property, e.g. ``readonly`` per record state.
        """
        result = []
        for state, overrides in (self.get_field_property('states') or {}).items():
            for prop, value in overrides:
                if prop == name:
                    result.append([state, value])
        return result

    @property
    def type(self) -> FieldType:
        return FieldType.from_string(self._properties.get('type'))

    @property
    def description(self) -> str | None:
        return self._properties.get('string')

    @property
    def help(self) -> str | None:
        return self._properties.get('help')

    @property
    def required(self) -> bool:
        return bool(self._properties.get('required', False))

    @property
    def readonly(self) -> bool:
        value = self._properties.get('readonly', False)
        if isinstance(value, int):
            return value == 1
        return bool(value)

    @property
    def store(self) -> bool:
        return bool(self._properties.get('store', True))

    @property
    def selectable(self) -> bool:
        return bool(self._properties.get('selectable', True))

    @property
    def size(self) -> int:
        value = self._properties.get('size')
        if value is None or isinstance(value, bool):
            return DEFAULT_SIZE
        return value

    @property
    def relation(self) -> str:
        return self._properties.get('relation') or ""

    @property
    def is_computed(self) -> bool:
        """ Whether the field is a function field, which cannot be searched. """
        return bool(self._properties.get('func_method', False))

    @property
    def relational(self) -> bool:
        return self.type in RELATIONAL_TYPES

    def get_selection_options(self) -> list[SelectionOption] | None:
        """ Return the selection options, or ``None`` if the field is not a
        selection field.
        """
        if self.type != FieldType.SELECTION:
            return None
        values = self._properties.get('selection')
        if not isinstance(values, (list, tuple)):
            return []
        return [SelectionOption(str(code), str(label)) for code, label in values]

    #
    # Conversion of values
    #

    def convert_to_read(self, value):
        """ Convert a raw value read from the server to the value seen by the
        caller. ``False`` stands for "no value" except on boolean fields, and
        so does an empty list.
        """
        field_type = self.type
        if isinstance(value, bool) and field_type != FieldType.BOOLEAN:
            return None
        if isinstance(value, (list, tuple)) and not value:
            return None
        if isinstance(value, str):
            match field_type:
                case FieldType.DATE:
                    try:
                        return datetime.strptime(value[:10], DATE_FORMAT).date()
                    except ValueError:
                        return None
                case FieldType.DATETIME:
                    try:
                        return datetime.strptime(value, DATETIME_FORMAT)
                    except ValueError:
                        return None
        return value

    def convert_to_write(self, value):
        """ Convert a value to the format accepted by ``write`` and ``create``.

        ``None`` becomes ``False``. Dates and datetimes are written in UTC;
        naive datetimes are taken as UTC already.

        :raise ValidationError: if the value cannot be converted to the type
            of the field
        """
        if value is None or (value is False and self.type != FieldType.BOOLEAN):
            return False
        try:
            return self._convert_to_write(value)
        except (TypeError, ValueError) as exc:
            raise ValidationError("Invalid value %r for field %s (%s)" % (
                value, self.name, self.type.value)) from exc

    def _convert_to_write(self, value):
        match self.type:
            case FieldType.BOOLEAN:
                return value
            case FieldType.FLOAT:
                return float(str(value))
            case FieldType.MANY2ONE | FieldType.INTEGER:
                return as_id(value)
            case FieldType.ONE2MANY:
                # a single id, bare or wrapped as [id, None] by Row.put
                if isinstance(value, (list, tuple)):
                    if not value:
                        return False
                    if len(value) == 1 or (len(value) == 2 and value[1] is None):
                        value = value[0]
                    else:
                        raise ValueError("a one2many value holds a single id, got %d" % len(value))
                return as_id(value)
            case FieldType.MANY2MANY:
                if isinstance(value, (list, tuple)):
                    return [[6, 0, list(value)]]
                return value
            case FieldType.DATE:
                if isinstance(value, datetime):
                    value = _to_utc(value)
                if isinstance(value, date):
                    return value.strftime(DATE_FORMAT)
                return str(value)
            case FieldType.DATETIME:
                if isinstance(value, datetime):
                    return _to_utc(value).strftime(DATETIME_FORMAT)
                if isinstance(value, date):
                    return value.strftime(DATETIME_FORMAT)
                return str(value)
            case _:
                return str(value)


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(pytz.utc).replace(tzinfo=None)


class FieldCollection(MutableSequence):
    """ Ordered set of :class:`Field`, indexed by name.

    Adding a field whose name is already present is a no-op, so that field
    names stay unique within one collection.
    """
    __slots__ = ['_fields', '_index']

    def __init__(self, fields: Iterable[Field] = ()):
        self._fields: list[Field] = []
        self._index: dict[str, Field] = {}
        for field in fields:
            self.append(field)

    def __getitem__(self, index):
        if isinstance(index, slice):
            return FieldCollection(self._fields[index])
        return self._fields[index]

    def __setitem__(self, index, field):
        old = self._fields[index]
        if field.name != old.name and field.name in self._index:
            raise ValueError("Field %r already in collection" % field.name)
        del self._index[old.name]
        self._fields[index] = field
        self._index[field.name] = field

    def __delitem__(self, index):
        removed = self._fields[index]
        del self._fields[index]
        for field in (removed if isinstance(removed, list) else [removed]):
            self._index.pop(field.name, None)

    def __len__(self):
        return len(self._fields)

    def __iter__(self):
        return iter(self._fields)

    def __contains__(self, item):
        if isinstance(item, Field):
            return item.name in self._index
        return item in self._index

    def __repr__(self):
        return "%s(%r)" % (type(self).__name__, self.names())

    def insert(self, index, field: Field):
        if not isinstance(field, Field):
            raise TypeError("FieldCollection only holds Field instances, not %r" % (field,))
        if field.name in self._index:
            return
        self._fields.insert(index, field)
        self._index[field.name] = field

    add = MutableSequence.append

    def clear(self):
        self._fields.clear()
        self._index.clear()

    def get(self, name: str) -> Field | None:
        """ Return the field named ``name``, or ``None``. """
        return self._index.get(name)

    def names(self) -> list[str]:
        return [field.name for field in self._fields]

    def clone(self) -> FieldCollection:
        """ Return a shallow copy; fields themselves are shared. """
        return FieldCollection(self._fields)

    def sort_by_name(self) -> None:
        """ Sort the fields of this collection by name, in place. """
        self._fields.sort(key=attrgetter('name'))
