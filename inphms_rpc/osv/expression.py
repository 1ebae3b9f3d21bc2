# -*- coding: utf-8 -*-
# Part of Inphms, see License file for full copyright and licensing details.

""" Domain expression processing

The main duty of this module is to validate search filters built by the
caller and to convert them to the domain format expected by ``search``.

A domain is a list of criteria, each criterion being either a triple
``(field_name, operator, value)`` or one of the prefix logical operators
``'&'``, ``'|'`` and ``'!'``. The arity of ``'&'`` and ``'|'`` is 2, the arity
of ``'!'`` is 1; criteria without operator between them are implicitly
AND-ed. Here is an example of searching for partners named *ABC* from Belgium
or Germany whose language is not English::

    [('name', '=', 'ABC'),
     '!', ('language.code', '=', 'en_US'),
     '|', ('country_id.code', '=', 'be'),
          ('country_id.code', '=', 'de')]

The ``'&'`` is omitted as it is the default. What this domain really
represents is::

    (name is 'ABC' AND (language is NOT english) AND (country is Belgium OR Germany))

Values are coerced according to the type of the field they are compared
with, so that callers may pass strings (e.g. read from a CSV file or the
command line) and still send properly typed values over the wire.
"""
from __future__ import annotations

import enum
import logging
import re
import typing
from collections.abc import Iterable
from datetime import date

from ..exceptions import UserError, ValidationError
from ..fields import FieldCollection, FieldType, INTEGER_TYPES
from ..tools import DEFAULT_SERVER_DATE_FORMAT, FILTER_DATETIME_FORMAT

_logger = logging.getLogger(__name__)

# Domain operators.
NOT_OPERATOR = '!'
OR_OPERATOR = '|'
AND_OPERATOR = '&'
DOMAIN_OPERATORS = (NOT_OPERATOR, OR_OPERATOR, AND_OPERATOR)
OPERATOR_ARITY = {NOT_OPERATOR: 1, OR_OPERATOR: 2, AND_OPERATOR: 2}

# Comparators accepted in a filter triple. 'is null' and 'is not null' are
# client side shortcuts, rewritten before the domain is sent.
TERM_OPERATORS = (
    '=', '!=', '>', '>=', '<', '<=', 'like', 'ilike', 'is null', 'is not null',
    'in', 'not in', 'child_of', 'parent_left', 'parent_right',
)

# commas not preceded by a backslash
CSV_SPLIT_RE = re.compile(r'(?<!\\),')
CSV_UNESCAPE_RE = re.compile(r'\\(?=,)')
CSV_ESCAPE_RE = re.compile(r'(?<!\\),')

ID_FIELD = 'id'


class FilterOperator(enum.Enum):
    """ Logical operators used to combine filters. """
    AND = AND_OPERATOR
    OR = OR_OPERATOR
    NOT = NOT_OPERATOR

    @classmethod
    def get(cls, value) -> FilterOperator | None:
        """ Return the operator named or spelled ``value``, or ``None``. """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            if value.upper() in cls.__members__:
                return cls[value.upper()]
            for member in cls:
                if member.value == value:
                    return member
        return None


def get_operators() -> list[str]:
    """ Operators supported by :meth:`FilterCollection.add`. """
    return ["", "NOT", "OR"]


def get_comparators() -> list[str]:
    """ Comparators supported in filter triples. """
    return list(TERM_OPERATORS)


def csv_encode_string(value: str) -> str:
    """ Escape the commas of ``value`` so that it can be used as one entry of
    a comma separated ``in`` filter value::

        names = ','.join(csv_encode_string(name) for name in ["A, B", "C"])
        filters.add('name', 'in', names)

    Passing a list of values is the preferred way of filtering on several
    values; use this only when a single string is required.
    """
    return CSV_ESCAPE_RE.sub(r'\\,', value)


def csv_decode_string(value: str) -> str:
    """ Reverse of :func:`csv_encode_string`. """
    return CSV_UNESCAPE_RE.sub('', value)


class FilterCollection:
    """ Ordered list of filters, to be validated against the fields of a
    model before being used in a search.

    ::

        filters = FilterCollection()
        filters.add('customer_rank', '>', 0)
        filters.add(FilterOperator.OR)
        filters.add('name', 'ilike', 'ACME')
        filters.add('ref', '=', 'A001')

    Terms are not checked when added, only when validated.
    """
    __slots__ = ['_filters']

    def __init__(self, *terms):
        self._filters: list = []
        for term in terms:
            if isinstance(term, (list, tuple)):
                self.add(*term)
            else:
                self.add(term)

    def __len__(self):
        return len(self._filters)

    def __iter__(self):
        return iter(self._filters)

    def __repr__(self):
        return "%s(%r)" % (type(self).__name__, self._filters)

    def add(self, *args, index: int | None = None) -> None:
        """ Append a filter triple ``add(field_name, comparator, value)`` or a
        logical operator ``add(FilterOperator.OR)``. ``AND`` is implicit and
        never stored.

        :param index: insert the term at this position instead of appending
        """
        if index is None:
            index = len(self._filters)
        if len(args) == 1:
            operator = FilterOperator.get(args[0])
            if operator is None:
                raise UserError("Unknown filter operator %r, expected one of AND, OR, NOT" % (args[0],))
            if operator is not FilterOperator.AND:
                self._filters.insert(index, operator.value)
            return
        if len(args) != 3:
            raise UserError("Filters are either an operator or a (field, comparator, value) triple, got %r" % (args,))
        field_name, comparator, value = args
        if field_name is None:
            raise UserError("First filter parameter is mandatory. Please read the Inphms help.")
        if comparator is None:
            raise UserError("Second filter parameter is mandatory. Please read the Inphms help.")
        self._filters.insert(index, (field_name, comparator, value))

    def insert(self, index: int, *args) -> None:
        self.add(*args, index=index)

    def clear(self) -> None:
        """ Remove all filters. """
        self._filters.clear()

    def size(self) -> int:
        return len(self._filters)

    def get_filters(self) -> list:
        """ Return the raw terms, in order. """
        return list(self._filters)


def _check_operator_arity(terms: list) -> None:
    """ Check that every logical operator has enough terms after it: two for
    ``'|'``, one for ``'!'``. Any term counts, the nesting of the operands is
    left to the server. ``'&'`` is implicit between terms and never checked.
    """
    for position, term in enumerate(terms):
        if not isinstance(term, str):
            continue
        if term not in OPERATOR_ARITY:
            raise ValidationError("Unknown domain operator %r at position %d" % (term, position))
        arity = OPERATOR_ARITY[term]
        trailing = len(terms) - position - 1
        if term != AND_OPERATOR and trailing < arity:
            raise ValidationError(
                "Operator %r at position %d expects %d filter(s) after it, found %d"
                % (term, position, arity, trailing))


def _to_boolean(field_name, comparator, value):
    if not isinstance(value, str):
        return value
    first = value[:1].lower()
    if first in ('1', 'y', 't'):
        return True
    if first in ('0', 'n', 'f'):
        return False
    raise ValidationError("Unknown boolean %r for filter (%r, %r, ...)" % (value, field_name, comparator))


def _to_float(value):
    if isinstance(value, (list, tuple)):
        return [float(str(item)) for item in value]
    return float(str(value))


def _to_list(value, as_integers: bool) -> list:
    if isinstance(value, str):
        entries = [csv_decode_string(entry) for entry in CSV_SPLIT_RE.split(value)]
        return [int(entry) for entry in entries] if as_integers else entries
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


def validate_term(term, fields: FieldCollection) -> tuple[str, str, typing.Any]:
    """ Validate one ``(field_name, comparator, value)`` triple against
    ``fields`` and return it with its value coerced for the wire.

    :raise ValidationError: if the field is unknown or computed, or the value
        cannot be converted
    """
    if not isinstance(term, (list, tuple)) or len(term) != 3:
        raise ValidationError("Filters aren't in the correct format, expected (field, comparator, value): %r" % (term,))

    field_name, comparator, value = term
    field_name = str(field_name)
    comparator = str(comparator)
    field = fields.get(field_name)

    if field is not None and field.is_computed:
        raise ValidationError("Can not search on function field %s" % field_name)
    if field is None and field_name != ID_FIELD:
        raise ValidationError("Unknown filter field %s" % field_name)

    field_type = field.type if field is not None else FieldType.INTEGER
    try:
        if comparator == 'is null':
            comparator, value = '=', False
        elif comparator == 'is not null':
            comparator, value = '!=', False
        elif field_type == FieldType.BOOLEAN and not isinstance(value, bool):
            value = _to_boolean(field_name, comparator, value)
        elif field_type == FieldType.FLOAT and not isinstance(value, float):
            value = _to_float(value)
        elif field_type == FieldType.DATE and isinstance(value, date):
            value = value.strftime(DEFAULT_SERVER_DATE_FORMAT)
        elif field_type == FieldType.DATETIME and isinstance(value, date):
            value = value.strftime(FILTER_DATETIME_FORMAT)
        elif comparator == '=':
            if not isinstance(value, int) and field_type in (FieldType.INTEGER, FieldType.MANY2ONE):
                value = int(str(value))
        elif comparator.lower() in ('in', 'not in'):
            value = _to_list(value, field_type in INTEGER_TYPES)
    except (TypeError, ValueError) as exc:
        raise ValidationError("Invalid value %r for filter (%r, %r, ...) on a %s field" % (
            value, field_name, comparator, field_type.value)) from exc

    return (field_name, comparator, value)


def validate_filters(filters: FilterCollection | Iterable | None, fields: FieldCollection) -> list:
    """ Validate ``filters`` against the fields of a model and return a domain
    suitable for the ``search`` function.

    :param filters: a :class:`FilterCollection`, a list of terms, or ``None``
        (no filtering)
    :param fields: all the fields of the searched model
    :raise ValidationError: if any term is malformed; no partial domain is
        returned
    """
    if filters is None:
        return []
    terms = filters.get_filters() if isinstance(filters, FilterCollection) else list(filters)

    _check_operator_arity(terms)

    domain = []
    for term in terms:
        if term is None:
            raise ValidationError("null filter parameter is not allowed")
        if isinstance(term, str):
            domain.append(term)
            continue
        domain.append(validate_term(term, fields))
    _logger.debug("validated domain %r", domain)
    return domain
