# Part of Inphms, see License file for full copyright and licensing details.
"""
Flat, tabular view of rows, as used for CSV exports and console output.

Every field becomes one column, except many2one fields which become two: the
id and the display name of the related record.
"""
from __future__ import annotations

import typing
from datetime import date

from inphms_rpc.fields import Field, FieldCollection, FieldType

if typing.TYPE_CHECKING:
    from inphms_rpc.models import Row

ID_FIELD = 'id'

_PYTHON_TYPES = {
    FieldType.BINARY: bytes,
    FieldType.BOOLEAN: bool,
    FieldType.INTEGER: int,
    FieldType.FLOAT: float,
    FieldType.DATE: date,
    FieldType.DATETIME: date,
}


class FlatViewField(typing.NamedTuple):
    """ One column of a flat view.

    ``source_index`` is the position of the column value within the raw
    value of the source field (0 for the id and 1 for the name of a
    many2one), or -1 when the whole value is used.
    """
    unique_id: str
    source_field: Field | None
    source_index: int
    related_model: str
    name: str
    label: str
    type: type


class FlatViewFieldCollection(list):

    def sort_by_field_name(self, id_first: bool = True) -> None:
        """ Sort the columns by name, keeping ``id`` first if asked. """
        self.sort(key=lambda fld: (not (id_first and fld.name == ID_FIELD), fld.name))

    def names(self) -> list[str]:
        return [fld.name for fld in self]


def get_fields(model_name: str, fields: FieldCollection) -> FlatViewFieldCollection:
    """ Return the columns of a flat view of ``fields``. """
    result = FlatViewFieldCollection()
    result.append(FlatViewField(ID_FIELD, None, -1, model_name, ID_FIELD, "Database ID", int))
    for fld in fields:
        label = fld.description or fld.name
        if fld.type == FieldType.MANY2ONE:
            result.append(FlatViewField(
                fld.name + "##id", fld, 0, fld.relation, fld.name + "_id", label + "/Id", int))
            result.append(FlatViewField(
                fld.name + "##name", fld, 1, fld.relation, fld.name + "_name", label + "/Name", str))
        else:
            result.append(FlatViewField(
                fld.name, fld, -1, model_name, fld.name, label, _PYTHON_TYPES.get(fld.type, str)))
    return result


def get_field_names(model_name: str, fields: FieldCollection) -> list[str]:
    return get_fields(model_name, fields).names()


def get_original_field_names(fields: FlatViewFieldCollection) -> list[str]:
    """ Names of the source fields of ``fields``, once each, in order. """
    names = []
    for fld in fields:
        if fld.source_field is None:
            continue
        if fld.source_field.name not in names:
            names.append(fld.source_field.name)
    return names


def get_row_value(row: Row, fld: FlatViewField):
    """ Value of the column ``fld`` for ``row``; lists of ids are joined
    with commas.
    """
    if fld.name == ID_FIELD:
        value = row.get(ID_FIELD)
    else:
        value = row.get(fld.source_field)

    if fld.source_index >= 0 and isinstance(value, (list, tuple)):
        value = value[fld.source_index] if len(value) > fld.source_index else None

    if isinstance(value, (list, tuple)):
        value = ",".join(str(item) for item in value if item is not None)
    return value
