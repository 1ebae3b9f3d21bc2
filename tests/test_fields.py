import datetime

import pytest
import pytz

from inphms_rpc.exceptions import ValidationError
from inphms_rpc.fields import Field, FieldCollection, FieldType, SelectionOption

from .conftest import PARTNER_FIELDS, partner_fields


def test_field_defaults():
    field = Field('x', {})
    assert field.type is FieldType.CHAR
    assert field.required is False
    assert field.readonly is False
    assert field.store is True
    assert field.selectable is True
    assert field.size == 64
    assert field.relation == ""
    assert field.is_computed is False
    assert field.description is None


@pytest.mark.parametrize('wire_type, expected', [
    ('many2one', FieldType.MANY2ONE),
    ('Many2One', FieldType.MANY2ONE),
    ('DATETIME', FieldType.DATETIME),
    ('html', FieldType.CHAR),
    ('monetary', FieldType.CHAR),
    (None, FieldType.CHAR),
    (42, FieldType.CHAR),
])
def test_field_type_is_lenient(wire_type, expected):
    assert Field('x', {'type': wire_type}).type is expected


def test_field_properties():
    field = Field('write_date', PARTNER_FIELDS['write_date'])
    assert field.readonly is True
    assert field.description == 'Last Updated on'

    field = Field('country_id', PARTNER_FIELDS['country_id'])
    assert field.relation == 'res.country'
    assert field.relational is True

    assert Field('name', PARTNER_FIELDS['name']).size == 128
    assert Field('x', {'size': False}).size == 64
    assert Field('x', {'readonly': 0}).readonly is False
    assert Field('display_name', PARTNER_FIELDS['display_name']).is_computed is True
    assert Field('x', {'domain': "[('a', '=', 1)]"}).get_field_property('domain') == "[('a', '=', 1)]"


def test_selection_options():
    field = Field('type', PARTNER_FIELDS['type'])
    assert field.get_selection_options() == [
        SelectionOption('contact', 'Contact'),
        SelectionOption('invoice', 'Invoice Address'),
    ]
    assert Field('name', PARTNER_FIELDS['name']).get_selection_options() is None


def test_state_properties():
    field = Field('amount', {
        'type': 'float',
        'states': {'draft': [['readonly', False]], 'done': [['readonly', True], ['required', True]]},
    })
    assert field.get_state_properties('readonly') == [['draft', False], ['done', True]]
    assert field.get_state_properties('required') == [['done', True]]
    assert Field('x', {}).get_state_properties('readonly') == []


def test_collection_names_are_unique():
    fields = FieldCollection()
    fields.add(Field('name', {'type': 'char'}))
    fields.add(Field('name', {'type': 'text'}))
    fields.append(Field('active', {'type': 'boolean'}))
    assert fields.names() == ['name', 'active']
    assert fields.get('name').type is FieldType.CHAR
    assert 'active' in fields
    assert Field('active', {}) in fields
    assert 'missing' not in fields
    assert fields.get('missing') is None


def test_collection_rejects_non_fields():
    with pytest.raises(TypeError):
        FieldCollection().add('name')


def test_collection_delete_and_sort():
    fields = partner_fields('name', 'active', 'color')
    del fields[0]
    assert fields.names() == ['active', 'color']
    assert 'name' not in fields

    fields = partner_fields('name', 'active', 'color')
    fields.sort_by_name()
    assert fields.names() == ['active', 'color', 'name']


def test_collection_clone_is_independent():
    fields = partner_fields('name', 'active')
    clone = fields.clone()
    clone.add(Field('color', {'type': 'integer'}))
    assert fields.names() == ['name', 'active']
    assert clone.names() == ['name', 'active', 'color']
    assert clone[0] is fields[0]


def test_convert_to_read_null_sentinel():
    for name, props in PARTNER_FIELDS.items():
        field = Field(name, props)
        if field.type is FieldType.BOOLEAN:
            assert field.convert_to_read(False) is False
        else:
            assert field.convert_to_read(False) is None
    assert Field('category_id', PARTNER_FIELDS['category_id']).convert_to_read([]) is None


def test_convert_to_read_dates():
    date_field = Field('date', PARTNER_FIELDS['date'])
    assert date_field.convert_to_read('2024-02-29') == datetime.date(2024, 2, 29)
    assert date_field.convert_to_read('not a date') is None

    datetime_field = Field('write_date', PARTNER_FIELDS['write_date'])
    assert datetime_field.convert_to_read('2024-02-29 13:45:10') == datetime.datetime(2024, 2, 29, 13, 45, 10)
    assert datetime_field.convert_to_read('2024-02-29') is None


@pytest.mark.parametrize('name, value, expected', [
    ('active', True, True),
    ('active', False, False),
    ('credit_limit', '12.5', 12.5),
    ('credit_limit', 3, 3.0),
    ('color', '1.0', 1),
    ('color', 4, 4),
    ('country_id', [21, 'Belgium'], 21),
    ('country_id', '21', 21),
    ('child_ids', [7, None], 7),
    ('child_ids', [7], 7),
    ('child_ids', 7, 7),
    ('child_ids', [], False),
    ('category_id', [1, 2], [[6, 0, [1, 2]]]),
    ('category_id', '1,2', '1,2'),
    ('date', datetime.date(2024, 1, 31), '2024-01-31'),
    ('write_date', datetime.datetime(2024, 1, 31, 8, 0, 5), '2024-01-31 08:00:05'),
    ('name', 'ACME', 'ACME'),
    ('comment', 12, '12'),
    ('name', None, False),
    ('country_id', None, False),
    ('name', False, False),
])
def test_convert_to_write(name, value, expected):
    assert Field(name, PARTNER_FIELDS[name]).convert_to_write(value) == expected


def test_convert_to_write_in_utc():
    field = Field('write_date', PARTNER_FIELDS['write_date'])
    brussels = pytz.timezone('Europe/Brussels')
    value = brussels.localize(datetime.datetime(2024, 7, 1, 10, 0, 0))
    assert field.convert_to_write(value) == '2024-07-01 08:00:00'


def test_convert_to_write_invalid_value():
    with pytest.raises(ValidationError, match="credit_limit"):
        Field('credit_limit', PARTNER_FIELDS['credit_limit']).convert_to_write('a lot')
    with pytest.raises(ValidationError, match="country_id"):
        Field('country_id', PARTNER_FIELDS['country_id']).convert_to_write('Belgium')


@pytest.mark.parametrize('value', [[7, 8, 9], [7, 8], (7, 8, 9)])
def test_convert_to_write_one2many_id_list(value):
    field = Field('child_ids', PARTNER_FIELDS['child_ids'])
    with pytest.raises(ValidationError, match="child_ids"):
        field.convert_to_write(value)


@pytest.mark.parametrize('name, value', [
    ('active', True),
    ('active', False),
    ('credit_limit', 1250.75),
    ('color', 3),
    ('date', datetime.date(2023, 12, 24)),
    ('write_date', datetime.datetime(2023, 12, 24, 18, 30, 0)),
    ('name', 'Azure Interior'),
    ('type', 'invoice'),
])
def test_write_then_read_gives_value_back(name, value):
    field = Field(name, PARTNER_FIELDS[name])
    assert field.convert_to_read(field.convert_to_write(value)) == value


def test_write_then_read_relational_ids():
    many2one = Field('country_id', PARTNER_FIELDS['country_id'])
    assert many2one.convert_to_read(many2one.convert_to_write([21, 'Belgium'])) == 21

    many2many = Field('category_id', PARTNER_FIELDS['category_id'])
    [[command, _zero, ids]] = many2many.convert_to_write([3, 1, 2])
    assert command == 6
    assert set(many2many.convert_to_read(ids)) == {1, 2, 3}
