# Part of Inphms. See LICENSE file for full copyright and licensing details.

"""
Query commands: describe the fields of a model, search and count records.

    inphms-rpc fields res.partner -d demo -w admin
    inphms-rpc search res.partner name,email,country_id is_company = y -d demo
    inphms-rpc count res.partner OR customer_rank '>' 0 supplier_rank '>' 0
"""
import csv
import logging
import sys

from inphms_rpc.exceptions import UserError
from inphms_rpc.osv.expression import FilterCollection, FilterOperator
from inphms_rpc.tools import flatview

from .command import Command

_logger = logging.getLogger(__name__)


def parse_filters(args):
    """ Build a :class:`FilterCollection` from command line tokens: logical
    operators (``OR``, ``NOT``) stand alone, terms come as three tokens
    ``field comparator value``.
    """
    filters = FilterCollection()
    args = list(args)
    while args:
        if FilterOperator.get(args[0]) is not None:
            filters.add(args.pop(0))
            continue
        if len(args) < 3:
            raise UserError("Incomplete filter %r, expected: field comparator value" % (" ".join(args),))
        field_name, comparator, value = args[:3]
        del args[:3]
        filters.add(field_name, comparator, value)
    return filters


def _pop_model(args, usage):
    if not args:
        sys.exit("usage: %s" % usage)
    return args[0], args[1:]


class Fields(Command):
    """ List the fields of a model """
    def run(self, args):
        model_name, _args = _pop_model(self.parse_config(args), "fields <model>")
        with self.get_session() as session:
            fields = session.get_object_adapter(model_name).all_fields.clone()
        fields.sort_by_name()
        writer = csv.writer(sys.stdout, delimiter='\t', lineterminator='\n')
        writer.writerow(["name", "type", "relation", "required", "readonly", "description"])
        for field in fields:
            writer.writerow([
                field.name, field.type.value, field.relation,
                int(field.required), int(field.readonly), field.description or "",
            ])


class Search(Command):
    """ Search records and print them as tab separated values """
    def run(self, args):
        usage = "search <model> <field,field...> [field comparator value]..."
        model_name, args = _pop_model(self.parse_config(args), usage)
        if not args:
            sys.exit("usage: %s" % usage)
        field_names = [name.strip() for name in args[0].split(',') if name.strip()]
        filters = parse_filters(args[1:])

        with self.get_session() as session:
            adapter = session.get_object_adapter(model_name)
            rows = adapter.search_and_read_object(filters, field_names)

        columns = flatview.get_fields(model_name, rows.fields)
        writer = csv.writer(sys.stdout, delimiter='\t', lineterminator='\n')
        writer.writerow(columns.names())
        for row in rows:
            writer.writerow(["" if value is None else value
                             for value in (flatview.get_row_value(row, column) for column in columns)])
        _logger.info("%s: %d records", model_name, len(rows))


class Count(Command):
    """ Print the number of records matching filters """
    def run(self, args):
        model_name, args = _pop_model(self.parse_config(args), "count <model> [field comparator value]...")
        filters = parse_filters(args)
        with self.get_session() as session:
            print(session.get_object_adapter(model_name).get_object_count(filters))
