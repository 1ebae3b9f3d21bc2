# Part of Inphms. See LICENSE file for full copyright and licensing details.
import sys
from pathlib import Path

import inphms_rpc

commands = {}
class Command:
    name = None
    def __init_subclass__(cls):
        cls.name = cls.name or cls.__name__.lower()
        commands[cls.name] = cls

    def parse_config(self, args):
        """ Load the configuration and return the arguments left over. """
        inphms_rpc.tools.config.parser.prog = f'{Path(sys.argv[0]).name} {self.name}'
        return inphms_rpc.tools.config.parse_config(args, setup_logging=True)

    def get_session(self):
        return inphms_rpc.http.Session.from_config().start_session()

INPHMS_RPC_HELP = """\
Inphms RPC client, use '{inphms_bin} <command> --help' for connection options.

Available commands:
    {command_list}

Use '{inphms_bin} <command> --help' for individual command help."""

class Help(Command):
    """ Display list of available commands """
    def run(self, args):
        padding = max([len(cmd) for cmd in commands]) + 2
        command_list = "\n    ".join([
            "    {}{}".format(name.ljust(padding), (command.__doc__ or "").strip())
            for name, command in sorted(commands.items())
        ])
        print(INPHMS_RPC_HELP.format(
            inphms_bin=Path(sys.argv[0]).name,
            command_list=command_list
        ))

def main(args=None):
    args = sys.argv[1:] if args is None else list(args)

    # ? if no args, default to `help`
    command = "help"

    if len(args) and not args[0].startswith("-"):
        command = args[0]
        args = args[1:]

    if command in commands:
        i = commands[command]()
        return i.run(args)
    else:
        sys.exit('Unknown command %r' % (command,))
