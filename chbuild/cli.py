#
# Copyright 2024 chbuild Project Authors. All rights reserved.
# Use of this source code is governed by a MIT-style
# license that can be found at
#
# https://opensource.org/license/MIT
#
# The above copyright notice and this permission
# notice shall be included in all copies or
# substantial portions of the Software.

import os
import sys
import importlib
import argparse

from chbuild.utils.context.namespace import CliNameSpace
from chbuild.utils.context.context import CliContext
from chbuild.utils.context.command import CliCommand

SCRIPT_PATH = os.path.split(os.path.realpath(__file__))[0]
PACKAGE_NAME = os.path.basename(SCRIPT_PATH)

DEFAULT_SUBCOMMAND = "build"


# Root Class for Command Line Interface
class Cli(CliCommand):
    def description(self) -> str:
        return """CHBUILD - native helper builder for the crypto library

Compiles the AES-NI and utility helpers (C, or MASM on MSVC) into one static
archive. Normally run by the crate's build script with no arguments.

USAGE:
    chbuild [command] [options]

COMMANDS:
    build       Build the helper archive (default)
    plan        Print the compilation plan as JSON
    check       Check environment variables, sources and toolchain

For more information on a specific command:
    chbuild <command> --help
        """

    def get_command_list(self) -> list:
        arr = []
        for command in os.listdir(os.path.join(SCRIPT_PATH, "commands")):
            if command.startswith(("_", "test_")) or not command.endswith(".py"):
                continue
            arr.append(os.path.splitext(os.path.basename(command))[0])
        return sorted(arr)

    def get_parser(self, add_help=True) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="chbuild",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            description=self.description(),
            add_help=add_help,
        )
        parser.add_argument(
            "subcommand",
            metavar=f"{self.get_command_list()}",
            type=str,
            nargs="?",
            default=DEFAULT_SUBCOMMAND,
            choices=self.get_command_list(),
        )
        return parser

    def cli(self) -> CliNameSpace:
        # chbuild --help, but not chbuild build --help
        if len(sys.argv) == 2 and sys.argv[1] in ["--help", "-h"]:
            self.get_parser().print_help()
            sys.exit(0)
        args, unknown = self.get_parser(add_help=False).parse_known_args(
            sys.argv[1:], namespace=CliNameSpace()
        )
        return args

    def load_command(self, subcommand) -> CliCommand:
        module = importlib.import_module(f"{PACKAGE_NAME}.commands.{subcommand}")
        klass = getattr(module, subcommand.capitalize())
        return klass()

    def exec(self, context: CliContext, args: CliNameSpace):
        sub_cmd = self.load_command(args.subcommand)
        sub_cmd.exec(context, sub_cmd.cli())


def main():
    cmd = Cli()
    cmd.exec(CliContext(), cmd.cli())


if __name__ == "__main__":
    main()
