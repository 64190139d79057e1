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
import shutil
import argparse

from chbuild.build_scripts.build_env import apply_search_path, get_search_path
from chbuild.build_scripts.build_invoker import BuildInvoker
from chbuild.commands.build import Build
from chbuild.utils.context.context import CliContext
from chbuild.utils.context.namespace import CliNameSpace


class Check(Build):
    def description(self) -> str:
        return """
        Check that the build environment can produce the helper archive.

        Verifies the required environment variables, the helper sources and
        that the compiler and archiver resolve on the (NDK-patched) PATH.

        --verbose only adds detail to this report (sources, include dirs).
        To echo every compiler command line during a build, set
        CHBUILD_VERBOSE=1 in the environment instead; the build command
        takes no flags.

        Examples:
            chbuild check
            chbuild check --verbose
        """

    def cli(self) -> CliNameSpace:
        parser = argparse.ArgumentParser(
            prog="chbuild check",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            description=self.description(),
        )
        parser.add_argument(
            "--verbose",
            action="store_true",
            help="Show detailed information",
        )
        module_name = os.path.splitext(os.path.basename(__file__))[0]
        input_argv = [x for x in sys.argv[1:] if x != module_name]
        args, unknown = parser.parse_known_args(input_argv, namespace=CliNameSpace())
        return args

    def exec(self, context: CliContext, args: CliNameSpace):
        print("🔍 Checking native helper build environment...\n")
        checker = BuildChecker(verbose=getattr(args, "verbose", False))
        checker.check(self, context)
        checker.print_summary()
        if checker.errors:
            sys.exit(1)


class BuildChecker:
    def __init__(self, verbose=False):
        self.verbose = verbose
        self.results = {}
        self.errors = []

    def print_success(self, msg):
        print(f"  ✅ {msg}")

    def print_error(self, msg):
        print(f"  ❌ {msg}")

    def print_info(self, msg):
        if self.verbose:
            print(f"  ℹ️  {msg}")

    def record(self, name, ok, msg):
        self.results[name] = ok
        if ok:
            self.print_success(msg)
        else:
            self.print_error(msg)
            self.errors.append(msg)

    def find_program(self, program, environ):
        return shutil.which(program, path=get_search_path(environ, os.defpath))

    def check(self, command: Build, context: CliContext):
        result = command.prepare(context)
        if result.is_failure():
            self.record("plan", False, str(result.get_error()))
            return
        identity, build_config, build_plan = result.get_value()
        self.record("plan", True, f"planned {identity.target} on {identity.host}")
        self.print_info(f"sources: {', '.join(build_plan.config.source_files)}")
        for inc in build_plan.config.include_dirs:
            self.print_info(f"include: {inc}")

        self.record(
            "OUT_DIR",
            "OUT_DIR" in context.environ,
            f"OUT_DIR = {context.environ.get('OUT_DIR', '(not set)')}",
        )

        for src in build_plan.config.source_files:
            self.record(src, os.path.isfile(src), f"source {src}")

        environ = apply_search_path(context.environ, build_plan.search_path)
        invoker = BuildInvoker(identity, environ, context.environ.get("OUT_DIR", ""))
        config = build_plan.config
        if config.is_assembly():
            tools = [invoker.get_assembler()[0], invoker.get_archiver()[0]]
        else:
            tools = [invoker.get_c_compiler(config)[0], invoker.get_archiver()[0]]
        for tool in tools:
            found = self.find_program(tool, environ)
            self.record(tool, found is not None, f"{tool} -> {found or 'not found'}")

    def print_summary(self):
        print(f"\n{'='*60}")
        passed = sum(1 for ok in self.results.values() if ok)
        print(f"  Total Checks: {len(self.results)}")
        print(f"  ✅ Passed: {passed}")
        print(f"  ❌ Failed: {len(self.errors)}")
        if not self.errors:
            print("  ✅ READY")
        else:
            print("  ❌ NOT READY")
