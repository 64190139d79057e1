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
import argparse

from chbuild.build_scripts.build_env import apply_search_path
from chbuild.build_scripts.build_invoker import BuildInvoker
from chbuild.build_scripts.build_planner import plan
from chbuild.build_scripts.build_utils import (
    is_verbose,
    load_chbuild_config,
    print_error,
    print_stage,
    print_status,
)
from chbuild.build_scripts.platform_identity import read_platform_identity
from chbuild.utils.context.command import CliCommand
from chbuild.utils.context.context import CliContext
from chbuild.utils.context.errors import (
    CompilerInvocationError,
    ConfigError,
    MissingEnvironment,
)
from chbuild.utils.context.namespace import CliNameSpace
from chbuild.utils.context.result import CliResult

# changes to these must re-run the build script
RERUN_IF_ENV_CHANGED = ["CC", "AR", "CFLAGS", "NDK_HOME", "CHBUILD_VERBOSE"]


class Build(CliCommand):
    def description(self) -> str:
        return """Build the native crypto helper archive.

This is what the crate's build script runs. All inputs come from the
environment Cargo sets up for build scripts:

    TARGET, HOST     target and host triples (required)
    OUT_DIR          where objects and the archive are written (required)
    NDK_HOME         Android NDK root (required for android targets)
    CC, AR, CFLAGS   optional compiler, archiver and flags overrides
    OPT_LEVEL, DEBUG optimization level and debug info
    CHBUILD_VERBOSE  set to 1 to print every tool command line

The archive is lib_rust_crypto_helpers.a (_rust_crypto_helpers.lib for MSVC).
        """

    def cli(self) -> CliNameSpace:
        parser = argparse.ArgumentParser(
            prog="chbuild build",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            description=self.description(),
        )
        module_name = os.path.splitext(os.path.basename(__file__))[0]
        input_argv = [x for x in sys.argv[1:] if x != module_name]
        args, unknown = parser.parse_known_args(input_argv, namespace=CliNameSpace())
        return args

    def prepare(self, context: CliContext, host_os=None) -> CliResult:
        """
        Read the platform identity and config file, then plan the build.

        Returns:
            CliResult: (identity, build_config, build_plan) on success
        """
        identity_result = read_platform_identity(context.environ)
        if identity_result.is_failure():
            return identity_result
        identity = identity_result.get_value()

        try:
            build_config = load_chbuild_config(context.project_dir)
        except ConfigError as e:
            return CliResult.failure(e)
        src_dir = os.path.join(context.project_dir, build_config["SRC_DIR"])
        plan_result = plan(identity, context.environ, host_os=host_os, src_dir=src_dir)
        if plan_result.is_failure():
            return plan_result
        return CliResult.success((identity, build_config, plan_result.get_value()))

    def fail(self, error):
        print_error(str(error))
        if isinstance(error, CompilerInvocationError) and error.output:
            print(error.output, file=sys.stderr)
        sys.exit(1)

    def exec(self, context: CliContext, args: CliNameSpace):
        print_stage("build")
        result = self.prepare(context)
        if result.is_failure():
            self.fail(result.get_error())
        identity, build_config, build_plan = result.get_value()
        print_status(f"target: {identity.target}, host: {identity.host}")

        out_dir = context.environ.get("OUT_DIR")
        if out_dir is None:
            self.fail(MissingEnvironment("OUT_DIR"))

        invoker = BuildInvoker(
            identity,
            apply_search_path(context.environ, build_plan.search_path),
            out_dir,
            cflags=build_config["CFLAGS"],
            verbose=is_verbose(context.environ),
        )
        compile_result = invoker.compile(build_plan.config)
        if compile_result.is_failure():
            self.fail(compile_result.get_error())

        print_status(f"built {compile_result.get_value()}")
        for name in RERUN_IF_ENV_CHANGED:
            print(f"cargo:rerun-if-env-changed={name}")
        for line in invoker.link_directives(build_plan.config):
            print(line)
