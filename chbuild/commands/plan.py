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
import json
import argparse

from chbuild.commands.build import Build
from chbuild.utils.context.context import CliContext
from chbuild.utils.context.namespace import CliNameSpace


class Plan(Build):
    def description(self) -> str:
        return """
        Print the compilation plan as JSON without compiling anything.

        Reads the same environment as 'chbuild build'.

        Examples:
            TARGET=aarch64-linux-android HOST=x86_64-unknown-linux-gnu \\
                NDK_HOME=/opt/ndk chbuild plan
        """

    def cli(self) -> CliNameSpace:
        parser = argparse.ArgumentParser(
            prog="chbuild plan",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            description=self.description(),
        )
        module_name = os.path.splitext(os.path.basename(__file__))[0]
        input_argv = [x for x in sys.argv[1:] if x != module_name]
        args, unknown = parser.parse_known_args(input_argv, namespace=CliNameSpace())
        return args

    def exec(self, context: CliContext, args: CliNameSpace):
        result = self.prepare(context)
        if result.is_failure():
            self.fail(result.get_error())
        identity, build_config, build_plan = result.get_value()
        output = {
            "target": identity.target,
            "host": identity.host,
        }
        output.update(build_plan.to_dict())
        print(json.dumps(output, indent=2))
