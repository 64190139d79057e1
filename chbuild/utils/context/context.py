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


# This context data class to save the context of the command
class CliContext:
    def __init__(self, environ=None, project_dir=None):
        # snapshot, so the build never writes back into os.environ
        self.environ = dict(os.environ if environ is None else environ)
        self.project_dir = project_dir or self.environ.get(
            "CARGO_MANIFEST_DIR", os.getcwd()
        )
