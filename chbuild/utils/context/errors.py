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

"""
Error kinds carried in CliResult values.

All of them are fatal: the build command prints the message to stderr
and exits with a non-zero status.
"""


class BuildError(Exception):
    """Base exception for build configuration and compilation errors."""


class MissingEnvironment(BuildError):
    """A required environment variable is not set."""

    def __init__(self, variable, reason=None):
        self.variable = variable
        self.reason = reason
        message = f"environment variable {variable} is not set"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class UnsupportedHostError(BuildError):
    """The build machine OS has no prebuilt Android toolchains."""

    def __init__(self, system):
        self.system = system
        super().__init__(
            f"unsupported build host '{system}', expected one of darwin, linux, windows"
        )


class CompilerInvocationError(BuildError):
    """A compiler, assembler or archiver process exited with failure."""

    def __init__(self, command, returncode, output=""):
        self.command = list(command)
        self.returncode = returncode
        self.output = output
        super().__init__(
            f"command {self.command[0]!r} failed with exit code {returncode}"
        )


class ConfigError(BuildError):
    """CHBUILD.toml exists but cannot be parsed."""

    def __init__(self, path, reason):
        self.path = path
        super().__init__(f"invalid {path}: {reason}")


class OutputDirError(BuildError):
    """OUT_DIR or the archive inside it cannot be prepared."""

    def __init__(self, path, reason):
        self.path = path
        super().__init__(f"cannot prepare {path}: {reason}")
