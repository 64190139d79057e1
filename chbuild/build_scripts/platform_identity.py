#!/usr/bin/env python3
# -- coding: utf-8 --
#
# platform_identity.py
# chbuild
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
Target and host platform descriptors.

The target/host triples come from the build-script environment (TARGET and
HOST, set by Cargo). The build machine OS is a separate runtime value,
HostOs, because Android toolchain directories are named after the machine
running the compiler, not after the triple being built for.
"""

import ntpath
import platform
import posixpath
from dataclasses import dataclass
from enum import Enum

from chbuild.utils.context.errors import MissingEnvironment, UnsupportedHostError
from chbuild.utils.context.result import CliResult


class HostOs(Enum):
    DARWIN = "darwin"
    LINUX = "linux"
    WINDOWS = "windows"

    @classmethod
    def current(cls, system=None):
        """
        Resolve the build machine OS from platform.system().

        Args:
            system: Override for platform.system(), mainly for tests

        Raises:
            UnsupportedHostError: For any OS without prebuilt NDK toolchains
        """
        name = (system if system is not None else platform.system()).lower()
        for host_os in cls:
            if host_os.value == name:
                return host_os
        raise UnsupportedHostError(name)

    @property
    def pathsep(self) -> str:
        return ";" if self is HostOs.WINDOWS else ":"

    def join(self, *parts) -> str:
        if self is HostOs.WINDOWS:
            return ntpath.join(*parts)
        return posixpath.join(*parts)


@dataclass(frozen=True)
class PlatformIdentity:
    target: str
    host: str

    def is_msvc_on_windows(self) -> bool:
        return "msvc" in self.target and "windows" in self.host

    def is_android(self) -> bool:
        return "android" in self.target

    def is_native(self) -> bool:
        return self.target == self.host

    def host_is_openbsd(self) -> bool:
        return "openbsd" in self.host

    def is_x86_64(self) -> bool:
        return "x86_64" in self.target


def read_platform_identity(environ) -> CliResult:
    """
    Read TARGET and HOST from the environment.

    Returns:
        CliResult: PlatformIdentity on success, MissingEnvironment otherwise
    """
    for key in ("TARGET", "HOST"):
        if key not in environ:
            return CliResult.failure(MissingEnvironment(key))
    return CliResult.success(
        PlatformIdentity(target=environ["TARGET"], host=environ["HOST"])
    )
