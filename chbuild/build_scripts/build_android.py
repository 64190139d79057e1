#!/usr/bin/env python3
# -- coding: utf-8 --
#
# build_android.py
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
Android NDK toolchain locations.

The helpers are cross-compiled with the standalone GCC 4.9 toolchains that
ship inside older NDKs (r10 - r17). Each ABI has its own prebuilt bin
directory, named after the build machine:

    $NDK_HOME/toolchains/aarch64-linux-android-4.9/prebuilt/linux-x86_64/bin
    $NDK_HOME/toolchains/arm-linux-androideabi-4.9/prebuilt/linux-x86_64/bin
    $NDK_HOME/toolchains/x86-4.9/prebuilt/linux-x86_64/bin

Headers always come from the android-21 arm64 sysroot, whatever the ABI.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from chbuild.build_scripts.platform_identity import HostOs

ANDROID_TOOLCHAIN_VERSION = "4.9"

# API level 21 is the first one with arm64 headers
ANDROID_INCLUDE = "platforms/android-21/arch-arm64/usr/include"


class AndroidAbi(Enum):
    AARCH64 = "aarch64-linux-android"
    ARM = "arm-linux-androideabi"
    X86 = "x86"

    @property
    def toolchain_name(self) -> str:
        return self.value


# search order of the toolchain bin directories
ANDROID_ABIS = (AndroidAbi.AARCH64, AndroidAbi.ARM, AndroidAbi.X86)


@dataclass(frozen=True)
class AndroidToolchainLocation:
    compiler_dirs: Tuple[str, ...]
    sysroot_include: str


def get_android_compiler_path(abi: AndroidAbi, host_os: HostOs) -> str:
    """
    Get the NDK-relative bin directory of the GCC toolchain for an ABI.

    Args:
        abi: Android ABI
        host_os: OS of the machine running the build

    Returns:
        str: e.g. "toolchains/x86-4.9/prebuilt/darwin-x86_64/bin"
    """
    return (
        f"toolchains/{abi.toolchain_name}-{ANDROID_TOOLCHAIN_VERSION}"
        f"/prebuilt/{host_os.value}-x86_64/bin"
    )


def locate_android_toolchains(ndk_root: str, host_os: HostOs) -> AndroidToolchainLocation:
    compiler_dirs = tuple(
        host_os.join(ndk_root, get_android_compiler_path(abi, host_os))
        for abi in ANDROID_ABIS
    )
    return AndroidToolchainLocation(
        compiler_dirs=compiler_dirs,
        sysroot_include=host_os.join(ndk_root, ANDROID_INCLUDE),
    )
