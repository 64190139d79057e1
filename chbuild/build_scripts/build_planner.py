#!/usr/bin/env python3
# -- coding: utf-8 --
#
# build_planner.py
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
Source selection and compiler configuration for the crypto helpers.

Two variants of the helpers exist:
- MASM sources (.asm) for MSVC targets built on Windows
- C sources with inline assembly for every other target

plan() picks one of them for a PlatformIdentity and returns a BuildPlan.
It only reads the environment mapping it is given and never spawns a
process, so every branch can be tested on any machine.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from chbuild.build_scripts.build_android import locate_android_toolchains
from chbuild.build_scripts.build_env import get_search_path, patch_search_path
from chbuild.build_scripts.build_utils import DEFAULT_SRC_DIR
from chbuild.build_scripts.platform_identity import HostOs, PlatformIdentity
from chbuild.utils.context.errors import BuildError, MissingEnvironment
from chbuild.utils.context.result import CliResult

ARCHIVE_NAME = "lib_rust_crypto_helpers.a"

ASM_SOURCES = ("util_helpers.asm", "aesni_helpers.asm")
C_SOURCES = ("util_helpers.c", "aesni_helpers.c")


@dataclass
class CompilationConfig:
    source_files: List[str]
    output_archive_name: str = ARCHIVE_NAME
    defines: Dict[str, Optional[str]] = field(default_factory=dict)
    compiler_override: Optional[str] = None
    include_dirs: List[str] = field(default_factory=list)

    def is_assembly(self) -> bool:
        return all(src.endswith(".asm") for src in self.source_files)

    def to_dict(self):
        return {
            "source_files": list(self.source_files),
            "defines": dict(self.defines),
            "compiler_override": self.compiler_override,
            "include_dirs": list(self.include_dirs),
            "output_archive_name": self.output_archive_name,
        }


@dataclass
class BuildPlan:
    config: CompilationConfig
    # None unless the Android branch appended the NDK toolchains
    search_path: Optional[str] = None

    def to_dict(self):
        return {"config": self.config.to_dict(), "search_path": self.search_path}


def _sources(src_dir, names):
    return [os.path.join(src_dir, name) for name in names]


def select_compiler_override(identity: PlatformIdentity, environ) -> Optional[str]:
    """
    Pick a compiler when the user did not set CC.

    OpenBSD hosts get clang: the base GCC there rejects some of the inline
    assembly in aesni_helpers.c. Native builds get cc. Cross builds keep
    the invoker's target-prefixed default.
    """
    if "CC" in environ:
        return None
    if identity.host_is_openbsd():
        return "clang"
    if identity.is_native():
        return "cc"
    return None


def plan_msvc(identity: PlatformIdentity, src_dir=DEFAULT_SRC_DIR) -> BuildPlan:
    defines = {}
    if identity.is_x86_64():
        defines["X64"] = None
    config = CompilationConfig(
        source_files=_sources(src_dir, ASM_SOURCES),
        defines=defines,
    )
    return BuildPlan(config=config)


def plan_android(config: CompilationConfig, environ, host_os=None) -> str:
    """
    Add the NDK sysroot headers to config and return the patched PATH.

    Raises:
        MissingEnvironment: If NDK_HOME is not set
        UnsupportedHostError: If the build machine OS has no NDK prebuilts
    """
    if "NDK_HOME" not in environ:
        raise MissingEnvironment("NDK_HOME", "required for android targets")
    if host_os is None:
        host_os = HostOs.current()

    location = locate_android_toolchains(environ["NDK_HOME"], host_os)
    config.include_dirs.append(location.sysroot_include)
    return patch_search_path(
        get_search_path(environ), location.compiler_dirs, host_os.pathsep
    )


def plan(identity: PlatformIdentity, environ, host_os=None, src_dir=DEFAULT_SRC_DIR) -> CliResult:
    """
    Decide sources, defines, include dirs and compiler for a build.

    Args:
        identity: TARGET/HOST of this build
        environ: Environment mapping (CC, NDK_HOME, PATH are consulted)
        host_os: Build machine OS; resolved from platform.system() when
            the android branch needs it and none is given
        src_dir: Directory holding the helper sources

    Returns:
        CliResult: BuildPlan on success, a BuildError otherwise
    """
    if identity.is_msvc_on_windows():
        return CliResult.success(plan_msvc(identity, src_dir))

    config = CompilationConfig(source_files=_sources(src_dir, C_SOURCES))
    search_path = None
    if identity.is_android():
        try:
            search_path = plan_android(config, environ, host_os)
        except BuildError as e:
            return CliResult.failure(e)

    config.compiler_override = select_compiler_override(identity, environ)
    return CliResult.success(BuildPlan(config=config, search_path=search_path))
