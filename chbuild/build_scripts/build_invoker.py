#!/usr/bin/env python3
# -- coding: utf-8 --
#
# build_invoker.py
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
Compiler driver for a CompilationConfig.

Compiles each source into an object file under OUT_DIR and bundles the
objects into one static archive:
- GNU-style targets: cc/gcc/clang + ar, producing lib_rust_crypto_helpers.a
- MSVC targets: cl.exe or ml64.exe/ml.exe + lib.exe, producing
  _rust_crypto_helpers.lib

Tool resolution (first match wins):
    C compiler:  plan override, $CC, <cross-prefix>-gcc, cc (cl.exe on MSVC)
    assembler:   ml64.exe for x86_64, ml.exe otherwise
    archiver:    lib.exe on MSVC, $AR, <cross-prefix>-ar, ar

Every command runs without a shell in the environment passed to the
invoker, so a PATH patched for the NDK is what resolves the tools.
"""

import os
import shlex
import shutil

from chbuild.build_scripts.build_env import get_search_path
from chbuild.build_scripts.build_utils import (
    get_link_name,
    print_status,
    remove_file,
)
from chbuild.utils.cmd.cmd_util import exec_command
from chbuild.utils.context.errors import CompilerInvocationError, OutputDirError
from chbuild.utils.context.result import CliResult

# GNU tool prefixes of cross toolchains, keyed by target triple
CROSS_COMPILE_PREFIX = {
    "aarch64-linux-android": "aarch64-linux-android",
    "arm-linux-androideabi": "arm-linux-androideabi",
    "armv7-linux-androideabi": "arm-linux-androideabi",
    "i686-linux-android": "i686-linux-android",
    "aarch64-unknown-linux-gnu": "aarch64-linux-gnu",
    "arm-unknown-linux-gnueabi": "arm-linux-gnueabi",
    "arm-unknown-linux-gnueabihf": "arm-linux-gnueabihf",
    "armv7-unknown-linux-gnueabihf": "arm-linux-gnueabihf",
    "i686-pc-windows-gnu": "i686-w64-mingw32",
    "x86_64-pc-windows-gnu": "x86_64-w64-mingw32",
    "mips-unknown-linux-gnu": "mips-linux-gnu",
    "mipsel-unknown-linux-gnu": "mipsel-linux-gnu",
    "powerpc-unknown-linux-gnu": "powerpc-linux-gnu",
    "powerpc64le-unknown-linux-gnu": "powerpc64le-linux-gnu",
}


def get_cross_prefix(target, host):
    if target == host:
        return None
    return CROSS_COMPILE_PREFIX.get(target)


def default_c_compiler(target, host):
    if "msvc" in target:
        return "cl.exe"
    prefix = get_cross_prefix(target, host)
    if prefix:
        return f"{prefix}-gcc"
    return "cc"


class BuildInvoker:
    def __init__(self, identity, environ, out_dir, cflags=(), verbose=False):
        self.identity = identity
        self.environ = dict(environ)
        self.out_dir = out_dir
        self.cflags = list(cflags)
        self.verbose = verbose

    def is_msvc(self) -> bool:
        return "msvc" in self.identity.target

    def get_c_compiler(self, config) -> list:
        if config.compiler_override:
            return [config.compiler_override]
        if self.environ.get("CC"):
            return shlex.split(self.environ["CC"])
        return [default_c_compiler(self.identity.target, self.identity.host)]

    def get_assembler(self) -> list:
        if self.identity.is_x86_64():
            return ["ml64.exe"]
        return ["ml.exe"]

    def get_archiver(self) -> list:
        if self.is_msvc():
            return ["lib.exe"]
        if self.environ.get("AR"):
            return shlex.split(self.environ["AR"])
        prefix = get_cross_prefix(self.identity.target, self.identity.host)
        if prefix:
            return [f"{prefix}-ar"]
        return ["ar"]

    def get_archive_path(self, config) -> str:
        if self.is_msvc():
            name = get_link_name(config.output_archive_name) + ".lib"
        else:
            name = config.output_archive_name
        return os.path.join(self.out_dir, name)

    def get_object_path(self, src) -> str:
        suffix = ".obj" if self.is_msvc() else ".o"
        return os.path.join(self.out_dir, os.path.basename(src) + suffix)

    def get_gnu_flags(self) -> list:
        target = self.identity.target
        flags = []
        if self.environ.get("OPT_LEVEL"):
            flags.append(f"-O{self.environ['OPT_LEVEL']}")
        if self.environ.get("DEBUG") == "true":
            flags.append("-g")
        if "windows" not in target:
            flags.extend(["-ffunction-sections", "-fdata-sections", "-fPIC"])
        if "x86_64" in target:
            flags.append("-m64")
        elif "i686" in target or "i586" in target:
            flags.append("-m32")
        return flags

    def get_msvc_flags(self) -> list:
        flags = ["/nologo", "/MD"]
        if self.environ.get("OPT_LEVEL", "0") != "0":
            flags.append("/O2")
        if self.environ.get("DEBUG") == "true":
            flags.append("/Z7")
        return flags

    def get_extra_cflags(self) -> list:
        return shlex.split(self.environ.get("CFLAGS", "")) + self.cflags

    def get_compile_command(self, config, src, obj) -> list:
        defines = []
        for name, value in config.defines.items():
            defines.append(name if value is None else f"{name}={value}")

        if src.endswith(".asm"):
            return (
                self.get_assembler()
                + ["/nologo", "/c", f"/Fo{obj}"]
                + [f"/D{d}" for d in defines]
                + [f"/I{inc}" for inc in config.include_dirs]
                + [src]
            )
        if self.is_msvc():
            return (
                self.get_c_compiler(config)
                + self.get_msvc_flags()
                + self.get_extra_cflags()
                + [f"/I{inc}" for inc in config.include_dirs]
                + [f"/D{d}" for d in defines]
                + ["/c", f"/Fo{obj}", src]
            )
        return (
            self.get_c_compiler(config)
            + self.get_gnu_flags()
            + self.get_extra_cflags()
            + [f"-I{inc}" for inc in config.include_dirs]
            + [f"-D{d}" for d in defines]
            + ["-c", "-o", obj, src]
        )

    def get_archive_command(self, archive, objects) -> list:
        if self.is_msvc():
            return self.get_archiver() + ["/nologo", f"/OUT:{archive}"] + list(objects)
        return self.get_archiver() + ["crs", archive] + list(objects)

    def resolve_program(self, command) -> list:
        """Look the program up on the build PATH, which may be NDK-patched."""
        found = shutil.which(command[0], path=get_search_path(self.environ, os.defpath))
        if found:
            return [found] + list(command[1:])
        return list(command)

    def run(self, command):
        """
        Run one tool.

        Raises:
            CompilerInvocationError: Non-zero exit, or the program is missing
        """
        if self.verbose:
            print_status("running: " + " ".join(command))
        try:
            err_code, output = exec_command(self.resolve_program(command), env=self.environ)
        except OSError as e:
            raise CompilerInvocationError(command, 127, str(e)) from e
        if err_code != 0:
            raise CompilerInvocationError(command, err_code, output)
        return output

    def compile(self, config) -> CliResult:
        """
        Build the static archive described by config.

        Returns:
            CliResult: archive path on success, OutputDirError or
            CompilerInvocationError otherwise. No archive is left behind on failure.
        """
        archive = self.get_archive_path(config)
        try:
            os.makedirs(self.out_dir, exist_ok=True)
            # ar appends to an existing archive
            remove_file(archive)
        except OSError as e:
            return CliResult.failure(OutputDirError(self.out_dir, e))

        objects = []
        try:
            for src in config.source_files:
                obj = self.get_object_path(src)
                print_status(f"compiling {src}")
                self.run(self.get_compile_command(config, src, obj))
                objects.append(obj)
            print_status(f"archiving {os.path.basename(archive)}")
            self.run(self.get_archive_command(archive, objects))
        except CompilerInvocationError as e:
            remove_file(archive)
            return CliResult.failure(e)
        return CliResult.success(archive)

    def link_directives(self, config) -> list:
        return [
            f"cargo:rustc-link-search=native={self.out_dir}",
            f"cargo:rustc-link-lib=static={get_link_name(config.output_archive_name)}",
        ]
