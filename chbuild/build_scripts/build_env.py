#!/usr/bin/env python3
# -- coding: utf-8 --
#
# build_env.py
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
Executable search path handling for the compiler processes.

Nothing here touches os.environ. The patched PATH is a plain value that the
build command copies into the environment given to each child process.
"""

import os


def _path_key(environ):
    # Windows spells it "Path"
    for key in environ:
        if key.upper() == "PATH":
            return key
    return "PATH"


def get_search_path(environ, default=""):
    return environ.get(_path_key(environ), default)


def split_search_path(search_path, pathsep=os.pathsep):
    """
    Split a PATH string into its entries.

    Empty entries inside the string are kept: on POSIX they mean the
    current directory. Only an empty or None PATH has no entries.
    """
    if not search_path:
        return []
    return search_path.split(pathsep)


def patch_search_path(current_path, compiler_dirs, pathsep=os.pathsep):
    """
    Append toolchain directories to a search path.

    Existing entries keep their order and stay ahead of the new ones, so a
    compiler the user already has on PATH (or names through CC) wins over
    the NDK copies.

    Args:
        current_path: Current PATH value, may be None or empty
        compiler_dirs: Directories to append, in priority order
        pathsep: Separator of the build machine (":" or ";")

    Returns:
        str: The new PATH value
    """
    entries = split_search_path(current_path, pathsep)
    entries.extend(compiler_dirs)
    return pathsep.join(entries)


def apply_search_path(environ, search_path):
    """
    Return a copy of environ whose PATH is search_path.

    A None search_path means the plan did not change PATH.
    """
    patched = dict(environ)
    if search_path is not None:
        patched[_path_key(patched)] = search_path
    return patched
