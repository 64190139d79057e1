#!/usr/bin/env python3
# -- coding: utf-8 --
#
# build_utils.py
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
Shared helpers for the build scripts:
- CHBUILD.toml loading
- Verbose switch and status output
- Archive naming
"""

import os
import sys

if sys.version_info >= (3, 11, 0, "alpha", 7):
    import tomllib
else:
    import tomli as tomllib

from chbuild.utils.context.errors import ConfigError

CONFIG_FILE_NAME = "CHBUILD.toml"

DEFAULT_SRC_DIR = "src"


def default_chbuild_config():
    return {
        "SRC_DIR": DEFAULT_SRC_DIR,
        "CFLAGS": [],
    }


def load_chbuild_config(project_dir):
    """
    Load build configuration from CHBUILD.toml.

    Falls back to default values if the file does not exist.

    Args:
        project_dir: Directory holding CHBUILD.toml (the crate root)

    Returns:
        dict: {"SRC_DIR": str, "CFLAGS": list}

    Raises:
        ConfigError: If the file exists but is not valid TOML
    """
    config_file = os.path.join(project_dir, CONFIG_FILE_NAME)
    config = default_chbuild_config()

    if not os.path.isfile(config_file):
        print(
            f"   ⚠️  Warning: {CONFIG_FILE_NAME} not found at {config_file}, using defaults",
            file=sys.stderr,
        )
        return config

    try:
        with open(config_file, "rb") as f:
            toml_data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(config_file, e) from e

    build = toml_data.get("build", {})
    config["SRC_DIR"] = build.get("src_dir", DEFAULT_SRC_DIR)
    cflags = build.get("cflags", [])
    if isinstance(cflags, str):
        cflags = cflags.split()
    config["CFLAGS"] = [str(flag) for flag in cflags]
    return config


def is_verbose(environ) -> bool:
    return environ.get("CHBUILD_VERBOSE", "0") not in ("", "0", "false")


def print_stage(title):
    print(f"\n==================chbuild {title}========================")


def print_status(message):
    print(f"[chbuild] {message}")


def print_error(message):
    print(f"[chbuild] ERROR: {message}", file=sys.stderr)


def get_link_name(archive_name: str) -> str:
    """
    Get the name passed to the linker for an archive file name.

    "lib_rust_crypto_helpers.a" links as "_rust_crypto_helpers".
    """
    name = archive_name
    if name.startswith("lib"):
        name = name[len("lib"):]
    if name.endswith(".a"):
        name = name[: -len(".a")]
    return name


def remove_file(path):
    if os.path.isfile(path):
        os.remove(path)
