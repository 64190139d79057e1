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

"""Planning and compilation of the native crypto helpers."""

__all__ = [
    "build_android",
    "build_env",
    "build_invoker",
    "build_planner",
    "build_utils",
    "platform_identity",
]
