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

import subprocess
import time
from threading import Timer

# a single helper object never takes close to this long
DEFAULT_TIMEOUT_SECOND = 3600


def decode_bytes(input: bytes) -> str:
    """
    Decode compiler output, falling back to GBK for localized MSVC installs.
    """
    if not input:
        return ""
    try:
        return bytes.decode(input, "UTF-8")
    except UnicodeDecodeError:
        return bytes.decode(input, "GBK", errors="replace")


def exec_command(command, env=None, cwd=None):
    return exec_command_with_timeout_second(command, DEFAULT_TIMEOUT_SECOND, env, cwd)


def exec_command_with_timeout_second(
    command,
    timeout_second=DEFAULT_TIMEOUT_SECOND,
    env=None,
    cwd=None,
):
    """
    Run an argument list (no shell) and return (exit_code, output).

    stdout and stderr are merged so compiler diagnostics keep their order.
    A process still running after timeout_second is killed.
    """
    start_mills = int(time.time() * 1000)
    compile_popen = subprocess.Popen(
        list(command),
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        env=env,
        cwd=cwd,
    )
    timer = Timer(timeout_second, lambda process: process.kill(), [compile_popen])
    try:
        timer.start()
        stdout, _ = compile_popen.communicate()
    finally:
        timer.cancel()
    err_code = compile_popen.returncode
    err_msg = decode_bytes(stdout)
    if err_code == -9 and not err_msg:
        use_time = int(time.time() * 1000) - start_mills
        err_msg = f"Failed for timeout({err_code}), use_time: {use_time}ms"
    return err_code, err_msg
