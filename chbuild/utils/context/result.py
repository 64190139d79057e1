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


class CliResult:
    def __init__(self, value=None, error=None):
        self.value = value
        self.error = error

    def is_success(self):
        return self.error is None

    def is_failure(self):
        return self.error is not None

    def get_value(self, default=None):
        if self.is_success():
            return self.value
        else:
            return default

    def get_error(self, default=None):
        if self.is_failure():
            return self.error
        else:
            return default

    @classmethod
    def success(cls, value):
        return cls(value=value)

    @classmethod
    def failure(cls, error):
        return cls(error=error)

    def __repr__(self):
        if self.is_success():
            return f"CliResult(value={self.value!r})"
        return f"CliResult(error={self.error!r})"
