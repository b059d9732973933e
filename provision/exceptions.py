# provision/exceptions.py
# -*- coding: utf-8 -*-
"""
Exception types raised by provisioning steps, the parameter resolver and the
template renderer.
"""

import subprocess
from typing import Sequence


class ProvisioningError(Exception):
    """Base class for every failure raised by this package."""


class PreconditionError(ProvisioningError):
    """A mandatory precondition of a step does not hold."""


class InputError(ProvisioningError):
    """A required input is missing or invalid (parameters, fetched secrets)."""


class TemplateError(ProvisioningError):
    """A template could not be built or rendered with the supplied values."""


class CommandError(ProvisioningError):
    """
    An external command exited with a non-zero status.

    The message carries the command line, the exit code and the last line of
    the combined output, which is usually the proximate cause reported by the
    tool itself.
    """

    def __init__(self, command: Sequence[str], exit_code: int, output: str = ""):
        self.command = list(command)
        self.exit_code = exit_code
        self.output = output or ""
        stripped = self.output.strip()
        cause = stripped.splitlines()[-1] if stripped else "no output"
        super().__init__(
            f"Command `{subprocess.list2cmdline(self.command)}` failed "
            f"(rc {exit_code}): {cause}"
        )
