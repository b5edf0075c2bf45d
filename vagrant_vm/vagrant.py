from __future__ import annotations

import logging
import subprocess
from typing import Sequence

from vagrant_vm.exceptions import ProcessError
from vagrant_vm.registry import default_vagrant_path
from vagrant_vm.utilities import require_bin

logger = logging.getLogger(__name__)


class Vagrant:
    """
    Runs the vagrant executable in the current working directory.

    Standard streams are inherited so interactive subcommands such as
    `ssh` behave as if vagrant was called directly. A nonzero exit status
    is returned, never raised.
    """

    def __init__(self, vagrant_path: str | None = None) -> None:
        self.vagrant_path = vagrant_path or default_vagrant_path()

    def subcommand(
        self, command: str, options: Sequence[str]
    ) -> subprocess.CompletedProcess[bytes]:
        return self._run([command, *options])

    def raw(self, options: Sequence[str]) -> subprocess.CompletedProcess[bytes]:
        return self._run(list(options))

    def _run(self, args: list[str]) -> subprocess.CompletedProcess[bytes]:
        executable = require_bin(self.vagrant_path)
        logger.debug("running %s %s", executable, " ".join(args))
        try:
            return subprocess.run([executable, *args], check=False)
        except OSError as e:
            raise ProcessError(f"cannot start {self.vagrant_path!r}: {e}") from e
