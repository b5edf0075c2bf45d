from __future__ import annotations

import subprocess
from typing import Protocol, Sequence


class VagrantProtocol(Protocol):
    """What the dispatcher needs from a vagrant runner."""

    def subcommand(
        self, command: str, options: Sequence[str]
    ) -> subprocess.CompletedProcess[bytes]: ...

    def raw(self, options: Sequence[str]) -> subprocess.CompletedProcess[bytes]: ...
