from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass, field
from typing import Callable, Union

from vagrant_vm.exceptions import NotFoundError
from vagrant_vm.registry import Entry, Registry, save
from vagrant_vm.stubs import VagrantProtocol
from vagrant_vm.utilities import (
    backup_config_file,
    find_vagrantfiles,
    stdin_confirmation,
)

logger = logging.getLogger(__name__)

# Exit code used when a forwarded process ends without one (killed by a signal)
# and when the named VM is not registered.
FAILURE_EXIT_CODE = 1


@dataclass(frozen=True)
class ListRequest:
    pass


@dataclass(frozen=True)
class AddRequest:
    name: str
    path: str


@dataclass(frozen=True)
class RemoveRequest:
    name: str
    force: bool = False


@dataclass(frozen=True)
class BackupConfigFileRequest:
    pass


@dataclass(frozen=True)
class FindVagrantfilesRequest:
    base_path: str = "."


@dataclass(frozen=True)
class ConfigFilePathRequest:
    pass


@dataclass(frozen=True)
class RunRequest:
    """`vagrant <command> <options...>` inside the directory registered as `name`."""

    name: str
    command: str
    options: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class RawRequest:
    """`vagrant <options...>` inside the directory registered as `name`."""

    name: str
    options: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class GlobalRawRequest:
    """`vagrant <options...>` in the current directory."""

    options: tuple[str, ...] = field(default_factory=tuple)


Request = Union[
    ListRequest,
    AddRequest,
    RemoveRequest,
    BackupConfigFileRequest,
    FindVagrantfilesRequest,
    ConfigFilePathRequest,
    RunRequest,
    RawRequest,
    GlobalRawRequest,
]

Confirm = Callable[[str], str]


def exit_code(status: subprocess.CompletedProcess[bytes]) -> int:
    # Popen reports death by signal N as returncode -N.
    if status.returncode is None or status.returncode < 0:
        return FAILURE_EXIT_CODE
    return status.returncode


def _is_yes(answer: str) -> bool:
    return answer[:1].lower() == "y"


class Dispatcher:
    """
    Handles one request against a loaded registry.

    Mutating requests write the registry back to `config_file` once they
    succeed; everything else leaves the file untouched.
    """

    def __init__(
        self,
        registry: Registry,
        config_file: str,
        vagrant: VagrantProtocol,
        confirm: Confirm = stdin_confirmation,
    ) -> None:
        self.registry = registry
        self.config_file = config_file
        self.vagrant = vagrant
        self.confirm = confirm

    def dispatch(self, request: Request) -> int:
        if isinstance(request, ListRequest):
            return self.list()
        if isinstance(request, AddRequest):
            return self.add(request.name, request.path)
        if isinstance(request, RemoveRequest):
            return self.remove(request.name, force=request.force)
        if isinstance(request, BackupConfigFileRequest):
            return self.backup_config_file()
        if isinstance(request, FindVagrantfilesRequest):
            return self.find_vagrantfiles(request.base_path)
        if isinstance(request, ConfigFilePathRequest):
            return self.config_file_path()
        if isinstance(request, RunRequest):
            return self.run(request.name, request.command, request.options)
        if isinstance(request, RawRequest):
            return self.raw(request.name, request.options)
        if isinstance(request, GlobalRawRequest):
            return self.global_raw(request.options)
        raise TypeError(f"unsupported request: {request!r}")

    def list(self) -> int:
        for entry in self.registry.list():
            print(f"{entry.name}: {entry.path}")
        return 0

    def add(self, name: str, path: str) -> int:
        previous = self.registry.add(name, path)
        if previous is not None:
            logger.warning(
                "overwrote entry { name: %s, path: %s }", previous.name, previous.path
            )
        save(self.registry, self.config_file)
        return 0

    def remove(self, name: str, force: bool = False) -> int:
        entry = self.registry.get(name)
        if entry is None:
            logger.warning("%s is not found in vm_list", name)
            return 0

        if not force and not self._confirm_removal(entry):
            logger.debug("removal of %s aborted", name)
            return 0

        self.registry.remove(name)
        save(self.registry, self.config_file)
        return 0

    def _confirm_removal(self, entry: Entry) -> bool:
        prompt = f"Delete this entry {{ name: {entry.name}, path: {entry.path} }} (y/N) "
        return _is_yes(self.confirm(prompt))

    def backup_config_file(self) -> int:
        print(backup_config_file(self.config_file))
        return 0

    def find_vagrantfiles(self, base_path: str) -> int:
        for path in find_vagrantfiles(base_path):
            print(path)
        return 0

    def config_file_path(self) -> int:
        print(os.path.abspath(self.config_file))
        return 0

    def run(self, name: str, command: str, options: tuple[str, ...] = ()) -> int:
        if not self._enter(name):
            return FAILURE_EXIT_CODE
        return exit_code(self.vagrant.subcommand(command, list(options)))

    def raw(self, name: str, options: tuple[str, ...] = ()) -> int:
        if not self._enter(name):
            return FAILURE_EXIT_CODE
        return exit_code(self.vagrant.raw(list(options)))

    def global_raw(self, options: tuple[str, ...] = ()) -> int:
        return exit_code(self.vagrant.raw(list(options)))

    def _enter(self, name: str) -> bool:
        entry = self.registry.get(name)
        if entry is None:
            logger.error("%s is not found in vm_list", name)
            return False
        logger.debug("changing directory to %s", entry.path)
        try:
            os.chdir(entry.path)
        except OSError as e:
            raise NotFoundError(
                f"directory of {name!r} is not accessible: {entry.path!r}"
            ) from e
        return True
