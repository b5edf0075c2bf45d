from __future__ import annotations

import logging
import os
import shutil
import tempfile
from dataclasses import dataclass, field
from typing import Any

import toml

from vagrant_vm.exceptions import PersistenceError

logger = logging.getLogger(__name__)

_KEY_VAGRANT_PATH = "vagrant_path"
_KEY_VM_LIST = "vm_list"


def default_vagrant_path() -> str:
    return "vagrant.exe" if os.name == "nt" else "vagrant"


@dataclass(frozen=True)
class Entry:
    name: str
    path: str


@dataclass
class Registry:
    """
    Named aliases for vagrant project directories.

    Mutations only touch memory; callers persist with `save`.
    """

    vagrant_path: str = field(default_factory=default_vagrant_path)
    entries: dict[str, Entry] = field(default_factory=dict)

    def add(self, name: str, path: str | os.PathLike[str]) -> Entry | None:
        """
        Register `name` for `path`, made absolute against the current directory.
        Returns the entry it replaced, if any.
        """
        if not name:
            raise ValueError("entry name must not be empty")
        previous = self.entries.get(name)
        self.entries[name] = Entry(name=name, path=os.path.abspath(os.fspath(path)))
        return previous

    def remove(self, name: str) -> Entry | None:
        return self.entries.pop(name, None)

    def get(self, name: str) -> Entry | None:
        return self.entries.get(name)

    def list(self) -> list[Entry]:
        return [self.entries[name] for name in sorted(self.entries)]


def _from_document(doc: dict[str, Any], path: str) -> Registry:
    unknown = sorted(set(doc) - {_KEY_VAGRANT_PATH, _KEY_VM_LIST})
    if unknown:
        raise PersistenceError(
            f"config file {path!r} has unknown keys: " + ", ".join(unknown)
        )

    vagrant_path = doc.get(_KEY_VAGRANT_PATH, default_vagrant_path())
    if not isinstance(vagrant_path, str) or not vagrant_path:
        raise PersistenceError(
            f"config file {path!r}: {_KEY_VAGRANT_PATH} must be a non-empty string"
        )

    vm_list = doc.get(_KEY_VM_LIST, {})
    if not isinstance(vm_list, dict):
        raise PersistenceError(f"config file {path!r}: {_KEY_VM_LIST} must be a table")

    entries: dict[str, Entry] = {}
    for name, vm_path in vm_list.items():
        if not name:
            raise PersistenceError(f"config file {path!r}: entry name must not be empty")
        if not isinstance(vm_path, str) or not vm_path:
            raise PersistenceError(
                f"config file {path!r}: path of {name!r} must be a non-empty string"
            )
        if not os.path.isabs(vm_path):
            raise PersistenceError(
                f"config file {path!r}: path of {name!r} must be absolute, got {vm_path!r}"
            )
        entries[name] = Entry(name=name, path=vm_path)

    return Registry(vagrant_path=vagrant_path, entries=entries)


def _to_document(registry: Registry) -> dict[str, Any]:
    return {
        _KEY_VAGRANT_PATH: registry.vagrant_path,
        _KEY_VM_LIST: {e.name: e.path for e in registry.list()},
    }


def dumps(registry: Registry) -> str:
    return toml.dumps(_to_document(registry))


def loads(text: str, path: str = "<string>") -> Registry:
    try:
        doc = toml.loads(text)
    except toml.TomlDecodeError as e:
        raise PersistenceError(f"config file {path!r} is not valid TOML: {e}") from e
    return _from_document(doc, path)


def load(path: str | os.PathLike[str]) -> Registry:
    """
    Read the registry stored at `path`.
    A missing file is a first run and yields an empty registry with defaults.
    """
    path = os.fspath(path)
    if not os.path.exists(path):
        logger.debug("config file %s does not exist, using defaults", path)
        return Registry()

    try:
        with open(path, "r", encoding="utf-8") as fh:
            text = fh.read()
    except (OSError, UnicodeDecodeError) as e:
        raise PersistenceError(f"cannot read config file {path!r}: {e}") from e

    registry = loads(text, path)
    logger.debug("loaded %d entries from %s", len(registry.entries), path)
    return registry


def save(registry: Registry, path: str | os.PathLike[str]) -> None:
    """
    Write `registry` to `path` through a temporary sibling file that is renamed
    into place, so the final name never holds a partial write.
    """
    path = os.fspath(path)
    parent = os.path.dirname(os.path.abspath(path))
    text = dumps(registry)

    tmp_path: str | None = None
    try:
        os.makedirs(parent, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            prefix=os.path.basename(path) + ".", suffix=".tmp", dir=parent
        )
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as fh:
            fh.write(text)
        if os.path.exists(path):
            shutil.copymode(path, tmp_path)
        os.replace(tmp_path, path)
        tmp_path = None
    except OSError as e:
        raise PersistenceError(f"cannot write config file {path!r}: {e}") from e
    finally:
        if tmp_path is not None and os.path.exists(tmp_path):
            os.unlink(tmp_path)

    logger.debug("saved %d entries to %s", len(registry.entries), path)
