from __future__ import annotations

import logging
import os
import shutil
import sys
from datetime import datetime

import platformdirs

from vagrant_vm.exceptions import NotFoundError, PersistenceError, ProcessError

logger = logging.getLogger(__name__)

APP_NAME = "vm"
APP_AUTHOR = "y8m"
CONFIG_FILE_NAME = "config.toml"
CONFIG_ENV = "VAGRANT_VM_CONFIG"
BACKUP_TIMESTAMP_FORMAT = "%Y-%m-%d-%H%M%S"


def require_bin(name: str) -> str:
    """Return the resolved executable for `name` or raise ProcessError."""
    found = shutil.which(name)
    if found is None:
        raise ProcessError(f"Missing required binary: {name}")
    return found


def default_config_file() -> str:
    return str(platformdirs.user_config_path(APP_NAME, APP_AUTHOR) / CONFIG_FILE_NAME)


def resolve_config_file(from_cli: str | None = None) -> str:
    """
    Pick the config file: CLI option, then $VAGRANT_VM_CONFIG, then the
    platform's per-user config directory.
    """
    if from_cli:
        return os.path.abspath(from_cli)
    from_env = os.getenv(CONFIG_ENV)
    if from_env and from_env.strip():
        return os.path.abspath(from_env.strip())
    return default_config_file()


def backup_file_name(config_file: str, now: datetime | None = None) -> str:
    stamp = (now or datetime.now()).strftime(BACKUP_TIMESTAMP_FORMAT)
    return f"{config_file}.{stamp}"


def backup_config_file(config_file: str, now: datetime | None = None) -> str:
    """
    Copy `config_file` next to itself with a local timestamp suffix.
    Refuses to overwrite an existing backup.
    """
    dest = backup_file_name(config_file, now)
    created = False
    try:
        with open(config_file, "rb") as src, open(dest, "xb") as dst:
            created = True
            shutil.copyfileobj(src, dst)
    except FileExistsError as e:
        raise PersistenceError(f"backup file already exists: {dest!r}") from e
    except OSError as e:
        if created and os.path.exists(dest):
            os.unlink(dest)
        raise PersistenceError(
            f"cannot back up {config_file!r} to {dest!r}: {e}"
        ) from e
    logger.debug("backed up %s to %s", config_file, dest)
    return dest


def find_vagrantfiles(base_path: str) -> list[str]:
    """
    Absolute paths of every file named `Vagrantfile` below `base_path`.
    Symlinked directories are not descended into.
    """
    base = os.path.abspath(base_path)
    if not os.path.isdir(base):
        raise NotFoundError(f"directory not found: {base!r}")

    found: list[str] = []
    for dirpath, _dirnames, filenames in os.walk(base, followlinks=False):
        if "Vagrantfile" in filenames:
            found.append(os.path.join(dirpath, "Vagrantfile"))
    return sorted(found)


def stdin_confirmation(prompt: str) -> str:
    """Show `prompt` and read a single character; empty string at end of input."""
    sys.stdout.write(prompt)
    sys.stdout.flush()
    return sys.stdin.read(1)
