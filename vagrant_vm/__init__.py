__version__ = "0.1.0"

from vagrant_vm.exceptions import (  # noqa: E402
    NotFoundError,
    PersistenceError,
    ProcessError,
    VmError,
)
from vagrant_vm.registry import Entry, Registry, load, save  # noqa: E402
from vagrant_vm.stubs import VagrantProtocol  # noqa: E402
from vagrant_vm.vagrant import Vagrant  # noqa: E402
from vagrant_vm.dispatcher import Dispatcher  # noqa: E402

__all__ = [
    "Dispatcher",
    "Entry",
    "NotFoundError",
    "PersistenceError",
    "ProcessError",
    "Registry",
    "Vagrant",
    "VagrantProtocol",
    "VmError",
    "load",
    "save",
]
