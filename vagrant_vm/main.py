from __future__ import annotations

import argparse
import logging
import os
import shlex
import sys
from typing import Sequence

from vagrant_vm import __version__
from vagrant_vm.dispatcher import (
    FAILURE_EXIT_CODE,
    AddRequest,
    BackupConfigFileRequest,
    ConfigFilePathRequest,
    Dispatcher,
    FindVagrantfilesRequest,
    GlobalRawRequest,
    ListRequest,
    RawRequest,
    RemoveRequest,
    Request,
    RunRequest,
)
from vagrant_vm.exceptions import VmError
from vagrant_vm.registry import load, save
from vagrant_vm.utilities import CONFIG_ENV, resolve_config_file
from vagrant_vm.vagrant import Vagrant

logger = logging.getLogger(__name__)

LOG_FORMAT = "vm: %(levelname)s: %(message)s"

_USAGE = (
    "%(prog)s [options] {list,add,remove,backup-config-file,find-vagrantfile,config-file-path} ...\n"
    "       %(prog)s [options] NAME [SUBCOMMAND] [OPTIONS ...]\n"
    "       %(prog)s [options] NAME -- VAGRANT_ARGS ...\n"
    "       %(prog)s [options] NAME -c 'VAGRANT COMMAND LINE'\n"
    "       %(prog)s [options] -- VAGRANT_ARGS ..."
)

_EPILOG = """\
forwarding:
  NAME up                     run `vagrant up` in the directory registered as NAME
  NAME ssh -- -L 8080:localhost:8080
                              everything after the subcommand is passed to vagrant
  NAME -- status --machine-readable
                              pass the arguments to vagrant as they are
  NAME -c 'plugin list'       split the command line like a shell and pass it on
  -- plugin list              run vagrant in the current directory

Repository: https://github.com/fujitayy/vm
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vm",
        usage=_USAGE,
        description="A vagrant wrapper for working directory independent execution.",
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config",
        action="store",
        dest="config",
        help=f"Path to the config file (overrides ${CONFIG_ENV}).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        dest="verbose",
        help="Log debug messages to stderr.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    sub.add_parser("list", help="Show entries in vm_list of the config file.")

    add = sub.add_parser("add", help="Add an entry to vm_list of the config file.")
    add.add_argument("name", metavar="NAME", help="a name for the new entry")
    add.add_argument("path", metavar="PATH", help="the Vagrant project directory")

    remove = sub.add_parser("remove", help="Remove an entry from vm_list.")
    remove.add_argument("name", metavar="NAME", help="the entry to remove")
    remove.add_argument(
        "-f",
        "--force",
        action="store_true",
        dest="force",
        help="Remove without asking for confirmation.",
    )

    sub.add_parser(
        "backup-config-file",
        aliases=["backup_config_file"],
        help="Copy the config file next to itself with a timestamp suffix.",
    )

    find = sub.add_parser(
        "find-vagrantfile",
        aliases=["find_vagrantfiles"],
        help="Print the paths of Vagrantfiles below PATH.",
    )
    find.add_argument("base_path", metavar="PATH", nargs="?", default=".")

    sub.add_parser("config-file-path", help="Print the config file path.")

    return parser


_COMMANDS = {
    "list",
    "add",
    "remove",
    "backup-config-file",
    "backup_config_file",
    "find-vagrantfile",
    "find_vagrantfiles",
    "config-file-path",
}


def _split_global_options(argv: Sequence[str]) -> tuple[list[str], list[str]]:
    # Our own options only count before the first positional, so that
    # `vm web ssh -v` hands `-v` to vagrant.
    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg == "--" or not arg.startswith("-"):
            break
        i += 2 if arg == "--config" else 1
    return list(argv[:i]), list(argv[i:])


def _request_from_namespace(ns: argparse.Namespace) -> Request:
    if ns.command == "list":
        return ListRequest()
    if ns.command == "add":
        return AddRequest(name=ns.name, path=ns.path)
    if ns.command == "remove":
        return RemoveRequest(name=ns.name, force=ns.force)
    if ns.command in ("backup-config-file", "backup_config_file"):
        return BackupConfigFileRequest()
    if ns.command in ("find-vagrantfile", "find_vagrantfiles"):
        return FindVagrantfilesRequest(base_path=ns.base_path)
    return ConfigFilePathRequest()


def _forward_request(
    parser: argparse.ArgumentParser, name: str, tail: list[str]
) -> Request:
    if not tail:
        return RawRequest(name=name)
    head = tail[0]
    if head == "--":
        return RawRequest(name=name, options=tuple(tail[1:]))
    if head in ("-c", "--command"):
        if len(tail) != 2:
            parser.error(f"{head} takes exactly one argument (quote the command line)")
        try:
            options = shlex.split(tail[1])
        except ValueError as e:
            parser.error(f"cannot split {tail[1]!r}: {e}")
        return RawRequest(name=name, options=tuple(options))
    if head.startswith("-"):
        return RawRequest(name=name, options=tuple(tail))

    options = tail[1:]
    if options[:1] == ["--"]:
        options = options[1:]
    return RunRequest(name=name, command=head, options=tuple(options))


def parse_args(
    argv: Sequence[str], parser: argparse.ArgumentParser | None = None
) -> tuple[argparse.Namespace, Request]:
    """
    Turn a command line into our options and one request.
    Bad input ends the process through `parser.error` (exit status 2).
    """
    parser = parser or build_parser()
    global_args, rest = _split_global_options(argv)

    if rest and rest[0] in _COMMANDS:
        ns = parser.parse_args(global_args + rest)
        if getattr(ns, "name", None) == "":
            parser.error("NAME must not be empty")
        return ns, _request_from_namespace(ns)

    ns = parser.parse_args(global_args)
    if not rest:
        parser.error("a command or a VM name is required")
    if rest[0] == "--":
        return ns, GlobalRawRequest(options=tuple(rest[1:]))
    return ns, _forward_request(parser, rest[0], rest[1:])


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def main(argv: Sequence[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    options, request = parse_args(argv)
    configure_logging(options.verbose)

    config_file = resolve_config_file(options.config)
    logger.debug("using config file %s", config_file)

    try:
        registry = load(config_file)
        if not os.path.exists(config_file):
            save(registry, config_file)
        dispatcher = Dispatcher(registry, config_file, Vagrant(registry.vagrant_path))
        return dispatcher.dispatch(request)
    except VmError as e:
        logger.error("%s", e)
        return FAILURE_EXIT_CODE


def cli() -> None:
    sys.exit(main())
