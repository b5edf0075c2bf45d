"""Pytest configuration for vagrant-vm tests."""

import os
import subprocess

import pytest

from vagrant_vm import Registry
from vagrant_vm.dispatcher import Dispatcher


class RecordingVagrant:
    """Stands in for Vagrant: records each call instead of spawning a process."""

    def __init__(self, returncode=0):
        self.returncode = returncode
        self.calls = []

    def subcommand(self, command, options):
        self.calls.append(("subcommand", os.getcwd(), [command, *options]))
        return subprocess.CompletedProcess([command, *options], self.returncode)

    def raw(self, options):
        self.calls.append(("raw", os.getcwd(), list(options)))
        return subprocess.CompletedProcess(list(options), self.returncode)


@pytest.fixture(scope="function", autouse=True)
def restore_cwd():
    """Dispatching changes directory; put it back after each test."""
    original_dir = os.getcwd()
    yield
    os.chdir(original_dir)


@pytest.fixture
def config_file(tmp_path):
    return str(tmp_path / "config" / "config.toml")


@pytest.fixture
def vagrant():
    return RecordingVagrant()


@pytest.fixture
def web_dir(tmp_path):
    path = tmp_path / "srv" / "web"
    path.mkdir(parents=True)
    return os.path.realpath(path)


@pytest.fixture
def make_dispatcher(config_file, vagrant):
    def _make(registry=None, answer=""):
        prompts = []

        def confirm(prompt):
            prompts.append(prompt)
            return answer

        dispatcher = Dispatcher(
            registry if registry is not None else Registry(),
            config_file,
            vagrant,
            confirm=confirm,
        )
        dispatcher.prompts = prompts
        return dispatcher

    return _make
