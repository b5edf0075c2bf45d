"""Tests for the registry and its config file."""

import os
import stat

import pytest

from vagrant_vm import Entry, PersistenceError, Registry, load, save
from vagrant_vm.registry import default_vagrant_path, dumps, loads


class TestRegistry:
    """In-memory mutations."""

    def test_add_relative_path_is_made_absolute(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        registry = Registry()
        registry.add("web", "projects/web")
        entry = registry.get("web")
        assert os.path.isabs(entry.path)
        assert entry.path == os.path.join(os.path.realpath(tmp_path), "projects", "web")

    def test_add_absolute_path_is_kept(self, tmp_path):
        registry = Registry()
        registry.add("web", str(tmp_path))
        assert registry.get("web") == Entry("web", str(tmp_path))

    def test_add_new_name_returns_none(self, tmp_path):
        assert Registry().add("web", str(tmp_path)) is None

    def test_add_existing_name_returns_previous(self, tmp_path):
        registry = Registry()
        first = tmp_path / "first"
        second = tmp_path / "second"
        registry.add("web", str(first))

        previous = registry.add("web", str(second))

        assert previous == Entry("web", str(first))
        assert registry.get("web").path == str(second)
        assert len(registry.entries) == 1

    def test_add_empty_name_rejected(self, tmp_path):
        with pytest.raises(ValueError, match="must not be empty"):
            Registry().add("", str(tmp_path))

    def test_remove_returns_entry(self, tmp_path):
        registry = Registry()
        registry.add("web", str(tmp_path))
        assert registry.remove("web") == Entry("web", str(tmp_path))
        assert registry.get("web") is None

    def test_remove_absent_is_noop(self, tmp_path):
        registry = Registry()
        registry.add("web", str(tmp_path))
        before = dict(registry.entries)

        assert registry.remove("db") is None
        assert registry.entries == before

    def test_get_absent(self):
        assert Registry().get("nope") is None

    def test_list_sorted_by_name(self, tmp_path):
        registry = Registry()
        for name in ("web", "db", "cache", "api"):
            registry.add(name, str(tmp_path / name))
        assert [e.name for e in registry.list()] == ["api", "cache", "db", "web"]

    def test_keys_match_entry_names(self, tmp_path):
        registry = Registry()
        registry.add("web", str(tmp_path))
        registry.add("db", str(tmp_path))
        assert all(key == entry.name for key, entry in registry.entries.items())

    def test_default_vagrant_path(self):
        assert Registry().vagrant_path == default_vagrant_path()
        assert default_vagrant_path() in ("vagrant", "vagrant.exe")


def test_load_missing_file_gives_defaults(tmp_path):
    registry = load(tmp_path / "missing.toml")
    assert registry.entries == {}
    assert registry.vagrant_path == default_vagrant_path()


def test_save_creates_parent_directories(tmp_path):
    path = tmp_path / "a" / "b" / "config.toml"
    save(Registry(), path)
    assert path.is_file()


def test_save_layout(tmp_path):
    registry = Registry(vagrant_path="/usr/bin/vagrant")
    registry.add("web", "/srv/web")
    registry.add("db", "/home/u/proj")
    path = tmp_path / "config.toml"

    save(registry, path)

    assert path.read_text() == (
        'vagrant_path = "/usr/bin/vagrant"\n'
        "\n"
        "[vm_list]\n"
        'db = "/home/u/proj"\n'
        'web = "/srv/web"\n'
    )


def test_save_keeps_file_mode(tmp_path):
    path = tmp_path / "config.toml"
    save(Registry(), path)
    os.chmod(path, 0o644)

    save(Registry(vagrant_path="/opt/vagrant/bin/vagrant"), path)

    assert stat.S_IMODE(os.stat(path).st_mode) == 0o644
    assert load(path).vagrant_path == "/opt/vagrant/bin/vagrant"


def test_save_leaves_no_temp_files(tmp_path):
    save(Registry(), tmp_path / "config.toml")
    assert os.listdir(tmp_path) == ["config.toml"]


def test_round_trip(tmp_path):
    registry = Registry(vagrant_path="vagrant")
    registry.add("web", "/srv/web")
    registry.add("db", "/home/u/proj")
    registry.add("with space", "/home/u/my project")
    path = tmp_path / "config.toml"

    save(registry, path)
    first = path.read_bytes()
    loaded = load(path)
    save(loaded, path)

    assert loaded == registry
    assert path.read_bytes() == first


def test_load_without_keys_uses_defaults(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("")
    registry = load(path)
    assert registry.entries == {}
    assert registry.vagrant_path == default_vagrant_path()


@pytest.mark.parametrize(
    "text, match",
    [
        ("vagrant_path = [", "not valid TOML"),
        ("vagrant_path = 3\n", "vagrant_path must be a non-empty string"),
        ('vm_list = "web"\n', "vm_list must be a table"),
        ("[vm_list]\nweb = 1\n", "path of 'web'"),
        ('editor = "vim"\n', "unknown keys: editor"),
        ('[vm_list]\nweb = "rel/dir"\n', "path of 'web' must be absolute"),
        ('[vm_list]\n"" = "/x"\n', "entry name must not be empty"),
    ],
)
def test_load_malformed(tmp_path, text, match):
    path = tmp_path / "config.toml"
    path.write_text(text)
    with pytest.raises(PersistenceError, match=match):
        load(path)


def test_load_unreadable(tmp_path):
    # A directory exists but cannot be read as a file.
    path = tmp_path / "config.toml"
    path.mkdir()
    with pytest.raises(PersistenceError, match="cannot read config file"):
        load(path)


def test_save_unwritable(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    with pytest.raises(PersistenceError, match="cannot write config file"):
        save(Registry(), blocker / "config.toml")


def test_loads_dumps():
    registry = loads('vagrant_path = "vagrant"\n\n[vm_list]\nweb = "/srv/web"\n')
    assert registry.get("web") == Entry("web", "/srv/web")
    assert dumps(registry) == 'vagrant_path = "vagrant"\n\n[vm_list]\nweb = "/srv/web"\n'
