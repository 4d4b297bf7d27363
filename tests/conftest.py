from pathlib import Path

import pytest

from augtree.core import native
from augtree.core.augeas import Augeas
from augtree.core.native import AugeasLib
from tests.fake_augeas import FakeDll

HOSTS = """\
# static table lookup for hostnames
127.0.0.1 localhost
192.168.0.1 gateway.example.com gateway
"""


@pytest.fixture
def fake_dll() -> FakeDll:
    return FakeDll()


@pytest.fixture
def lib(fake_dll: FakeDll) -> AugeasLib:
    return AugeasLib(fake_dll, free=fake_dll.free)


@pytest.fixture
def root(tmp_path: Path) -> Path:
    """A filesystem root with an /etc/hosts file."""
    (tmp_path / "etc").mkdir()
    (tmp_path / "etc" / "hosts").write_text(HOSTS, encoding="utf-8")
    return tmp_path


@pytest.fixture
def aug(lib: AugeasLib, root: Path):
    a = Augeas(str(root), library=lib)
    yield a
    a.close()


@pytest.fixture
def default_library(monkeypatch, lib: AugeasLib) -> AugeasLib:
    """Make the fake the process-wide library (used by the CLI)."""
    monkeypatch.setattr(native, "_default_library", lib)
    return lib
