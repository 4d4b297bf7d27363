"""Tests for the ctypes layer (augtree.core.native)."""

import ctypes
from pathlib import Path

import pytest

from augtree.core import native
from augtree.core.augeas import Augeas
from augtree.core.flags import Flags
from augtree.core.errors import CapabilityUnavailableError, LibraryLoadError
from augtree.core.native import AugeasLib, ErrorCode, ErrorDetails
from tests.fake_augeas import ERROR_SYMBOLS, FakeDll


def test_binding_sets_argtypes_and_restype(fake_dll: FakeDll, lib: AugeasLib):
    fn = fake_dll.aug_match
    assert fn.restype is ctypes.c_int
    assert fn.argtypes[0] is ctypes.c_void_p
    assert fn.argtypes[2] is ctypes.POINTER(ctypes.POINTER(ctypes.c_void_p))
    assert fake_dll.aug_init.restype is ctypes.c_void_p
    assert fake_dll.aug_close.restype is None


def test_missing_required_symbol_is_fatal():
    dll = FakeDll(missing=("aug_mv",))
    with pytest.raises(LibraryLoadError) as e:
        AugeasLib(dll, free=dll.free)
    assert "aug_mv" in str(e.value)


def test_missing_error_api_is_tolerated():
    dll = FakeDll(missing=ERROR_SYMBOLS)
    lib = AugeasLib(dll, free=dll.free)
    assert lib.has_error_api is False
    with pytest.raises(CapabilityUnavailableError):
        lib.error(1)


def test_partial_error_api_counts_as_missing():
    dll = FakeDll(missing=("aug_error_details",))
    lib = AugeasLib(dll, free=dll.free)
    assert lib.has_error_api is False


def test_init_forwards_none_for_absent_root(monkeypatch, lib: AugeasLib, root: Path, fake_dll: FakeDll):
    monkeypatch.setenv("AUGEAS_ROOT", str(root))
    handle = lib.init(None, None, 0)
    assert handle
    assert fake_dll.sessions[handle].root == str(root)


def test_init_returns_none_on_failure(lib: AugeasLib, tmp_path: Path):
    assert lib.init(str(tmp_path / "missing"), None, 0) is None


def test_get_reads_output_pointer(lib: AugeasLib, root: Path):
    h = lib.init(str(root), None, 0)
    assert lib.get(h, "/files/etc/hosts/1") == (1, "127.0.0.1 localhost")
    assert lib.get(h, "/files/etc/hosts/99") == (0, None)
    assert lib.get(h, "/files/etc/hosts/*")[0] == -1


def test_probe_passes_null_output(lib: AugeasLib, root: Path):
    h = lib.init(str(root), None, 0)
    assert lib.probe(h, "/files/etc/hosts/1") == 1
    assert lib.probe(h, "/files/nothing") == 0


def test_match_copies_strings_and_frees_native_memory(lib: AugeasLib, root: Path, fake_dll: FakeDll):
    h = lib.init(str(root), None, 0)
    count, paths = lib.match(h, "/files/etc/hosts/*")
    assert count == 2
    assert paths == ["/files/etc/hosts/1", "/files/etc/hosts/2"]
    # two strings plus the array
    assert len(fake_dll.freed) == 3
    assert fake_dll.outstanding == 0


def test_match_empty_result_frees_array(lib: AugeasLib, root: Path, fake_dll: FakeDll):
    h = lib.init(str(root), None, 0)
    assert lib.match(h, "/files/nothing") == (0, [])
    assert fake_dll.outstanding == 0


def test_match_error_returns_negative_count(lib: AugeasLib, root: Path, fake_dll: FakeDll):
    h = lib.init(str(root), None, 0)
    count, paths = lib.match(h, "/files/etc/hosts[")
    assert count < 0
    assert paths == []
    assert fake_dll.freed == []


def test_defnode_reports_created(lib: AugeasLib, root: Path):
    h = lib.init(str(root), None, 0)
    assert lib.defnode(h, "new", "/files/etc/other", "x") == (1, True)
    assert lib.defnode(h, "again", "/files/etc/other", "y") == (1, False)


def test_insert_passes_before_as_int(lib: AugeasLib, root: Path, fake_dll: FakeDll):
    h = lib.init(str(root), None, 0)
    assert lib.insert(h, "/files/etc/hosts/1", "0", True) == 0
    _, paths = lib.match(h, "/files/etc/hosts/*")
    assert paths[0] == "/files/etc/hosts/0"


def test_non_ascii_values_round_trip(lib: AugeasLib, root: Path):
    h = lib.init(str(root), None, 0)
    assert lib.set(h, "/files/etc/motd", "héllo wörld") == 0
    assert lib.get(h, "/files/etc/motd") == (1, "héllo wörld")


def test_error_info_reads_all_fields(lib: AugeasLib, root: Path):
    h = lib.init(str(root), None, 0)
    lib.get(h, "/files/etc/hosts/*")
    info = lib.error_info(h)
    assert info.code is ErrorCode.EMMATCH
    assert info.message == "Too many matches for path expression"
    assert not info.ok


def test_error_info_keeps_unknown_codes_as_int(monkeypatch, lib: AugeasLib, root: Path):
    h = lib.init(str(root), None, 0)
    monkeypatch.setattr(lib, "error", lambda _h: 99)
    assert lib.error_info(h).code == 99


def test_error_details_describe():
    assert ErrorDetails(ErrorCode.EPATHX, "Invalid path", None, "foo[").describe() == "Invalid path - foo["
    assert ErrorDetails(ErrorCode.EINTERNAL).describe() == "error code 2"
    assert ErrorDetails(ErrorCode.NOERROR).ok


def test_find_library_prefers_environment(monkeypatch):
    monkeypatch.setenv(native.LIBRARY_ENV_VAR, "/opt/lib/libaugeas.so")
    assert native.find_library() == "/opt/lib/libaugeas.so"


def test_find_library_falls_back_to_soname(monkeypatch):
    monkeypatch.delenv(native.LIBRARY_ENV_VAR, raising=False)
    monkeypatch.setattr(native.ctypes.util, "find_library", lambda _name: None)
    assert native.find_library() == native.FALLBACK_LIBRARY_NAME


def test_open_wraps_os_error(tmp_path: Path):
    with pytest.raises(LibraryLoadError):
        AugeasLib.open(str(tmp_path / "libnothing.so"))


def test_default_library_is_cached(monkeypatch, lib: AugeasLib):
    monkeypatch.setattr(native, "_default_library", None)
    calls = []

    def fake_open(path=None):
        calls.append(path)
        return lib

    monkeypatch.setattr(AugeasLib, "open", staticmethod(fake_open))
    assert native.default_library() is lib
    assert native.default_library() is lib
    assert calls == [None]


def test_open_and_aug_load_are_distinct(lib: AugeasLib, tmp_path: Path):
    assert isinstance(AugeasLib.__dict__["open"], classmethod)
    handle = lib.init(str(tmp_path), None, int(Flags.NO_MODL_AUTOLOAD | Flags.NO_LOAD))
    assert lib.load(handle) == 0
    lib.close(handle)


def test_default_library_reports_missing_library(monkeypatch, tmp_path: Path):
    monkeypatch.setattr(native, "_default_library", None)
    monkeypatch.setenv(native.LIBRARY_ENV_VAR, str(tmp_path / "libaugeas.so.0"))
    with pytest.raises(LibraryLoadError, match="Could not load libaugeas"):
        native.default_library()
    assert native._default_library is None


def test_session_without_library_reports_missing_library(monkeypatch, tmp_path: Path):
    monkeypatch.setattr(native, "_default_library", None)
    monkeypatch.setenv(native.LIBRARY_ENV_VAR, str(tmp_path / "libaugeas.so.0"))
    with pytest.raises(LibraryLoadError):
        Augeas()
