import io
import os
import stat
import sys
import zipfile

import pytest
from rich.console import Console

from emrbootstrap.services.archive import ArchiveService
from emrbootstrap.services.filesystem import FileSystemService


class DummyLogger:
    def __init__(self):
        self.errors = []

    def debug(self, *_args, **_kwargs):
        return None

    def warning(self, *_args, **_kwargs):
        return None

    def error(self, msg, *args, **_kwargs):
        self.errors.append(msg % args)


class TrackingStream(io.BytesIO):
    def __init__(self, payload: bytes):
        super().__init__(payload)
        self.close_calls = 0

    def close(self):
        self.close_calls += 1
        super().close()


class FailingStream(TrackingStream):
    def read(self, *_args):
        raise OSError("connection reset")


def _zip_bytes(entries) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zip_file:
        for name, payload in entries:
            zip_file.writestr(name, payload)
    return buffer.getvalue()


def _service(tmp_path, logger=None, **kwargs):
    logger = logger or DummyLogger()
    temp_dir = tmp_path / "tmp"
    temp_dir.mkdir(exist_ok=True)
    filesystem = FileSystemService(logger=logger, console=Console(record=True))
    return ArchiveService(logger=logger, filesystem_service=filesystem, temp_dir=str(temp_dir), **kwargs)


def test_expand_modules_flattens_and_filters_entries(tmp_path):
    service = _service(tmp_path)
    repository = tmp_path / "modules"
    stream = TrackingStream(
        _zip_bytes(
            [
                ("a.omod", "X"),
                ("dir/", ""),
                ("dir/b.omod", "Y"),
                ("readme.txt", "Z"),
            ]
        )
    )

    assert service.expand_modules(stream, str(repository)) is True

    assert sorted(path.name for path in repository.iterdir()) == ["a.omod", "b.omod"]
    assert (repository / "a.omod").read_text(encoding="utf-8") == "X"
    assert (repository / "b.omod").read_text(encoding="utf-8") == "Y"


def test_expand_modules_flattens_deeply_nested_and_backslash_names(tmp_path):
    service = _service(tmp_path)
    repository = tmp_path / "modules"
    stream = TrackingStream(
        _zip_bytes([("a/b/c/foo.omod", b"\x00\x01foo"), ("win\\bar.omod", b"bar")])
    )

    assert service.expand_modules(stream, str(repository)) is True

    assert (repository / "foo.omod").read_bytes() == b"\x00\x01foo"
    assert (repository / "bar.omod").read_bytes() == b"bar"
    assert not (repository / "a").exists()


def test_expand_modules_later_entry_wins_on_same_basename(tmp_path):
    service = _service(tmp_path)
    repository = tmp_path / "modules"
    repository.mkdir()
    (repository / "dup.omod").write_text("old", encoding="utf-8")
    stream = TrackingStream(_zip_bytes([("one/dup.omod", "first"), ("two/dup.omod", "second")]))

    assert service.expand_modules(stream, str(repository)) is True

    assert (repository / "dup.omod").read_text(encoding="utf-8") == "second"


def test_expand_modules_suffix_match_is_case_sensitive_by_default(tmp_path):
    repository = tmp_path / "modules"
    payload = _zip_bytes([("UPPER.OMOD", "U"), ("lower.omod", "L")])

    assert _service(tmp_path).expand_modules(TrackingStream(payload), str(repository)) is True
    assert sorted(path.name for path in repository.iterdir()) == ["lower.omod"]

    relaxed = _service(tmp_path, case_insensitive_suffix=True)
    assert relaxed.expand_modules(TrackingStream(payload), str(repository)) is True
    assert sorted(path.name for path in repository.iterdir()) == ["UPPER.OMOD", "lower.omod"]


def test_expand_modules_skips_symbolic_links(tmp_path):
    service = _service(tmp_path)
    repository = tmp_path / "modules"

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zip_file:
        link = zipfile.ZipInfo("link.omod")
        link.external_attr = (0o120777 << 16)
        zip_file.writestr(link, "/etc/passwd")
        zip_file.writestr("real.omod", "R")

    assert service.expand_modules(TrackingStream(buffer.getvalue()), str(repository)) is True
    assert sorted(path.name for path in repository.iterdir()) == ["real.omod"]


def test_expand_modules_closes_stream_and_removes_temp_file(tmp_path):
    service = _service(tmp_path)
    stream = TrackingStream(_zip_bytes([("a.omod", "X")]))

    assert service.expand_modules(stream, str(tmp_path / "modules")) is True

    assert stream.closed is True
    assert stream.close_calls == 1
    assert list((tmp_path / "tmp").iterdir()) == []


def test_expand_modules_returns_false_for_invalid_archive(tmp_path):
    logger = DummyLogger()
    service = _service(tmp_path, logger=logger)
    stream = TrackingStream(b"this is not a zip file")

    assert service.expand_modules(stream, str(tmp_path / "modules")) is False

    assert stream.closed is True
    assert len(logger.errors) == 1
    assert list((tmp_path / "tmp").iterdir()) == []


def test_expand_modules_returns_false_when_stream_read_fails(tmp_path):
    logger = DummyLogger()
    service = _service(tmp_path, logger=logger)
    stream = FailingStream(b"")

    assert service.expand_modules(stream, str(tmp_path / "modules")) is False

    assert stream.closed is True
    assert "connection reset" in logger.errors[0]
    assert list((tmp_path / "tmp").iterdir()) == []


def test_expand_modules_creates_repository_for_empty_archive(tmp_path):
    service = _service(tmp_path)
    repository = tmp_path / "nested" / "modules"

    assert service.expand_modules(TrackingStream(_zip_bytes([])), str(repository)) is True

    assert repository.is_dir()
    assert list(repository.iterdir()) == []


def _mark_encrypted(payload: bytes) -> bytes:
    data = bytearray(payload)
    data[6] |= 0x01
    central = data.find(b"PK\x01\x02")
    data[central + 8] |= 0x01
    return bytes(data)


def test_expand_modules_returns_false_for_encrypted_entry(tmp_path):
    logger = DummyLogger()
    service = _service(tmp_path, logger=logger)
    stream = TrackingStream(_mark_encrypted(_zip_bytes([("a.omod", "X")])))

    assert service.expand_modules(stream, str(tmp_path / "modules")) is False

    assert stream.closed is True
    assert len(logger.errors) == 1
    assert "a.omod" in logger.errors[0]
    assert list((tmp_path / "tmp").iterdir()) == []


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions only")
def test_expand_modules_sets_module_file_mode(tmp_path):
    service = _service(tmp_path)
    repository = tmp_path / "modules"
    old_umask = os.umask(0o077)
    try:
        assert service.expand_modules(TrackingStream(_zip_bytes([("a.omod", "X")])), str(repository))
    finally:
        os.umask(old_umask)

    assert stat.S_IMODE((repository / "a.omod").stat().st_mode) == 0o644
