from rich.console import Console

import emrbootstrap.services.filesystem as filesystem_module
from emrbootstrap.services.filesystem import FileSystemService


class DummyLogger:
    def debug(self, *_args, **_kwargs):
        return None

    def warning(self, *_args, **_kwargs):
        return None


def _service() -> FileSystemService:
    return FileSystemService(logger=DummyLogger(), console=Console(record=True))


def test_ensure_dir_creates_nested_directory(tmp_path):
    target = tmp_path / "a" / "b" / "modules"

    _service().ensure_dir(str(target), 0o755)

    assert target.is_dir()


def test_discard_file_removes_file_immediately(tmp_path):
    temp_file = tmp_path / "modules.tmp"
    temp_file.write_bytes(b"zip")

    _service().discard_file(str(temp_file))

    assert not temp_file.exists()


def test_discard_file_schedules_removal_at_exit_when_busy(tmp_path, monkeypatch):
    temp_file = tmp_path / "modules.tmp"
    temp_file.write_bytes(b"zip")
    registered = []

    def busy_remove(_path):
        raise PermissionError("file in use")

    monkeypatch.setattr(filesystem_module.os, "remove", busy_remove)
    monkeypatch.setattr(
        filesystem_module.atexit,
        "register",
        lambda func, *args: registered.append((func, args)),
    )

    _service().discard_file(str(temp_file))

    assert len(registered) == 1
    assert registered[0][1] == (str(temp_file),)


def test_remove_file_ignores_missing_path(tmp_path):
    assert _service().remove_file(str(tmp_path / "missing.tmp")) is True


def test_removal_at_exit_logs_failure_instead_of_raising(tmp_path, monkeypatch):
    class RecordingLogger(DummyLogger):
        def __init__(self):
            self.debug_messages = []

        def debug(self, msg, *args, **_kwargs):
            self.debug_messages.append(msg % args)

    temp_file = tmp_path / "modules.tmp"
    temp_file.write_bytes(b"zip")
    logger = RecordingLogger()
    service = FileSystemService(logger=logger, console=Console(record=True))
    registered = []

    def busy_remove(_path):
        raise PermissionError("file in use")

    monkeypatch.setattr(filesystem_module.os, "remove", busy_remove)
    monkeypatch.setattr(
        filesystem_module.atexit,
        "register",
        lambda func, *args: registered.append((func, args)),
    )

    service.discard_file(str(temp_file))
    func, args = registered[0]
    func(*args)

    assert any("at exit: file in use" in message for message in logger.debug_messages)
