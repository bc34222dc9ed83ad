"""Module archive expansion for EMR Bootstrap."""

import os
import shutil
import tempfile
import zipfile
from pathlib import PurePosixPath
from typing import BinaryIO, Optional

from emrbootstrap.constants import DIR_MODE, FILE_MODE, MODULE_SUFFIX, MODULE_TEMP_PREFIX
from emrbootstrap.errors import ArchiveError


class ArchiveService:
    """Copies `.omod` artifacts from a zipped bundle into the module repository.

    Entries are flattened to their basename, so ``dir/b.omod`` lands at
    ``<repository>/b.omod``. Directory entries, symbolic links and files
    without the module suffix are skipped. When two entries share a
    basename the later one wins.
    """

    def __init__(
        self,
        logger,
        filesystem_service,
        case_insensitive_suffix: bool = False,
        temp_dir: Optional[str] = None,
    ):
        self.logger = logger
        self.filesystem_service = filesystem_service
        self.case_insensitive_suffix = case_insensitive_suffix
        self.temp_dir = temp_dir

    def is_module_entry(self, name: str) -> bool:
        if self.case_insensitive_suffix:
            return name.lower().endswith(MODULE_SUFFIX)
        return name.endswith(MODULE_SUFFIX)

    @staticmethod
    def module_basename(name: str) -> str:
        return PurePosixPath(name.replace("\\", "/")).name

    @staticmethod
    def is_symlink(member: zipfile.ZipInfo) -> bool:
        file_type = (member.external_attr >> 16) & 0o170000
        return file_type == 0o120000

    def _extract_modules(self, zip_ref: zipfile.ZipFile, repository_dir: str):
        for member in zip_ref.infolist():
            if member.is_dir():
                self.logger.debug("Skipping directory: %s", member.filename)
                continue

            if not self.is_module_entry(member.filename):
                self.logger.debug("Ignoring file that is not a .omod: %s", member.filename)
                continue

            if self.is_symlink(member):
                self.logger.warning("Skipping symbolic link entry: %s", member.filename)
                continue

            file_name = self.module_basename(member.filename)
            self.logger.debug("Extracting module file: %s", file_name)
            target_path = os.path.join(repository_dir, file_name)
            try:
                with zip_ref.open(member, "r") as src, open(target_path, "wb") as dst:
                    shutil.copyfileobj(src, dst)
            except (RuntimeError, NotImplementedError) as exc:
                # Encrypted entries and unsupported compression methods.
                raise ArchiveError(
                    f"Cannot extract module entry `{member.filename}`: {exc}"
                ) from exc
            self.filesystem_service.set_permissions(target_path, FILE_MODE)

    def _close_quietly(self, resource, label: str):
        try:
            resource.close()
        except Exception as exc:
            self.logger.error("Failed to close %s: %s", label, exc)

    def expand_modules(self, stream: BinaryIO, repository_dir: str) -> bool:
        """Expands the zipped bundle in ``stream``; True iff no I/O error occurred.

        ``stream`` is always closed before returning. Files written before a
        failure are left in the repository.
        """
        temp_path = None
        zip_ref = None

        try:
            self.filesystem_service.ensure_dir(repository_dir, DIR_MODE)

            fd, temp_path = tempfile.mkstemp(prefix=MODULE_TEMP_PREFIX, dir=self.temp_dir)
            with os.fdopen(fd, "wb") as out:
                shutil.copyfileobj(stream, out)

            try:
                zip_ref = zipfile.ZipFile(temp_path, "r")
            except zipfile.BadZipFile as exc:
                raise ArchiveError(f"Invalid ZIP archive received: {exc}") from exc

            self._extract_modules(zip_ref, repository_dir)
            return True
        except (OSError, zipfile.BadZipFile, ArchiveError) as exc:
            self.logger.error(
                "An error occurred while copying modules to %s: %s",
                repository_dir,
                exc,
                exc_info=True,
            )
            return False
        finally:
            self._close_quietly(stream, "module stream")
            if zip_ref is not None:
                self._close_quietly(zip_ref, "zip file")
            if temp_path is not None:
                self.filesystem_service.discard_file(temp_path)
