"""
Recycle Bin

Soft deletion on top of the file system. Items moved to the bin keep a
``recycleBinMetadata`` entry with their original path and the deletion
date so they can be restored later.

Author: Elxa Corporation
Version: 2.0.0
"""

from typing import Optional

from elxafs.exceptions import (
    AlreadyExistsError,
    InvalidPathError,
    InvalidRecordError,
    NotFoundError,
    ProtectedError,
    ProtectedChildError,
)
from elxafs.logger import get_logger
from .path_resolver import PathResolver
from .records import FolderContents, now_iso
from .vfs import FileSystem


class RecycleBin:
    """
    Recycle bin folder manager.

    Example:
        >>> bin = RecycleBin(fs)
        >>> bin.move_to_recycle_bin('/Root/Users/default/Documents/old.txt')
        '/Root/Recycle Bin/old.txt'
        >>> bin.restore_item('old.txt')
        '/Root/Users/default/Documents/old.txt'
    """

    def __init__(self, fs: FileSystem, path: Optional[str] = None):
        self._fs = fs
        self._path = PathResolver.normalize(path or fs.config.recycle_bin_path)
        self._logger = get_logger('recycle_bin')

    @property
    def path(self) -> str:
        return self._path

    def is_in_recycle_bin(self, path: str) -> bool:
        return PathResolver.is_descendant(path, self._path)

    def _taken(self, name: str) -> bool:
        full_path = PathResolver.join(self._path, name)
        return self._fs.folder_exists(full_path) or self._fs.file_exists(full_path)

    def _unique_name(self, name: str) -> str:
        if not self._taken(name):
            return name
        stem, ext = PathResolver.splitext(name)
        counter = 1
        while self._taken(f"{stem} ({counter}){ext}"):
            counter += 1
        return f"{stem} ({counter}){ext}"

    def move_to_recycle_bin(self, source_path: str) -> str:
        """
        Move a folder or file into the recycle bin.

        Returns:
            Path of the item inside the bin

        Raises:
            NotFoundError: If nothing exists at ``source_path``
            ProtectedError: If the item is protected or a system folder
            InvalidPathError: If the item is already in the bin
        """
        source_path = PathResolver.normalize(source_path)
        if self.is_in_recycle_bin(source_path):
            raise InvalidPathError(source_path, context={'reason': 'already in recycle bin'})
        with self._fs.lock:
            name = self._unique_name(PathResolver.basename(source_path))

            if self._fs.folder_exists(source_path):
                new_path = self._fs.move_folder(source_path, self._path, new_name=name)
            elif self._fs.file_exists(source_path):
                new_path = self._fs.move_file(source_path, self._path, new_name=name)
            else:
                raise NotFoundError(source_path)

            self._fs.set_recycle_metadata(new_path, {
                'originalPath': source_path,
                'deletionDate': now_iso(),
            })

        self._logger.info("Moved to recycle bin", context={'path': source_path, 'bin_path': new_path})
        return new_path

    def restore_item(self, item_name: str) -> str:
        """
        Move an item from the bin back to where it came from.

        Returns:
            The restored path

        Raises:
            NotFoundError: If the item or its original folder is gone
            InvalidRecordError: If the item has no recycle bin metadata
            AlreadyExistsError: If the original path is taken again
        """
        source_path = PathResolver.join(self._path, item_name)
        with self._fs.lock:
            is_folder = self._fs.folder_exists(source_path)
            if is_folder:
                record = self._fs.get_folder_info(source_path)
            else:
                record = self._fs.get_file_info(source_path)
            if record is None:
                raise NotFoundError(source_path, kind="recycle bin item")

            metadata = record.recycle_bin_metadata
            if not metadata or 'originalPath' not in metadata:
                raise InvalidRecordError("Item has no recycle bin metadata", path=source_path)

            original_path = PathResolver.normalize(metadata['originalPath'])
            target_dir, original_name = PathResolver.split(original_path)
            if target_dir != '/' and not self._fs.folder_exists(target_dir):
                raise NotFoundError(target_dir, kind="folder")

            if is_folder:
                if self._fs.folder_exists(original_path):
                    raise AlreadyExistsError(original_path, kind="folder")
                restored = self._fs.move_folder(source_path, target_dir, new_name=original_name)
            else:
                if self._fs.file_exists(original_path):
                    raise AlreadyExistsError(original_path, kind="file")
                restored = self._fs.move_file(source_path, target_dir, new_name=original_name)

            self._fs.set_recycle_metadata(restored, None)

        self._logger.info("Restored from recycle bin", context={'path': restored})
        return restored

    def list_items(self) -> FolderContents:
        """Everything in the bin, hidden items included."""
        return self._fs.get_folder_contents(self._path, include_hidden=True)

    def empty(self) -> int:
        """
        Permanently delete everything in the bin.

        Items that are protected (or hold protected records) stay.

        Returns:
            Number of items deleted
        """
        removed = 0
        with self._fs.lock:
            contents = self.list_items()
            for folder in contents.folders:
                try:
                    self._fs.delete_folder(folder.full_path)
                    removed += 1
                except (ProtectedError, ProtectedChildError) as e:
                    self._logger.warning(
                        "Cannot delete item from recycle bin",
                        context={'path': folder.full_path, 'error': str(e)}
                    )
            for file in contents.files:
                try:
                    self._fs.delete_file(file.full_path)
                    removed += 1
                except ProtectedError as e:
                    self._logger.warning(
                        "Cannot delete item from recycle bin",
                        context={'path': file.full_path, 'error': str(e)}
                    )

        self._logger.info("Recycle bin emptied", context={'items': removed})
        return removed
