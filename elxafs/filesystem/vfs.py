"""
ElxaFS Virtual File System

The hierarchical namespace over the record store. Every operation:
- Works on canonical paths
- Validates before it mutates, so a failed call leaves no trace
- Runs under a single writer lock
- Persists the whole derived mapping once it has succeeded

Author: Elxa Corporation
Version: 2.0.0
"""

import copy
import functools
import threading
from typing import Any, Optional, List

from elxafs.core.config_loader import Config, get_config
from elxafs.core.subsystem import Subsystem, SubsystemState
from elxafs.exceptions import (
    NotFoundError,
    AlreadyExistsError,
    ProtectedError,
    ProtectedChildError,
    CyclicMoveError,
)
from elxafs.storage.content_backend import ContentBackend
from elxafs.storage.kv_store import MemoryKeyValueStore
from elxafs.storage.record_store import RecordStore, KeyValueRecordStore
from .namespace import NamespaceTree
from .path_resolver import PathResolver, ROOT
from .records import (
    FileKind,
    FileRecord,
    FolderContents,
    FolderRecord,
    FolderType,
    canonical_name,
    coerce_kind,
    content_format,
    content_size,
    now_iso,
)
from .tiering import ContentTier


def synchronized(method):
    """Run a FileSystem method while holding its writer lock."""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)
    return wrapper


class FileSystem(Subsystem):
    """
    Virtual file system subsystem.

    Folders and files are separate namespaces: a folder and a file may
    share a path. Listings below the Users root only show the current
    user's home.

    Example:
        >>> fs = FileSystem()
        >>> fs.initialize()
        >>> fs.create_folder('/', 'Root')
        >>> fs.save_file('/Root', 'hello.txt', 'Hi!')
        '/Root/hello.txt'
    """

    def __init__(
        self,
        record_store: Optional[RecordStore] = None,
        backend: Optional[ContentBackend] = None,
        config: Optional[Config] = None
    ):
        super().__init__('vfs')
        self._config = config or get_config()
        self._store = record_store or KeyValueRecordStore(
            MemoryKeyValueStore(), key_prefix=self._config.storage.key_prefix
        )
        self._tier = ContentTier(
            backend,
            threshold=self._config.storage.external_threshold_bytes,
            timeout=self._config.storage.backend_timeout,
            system_path=self._config.system_path,
        )
        self._lock = threading.RLock()
        self._tree: Optional[NamespaceTree] = None
        self._committed_folders: dict[str, FolderRecord] = {}
        self._current_user: Optional[str] = None
        self._show_hidden = self._config.filesystem.show_hidden

    # ---------------------------------------------------------------
    # Lifecycle
    # ---------------------------------------------------------------

    @synchronized
    def initialize(self) -> None:
        """Load the namespace from the record store."""
        self._logger.info("Initializing virtual file system")
        self._load()
        self.set_state(SubsystemState.INITIALIZED)
        stats = self.get_stats()
        self._logger.info(
            "Virtual file system initialized",
            context={'folders': stats['folders'], 'files': stats['files']}
        )

    def start(self) -> None:
        self.set_state(SubsystemState.RUNNING)
        self._logger.info("Virtual file system started")

    def stop(self) -> None:
        self._logger.info("Stopping virtual file system")
        self.set_state(SubsystemState.STOPPED)

    def cleanup(self) -> None:
        self._tier.shutdown()

    @property
    def lock(self) -> threading.RLock:
        """The writer lock; hold it to run several operations as one."""
        return self._lock

    @property
    def config(self) -> Config:
        return self._config

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def tier(self) -> ContentTier:
        return self._tier

    @property
    def _namespace(self) -> NamespaceTree:
        if self._tree is None:
            self._load()
        return self._tree

    def _load(self) -> None:
        folders = self._store.load_folders()
        files = self._store.load_files()
        self._tree = NamespaceTree.from_mappings(folders, files)
        self._committed_folders = self._tree.to_mappings()[0]

    def _commit(self) -> None:
        """
        Write both mappings. If the files mapping cannot be written the
        folders mapping is put back to its last committed state, so the
        store never holds one new mapping next to one old one.
        """
        folders, files = self._tree.to_mappings()
        try:
            self._store.save_folders(folders)
        except Exception:
            # Drop the in-memory tree so the next call re-reads the store.
            self._tree = None
            raise

        try:
            self._store.save_files(files)
        except Exception:
            self._tree = None
            try:
                self._store.save_folders(self._committed_folders)
            except Exception as e:
                self._logger.error("Folder mapping rollback failed", context={'error': str(e)})
            raise

        self._committed_folders = folders

    @synchronized
    def reload(self) -> None:
        """Discard the in-memory namespace and re-read the record store."""
        self._load()
        self._logger.debug("Namespace reloaded")

    @synchronized
    def reset(self) -> None:
        """Remove every record, external content and the system marker."""
        if self._config.storage.delete_external_blobs:
            _, files = self._namespace.to_mappings()
            for path, record in files.items():
                if record.externally_stored:
                    self._tier.delete(path)
        self._store.clear()
        self._tree = NamespaceTree()
        self._committed_folders = {}
        self._logger.notice("File system reset")

    @synchronized
    def load_system_marker(self) -> Optional[dict[str, Any]]:
        return self._store.load_system()

    @synchronized
    def save_system_marker(self, marker: dict[str, Any]) -> None:
        self._store.save_system(marker)

    # ---------------------------------------------------------------
    # Session state
    # ---------------------------------------------------------------

    @property
    def current_user(self) -> Optional[str]:
        return self._current_user

    def set_current_user(self, username: Optional[str]) -> None:
        """Set the user whose home is visible below the Users root."""
        self._current_user = username
        self._logger.debug("Current user set", context={'user': username})

    @property
    def show_hidden(self) -> bool:
        return self._show_hidden

    def set_show_hidden(self, show: bool) -> None:
        self._show_hidden = bool(show)

    # ---------------------------------------------------------------
    # Paths
    # ---------------------------------------------------------------

    @staticmethod
    def normalize_path(path: str) -> str:
        return PathResolver.normalize(path)

    @staticmethod
    def join_paths(*segments: str) -> str:
        return PathResolver.join(*segments)

    @staticmethod
    def get_parent_path(path: str) -> str:
        return PathResolver.parent(path)

    @staticmethod
    def get_full_path(parent_path: str, name: str) -> str:
        return PathResolver.join(parent_path, name)

    def _owner_of(self, path: str) -> Optional[str]:
        """Username owning a path below the Users root, if any."""
        users_root = self._config.users_root
        if not PathResolver.is_descendant(path, users_root):
            return None
        return PathResolver.components(path)[PathResolver.depth(users_root)]

    def _folder_index(self, path: str) -> int:
        index = self._namespace.lookup_folder(path)
        if index is None:
            raise NotFoundError(path, kind="folder")
        return index

    def _file_index(self, path: str) -> int:
        index = self._namespace.lookup_file(path)
        if index is None:
            raise NotFoundError(path, kind="file")
        return index

    def _require_parent(self, parent_path: str) -> None:
        if parent_path == ROOT or not self._config.filesystem.enforce_parent_exists:
            return
        if self._namespace.lookup_folder(parent_path) is None:
            raise NotFoundError(parent_path, kind="folder")

    def _require_target_folder(self, path: str) -> None:
        if path != ROOT and self._namespace.lookup_folder(path) is None:
            raise NotFoundError(path, kind="folder")

    def _require_free_folder(self, index: int, new_path: str) -> None:
        """
        Check that folder ``index`` can take ``new_path``. An implicit
        folder already there is merged, so its contents must not clash
        with the moved folder's.
        """
        tree = self._namespace
        occupant = tree.find_folder(new_path)
        if occupant is None:
            return
        if tree.node(occupant).record is not None:
            raise AlreadyExistsError(new_path, kind="folder")
        conflict = tree.merge_conflict(occupant, index)
        if conflict is not None:
            raise AlreadyExistsError(conflict)

    def _check_folder_protection(self, path: str, record: FolderRecord, operation: str) -> None:
        if record.is_system:
            raise ProtectedError(path, operation=operation, reason="system folder")
        if record.is_user_root:
            raise ProtectedError(path, operation=operation, reason="user root folder")
        if record.is_protected:
            raise ProtectedError(path, operation=operation)

    # ---------------------------------------------------------------
    # Queries
    # ---------------------------------------------------------------

    @synchronized
    def folder_exists(self, path: str) -> bool:
        return self._namespace.lookup_folder(PathResolver.normalize(path)) is not None

    @synchronized
    def file_exists(self, path: str) -> bool:
        return self._namespace.lookup_file(PathResolver.normalize(path)) is not None

    @synchronized
    def exists(self, path: str) -> bool:
        """True when a folder or a file lives at ``path``."""
        return self.folder_exists(path) or self.file_exists(path)

    @synchronized
    def get_folder_info(self, path: str) -> Optional[FolderRecord]:
        index = self._namespace.lookup_folder(PathResolver.normalize(path))
        if index is None:
            return None
        return self._namespace.record(index)

    @synchronized
    def get_file_info(self, path: str) -> Optional[FileRecord]:
        """File record without reading external content."""
        index = self._namespace.lookup_file(PathResolver.normalize(path))
        if index is None:
            return None
        return self._namespace.record(index)

    @synchronized
    def get_folder_contents(self, path: str, include_hidden: Optional[bool] = None) -> FolderContents:
        """
        List the direct children of a folder.

        Below the Users root only the current user's home is visible; a
        path inside another user's home lists nothing. Hidden entries are
        left out unless ``show_hidden`` (or ``include_hidden``) is set.
        A path without a folder lists nothing.

        Returns:
            FolderContents with folders and files sorted by name
        """
        path = PathResolver.normalize(path)
        tree = self._namespace
        contents = FolderContents()

        owner = self._owner_of(path)
        if owner is not None and owner != self._current_user:
            return contents

        index = tree.find_folder(path)
        if index is None:
            return contents

        show_hidden = self._show_hidden if include_hidden is None else include_hidden
        users_root = path == self._config.users_root
        folder_indices, file_indices = tree.children(index)

        for child in folder_indices:
            if tree.node(child).record is None:
                continue
            record = tree.record(child)
            if users_root and record.name != self._current_user:
                continue
            if record.is_hidden and not show_hidden:
                continue
            contents.folders.append(record)

        if not users_root:
            for child in file_indices:
                record = tree.record(child)
                if record.is_hidden and not show_hidden:
                    continue
                contents.files.append(record)

        contents.folders.sort(key=lambda r: r.name)
        contents.files.sort(key=lambda r: r.name)
        return contents

    @synchronized
    def get_file(self, path: str) -> Optional[FileRecord]:
        """
        Get a file record with its content.

        Externally stored content is read from the content backend. If
        that fails the record is returned with whatever inline content
        it still has (usually None).
        """
        path = PathResolver.normalize(path)
        index = self._namespace.lookup_file(path)
        if index is None:
            return None

        record = self._namespace.record(index)
        if record.externally_stored:
            data = self._tier.load(path, record.content_format)
            if data is not None:
                record.content = data
            elif record.content is None:
                self._logger.warning(
                    "External content unavailable, returning metadata only",
                    context={'path': path}
                )
        return record

    @synchronized
    def list_user_files(self, username: Optional[str] = None) -> List[FileRecord]:
        """
        Files in a user's home that the user created.

        Protected files, programs, shortcuts and anything in the Games
        folder are skipped. Largest first.
        """
        username = username or self._current_user
        if not username:
            return []

        tree = self._namespace
        home = PathResolver.join(self._config.users_root, username)
        index = tree.lookup_folder(home)
        if index is None:
            return []

        results = []
        for current in tree.iter_subtree(index):
            node = tree.node(current)
            if node.is_folder:
                continue
            record = tree.record(current)
            if record.is_protected or record.name.endswith('.lnk'):
                continue
            if record.kind in (FileKind.PROGRAM, FileKind.SHORTCUT):
                continue
            if 'Games' in PathResolver.components(record.path):
                continue
            results.append(record)

        results.sort(key=lambda r: r.size, reverse=True)
        return results

    @synchronized
    def get_stats(self) -> dict[str, Any]:
        """Get file system statistics."""
        folders, files = self._namespace.to_mappings()
        external = [r for r in files.values() if r.externally_stored]
        return {
            'folders': len(folders),
            'files': len(files),
            'external_files': len(external),
            'inline_bytes': sum(r.size for r in files.values() if not r.externally_stored),
            'external_bytes': sum(r.size for r in external),
            'backend_available': self._tier.available(),
            'current_user': self._current_user,
        }

    # ---------------------------------------------------------------
    # Folders
    # ---------------------------------------------------------------

    @synchronized
    def create_folder(
        self,
        parent_path: str,
        name: str,
        *,
        folder_type: FolderType = FolderType.USER,
        is_protected: bool = False,
        is_hidden: bool = False
    ) -> FolderRecord:
        """
        Create a folder.

        Raises:
            InvalidNameError: If ``name`` is not a valid segment
            AlreadyExistsError: If the folder already exists
            NotFoundError: If the parent folder does not exist
        """
        PathResolver.validate_name(name)
        parent_path = PathResolver.normalize(parent_path)
        full_path = PathResolver.join(parent_path, name)

        tree = self._namespace
        if tree.lookup_folder(full_path) is not None:
            raise AlreadyExistsError(full_path, kind="folder")
        self._require_parent(parent_path)

        timestamp = now_iso()
        record = FolderRecord(
            name=name,
            path=parent_path,
            type=folder_type,
            is_protected=is_protected,
            is_hidden=is_hidden,
            created=timestamp,
            modified=timestamp,
        )
        index = tree.insert_folder(parent_path, name, record)
        self._commit()

        self._logger.debug("Folder created", context={'path': full_path})
        return tree.record(index)

    @synchronized
    def delete_folder(self, path: str, is_user_account_deletion: bool = False) -> int:
        """
        Delete a folder and everything below it.

        Args:
            path: Folder to delete
            is_user_account_deletion: Allows deleting a user root folder
                along with protected content inside it

        Returns:
            Number of records removed

        Raises:
            NotFoundError: If the folder does not exist
            ProtectedError: If the folder (or a system folder below it)
                is protected
            ProtectedChildError: If a protected record lies below it
        """
        path = PathResolver.normalize(path)
        tree = self._namespace
        index = self._folder_index(path)
        record = tree.stored_record(index)

        if record.is_system:
            raise ProtectedError(path, operation="delete", reason="system folder")
        if record.is_user_root:
            if not is_user_account_deletion:
                raise ProtectedError(path, operation="delete", reason="user root folder")
        elif record.is_protected:
            raise ProtectedError(path, operation="delete")

        descendants = [
            (current, tree.node(current))
            for current in tree.iter_subtree(index)
            if current != index and tree.node(current).record is not None
        ]

        # System folders block every delete, account deletion included.
        for current, node in descendants:
            if node.is_folder and node.record.is_system:
                raise ProtectedError(path, operation="delete", reason="contains system folder")

        blobs = []
        for current, node in descendants:
            child = node.record
            if not is_user_account_deletion and (
                child.is_protected or (node.is_folder and child.is_user_root)
            ):
                raise ProtectedChildError(path, child=tree.path_of(current))
            if not node.is_folder and child.externally_stored:
                blobs.append(tree.path_of(current))

        removed = tree.remove(index)
        self._commit()

        if self._config.storage.delete_external_blobs:
            for blob in blobs:
                self._tier.delete(blob)

        self._logger.info("Folder deleted", context={'path': path, 'records': removed})
        return removed

    @synchronized
    def rename_folder(self, path: str, new_name: str) -> str:
        """
        Rename a folder; everything below it moves along.

        Returns:
            New full path of the folder
        """
        PathResolver.validate_name(new_name)
        path = PathResolver.normalize(path)
        tree = self._namespace
        index = self._folder_index(path)
        self._check_folder_protection(path, tree.stored_record(index), "rename")

        parent_path = PathResolver.parent(path)
        new_path = PathResolver.join(parent_path, new_name)
        if new_path == path:
            return path
        self._require_free_folder(index, new_path)

        blobs = self._external_files(index)
        tree.relink(index, parent_path, new_name)
        tree.stored_record(index).modified = now_iso()
        self._commit()
        self._relocate_blobs(blobs, path, new_path)

        self._logger.info("Folder renamed", context={'path': path, 'new_path': new_path})
        return new_path

    @synchronized
    def move_folder(self, source_path: str, target_folder_path: str,
                    new_name: Optional[str] = None) -> str:
        """
        Move a folder into another folder.

        Args:
            source_path: Folder to move
            target_folder_path: Folder that becomes the new parent
            new_name: Optional name at the destination

        Returns:
            New full path of the folder

        Raises:
            CyclicMoveError: If the target is the source or below it
        """
        source_path = PathResolver.normalize(source_path)
        target_folder_path = PathResolver.normalize(target_folder_path)
        tree = self._namespace
        index = self._folder_index(source_path)
        self._check_folder_protection(source_path, tree.stored_record(index), "move")

        if PathResolver.is_same_or_descendant(target_folder_path, source_path):
            raise CyclicMoveError(source_path, target=target_folder_path)
        self._require_target_folder(target_folder_path)

        name = PathResolver.validate_name(new_name) if new_name else tree.node(index).name
        new_path = PathResolver.join(target_folder_path, name)
        if new_path == source_path:
            return source_path
        self._require_free_folder(index, new_path)

        blobs = self._external_files(index)
        tree.relink(index, target_folder_path, name)
        tree.stored_record(index).modified = now_iso()
        self._commit()
        self._relocate_blobs(blobs, source_path, new_path)

        self._logger.info("Folder moved", context={'path': source_path, 'new_path': new_path})
        return new_path

    @synchronized
    def copy_folder(self, source_path: str, target_folder_path: str) -> str:
        """
        Copy a folder and its contents into another folder.

        The copy gets a free name (``name (1)``, ``name (2)``, ...), fresh
        timestamps and no protection. System and user root folders are
        copied as plain user folders.

        Returns:
            Full path of the copy
        """
        source_path = PathResolver.normalize(source_path)
        target_folder_path = PathResolver.normalize(target_folder_path)
        tree = self._namespace
        index = self._folder_index(source_path)
        self._require_target_folder(target_folder_path)

        name = self._free_name(
            target_folder_path, tree.node(index).name, tree.lookup_folder, split_extension=False
        )
        new_root = PathResolver.join(target_folder_path, name)

        # Snapshot first: the copy may land inside the source.
        snapshot = []
        for current in tree.iter_subtree(index):
            node = tree.node(current)
            if node.record is None:
                continue
            old_path = tree.path_of(current)
            snapshot.append((node.is_folder, old_path, tree.record(current)))

        timestamp = now_iso()
        for is_folder, old_path, record in snapshot:
            new_path = PathResolver.relabel(old_path, source_path, new_root)
            parent, child_name = PathResolver.split(new_path)
            if is_folder:
                record.type = FolderType.USER
                record.is_protected = False
                record.recycle_bin_metadata = None
                record.created = record.modified = timestamp
                tree.insert_folder(parent, child_name, record)
            else:
                tree.insert_file(parent, child_name, self._copied_file(record, old_path, new_path, timestamp))

        self._commit()
        self._logger.info(
            "Folder copied",
            context={'path': source_path, 'new_path': new_root, 'records': len(snapshot)}
        )
        return new_root

    # ---------------------------------------------------------------
    # Files
    # ---------------------------------------------------------------

    @synchronized
    def save_file(
        self,
        parent_path: str,
        name: str,
        content: Any,
        kind: Any = FileKind.TEXT,
        extra: Optional[dict[str, Any]] = None,
        *,
        is_protected: Optional[bool] = None,
        is_hidden: Optional[bool] = None
    ) -> str:
        """
        Create or overwrite a file.

        Regular files get their canonical name (images end in an image
        extension, slideshows in ``.odp``). Content goes to the external
        tier when the tier policy asks for it and the backend accepts it;
        otherwise it is kept inline.

        Args:
            parent_path: Folder to save into
            name: File name
            content: File content (text, bytes or JSON-compatible data)
            kind: File kind
            extra: Kind attributes (``program``, ``target``, ...)
            is_protected: Protection flag; an overwrite keeps the old one
                when omitted
            is_hidden: Hidden flag; an overwrite keeps the old one when
                omitted

        Returns:
            Full path of the saved file

        Raises:
            InvalidRecordError: If ``extra`` does not fit ``kind``
            NotFoundError: If the parent folder does not exist
        """
        kind = coerce_kind(kind)
        PathResolver.validate_name(name)
        parent_path = PathResolver.normalize(parent_path)

        if self._tier.is_regular(kind, PathResolver.join(parent_path, name)):
            name = canonical_name(name, kind)
        full_path = PathResolver.join(parent_path, name)

        tree = self._namespace
        self._require_parent(parent_path)

        existing_index = tree.lookup_file(full_path)
        existing = tree.stored_record(existing_index) if existing_index is not None else None

        timestamp = now_iso()
        record = FileRecord(
            name=name,
            path=parent_path,
            kind=kind,
            content=copy.deepcopy(content),
            size=content_size(content),
            is_protected=is_protected if is_protected is not None else bool(existing and existing.is_protected),
            is_hidden=is_hidden if is_hidden is not None else bool(existing and existing.is_hidden),
            created=existing.created if existing else timestamp,
            modified=timestamp,
            attributes=copy.deepcopy(extra) if extra else {},
        )

        if self._tier.should_externalize(kind, content, full_path) and self._tier.save(full_path, content):
            record.content = None
            record.externally_stored = True
            record.content_format = content_format(content)

        tree.insert_file(parent_path, name, record)
        self._commit()

        if existing and existing.externally_stored and not record.externally_stored:
            self._tier.delete(full_path)

        self._logger.debug(
            "File saved",
            context={'path': full_path, 'kind': kind.value, 'external': record.externally_stored}
        )
        return full_path

    @synchronized
    def delete_file(self, path: str) -> None:
        """
        Delete a file.

        Raises:
            NotFoundError: If the file does not exist
            ProtectedError: If the file is protected
        """
        path = PathResolver.normalize(path)
        tree = self._namespace
        index = self._file_index(path)
        record = tree.stored_record(index)
        if record.is_protected:
            raise ProtectedError(path, operation="delete")

        tree.remove(index)
        self._commit()

        if record.externally_stored and self._config.storage.delete_external_blobs:
            self._tier.delete(path)

        self._logger.info("File deleted", context={'path': path})

    @synchronized
    def rename_file(self, path: str, new_name: str,
                    target_parent_path: Optional[str] = None) -> str:
        """
        Rename a file, optionally placing it in another folder.

        Returns:
            New full path of the file
        """
        PathResolver.validate_name(new_name)
        path = PathResolver.normalize(path)
        tree = self._namespace
        index = self._file_index(path)
        if tree.stored_record(index).is_protected:
            raise ProtectedError(path, operation="rename")

        if target_parent_path is None:
            parent_path = PathResolver.parent(path)
        else:
            parent_path = PathResolver.normalize(target_parent_path)
            self._require_target_folder(parent_path)

        return self._relink_file(index, path, parent_path, new_name)

    @synchronized
    def move_file(self, source_path: str, target_folder_path: str,
                  new_name: Optional[str] = None) -> str:
        """
        Move a file into another folder.

        Returns:
            New full path of the file
        """
        source_path = PathResolver.normalize(source_path)
        target_folder_path = PathResolver.normalize(target_folder_path)
        tree = self._namespace
        index = self._file_index(source_path)
        if tree.stored_record(index).is_protected:
            raise ProtectedError(source_path, operation="move")
        self._require_target_folder(target_folder_path)

        name = PathResolver.validate_name(new_name) if new_name else tree.node(index).name
        return self._relink_file(index, source_path, target_folder_path, name)

    @synchronized
    def copy_file(self, source_path: str, target_folder_path: str) -> str:
        """
        Copy a file into a folder.

        The copy gets a free name (``stem (1).ext``, ...), fresh
        timestamps and no protection. Externally stored content is read
        and re-tiered for the new path.

        Returns:
            Full path of the copy
        """
        source_path = PathResolver.normalize(source_path)
        target_folder_path = PathResolver.normalize(target_folder_path)
        tree = self._namespace
        index = self._file_index(source_path)
        self._require_target_folder(target_folder_path)

        name = self._free_name(target_folder_path, tree.node(index).name, tree.lookup_file)
        new_path = PathResolver.join(target_folder_path, name)

        record = self._copied_file(tree.record(index), source_path, new_path, now_iso())
        tree.insert_file(target_folder_path, name, record)
        self._commit()

        self._logger.info("File copied", context={'path': source_path, 'new_path': new_path})
        return new_path

    @synchronized
    def set_recycle_metadata(self, path: str, metadata: Optional[dict[str, str]]) -> None:
        """Attach (or clear) recycle bin metadata on a folder or file."""
        path = PathResolver.normalize(path)
        tree = self._namespace
        index = tree.lookup_folder(path)
        if index is None:
            index = self._file_index(path)
        tree.stored_record(index).recycle_bin_metadata = dict(metadata) if metadata else None
        self._commit()

    # ---------------------------------------------------------------
    # Helpers
    # ---------------------------------------------------------------

    def _relink_file(self, index: int, path: str, parent_path: str, name: str) -> str:
        tree = self._namespace
        new_path = PathResolver.join(parent_path, name)
        if new_path == path:
            return path
        if tree.lookup_file(new_path) is not None:
            raise AlreadyExistsError(new_path, kind="file")

        record = tree.stored_record(index)
        tree.relink(index, parent_path, name)
        record.modified = now_iso()
        self._commit()

        if record.externally_stored:
            self._tier.relocate(path, new_path, record.content_format)

        self._logger.info("File moved", context={'path': path, 'new_path': new_path})
        return new_path

    def _external_files(self, index: int) -> list[tuple[str, Optional[str]]]:
        """Paths and formats of externally stored files below a folder."""
        tree = self._namespace
        blobs = []
        for current in tree.iter_subtree(index):
            node = tree.node(current)
            if not node.is_folder and node.record.externally_stored:
                blobs.append((tree.path_of(current), node.record.content_format))
        return blobs

    def _relocate_blobs(self, blobs: list[tuple[str, Optional[str]]], old_root: str, new_root: str) -> None:
        for path, fmt in blobs:
            self._tier.relocate(path, PathResolver.relabel(path, old_root, new_root), fmt)

    def _copied_file(self, record: FileRecord, old_path: str, new_path: str, timestamp: str) -> FileRecord:
        content = record.content
        if record.externally_stored:
            content = self._tier.load(old_path, record.content_format)
            if content is None:
                self._logger.warning(
                    "External content unavailable, copying metadata only",
                    context={'path': old_path, 'new_path': new_path}
                )

        record.content = copy.deepcopy(content)
        record.externally_stored = False
        record.content_format = None
        record.is_protected = False
        record.recycle_bin_metadata = None
        record.created = record.modified = timestamp

        if self._tier.should_externalize(record.kind, content, new_path) and self._tier.save(new_path, content):
            record.content = None
            record.externally_stored = True
            record.content_format = content_format(content)
        return record

    @staticmethod
    def _free_name(parent_path: str, name: str, lookup, split_extension: bool = True) -> str:
        """First of ``name``, ``name (1)``, ``name (2)``... not taken in ``parent_path``."""
        if lookup(PathResolver.join(parent_path, name)) is None:
            return name
        stem, ext = PathResolver.splitext(name) if split_extension else (name, '')
        counter = 1
        while True:
            candidate = f"{stem} ({counter}){ext}"
            if lookup(PathResolver.join(parent_path, candidate)) is None:
                return candidate
            counter += 1
