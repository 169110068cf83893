"""
ElxaFS Seeder

Creates the default namespace on first run and repairs per-user
scaffolding on later runs. Every step checks before it creates, so the
seeder can run any number of times without duplicating or touching
existing records.

Layout::

    /Root                         system, protected
    /Root/System                  system, protected (program catalog)
    /Root/Users                   system, protected
    /Root/Users/<user>            user root, protected
    /Root/Recycle Bin             system, protected

Author: Elxa Corporation
Version: 2.0.0
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Optional, TYPE_CHECKING

from elxafs.exceptions import ProtectedError
from elxafs.filesystem.path_resolver import PathResolver, ROOT
from elxafs.filesystem.records import FileKind, FolderType, now_iso
from elxafs.logger import get_logger

if TYPE_CHECKING:
    from elxafs.filesystem.vfs import FileSystem


# (file name, program id)
PROGRAM_CATALOG = [
    ('Paint.abbi', 'paint'),
    ('Notepad.abbi', 'notepad'),
    ('Kittysweeper.abbi', 'minesweeper'),
    ('Solitaire.abbi', 'solitaire'),
    ('DUCK.abbi', 'duck'),
    ('Settings.abbi', 'settings'),
    ('About.abbi', 'about'),
    ('Calculator.abbi', 'scientificCalculator'),
    ('Clock.abbi', 'clock'),
    ('Calendar.abbi', 'calendar'),
    ('Slideshow.abbi', 'slideshow'),
]

USER_FOLDERS = ['Desktop', 'Documents', 'Pictures', 'Music', 'Downloads', 'Games', 'Applications']

HIDDEN_FOLDERS = ['.settings', '.messenger', '.messenger/chats']

SETTINGS_FOLDER = '.settings'
SETTINGS_FILE = 'user.config'

DEFAULT_SETTINGS: dict[str, Any] = {
    'display': {
        'background': 'default-0',
        'fileExplorerView': 'icons',
        'desktopIcons': {},
        'showHiddenFiles': False,
    },
    'personalization': {
        'theme': 'default',
        'systemFont': '"Verdana", sans-serif',
        'avatar': {
            'type': 'svg',
            'name': 'Cute Snake',
            'content': None,
        },
    },
    'clock': {
        'format': '12hour',
        'dateStyle': 'short',
        'showSeconds': False,
    },
    'wifi': {
        'customNetworks': [],
        'savedNetworks': [],
    },
}


@dataclass
class SeedResult:
    """Outcome of a seeder run."""
    first_run: bool
    created: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.created)


class Seeder:
    """
    Seeds and repairs the default namespace.

    Example:
        >>> result = Seeder(fs).run()
        >>> result.first_run
        True
    """

    def __init__(self, fs: FileSystem):
        self._fs = fs
        self._config = fs.config
        self._logger = get_logger('seeder')

    def run(self) -> SeedResult:
        """
        Seed on first run, repair otherwise.

        First run is detected by the absence of the system marker.
        """
        with self._fs.lock:
            marker = self._fs.load_system_marker()
            if marker is None:
                result = self.seed()
            else:
                result = SeedResult(first_run=False)
                if self._config.boot.repair_on_boot:
                    result.created.extend(self.repair())

        if result.changed:
            self._logger.info(
                "Namespace seeded" if result.first_run else "Namespace repaired",
                context={'created': len(result.created)}
            )
        return result

    def seed(self) -> SeedResult:
        """Create the full default layout and write the system marker."""
        result = SeedResult(first_run=True)
        fs_config = self._config.filesystem

        with self._fs.lock:
            root = self._config.root_path
            for parent, name in (
                (ROOT, fs_config.root_name),
                (root, fs_config.system_folder),
                (root, fs_config.users_folder),
                (root, fs_config.recycle_bin_folder),
            ):
                self._ensure_folder(parent, name, result.created,
                                    folder_type=FolderType.SYSTEM, is_protected=True)

            if self._config.boot.seed_programs:
                self._seed_programs(result.created)

            result.created.extend(self.provision_user(fs_config.default_user))

            timestamp = now_iso()
            self._fs.save_system_marker({
                'root': {
                    'name': fs_config.root_name,
                    'path': ROOT,
                    'type': FolderType.SYSTEM.value,
                    'created': timestamp,
                    'modified': timestamp,
                },
                'version': self._config.system.version,
            })

        self._logger.notice("First run seeding complete", context={'created': len(result.created)})
        return result

    def repair(self) -> list[str]:
        """Recreate the default user's settings scaffolding if it is missing."""
        username = self._config.filesystem.default_user
        home = PathResolver.join(self._config.users_root, username)
        created: list[str] = []

        with self._fs.lock:
            if not self._fs.folder_exists(home):
                self._logger.warning("Default user home missing, provisioning", context={'path': home})
                return self.provision_user(username)

            self._ensure_folder(home, SETTINGS_FOLDER, created, is_hidden=True)
            self._ensure_settings_file(home, created)

        for path in created:
            self._logger.warning("Repaired missing record", context={'path': path})
        return created

    def provision_user(self, username: str) -> list[str]:
        """
        Create (or complete) the folder tree of a user.

        Returns:
            Paths of the records that were created
        """
        PathResolver.validate_name(username)
        created: list[str] = []
        users_root = self._config.users_root
        home = PathResolver.join(users_root, username)

        with self._fs.lock:
            self._ensure_folder(users_root, username, created,
                                folder_type=FolderType.USER_ROOT, is_protected=True)
            for name in USER_FOLDERS:
                self._ensure_folder(home, name, created)
            for relative in HIDDEN_FOLDERS:
                parent, name = PathResolver.split(PathResolver.join(home, relative))
                self._ensure_folder(parent, name, created, is_hidden=True)
            self._ensure_settings_file(home, created)

        if created:
            self._logger.info("User provisioned", context={'user': username, 'created': len(created)})
        return created

    def remove_user(self, username: str) -> int:
        """
        Delete a user's home with everything in it.

        Returns:
            Number of records removed

        Raises:
            ProtectedError: For the default user
            NotFoundError: If the user has no home folder
        """
        home = PathResolver.join(self._config.users_root, username)
        if username == self._config.filesystem.default_user:
            raise ProtectedError(home, operation="delete", reason="default user")

        removed = self._fs.delete_folder(home, is_user_account_deletion=True)
        self._logger.info("User removed", context={'user': username, 'records': removed})
        return removed

    def _seed_programs(self, created: list[str]) -> None:
        system_path = self._config.system_path
        for file_name, program in PROGRAM_CATALOG:
            path = PathResolver.join(system_path, file_name)
            if self._fs.file_exists(path):
                continue
            self._fs.save_file(
                system_path, file_name, None,
                kind=FileKind.PROGRAM,
                extra={'program': program},
                is_protected=True,
            )
            created.append(path)

    def _ensure_settings_file(self, home: str, created: list[str]) -> None:
        folder = PathResolver.join(home, SETTINGS_FOLDER)
        path = PathResolver.join(folder, SETTINGS_FILE)
        if self._fs.file_exists(path):
            return
        self._fs.save_file(
            folder, SETTINGS_FILE, json.dumps(DEFAULT_SETTINGS),
            kind=FileKind.SETTINGS,
            is_protected=True,
            is_hidden=True,
        )
        created.append(path)

    def _ensure_folder(
        self,
        parent: str,
        name: str,
        created: list[str],
        folder_type: FolderType = FolderType.USER,
        is_protected: bool = False,
        is_hidden: bool = False
    ) -> Optional[str]:
        path = PathResolver.join(parent, name)
        if self._fs.folder_exists(path):
            return None
        self._fs.create_folder(
            parent, name,
            folder_type=folder_type,
            is_protected=is_protected,
            is_hidden=is_hidden,
        )
        created.append(path)
        return path
