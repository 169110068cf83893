"""
ElxaFS Bootloader

The bootloader is responsible for:
- Loading configuration
- Initializing logging
- Opening the record store and the content backend
- Loading the namespace
- Seeding or repairing the default layout
- Handling boot failures

Author: Elxa Corporation
Version: 2.0.0
"""

from __future__ import annotations

import sys
import time
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Optional, TYPE_CHECKING

from elxafs.logger import Logger, get_logger, LogLevel, LEVEL_NAMES
from elxafs.exceptions import BootFailureError
from elxafs.core.config_loader import Config, ConfigLoader, get_config

if TYPE_CHECKING:
    from elxafs.core.seeder import SeedResult
    from elxafs.filesystem.vfs import FileSystem
    from elxafs.storage.content_backend import ContentBackend
    from elxafs.storage.record_store import RecordStore


class BootStage(Enum):
    """Boot process stages."""
    PRE_INIT = auto()
    CONFIG_LOAD = auto()
    LOGGING_INIT = auto()
    STORE_INIT = auto()
    BACKEND_INIT = auto()
    FILESYSTEM_INIT = auto()
    SEED = auto()
    COMPLETE = auto()
    FAILED = auto()


@dataclass
class BootResult:
    """Result of the boot process."""
    success: bool
    stage: BootStage
    message: str
    elapsed_time: float
    error: Optional[Exception] = None
    failed_stage: Optional[BootStage] = None
    seed: Optional[SeedResult] = None


class Bootloader:
    """
    The file system bootloader.

    Boot Sequence:
        1. Pre-initialization checks
        2. Load configuration
        3. Initialize logging
        4. Open the record store
        5. Open the content backend
        6. Load the namespace
        7. Seed or repair
        8. Complete

    A record store and a backend can be injected; otherwise they are
    built from the configuration.

    Example:
        >>> bootloader = Bootloader()
        >>> result = bootloader.boot()
        >>> if result.success:
        ...     fs = bootloader.get_filesystem()
    """

    def __init__(
        self,
        config_path: Optional[str] = None,
        config: Optional[Config] = None,
        record_store: Optional[RecordStore] = None,
        backend: Optional[ContentBackend] = None
    ):
        self._config_path = config_path
        self._config = config
        self._store = record_store
        self._backend = backend
        self._stage = BootStage.PRE_INIT
        self._logger: Optional[Logger] = None
        self._start_time: float = 0
        self._fs: Optional[FileSystem] = None

    @property
    def stage(self) -> BootStage:
        """Get the current boot stage."""
        return self._stage

    @property
    def config(self) -> Config:
        return self._config or get_config()

    def boot(self) -> BootResult:
        """
        Execute the boot sequence.

        Returns:
            BootResult indicating success or failure
        """
        self._start_time = time.time()
        seed_result = None

        try:
            self._stage = BootStage.PRE_INIT
            self._pre_init()

            self._stage = BootStage.CONFIG_LOAD
            self._load_config()

            self._stage = BootStage.LOGGING_INIT
            self._init_logging()

            self._logger = get_logger('bootloader')
            self._logger.info(f"{self.config.system.name} file system starting...")

            self._stage = BootStage.STORE_INIT
            self._init_store()

            self._stage = BootStage.BACKEND_INIT
            self._init_backend()

            self._stage = BootStage.FILESYSTEM_INIT
            self._init_filesystem()

            self._stage = BootStage.SEED
            seed_result = self._seed()

            self._stage = BootStage.COMPLETE
            elapsed = time.time() - self._start_time

            self._logger.info(
                "Boot complete",
                context={'elapsed_ms': f"{elapsed * 1000:.2f}"}
            )

            return BootResult(
                success=True,
                stage=self._stage,
                message="File system booted successfully",
                elapsed_time=elapsed,
                seed=seed_result
            )

        except Exception as e:
            failed_stage = self._stage
            self._stage = BootStage.FAILED
            elapsed = time.time() - self._start_time

            if self._logger:
                self._logger.critical(f"Boot failed at stage {failed_stage.name}: {e}")

            return BootResult(
                success=False,
                stage=self._stage,
                message=f"Boot failed: {e}",
                elapsed_time=elapsed,
                error=e,
                failed_stage=failed_stage
            )

    def _pre_init(self) -> None:
        """Pre-initialization checks."""
        if sys.version_info < (3, 9):
            raise BootFailureError(
                "Python 3.9+ required",
                subsystem="bootloader"
            )

    def _load_config(self) -> None:
        """Load configuration unless one was injected."""
        if self._config is not None:
            return
        loader = ConfigLoader()
        if self._config_path and Path(self._config_path).exists():
            self._config = loader.load(self._config_path)
        else:
            self._config = loader.config

    def _init_logging(self) -> None:
        """Initialize the logging system."""
        log_config = self.config.logging
        level = LEVEL_NAMES.get(log_config.level.upper(), LogLevel.INFO)

        Logger.initialize(
            level=level,
            log_file=log_config.log_file,
            use_colors=log_config.use_colors,
            console_output=log_config.console_output
        )

    def _init_store(self) -> None:
        """Open the record store."""
        if self._store is not None:
            return

        from elxafs.storage.record_store import create_record_store

        storage = self.config.storage
        self._store = create_record_store(
            storage.backend,
            data_dir=storage.data_dir,
            key_prefix=storage.key_prefix
        )
        self._logger.debug("Record store opened", context={'backend': storage.backend})

    def _init_backend(self) -> None:
        """Open the content backend, if one is configured."""
        if self._backend is None and self.config.storage.external_dir:
            from elxafs.storage.content_backend import DirectoryContentBackend

            self._backend = DirectoryContentBackend(self.config.storage.external_dir)

        initialize = getattr(self._backend, 'initialize', None)
        if callable(initialize):
            initialize()

    def _init_filesystem(self) -> None:
        """Load the namespace."""
        from elxafs.filesystem.vfs import FileSystem

        self._fs = FileSystem(self._store, backend=self._backend, config=self.config)
        self._fs.initialize()
        self._fs.set_current_user(self.config.filesystem.default_user)
        self._fs.start()

    def _seed(self) -> SeedResult:
        """Seed on first run, repair afterwards."""
        from elxafs.core.seeder import Seeder

        return Seeder(self._fs).run()

    def get_filesystem(self) -> Optional[FileSystem]:
        """Get the booted file system."""
        return self._fs

    def shutdown(self) -> None:
        """Shutdown the file system."""
        if self._logger:
            self._logger.info("Shutdown initiated")

        if self._fs:
            self._fs.stop()
            self._fs.cleanup()

        if self._logger:
            self._logger.info("Shutdown complete")


def boot_system(
    config_path: Optional[str] = None,
    config: Optional[Config] = None,
    record_store: Optional[RecordStore] = None,
    backend: Optional[ContentBackend] = None
) -> tuple[BootResult, Optional[FileSystem]]:
    """
    Convenience function to boot the file system.

    Returns:
        Tuple of (BootResult, FileSystem or None)
    """
    bootloader = Bootloader(config_path, config=config, record_store=record_store, backend=backend)
    result = bootloader.boot()
    return result, bootloader.get_filesystem() if result.success else None
