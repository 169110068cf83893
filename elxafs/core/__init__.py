"""
ElxaFS Core Module

Core components including:
- Configuration Loader
- Subsystem lifecycle
- Seeder
- Bootloader
"""

from .config_loader import ConfigLoader, Config, get_config
from .subsystem import Subsystem, SubsystemState
from .seeder import Seeder, SeedResult
from .bootloader import Bootloader, BootStage, BootResult, boot_system

__all__ = [
    # Config
    'ConfigLoader',
    'Config',
    'get_config',
    # Subsystem
    'Subsystem',
    'SubsystemState',
    # Seeder
    'Seeder',
    'SeedResult',
    # Bootloader
    'Bootloader',
    'BootStage',
    'BootResult',
    'boot_system',
]
