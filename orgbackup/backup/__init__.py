"""
Backup module for orgbackup.

This module handles the core backup functionality including:
- Naming (time-ordered, per-organization backup names)
- Dump execution (streaming the external dump tool to disk)
- Compression (zip artifacts)
- Metadata storage
- Orchestration of the complete run
"""

from .orchestrator import BackupOrchestrator, BackupState
from .dump import DumpExecutor
from .compression import create_archive
from .store import BackupStore, get_organization
from .settings import BackupSettings, DumpSettings
from .naming import generate_name, resolve_timezone

__all__ = [
    'BackupOrchestrator',
    'BackupState',
    'DumpExecutor',
    'create_archive',
    'BackupStore',
    'get_organization',
    'BackupSettings',
    'DumpSettings',
    'generate_name',
    'resolve_timezone'
]
