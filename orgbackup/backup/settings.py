"""
Explicit settings objects for the backup core.

Built once from the Flask config at the request/CLI boundary and passed
into the orchestrator, so the core never reads application globals.
"""

import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional


@dataclass
class DumpSettings:
    """How to invoke the external dump tool."""
    binary: str = 'cockroach'
    database: str = 'trasadb'
    output_filename: str = 'cockroach-back.sql'
    ssl_enabled: bool = False
    certs_dir: str = '/etc/trasa/certs'
    host: str = 'localhost'
    port: str = '26257'
    timeout: Optional[float] = None  # seconds; None waits forever

    def command(self) -> List[str]:
        """
        Build the dump command line.

        Plaintext mode talks to the local node insecurely; secured mode
        passes the certificate directory and an explicit host:port.
        """
        if self.ssl_enabled:
            return [
                self.binary, 'dump', self.database,
                f'--certs-dir={self.certs_dir}',
                f'--host={self.host}:{self.port}',
            ]
        return [self.binary, 'dump', self.database, '--insecure']


@dataclass
class BackupSettings:
    """Everything a backup run needs besides the organization itself."""
    backup_root: str
    name_prefix: str = 'trasa-backup'
    abort_on_archive_failure: bool = True
    dump: DumpSettings = field(default_factory=DumpSettings)

    @classmethod
    def from_mapping(cls, config: Mapping) -> 'BackupSettings':
        """
        Build settings from a Flask config (or any mapping with the same keys).

        Args:
            config: Mapping with BACKUP_*, DUMP_* and DATABASE_* keys

        Returns:
            BackupSettings instance
        """
        timeout = config.get('DUMP_TIMEOUT_SECONDS')
        dump = DumpSettings(
            binary=config.get('DUMP_BINARY', 'cockroach'),
            database=config.get('DUMP_DATABASE', 'trasadb'),
            output_filename=config.get('DUMP_OUTPUT_FILENAME', 'cockroach-back.sql'),
            ssl_enabled=bool(config.get('DATABASE_SSL_ENABLED', False)),
            certs_dir=config.get('DATABASE_CERTS_DIR', '/etc/trasa/certs'),
            host=config.get('DATABASE_HOST', 'localhost'),
            port=str(config.get('DATABASE_PORT', '26257')),
            timeout=float(timeout) if timeout else None,
        )
        return cls(
            backup_root=os.path.abspath(config['BACKUP_ROOT']),
            name_prefix=config.get('BACKUP_NAME_PREFIX', 'trasa-backup'),
            abort_on_archive_failure=bool(config.get('BACKUP_ABORT_ON_ARCHIVE_FAILURE', True)),
            dump=dump,
        )
