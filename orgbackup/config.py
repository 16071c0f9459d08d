import os
from datetime import timedelta


def _env_flag(name, default='false'):
    return os.environ.get(name, default).lower() == 'true'


class Config:
    """Base configuration"""

    # Flask
    # Get SECRET_KEY from environment, or read the persistent one from the data directory
    SECRET_KEY = os.environ.get('SECRET_KEY')
    if not SECRET_KEY:
        secret_file = '/var/orgbackup/.secret_key'
        if os.path.exists(secret_file):
            with open(secret_file, 'r') as f:
                SECRET_KEY = f.read().strip()
        else:
            # Fallback for development mode - sessions won't survive a restart
            import secrets
            SECRET_KEY = secrets.token_hex(32)
            print("WARNING: Using non-persistent SECRET_KEY. Set SECRET_KEY environment variable.")

    # Database (backup metadata, organizations, users)
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:////var/orgbackup/orgbackup.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Session
    PERMANENT_SESSION_LIFETIME = timedelta(hours=24)
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    # CSRF
    WTF_CSRF_ENABLED = True
    WTF_CSRF_TIME_LIMIT = None

    # Logging
    LOG_DIR = os.environ.get('LOG_DIR') or '/var/orgbackup/logs'

    # Backups
    BACKUP_ROOT = os.environ.get('BACKUP_ROOT') or '/var/orgbackup/backup'
    BACKUP_NAME_PREFIX = os.environ.get('BACKUP_NAME_PREFIX') or 'trasa-backup'
    BACKUP_ABORT_ON_ARCHIVE_FAILURE = _env_flag('BACKUP_ABORT_ON_ARCHIVE_FAILURE', 'true')

    # Dump tool
    DUMP_BINARY = os.environ.get('DUMP_BINARY') or 'cockroach'
    DUMP_DATABASE = os.environ.get('DUMP_DATABASE') or 'trasadb'
    DUMP_OUTPUT_FILENAME = 'cockroach-back.sql'
    DUMP_TIMEOUT_SECONDS = int(os.environ.get('DUMP_TIMEOUT_SECONDS', 3600))

    # Store connection used by the dump tool
    DATABASE_SSL_ENABLED = _env_flag('DATABASE_SSL_ENABLED')
    DATABASE_CERTS_DIR = os.environ.get('DATABASE_CERTS_DIR') or '/etc/trasa/certs'
    DATABASE_HOST = os.environ.get('DATABASE_HOST') or 'localhost'
    DATABASE_PORT = os.environ.get('DATABASE_PORT') or '26257'


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    SQLALCHEMY_ECHO = True

    # Use local data directory for development
    BASE_DIR = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
    DATA_DIR = os.path.join(BASE_DIR, 'data')
    SQLALCHEMY_DATABASE_URI = f'sqlite:///{os.path.join(DATA_DIR, "orgbackup.db")}'
    LOG_DIR = os.path.join(DATA_DIR, 'logs')
    BACKUP_ROOT = os.path.join(DATA_DIR, 'backup')


class TestingConfig(Config):
    """Test configuration - paths are normally overridden per test"""
    TESTING = True
    DEBUG = False
    SECRET_KEY = 'test-secret-key'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    WTF_CSRF_ENABLED = False
    DUMP_TIMEOUT_SECONDS = 30


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    SQLALCHEMY_ECHO = False

    # Production security
    SESSION_COOKIE_SECURE = os.environ.get('HTTPS_ENABLED', 'false').lower() == 'true'


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': ProductionConfig
}
