"""
Configuration settings for Better Unsubscribe.
"""

import os
from pathlib import Path

from dotenv import load_dotenv


class Config:
    """Configuration settings."""

    # Database settings (identity directory and action log)
    DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///unsubscriber.db')

    # Execution settings
    REQUEST_TIMEOUT = int(os.getenv('REQUEST_TIMEOUT', '10'))
    SMTP_TIMEOUT = int(os.getenv('SMTP_TIMEOUT', '30'))
    IMAP_TIMEOUT = int(os.getenv('IMAP_TIMEOUT', '30'))
    USER_AGENT = os.getenv('USER_AGENT', 'BetterUnsubscribe/1.0')
    UNSUBSCRIBE_BODY = os.getenv(
        'UNSUBSCRIBE_BODY', 'Please unsubscribe me from your mailing list. Thank you.'
    )

    # Security settings
    VERIFY_SSL = os.getenv('VERIFY_SSL', 'true').lower() == 'true'

    # Logging settings
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'WARNING')
    LOG_FORMAT = os.getenv('LOG_FORMAT', 'json')
    LOG_FILE = os.getenv('LOG_FILE')

    @classmethod
    def get_data_dir(cls) -> Path:
        """Get the data directory for storing database, credentials and messages."""
        data_dir = Path(os.getenv('DATA_DIR', Path.cwd() / 'data'))
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    @classmethod
    def get_message_dir(cls) -> Path:
        """Get the directory scanned by the .eml message source."""
        message_dir = os.getenv('MESSAGE_DIR')
        if message_dir:
            return Path(message_dir)
        return cls.get_data_dir() / 'messages'

    @classmethod
    def get_database_path(cls) -> str:
        """Get the database URL, placing relative SQLite files in the data directory."""
        if cls.DATABASE_URL.startswith('sqlite:///'):
            db_file = cls.DATABASE_URL[len('sqlite:///'):]
            if db_file != ':memory:' and not os.path.isabs(db_file):
                db_path = cls.get_data_dir() / db_file
                return f"sqlite:///{db_path}"
        return cls.DATABASE_URL

    @classmethod
    def get_credential_store_path(cls) -> Path:
        """Get the path to the credential store file."""
        store_path = os.getenv('EMAIL_PSWD_STORE_PATH', 'email_passwords.json')

        if '{$DATA_DIR}' in store_path:
            store_path = store_path.replace('{$DATA_DIR}', str(cls.get_data_dir()))

        path = Path(store_path)
        if not path.is_absolute():
            path = cls.get_data_dir() / path
        return path


def load_config_from_env_file(env_file: str = '.env') -> bool:
    """Load environment variables from a .env file and refresh Config."""
    env_path = Path(env_file)
    if not env_path.exists():
        return False
    load_dotenv(env_path)
    Config.DATABASE_URL = os.getenv('DATABASE_URL', Config.DATABASE_URL)
    Config.REQUEST_TIMEOUT = int(os.getenv('REQUEST_TIMEOUT', str(Config.REQUEST_TIMEOUT)))
    Config.SMTP_TIMEOUT = int(os.getenv('SMTP_TIMEOUT', str(Config.SMTP_TIMEOUT)))
    Config.IMAP_TIMEOUT = int(os.getenv('IMAP_TIMEOUT', str(Config.IMAP_TIMEOUT)))
    Config.USER_AGENT = os.getenv('USER_AGENT', Config.USER_AGENT)
    Config.UNSUBSCRIBE_BODY = os.getenv('UNSUBSCRIBE_BODY', Config.UNSUBSCRIBE_BODY)
    Config.VERIFY_SSL = os.getenv('VERIFY_SSL', str(Config.VERIFY_SSL)).lower() == 'true'
    Config.LOG_LEVEL = os.getenv('LOG_LEVEL', Config.LOG_LEVEL)
    Config.LOG_FORMAT = os.getenv('LOG_FORMAT', Config.LOG_FORMAT)
    Config.LOG_FILE = os.getenv('LOG_FILE', Config.LOG_FILE)
    return True
