"""
Database sessions for CLI commands.

Commands obtain sessions through get_cli_session_manager() so tests can
substitute an in-memory database.
"""

from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy.orm import Session

from .database import DatabaseManager


class CLISessionManager:
    """Hands out short-lived sessions bound to one database."""

    def __init__(self, database_url: Optional[str] = None, ensure_schema: bool = True):
        """
        Args:
            database_url: Database URL (default: Config.get_database_path())
            ensure_schema: Create missing tables so commands work before `init`
        """
        self.db_manager = DatabaseManager(database_url)
        if ensure_schema:
            self.db_manager.initialize_database()

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Session that is rolled back on error and always closed."""
        session = self.db_manager.get_session()
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


_cli_session_manager: Optional[CLISessionManager] = None


def get_cli_session_manager(database_url: Optional[str] = None) -> CLISessionManager:
    """Process-wide session manager, created on first use."""
    global _cli_session_manager
    if _cli_session_manager is None:
        _cli_session_manager = CLISessionManager(database_url)
    return _cli_session_manager
