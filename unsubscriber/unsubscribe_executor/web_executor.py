"""
Web Browser Unsubscribe Executor

Opens the unsubscribe page in a new browser window; the user completes
the process there. No request is made on the user's behalf.
"""

import webbrowser
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ..email_processor.unsubscribe.constants import METHOD_BROWSER
from ..email_processor.unsubscribe.types import ExecutionResult, WebAction
from .base_executor import BaseUnsubscribeExecutor


class WebBrowserExecutor(BaseUnsubscribeExecutor):
    """Open unsubscribe web links in the user's browser."""

    action_type = WebAction

    def __init__(
        self,
        session: Optional[Session] = None,
        opener: Optional[Callable[[str], bool]] = None,
        dry_run: bool = False
    ):
        """
        Args:
            session: Database session for the action log
            opener: Callable opening a URL in a new surface and returning
                whether it succeeded; defaults to webbrowser.open_new
            dry_run: If True, do not open anything
        """
        super().__init__(session, dry_run=dry_run)
        self.opener = opener or webbrowser.open_new

    @property
    def method_name(self) -> str:
        return METHOD_BROWSER

    def _dry_run_message(self, action: WebAction) -> str:
        return f'DRY RUN: Would open {action.link}'

    def _perform_execution(self, action: WebAction) -> ExecutionResult:
        try:
            opened = self.opener(action.link)
        except (webbrowser.Error, OSError) as e:
            return self._failure(f'Could not open browser: {e}')

        if not opened:
            return self._failure('Browser window could not be opened')

        return ExecutionResult(
            success=True,
            method=self.method_name,
            message=f'Opened {action.link}'
        )
