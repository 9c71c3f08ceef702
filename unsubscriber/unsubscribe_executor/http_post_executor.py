"""
HTTP POST Unsubscribe Executor

Carries out RFC 8058 one-click unsubscribe: a single POST with the body
`List-Unsubscribe=One-Click`, form-encoded. Any 2xx response is success.
"""

from typing import Optional

import requests
from sqlalchemy.orm import Session

from ..config import Config
from ..email_processor.unsubscribe.constants import (
    METHOD_POST, ONE_CLICK_CONTENT_TYPE, ONE_CLICK_POST_BODY
)
from ..email_processor.unsubscribe.types import ExecutionResult, PostAction
from .base_executor import BaseUnsubscribeExecutor


class HttpPostExecutor(BaseUnsubscribeExecutor):
    """Execute one-click unsubscribe POST requests."""

    action_type = PostAction

    def __init__(
        self,
        session: Optional[Session] = None,
        timeout: Optional[int] = None,
        user_agent: Optional[str] = None,
        verify_ssl: Optional[bool] = None,
        dry_run: bool = False
    ):
        """
        Initialize HTTP POST executor.

        Args:
            session: Database session for the action log
            timeout: HTTP request timeout in seconds
            user_agent: User-Agent header value
            verify_ssl: Verify TLS certificates
            dry_run: If True, simulate without making actual requests
        """
        super().__init__(
            session,
            timeout if timeout is not None else Config.REQUEST_TIMEOUT,
            dry_run
        )
        self.user_agent = user_agent or Config.USER_AGENT
        self.verify_ssl = Config.VERIFY_SSL if verify_ssl is None else verify_ssl

    @property
    def method_name(self) -> str:
        return METHOD_POST

    def _dry_run_message(self, action: PostAction) -> str:
        return f'DRY RUN: Would POST {ONE_CLICK_POST_BODY} to {action.weblink}'

    def _perform_execution(self, action: PostAction) -> ExecutionResult:
        headers = {
            'Content-Type': ONE_CLICK_CONTENT_TYPE,
            'User-Agent': self.user_agent,
        }

        try:
            response = requests.post(
                action.weblink,
                data=ONE_CLICK_POST_BODY,
                headers=headers,
                timeout=self.timeout,
                verify=self.verify_ssl,
                allow_redirects=True
            )
        except requests.exceptions.Timeout:
            return self._failure(f'Request timed out after {self.timeout} seconds')
        except requests.exceptions.ConnectionError as e:
            return self._failure(f'Connection error: {e}')
        except requests.exceptions.RequestException as e:
            return self._failure(f'Request failed: {e}')

        if not 200 <= response.status_code < 300:
            return self._failure(
                f'Error during unsubscribe request: {response.status_code}',
                status_code=response.status_code
            )

        return ExecutionResult(
            success=True,
            method=self.method_name,
            status_code=response.status_code,
            message='Successfully unsubscribed'
        )
