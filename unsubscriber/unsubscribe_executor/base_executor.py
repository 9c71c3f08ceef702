"""
Base Unsubscribe Executor

Common workflow for the three action executors (one-click POST, email
reply, browser page):
- Action type check
- Dry-run short circuit
- Method-specific execution, one shot, no retries
- Appending the outcome to the action log when a database session is given
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..database.models import UnsubscribeAttempt
from ..email_processor.unsubscribe.logging import UnsubscribeLogger
from ..email_processor.unsubscribe.types import ExecutionResult, UnsubscribeAction


class BaseUnsubscribeExecutor(ABC):
    """
    Abstract base class for all unsubscribe executors.

    Subclasses declare the action type they run and implement
    _perform_execution; failures are reported in the returned
    ExecutionResult rather than raised.
    """

    action_type: type = object

    def __init__(
        self,
        session: Optional[Session] = None,
        timeout: int = 30,
        dry_run: bool = False
    ):
        """
        Initialize base executor.

        Args:
            session: Database session for the action log (None disables logging)
            timeout: Network timeout in seconds
            dry_run: If True, describe the action without carrying it out
        """
        self.session = session
        self.timeout = timeout
        self.dry_run = dry_run
        self.logger = UnsubscribeLogger(f"executor.{self.method_name.lower()}")

    @property
    @abstractmethod
    def method_name(self) -> str:
        """Return the method name (Post, Email, Browser)."""

    def execute(self, message_id: Any, action: UnsubscribeAction) -> ExecutionResult:
        """
        Execute an unsubscribe action (template method).

        Workflow:
        1. Check the action is of the type this executor runs
        2. Dry-run or real execution
        3. Record the attempt (skipped for dry-run)

        Args:
            message_id: Id of the message the action was classified from
            action: Classified unsubscribe action

        Returns:
            ExecutionResult with success status
        """
        if not isinstance(action, self.action_type):
            return ExecutionResult(
                success=False,
                method=self.method_name,
                error_message=f'Method mismatch: {type(action).__name__} '
                              f'(expected {self.action_type.__name__})'
            )

        address = action.describe().address
        with self.logger.scoped_context({'message_id': message_id, 'address': address}):
            if self.dry_run:
                return ExecutionResult(
                    success=True,
                    method=self.method_name,
                    dry_run=True,
                    message=self._dry_run_message(action)
                )

            self.logger.info("Executing unsubscribe action")
            result = self._perform_execution(action)

            if result.success:
                self.logger.info("Unsubscribe action succeeded", {'status_code': result.status_code})
            else:
                self.logger.warning("Unsubscribe action failed", {'error': result.error_message})
            self.logger.log_operation_count(self.method_name, result.success)

        self._record_attempt(message_id, address, result)
        return result

    @abstractmethod
    def _perform_execution(self, action: UnsubscribeAction) -> ExecutionResult:
        """
        Carry out the action once.

        Returns:
            ExecutionResult; must not raise for transport failures
        """

    def _dry_run_message(self, action: UnsubscribeAction) -> str:
        return f'DRY RUN: Would {self.method_name.lower()} to {action.describe().address}'

    def _failure(self, error_message: str, status_code: Optional[int] = None) -> ExecutionResult:
        return ExecutionResult(
            success=False,
            method=self.method_name,
            message=error_message,
            status_code=status_code,
            error_message=error_message
        )

    def _record_attempt(self, message_id: Any, address: Optional[str], result: ExecutionResult):
        """Append the attempt to the action log."""
        if self.session is None:
            return
        attempt = UnsubscribeAttempt(
            message_id=str(message_id),
            attempted_at=datetime.now(),
            method_used=self.method_name,
            target_address=address,
            status='success' if result.success else 'failed',
            response_code=result.status_code,
            error_message=result.error_message
        )
        try:
            self.session.add(attempt)
            self.session.commit()
        except SQLAlchemyError as e:
            # Result stands even if the log write fails
            self.session.rollback()
            self.logger.error("Failed to record unsubscribe attempt", {'error': str(e)})
