"""
Unsubscribe service: the entry points used by the user interface.

- get_or_classify: cached, single-flight classification of a message
- describe_action: what would happen, for display
- execute_action / unsubscribe: run the cached action once
- cancel: user declined; nothing is executed
- delete_messages: remove the message or everything from its sender
"""

from typing import Any, Dict, Mapping, Optional

from sqlalchemy.orm import Session

from ..unsubscribe_executor import EmailReplyExecutor, HttpPostExecutor, WebBrowserExecutor
from ..unsubscribe_executor.base_executor import BaseUnsubscribeExecutor
from .email_deleter import DeleteCriteria, DeletionResult, MessageDeleter
from .message_source import MessageSource
from .unsubscribe.cache import UnsubscribeActionCache
from .unsubscribe.classifiers import UnsubscribeMethodClassifier
from .unsubscribe.constants import RESPONSE_CANCELED, RESPONSE_FAILED, RESPONSE_UNSUBSCRIBED
from .unsubscribe.exceptions import ActionNotFoundError
from .unsubscribe.logging import UnsubscribeLogger
from .unsubscribe.types import (
    NO_ACTION, ActionDescription, ExecutionResult, MailAction, PostAction,
    UnsubscribeAction, WebAction
)


def default_executors(session: Optional[Session] = None,
                      dry_run: bool = False) -> Dict[type, BaseUnsubscribeExecutor]:
    """One executor per action variant."""
    return {
        PostAction: HttpPostExecutor(session, dry_run=dry_run),
        MailAction: EmailReplyExecutor(session, dry_run=dry_run),
        WebAction: WebBrowserExecutor(session, dry_run=dry_run),
    }


class UnsubscribeService:
    """Classify, describe and execute unsubscribe actions per message."""

    def __init__(
        self,
        source: MessageSource,
        directory=None,
        cache: Optional[UnsubscribeActionCache] = None,
        classifier: Optional[UnsubscribeMethodClassifier] = None,
        executors: Optional[Mapping[type, BaseUnsubscribeExecutor]] = None,
        session: Optional[Session] = None,
        dry_run: bool = False
    ):
        """
        Args:
            source: Message content source
            directory: Identity/account directory for mailto actions
            cache: Result cache; owned by whoever orchestrates message display
            classifier: Method classifier (built from directory if omitted)
            executors: Executor per action type
            session: Database session for the action log
            dry_run: Build executors that only describe what they would do
        """
        self.source = source
        self.cache = cache if cache is not None else UnsubscribeActionCache()
        self.classifier = classifier or UnsubscribeMethodClassifier(directory)
        self.executors = dict(executors) if executors is not None else default_executors(session, dry_run)
        self.logger = UnsubscribeLogger("unsubscribe_service")

    def get_or_classify(self, message_id: Any) -> Optional[UnsubscribeAction]:
        """Return the action for a message, classifying it on first request.

        RetrievalError from the source propagates and nothing is cached.
        """
        return self.cache.get_or_compute(message_id, lambda: self.classify_message(message_id))

    def classify_message(self, message_id: Any) -> Optional[UnsubscribeAction]:
        """Fetch a message and classify it, bypassing the cache."""
        with self.logger.time_operation(f"classify message {message_id}"):
            meta = self.source.get_message_meta(message_id)
            full_message = self.source.get_full_message(message_id)
            return self.classifier.classify(meta, full_message.headers, full_message.mime_tree)

    def describe_action(self, message_id: Any) -> ActionDescription:
        """Describe the cached action; kind None when nothing was found."""
        action = self.cache.get(message_id)
        if action is None:
            return NO_ACTION
        return action.describe()

    def execute_action(self, message_id: Any) -> ExecutionResult:
        """Run the cached action once.

        Raises:
            ActionNotFoundError: the message has no classified action
        """
        action = self.cache.get(message_id)
        if action is None:
            raise ActionNotFoundError(message_id)

        executor = self.executors.get(type(action))
        if executor is None:
            raise TypeError(f"No executor registered for {type(action).__name__}")
        return executor.execute(message_id, action)

    def unsubscribe(self, message_id: Any) -> Dict[str, Any]:
        """Execute and return the response shape shown to the user."""
        self.logger.info("User chose to unsubscribe", {'message_id': message_id})
        try:
            result = self.execute_action(message_id)
        except ActionNotFoundError as e:
            self.logger.log_exception(e)
            return {'response': RESPONSE_FAILED, 'error': str(e)}

        if result.success:
            return {'response': RESPONSE_UNSUBSCRIBED}
        return {'response': RESPONSE_FAILED, 'error': result.error_message}

    def cancel(self, message_id: Any) -> Dict[str, Any]:
        """The user declined; the classified action stays cached and unexecuted."""
        self.logger.info("User canceled the unsubscribe action", {'message_id': message_id})
        return {'response': RESPONSE_CANCELED}

    def delete_messages(self, criteria: DeleteCriteria, dry_run: bool = False) -> DeletionResult:
        """Delete messages matching the criteria and forget their cached actions."""
        result = MessageDeleter(self.source).delete(criteria, dry_run=dry_run)
        if result.message_ids and not dry_run:
            for message_id in result.message_ids:
                self.cache.invalidate(message_id)
        return result
