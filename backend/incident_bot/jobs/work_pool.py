"""
Command worker pool.

Slash commands are acknowledged immediately and their work runs here.
Each submission carries an error channel: if the work raises, the error
is logged and rendered back to the user through the command's
response_url.
"""

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional

from incident_bot.clients.slack_client import SlackClient
from incident_bot.core.exceptions import PermissionDeniedError, user_message_for
from incident_bot.core.logging import LogContext, get_logger
from incident_bot.slack.blocks import error_blocks, permission_denied_blocks

logger = get_logger(__name__)


def blocks_for_error(exc: BaseException):
    if isinstance(exc, PermissionDeniedError):
        return permission_denied_blocks(exc.action)
    return error_blocks(user_message_for(exc))


class CommandWorkPool:
    def __init__(self, slack: SlackClient, max_workers: int = 8):
        self.slack = slack
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="command-worker")

    def submit(
        self,
        work: Callable[[], None],
        response_url: Optional[str],
        description: str,
        request_id: Optional[str] = None,
    ) -> Future:
        """
        Run ``work`` on the pool.

        Args:
            work: Zero-argument callable doing the command's work
            response_url: Where to report a failure, if anywhere
            description: Short name used in logs
            request_id: Propagated into the worker's log context
        """
        return self._executor.submit(self._run, work, response_url, description, request_id)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _run(
        self,
        work: Callable[[], None],
        response_url: Optional[str],
        description: str,
        request_id: Optional[str],
    ) -> None:
        with LogContext(request_id=request_id):
            try:
                work()
            except Exception as e:
                logger.exception("command_failed", command=description, error=str(e))
                self._report(response_url, e)
                return
            logger.debug("command_completed", command=description)

    def _report(self, response_url: Optional[str], exc: Exception) -> None:
        if not response_url:
            return
        try:
            self.slack.post_to_response_url(response_url, blocks_for_error(exc))
        except Exception as report_error:
            logger.error("command_error_report_failed", error=str(report_error))
