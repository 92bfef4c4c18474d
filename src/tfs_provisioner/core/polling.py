"""Status polling for asynchronous TFS operations.

TFS answers a create request before the resource is ready and hands back a
URL describing the operation. The StatusPoller re-reads that URL until it
reports a terminal status, bounded by a PollPolicy so that an unresponsive
server cannot stall a run forever.

Example:
    ```python
    from tfs_provisioner.core.models import PollPolicy
    from tfs_provisioner.core.polling import StatusPoller

    poller = StatusPoller(client, PollPolicy(max_attempts=10, interval=2.0))
    status = await poller.poll_until_terminal(operation_url)
    if status.failed:
        ...
    ```

Raises:
    PollTimeout: When the operation is still pending after the policy is exhausted
    TransportFailure: When a poll request cannot reach TFS
    UnexpectedStatusCode: When a poll request is answered with a non-2xx status
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

import tenacity

from tfs_provisioner.core.client import TfsClient
from tfs_provisioner.core.exceptions import PollTimeout, UnexpectedStatusCode
from tfs_provisioner.core.models import BackoffStrategy, OperationStatus, PollPolicy

StatusReader = Callable[[dict], OperationStatus]


class StatusPoller:
    """Polls an operation status URL until it succeeds or fails."""

    def __init__(
        self,
        client: TfsClient,
        policy: PollPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.client = client
        self.policy = policy or PollPolicy()
        self._sleep = sleep

    def _wait(self) -> tenacity.wait.wait_base:
        if self.policy.backoff == BackoffStrategy.EXPONENTIAL:
            return tenacity.wait_exponential(
                multiplier=self.policy.interval,
                max=self.policy.max_interval,
            )
        return tenacity.wait_fixed(self.policy.interval)

    async def _check_status(self, status_url: str, read_status: StatusReader, api_version: str) -> OperationStatus:
        response = await self.client.get_operation_async(status_url, api_version=api_version)
        if not response.ok:
            raise UnexpectedStatusCode(response.status, status_url, response.message)
        status = read_status(response.body or {})
        logging.debug("poller: %s - %s", status.status or "unknown", status_url)
        return status

    async def poll_until_terminal(
        self,
        status_url: str,
        read_status: StatusReader = OperationStatus.from_operation_response,
        api_version: str = TfsClient.PROJECT_API_VERSION,
    ) -> OperationStatus:
        """
        Re-issues a GET against the status URL until the status is terminal.

        Args:
            status_url: URL of the operation or resource to poll
            read_status: Converts a response body into an OperationStatus
            api_version: REST API version of the polled resource

        Returns:
            OperationStatus: The first terminal status observed (succeeded or failed)
        """
        retrying = tenacity.AsyncRetrying(
            stop=(
                tenacity.stop_after_attempt(self.policy.max_attempts)
                | tenacity.stop_after_delay(self.policy.timeout)
            ),
            wait=self._wait(),
            retry=tenacity.retry_if_result(lambda status: not status.is_terminal),
            sleep=self._sleep,
        )
        try:
            return await retrying(self._check_status, status_url, read_status, api_version)
        except tenacity.RetryError as e:
            attempt = e.last_attempt
            logging.error("poller: gave up after %d attempts - %s", attempt.attempt_number, status_url)  # noqa: TRY400
            raise PollTimeout(status_url, attempt.attempt_number, attempt.result()) from e
