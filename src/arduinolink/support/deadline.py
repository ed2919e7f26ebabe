"""
Races an asyncio future against a deadline.

A Deadline arms a timer on the running loop. When the timer fires before the
future settles, the future is failed with the error produced by the deadline's
error factory. Whichever settles first wins; the timer is always cancelled on
exit so no expired timers are left behind, and a result that arrives after
expiry finds the future already done and is ignored by `settle()`.
"""
import asyncio
import logging

logger = logging.getLogger(__name__)


class Deadline:

    def __init__(self, timeout, error_factory=TimeoutError):
        """
        :param timeout: seconds until the deadline expires
        :param error_factory: callable returning the exception to fail the future with on expiry
        """
        self.timeout = timeout
        self.error_factory = error_factory
        self.expired = False

    async def wait(self, awaitable):
        """ waits for the awaitable, failing with the deadline error if it does not complete in time.
            Coroutines are scheduled as tasks and cancelled when the deadline wins.
        """
        loop = asyncio.get_running_loop()
        future = asyncio.ensure_future(awaitable)
        timer = loop.call_later(self.timeout, self._expire, future)
        try:
            return await future
        except asyncio.CancelledError:
            if self.expired:
                raise self.error_factory() from None
            raise
        finally:
            timer.cancel()

    def _expire(self, future):
        if future.done():
            return
        self.expired = True
        logger.debug("deadline of %ss expired", self.timeout)
        if isinstance(future, asyncio.Task):
            future.cancel()
        else:
            future.set_exception(self.error_factory())

    @staticmethod
    def settle(future, value):
        """ completes the future unless it was already settled by the deadline or a failure.
        :return: True if the value was delivered.
        """
        if future.done():
            return False
        future.set_result(value)
        return True

    @staticmethod
    def fail(future, error):
        if future.done():
            return False
        future.set_exception(error)
        return True
