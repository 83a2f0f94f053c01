"""
Batch / rollback coordinator.

A batch collects the messages issued by a callback into one transaction.
If the callback returns (or its awaitable resolves) the transaction is
signed and optionally broadcast; if it raises, everything collected is
discarded and the exception reaches the caller unchanged.

The open batch is tracked per coordinator in a ContextVar. Nested
``transaction`` calls made from inside the callback join the open batch
and only the outermost call commits or rolls back.
"""

from __future__ import annotations

import contextvars
import enum
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional

from ..errors import InvalidUsageError
from .models import Message, Transaction, TransactionResult
from .signing import SigningResolver

logger = logging.getLogger(__name__)


class BatchState(enum.Enum):
    OPEN = "open"
    COMMITTING = "committing"
    ROLLING_BACK = "rolling back"
    CLOSED = "closed"


class BatchContext:
    """The transaction being assembled by one batch."""

    def __init__(self) -> None:
        self.transaction = Transaction()
        self.state = BatchState.OPEN

    @property
    def is_open(self) -> bool:
        return self.state is BatchState.OPEN

    def append(self, message: Message, scope: list[str]) -> None:
        if not self.is_open:
            raise InvalidUsageError(
                f"Transaction is {self.state.value}; issue the message in a new transaction"
            )
        self.transaction.add_message(message, scope)

    def extend(self, transaction: Transaction) -> None:
        for message in transaction.messages:
            self.append(message, [])
        self.transaction.merge_scope(transaction.scope)


async def _join(awaitable: Awaitable[Any]) -> None:
    await awaitable


class BatchCoordinator:
    def __init__(self, resolver: SigningResolver) -> None:
        self.resolver = resolver
        self._current: contextvars.ContextVar[Optional[BatchContext]] = contextvars.ContextVar(
            f"eostx_batch_{id(self):x}", default=None
        )
        self._open: Optional[BatchContext] = None

    @property
    def active(self) -> Optional[BatchContext]:
        """The batch open in the current context, if any."""
        batch = self._current.get()
        if batch is not None and batch.is_open:
            return batch
        return None

    def run(
        self,
        callback: Callable[[Any], Any],
        bind: Callable[[BatchContext], Any],
        *,
        sign: Optional[bool] = None,
        broadcast: Optional[bool] = None,
    ) -> Optional[Awaitable[Any]]:
        """
        Run ``callback`` inside a batch.

        Args:
            callback: Receives ``bind(batch)``; may return an awaitable
            bind: Builds the handle(s) handed to the callback
            sign: Override the client's sign default at commit
            broadcast: Override the client's broadcast default at commit

        Returns:
            A coroutine resolving to TransactionResult for an outermost
            batch. When a batch is already open the callback runs
            immediately against it and None is returned (or an awaitable,
            if the callback returned one).
        """
        batch = self.active
        if batch is not None:
            logger.debug("nested transaction joins the open batch")
            result = callback(bind(batch))
            if inspect.isawaitable(result):
                return _join(result)
            return None
        return self._run_outer(callback, bind, sign, broadcast)

    async def _run_outer(
        self,
        callback: Callable[[Any], Any],
        bind: Callable[[BatchContext], Any],
        sign: Optional[bool],
        broadcast: Optional[bool],
    ) -> TransactionResult:
        if self._open is not None:
            raise InvalidUsageError("Another transaction is already open on this client")

        batch = BatchContext()
        self._open = batch
        token = self._current.set(batch)
        logger.debug("batch opened")
        try:
            result = callback(bind(batch))
            if inspect.isawaitable(result):
                await result
        except BaseException:
            batch.state = BatchState.ROLLING_BACK
            logger.debug(
                "batch rolled back, %d message(s) discarded",
                len(batch.transaction.messages),
            )
            batch.state = BatchState.CLOSED
            raise
        else:
            batch.state = BatchState.COMMITTING
        finally:
            self._current.reset(token)
            self._open = None

        transaction = batch.transaction
        logger.debug("batch committing %d message(s)", len(transaction.messages))
        try:
            if not transaction.messages:
                return TransactionResult(transaction=transaction)
            return await self.resolver.finalize(transaction, sign=sign, broadcast=broadcast)
        finally:
            batch.state = BatchState.CLOSED
