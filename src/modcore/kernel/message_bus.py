"""Topic-based asynchronous message bus.

``publish_async`` snapshots the subscribers of a topic and schedules one
independent delivery per handler on a later loop tick. A failing handler is
logged and never affects its siblings or the publisher.

INVARIANT: Handler failures are logged, never raised.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from typing import Any

from modcore.errors import LifecycleError, MessageDeliveryError
from modcore.kernel.guard import next_uid, require, require_callable, require_non_empty_string
from modcore.kernel.types import Message, MessageHandler, Scheduler, Unsubscribe

logger = logging.getLogger(__name__)


def loop_scheduler(callback: Callable[..., Any], *args: Any) -> asyncio.Handle:
    """Schedule *callback* on the running asyncio loop (``call_soon``)."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError as exc:
        msg = "no running event loop to schedule on; pass an explicit scheduler"
        raise LifecycleError(msg) from exc
    return loop.call_soon(callback, *args)


class MessageBus:
    """Subscription table plus deferred, isolated message delivery.

    Parameters:
        scheduler: ``scheduler(callback, *args)`` used for every delivery.
            Defaults to :func:`loop_scheduler`.
    """

    def __init__(self, scheduler: Scheduler | None = None) -> None:
        self._scheduler: Scheduler = scheduler or loop_scheduler
        self._subscribers: dict[str, dict[int, MessageHandler]] = {}
        self._pending = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def on_message(self, message_type: str, handler: MessageHandler) -> Unsubscribe:
        """Subscribe *handler* to *message_type*; return its unsubscribe capability."""
        require_non_empty_string(
            message_type, "on_message(): message type must be a non empty string"
        )
        require_callable(handler, f'on_message(): "{message_type}" handler must be callable')
        return self._add_subscriber(message_type, handler)

    def publish_async(self, message: Message) -> None:
        """Schedule delivery of *message* to the current subscribers of its type."""
        require(
            isinstance(message, Mapping),
            "publish_async(): message must be a mapping with a non empty string type",
        )
        message_type = message.get("type")
        require_non_empty_string(
            message_type, "publish_async(): message must be a mapping with a non empty string type"
        )

        subscriptions = self._subscribers.get(message_type)
        if not subscriptions:
            return

        for handler in list(subscriptions.values()):
            self._publish_single(message_type, message, handler)

    @property
    def pending(self) -> int:
        """Number of scheduled deliveries that have not run yet."""
        return self._pending

    def topics(self) -> list[str]:
        """Return the topics that currently have subscribers."""
        return list(self._subscribers)

    def subscriber_count(self, message_type: str) -> int:
        return len(self._subscribers.get(message_type, ()))

    async def drain(self) -> None:
        """Yield to the running loop until every scheduled delivery has run.

        Only a bus delivering through :func:`loop_scheduler` can be drained;
        other schedulers run their callbacks outside the loop, so waiting on
        the loop would never see them finish.
        """
        if self._scheduler is not loop_scheduler:
            raise LifecycleError("drain(): only supported with the default loop scheduler")
        while self._pending:
            await asyncio.sleep(0)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _publish_single(self, message_type: str, message: Message, handler: MessageHandler) -> None:
        self._pending += 1
        try:
            self._scheduler(self._deliver, message_type, message, handler)
        except BaseException:
            self._pending -= 1
            raise

    def _deliver(self, message_type: str, message: Message, handler: MessageHandler) -> None:
        try:
            handler(message)
        except Exception:
            logger.error("%s", MessageDeliveryError(message_type), exc_info=True)
        finally:
            self._pending -= 1

    def _add_subscriber(self, message_type: str, handler: MessageHandler) -> Unsubscribe:
        subscription_id = next_uid()
        self._subscribers.setdefault(message_type, {})[subscription_id] = handler
        logger.debug("Subscribed %r to %s (#%d)", handler, message_type, subscription_id)

        def unsubscribe() -> None:
            subscriptions = self._subscribers.get(message_type)
            if subscriptions is None or subscriptions.pop(subscription_id, None) is None:
                return
            if not subscriptions:
                del self._subscribers[message_type]
            logger.debug("Unsubscribed #%d from %s", subscription_id, message_type)

        return unsubscribe
