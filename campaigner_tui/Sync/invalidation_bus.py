# invalidation_bus.py
# Description: Process-wide broadcast channel for "this collection changed, re-fetch it" events.
#
# Imports
import logging
from typing import Callable, List
#
# 3rd-party Libraries
from pydantic import BaseModel, ConfigDict, ValidationError
#
# Local Imports
from ..campaigner_api.schemas import InvalidationTarget
#
#######################################################################################################################
#
# Functions:

logger = logging.getLogger(__name__)


class InvalidationEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    target: InvalidationTarget


InvalidationSubscriber = Callable[[InvalidationEvent], None]


class InvalidationBus:
    """
    Producers (a delete, a conversation created from chat) publish a target;
    subscribers (the refresh scheduler, dashboard widgets) react. Delivery is
    synchronous and fire-and-forget: no acknowledgement, and one failing
    subscriber never stops delivery to the rest.
    """

    def __init__(self):
        self._subscribers: List[InvalidationSubscriber] = []

    def subscribe(self, callback: InvalidationSubscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            try:
                self._subscribers.remove(callback)
            except ValueError:
                pass

        return unsubscribe

    def publish(self, target: str) -> InvalidationEvent:
        try:
            event = InvalidationEvent(target=target)
        except ValidationError as e:
            raise ValueError(f"Unknown invalidation target: {target!r}") from e

        logger.debug(f"Invalidation published: {event.target}")
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Invalidation subscriber {callback!r} failed for '{event.target}': {e}", exc_info=True)
        return event

    def clear(self) -> None:
        self._subscribers.clear()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

#
# End of invalidation_bus.py
########################################################################################################################
