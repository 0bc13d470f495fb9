"""The six handler registries a client dispatches notifications to."""

import inspect
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from iostack.domain.ports import (
    ActiveNodeChangeNotificationHandler,
    DebugNotificationHandler,
    ErrorHandler,
    ReferenceNotificationHandler,
    StreamFragmentHandler,
    UseCaseNotificationHandler,
)


@dataclass
class HandlerRegistry:
    """Ordered handler lists, one per notification family.

    Hey future me - registries are filled once at construction and can only be emptied
    all together (clear()). clear() swaps in NEW lists instead of emptying the old ones
    in place, so a dispatch loop that is already iterating keeps its snapshot intact.
    """

    stream_fragment: list[StreamFragmentHandler] = field(default_factory=list)
    error: list[ErrorHandler] = field(default_factory=list)
    use_case_notification: list[UseCaseNotificationHandler] = field(default_factory=list)
    active_node_change: list[ActiveNodeChangeNotificationHandler] = field(default_factory=list)
    streamed_reference: list[ReferenceNotificationHandler] = field(default_factory=list)
    debug: list[DebugNotificationHandler] = field(default_factory=list)

    @classmethod
    def from_handlers(
        cls,
        stream_fragment_handlers: Iterable[StreamFragmentHandler] | None = None,
        error_handlers: Iterable[ErrorHandler] | None = None,
        use_case_notification_handlers: Iterable[UseCaseNotificationHandler] | None = None,
        active_node_change_notification_handlers: Iterable[ActiveNodeChangeNotificationHandler]
        | None = None,
        reference_notification_handlers: Iterable[ReferenceNotificationHandler] | None = None,
        debug_notification_handlers: Iterable[DebugNotificationHandler] | None = None,
    ) -> "HandlerRegistry":
        """Build a registry, copying each iterable (None means no handlers)."""
        return cls(
            stream_fragment=list(stream_fragment_handlers or []),
            error=list(error_handlers or []),
            use_case_notification=list(use_case_notification_handlers or []),
            active_node_change=list(active_node_change_notification_handlers or []),
            streamed_reference=list(reference_notification_handlers or []),
            debug=list(debug_notification_handlers or []),
        )

    def clear(self) -> None:
        """Drop every handler in all six registries."""
        self.stream_fragment = []
        self.error = []
        self.use_case_notification = []
        self.active_node_change = []
        self.streamed_reference = []
        self.debug = []

    def __len__(self) -> int:
        return (
            len(self.stream_fragment)
            + len(self.error)
            + len(self.use_case_notification)
            + len(self.active_node_change)
            + len(self.streamed_reference)
            + len(self.debug)
        )


async def invoke_handlers(handlers: Sequence[Callable[[Any], Any]], payload: Any) -> None:
    """Call every handler in order, awaiting each one before the next.

    Handler N+1 only starts after handler N finished, and the caller only moves on to the
    next packet after the whole list ran. Exceptions propagate to the caller.
    """
    for handler in list(handlers):
        result = handler(payload)
        if inspect.isawaitable(result):
            await result
