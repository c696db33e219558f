"""Online/offline signal shared by the retry policy and the scheduler."""

import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

Listener = Callable[[bool], None]


class ConnectivityMonitor:
    """
    Current connectivity plus change notifications.

    State changes come from set_online() (pushed by the host) or from
    refresh() when a probe coroutine is configured.
    """

    def __init__(
        self,
        probe: Callable[[], Awaitable[bool]] | None = None,
        online: bool = True,
    ):
        self._probe = probe
        self._online = online
        self._listeners: list[Listener] = []

    @property
    def online(self) -> bool:
        return self._online

    @property
    def has_probe(self) -> bool:
        return self._probe is not None

    def is_online(self) -> bool:
        return self._online

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """Register a callback for transitions. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def set_online(self, online: bool) -> None:
        if online == self._online:
            return
        self._online = online
        logger.info(f"connectivity: {'online' if online else 'offline'}")
        for listener in list(self._listeners):
            listener(online)

    async def refresh(self) -> bool:
        """Run the probe (if any) and apply its verdict."""
        if self._probe is not None:
            self.set_online(await self._probe())
        return self._online
