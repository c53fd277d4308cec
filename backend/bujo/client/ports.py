"""Named inbound channels into a running application."""

import logging
from typing import Any, Callable, Dict, Iterable, List

logger = logging.getLogger(__name__)

Subscriber = Callable[[Any], None]


class Port:
    """One named channel. ``send`` delivers synchronously to every subscriber."""

    def __init__(self, name: str):
        self.name = name
        self._subscribers: List[Subscriber] = []

    def subscribe(self, callback: Subscriber):
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber):
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def send(self, value: Any):
        logger.debug(f"port {self.name} <- {value!r}")
        for callback in list(self._subscribers):
            callback(value)

    def __repr__(self):
        return f"<Port {self.name} subscribers={len(self._subscribers)}>"


class Ports:
    """Name -> Port container with attribute and item access."""

    def __init__(self, names: Iterable[str]):
        self._ports: Dict[str, Port] = {name: Port(name) for name in names}

    def __getitem__(self, name: str) -> Port:
        return self._ports[name]

    def __getattr__(self, name: str) -> Port:
        try:
            return self.__dict__["_ports"][name]
        except KeyError:
            raise AttributeError(f"no port named {name!r}") from None

    def __contains__(self, name: str) -> bool:
        return name in self._ports

    def __iter__(self):
        return iter(self._ports.values())
