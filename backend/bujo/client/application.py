"""Application contract: initialized once with flags, then driven through ports."""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable

from bujo.client.ports import Ports

DEFAULT_PORTS = ("today", "now")


@dataclass
class AppHandle:
    """Explicit handle to a running application instance."""
    node: Any
    flags: Dict[str, Any]
    ports: Ports
    model: Dict[str, Any] = field(default_factory=dict)


class Program:
    """
    Minimal application runtime.

    ``init`` seeds a model from the flags and wires each port so that a sent
    value replaces the model entry of the same name. Rendering is left to
    whatever owns ``node``.
    """

    def __init__(self, port_names: Iterable[str] = DEFAULT_PORTS):
        self.port_names = tuple(port_names)

    def init(self, node: Any, flags: Dict[str, Any]) -> AppHandle:
        if node is None:
            raise ValueError("application needs a mount node")
        handle = AppHandle(node=node, flags=dict(flags), ports=Ports(self.port_names), model=dict(flags))
        for port in handle.ports:
            port.subscribe(lambda value, name=port.name: handle.model.__setitem__(name, value))
        return handle
