"""
Probe points and listeners.

A ProbeManager owns named probe points for one simulated object. Producers
notify a point with a value; every listener attached to the same name on
that manager is called synchronously, in attachment order. Listeners may
attach before the point exists (wiring order is not significant).

Used for thermal feedback: the thermal runner notifies "thermalUpdate"
with each new temperature and power models listen on it.
"""

from __future__ import annotations

import logging
from typing import Generic, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


class ProbeListener(Generic[T]):
    """Base listener; subclasses override notify()."""

    def __init__(self, manager: "ProbeManager", point_name: str) -> None:
        self.manager = manager
        self.point_name = point_name
        manager.add_listener(point_name, self)

    def notify(self, arg: T) -> None:
        raise NotImplementedError

    def detach(self) -> None:
        self.manager.remove_listener(self.point_name, self)


class ProbePoint(Generic[T]):
    """A named notification source."""

    def __init__(self, manager: "ProbeManager", name: str) -> None:
        self.manager = manager
        self.name = name

    def notify(self, arg: T) -> None:
        for listener in self.manager.listeners(self.name):
            listener.notify(arg)


class ProbeManager:
    """Named probe points and their listeners for one object."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._points: dict[str, ProbePoint] = {}
        self._listeners: dict[str, list[ProbeListener]] = {}

    def add_point(self, name: str) -> ProbePoint:
        if name in self._points:
            raise ValueError(f"{self.name}: probe point '{name}' already exists")
        point: ProbePoint = ProbePoint(self, name)
        self._points[name] = point
        return point

    def point(self, name: str) -> ProbePoint | None:
        return self._points.get(name)

    def add_listener(self, point_name: str, listener: ProbeListener) -> None:
        self._listeners.setdefault(point_name, []).append(listener)
        logger.debug("%s: listener attached to '%s'", self.name, point_name)

    def remove_listener(self, point_name: str, listener: ProbeListener) -> None:
        self._listeners.get(point_name, []).remove(listener)

    def listeners(self, point_name: str) -> tuple[ProbeListener, ...]:
        return tuple(self._listeners.get(point_name, ()))
