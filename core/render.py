"""Lifetime of rendered chart views.

Each mounted view owns exactly one ``ChartHandle`` and one resize listener.
Re-mounting (for example after a theme switch) disposes the previous handle and
removes its listener before a new one is created.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple


logger = logging.getLogger(__name__)

ResizeListener = Callable[[int, int], None]


class ResizeListeners:
    def __init__(self) -> None:
        self._listeners: List[ResizeListener] = []

    def add(self, listener: ResizeListener) -> None:
        self._listeners.append(listener)

    def remove(self, listener: ResizeListener) -> None:
        self._listeners = [l for l in self._listeners if l != listener]

    def dispatch(self, width: int, height: int) -> None:
        for listener in list(self._listeners):
            listener(width, height)

    def __len__(self) -> int:
        return len(self._listeners)


class DisposedHandleError(RuntimeError):
    pass


@dataclass(eq=False)
class ChartHandle:
    view: str
    theme: str
    container: Any
    spec: Optional[Dict[str, Any]] = None
    size: Optional[Tuple[int, int]] = None
    disposed: bool = False
    updates: int = field(default=0)

    def _check(self) -> None:
        if self.disposed:
            raise DisposedHandleError(f"chart handle for {self.view!r} was disposed")

    def set_option(self, spec: Dict[str, Any]) -> None:
        self._check()
        self.spec = spec
        self.updates += 1

    def resize(self, width: int, height: int) -> None:
        if self.disposed:
            return
        self.size = (width, height)

    def dispose(self) -> None:
        self.disposed = True
        self.spec = None


class ChartHost:
    def __init__(self, view: str, listeners: Optional[ResizeListeners] = None) -> None:
        self.view = view
        self.listeners = listeners if listeners is not None else ResizeListeners()
        self.handle: Optional[ChartHandle] = None

    def mount(self, container: Any, *, dark: bool = False) -> Optional[ChartHandle]:
        if container is None:
            logger.debug("container for %s not ready; skipping chart init", self.view)
            return None
        theme = "dark" if dark else "light"
        current = self.handle
        if current is not None and not current.disposed and current.container == container and current.theme == theme:
            return current
        self.unmount()
        handle = ChartHandle(view=self.view, theme=theme, container=container)
        self.listeners.add(handle.resize)
        self.handle = handle
        logger.debug("mounted %s chart (%s theme)", self.view, theme)
        return handle

    def unmount(self) -> None:
        if self.handle is None:
            return
        self.listeners.remove(self.handle.resize)
        self.handle.dispose()
        logger.debug("disposed %s chart (%s theme)", self.view, self.handle.theme)
        self.handle = None

    def __enter__(self) -> "ChartHost":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.unmount()
