import logging
import threading
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    import tkinter as tk

logger = logging.getLogger(__name__)


class StaticHostWindow:
    """
    A host window with explicitly set geometry.

    Useful for full-screen sketches, headless use, or any toolkit that
    reports its geometry through its own callbacks: call `move()`,
    `resize()` or `hide()` from there.
    """

    def __init__(self, origin: Optional[tuple[int, int]], size: tuple[int, int]):
        self._lock = threading.Lock()
        self._origin = origin
        self._size = size

    def location_on_screen(self) -> Optional[tuple[int, int]]:
        with self._lock:
            return self._origin

    def size(self) -> tuple[int, int]:
        with self._lock:
            return self._size

    def move(self, x: int, y: int) -> None:
        with self._lock:
            self._origin = (x, y)

    def resize(self, width: int, height: int) -> None:
        with self._lock:
            self._size = (width, height)

    def hide(self) -> None:
        with self._lock:
            self._origin = None


class TkinterHostWindow(StaticHostWindow):
    """
    Tracks a Tk widget's on-screen geometry.

    Tk must only be called from its own thread, but tracker events arrive
    on SDK threads. The geometry is therefore copied on every <Configure>,
    <Map> and <Unmap> event (UI thread) and read from the copy.
    """

    def __init__(self, widget: "tk.Misc"):
        super().__init__(None, (0, 0))
        self._widget = widget
        widget.bind("<Configure>", self._refresh, add="+")
        widget.bind("<Map>", self._refresh, add="+")
        widget.bind("<Unmap>", self._on_unmap, add="+")
        self._refresh()

    def _refresh(self, _event=None) -> None:
        w = self._widget
        if not w.winfo_viewable():
            self.hide()
            return
        self.move(w.winfo_rootx(), w.winfo_rooty())
        self.resize(w.winfo_width(), w.winfo_height())

    def _on_unmap(self, _event=None) -> None:
        logger.debug("Host window unmapped.")
        self.hide()
