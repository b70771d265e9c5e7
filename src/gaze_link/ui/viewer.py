import logging
import tkinter as tk
from typing import Optional

from ..configs import AppSettings
from ..core.session import TrackingSession
from ..core.state import SessionState
from ..factories import open_session
from .host_window import TkinterHostWindow

logger = logging.getLogger(__name__)

REFRESH_MS = 33
DOT_RADIUS = 12

class GazeViewer(tk.Tk):
    """
    Minimal window for trying a tracker: shows the session status and
    draws a dot where the user is fixating.
    """
    def __init__(self, settings: AppSettings, address: Optional[str]):
        super().__init__()
        self.settings = settings
        self.title("Gaze Link")
        self.geometry("800x600")

        self._build_ui()
        self.update_idletasks()

        self.host_window = TkinterHostWindow(self.canvas)
        self.session: TrackingSession = open_session(self.host_window, address, settings=settings)

        self.protocol("WM_DELETE_WINDOW", self.on_closing)
        self.after(REFRESH_MS, self._refresh)

    def _build_ui(self):
        self.canvas = tk.Canvas(self, bg="white", highlightthickness=0)
        self.canvas.pack(fill="both", expand=True)
        self.dot = self.canvas.create_oval(0, 0, 0, 0, fill="#3366ff", outline="", state="hidden")
        self.raw = self.canvas.create_oval(0, 0, 0, 0, outline="#999999", state="hidden")

        self.lbl_status = tk.Label(self, text="Init...", relief=tk.SUNKEN, anchor="w", justify="left", wraplength=780)
        self.lbl_status.pack(side="bottom", fill="x")

    def _place(self, item, x: int, y: int, r: int, visible: bool):
        if not visible:
            self.canvas.itemconfigure(item, state="hidden")
            return
        self.canvas.coords(item, x - r, y - r, x + r, y + r)
        self.canvas.itemconfigure(item, state="normal")

    def _refresh(self):
        status = self.session.query()
        p = status.precision

        self._place(self.dot, status.x, status.y, DOT_RADIUS, status.is_looking)
        self._place(self.raw, p.raw_x, p.raw_y, DOT_RADIUS // 2, p.raw_valid)

        head = status.head
        self.lbl_status.config(
            text=f"[{status.state.name}] {status.message}\n"
                 f"Head: ({head.x:.0f}, {head.y:.0f}, {head.z:.0f})"
        )

        # A failed session never recovers, no point polling it.
        if status.state is not SessionState.FAILED:
            self.after(REFRESH_MS, self._refresh)

    def on_closing(self):
        self.session.close()
        self.destroy()
