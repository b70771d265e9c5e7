# The Tk viewer lives in gaze_link.ui.viewer and is imported on demand.
from .host_window import StaticHostWindow, TkinterHostWindow
