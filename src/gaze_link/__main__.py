import argparse
import logging
import sys

from gaze_link import __version__
from gaze_link.configs import AppSettings

def main():
    parser = argparse.ArgumentParser(description="Show live gaze from an eye tracker in a window.")
    parser.add_argument(
        "--dummy",
        action="store_true",
        help="Use a simulated tracker instead of real hardware."
    )
    parser.add_argument(
        "--address",
        default=None,
        help="Device address, e.g. 'discover://nearest' or 'tet-tcp://10.46.32.51'."
    )
    args = parser.parse_args()

    # 1. Load Configuration
    try:
        settings = AppSettings()
    except Exception as e:
        print(f"Configuration Error: {e}")
        sys.exit(1)
    if args.dummy:
        settings.use_dummy_mode = True

    # 2. Setup Logging
    logging.basicConfig(
        level=settings.logging.level,
        format=settings.logging.format,
        stream=sys.stdout
    )
    logger = logging.getLogger("main")
    logger.info(f"Starting Gaze Link v{__version__}")

    # Tk is only needed for the viewer, not for the library.
    from gaze_link.ui.viewer import GazeViewer

    # 3. Launch UI
    try:
        app = GazeViewer(settings, args.address or settings.session.default_address)
        app.mainloop()
    except Exception:
        logger.exception("Fatal Application Error")
    finally:
        logger.info("Gaze Link has shut down.")

if __name__ == "__main__":
    main()
