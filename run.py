# -*- coding: utf-8 -*-

"""
Main entry point for launching the PageTree Toolkit editor.
"""

import logging
import tkinter as tk

from pagetree_toolkit.logging_config import setup_logging
from pagetree_toolkit.app import PageTreeApp

logger = logging.getLogger(__name__)


def main():
    """
    Configure logging, main window, and launch application.
    """
    setup_logging()

    root = tk.Tk()
    root.title("PageTree Toolkit")
    window_width, window_height = 420, 640
    # Centre the window on screen
    screen_width = root.winfo_screenwidth()
    screen_height = root.winfo_screenheight()
    pos_x = (screen_width // 2) - (window_width // 2)
    pos_y = (screen_height // 2) - (window_height // 2)
    root.geometry(f"{window_width}x{window_height}+{pos_x}+{pos_y}")

    # Use modern theme if available
    try:
        from sv_ttk import set_theme
        set_theme("light")
    except ImportError:
        logger.warning("'sv-ttk' theme is not installed.")

    PageTreeApp(root)

    root.mainloop()


if __name__ == '__main__':
    main()

    logging.info("===== Application terminated =====")
