"""User-interface layer: drag session controller, schedulers and Tk widgets."""
