"""GUI-free core: page tree models and services."""
