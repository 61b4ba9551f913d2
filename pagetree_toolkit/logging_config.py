from __future__ import annotations

"""Central logging configuration for PageTree Toolkit.

Import and call :func:`setup_logging` at application start-up.
"""

import logging
import logging.config
import os

from pagetree_toolkit.config import ConfigManager

__all__ = ["setup_logging"]

_DRAG_LOGGERS = (
    "pagetree_toolkit.ui.controllers.drag_session",
    "pagetree_toolkit.core.services.drop_zone_service",
)


def setup_logging() -> None:
    """Configure logging for the application using configuration from YAML files."""
    log_dir = os.environ.get("PAGETREE_LOG_DIR", "logs")
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, "app.log")

    try:
        config_manager = ConfigManager()
        logging_config = config_manager.get_logging_config()

        if logging_config and isinstance(logging_config, dict) and logging_config.get("version"):
            # Update the filename dynamically
            if "handlers" in logging_config and "file" in logging_config["handlers"]:
                logging_config["handlers"]["file"]["filename"] = log_file

            logging.config.dictConfig(logging_config)
            logging.info("===== Logging initialised from config files =====")
        else:
            _setup_minimal_logging()
    except (ValueError, TypeError, AttributeError, ImportError, OSError) as exc:
        # dictConfig wraps most configuration problems in ValueError
        print(f"Error loading logging config: {exc}")
        _setup_minimal_logging()

    _apply_debug_overrides()


def _setup_minimal_logging() -> None:
    """Set up minimal console-only logging when config is unavailable."""
    minimal_config = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'simple': {
                'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            },
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'simple',
                'level': 'INFO',
            },
        },
        'root': {
            'level': 'INFO',
            'handlers': ['console'],
        },
        # Module logger entry so the drag override can flip it even in minimal mode
        'loggers': {
            'pagetree_toolkit.ui.controllers.drag_session': {
                'handlers': ['console'],
                'level': 'INFO',
                'propagate': False,
            }
        }
    }

    logging.config.dictConfig(minimal_config)
    logging.error("===== Logging initialised with minimal fallback (config error) =====")


def _apply_debug_overrides() -> None:
    """Apply environment-driven module-specific debug overrides.

    Supports:
    - PAGETREE_DEBUG_DRAG=true  -> DEBUG for the drag session and zone classifier
    - PAGETREE_DEBUG_MODULES=comma,separated,logger,names -> DEBUG for listed loggers
    """
    debug_drag = os.environ.get('PAGETREE_DEBUG_DRAG', '').strip().lower() in {'1', 'true', 'yes', 'on'}
    extra_modules = os.environ.get('PAGETREE_DEBUG_MODULES', '').strip()
    targets = []
    if debug_drag:
        targets.extend(_DRAG_LOGGERS)
    if extra_modules:
        targets.extend([m.strip() for m in extra_modules.split(',') if m.strip()])
    for name in targets:
        logger = logging.getLogger(name)
        logger.setLevel(logging.DEBUG)
        # Ensure at least one handler emits DEBUG for this logger
        has_debug_handler = any(h.level <= logging.DEBUG for h in logger.handlers)
        if not has_debug_handler:
            h = logging.StreamHandler()
            h.setLevel(logging.DEBUG)
            h.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
            logger.addHandler(h)
        logger.info("Debug override active for logger '%s'", name)
