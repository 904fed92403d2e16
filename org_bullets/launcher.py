from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from PyQt6.QtWidgets import QApplication, QMainWindow

from org_bullets.config import load_config_file
from org_bullets.qt_editor import OutlineEditor
from version import __version__ as ORG_BULLETS_VERSION, is_dev_build

LOGGER = logging.getLogger("org_bullets.Launcher")
LOG_LEVEL_ENV_VAR = "ORG_BULLETS_LOG_LEVEL"
STATUS_MESSAGE_MS = 5000


def resolve_log_level(cli_value: Optional[str]) -> int:
    """Pick the log level from the CLI, then the environment, then the build type."""

    for candidate in (cli_value, os.getenv(LOG_LEVEL_ENV_VAR)):
        if not candidate:
            continue
        token = candidate.strip()
        if token.isdigit():
            return int(token)
        attr = getattr(logging, token.upper(), None)
        if isinstance(attr, int):
            return attr
    return logging.DEBUG if is_dev_build() else logging.INFO


def configure_logging(level: int) -> logging.Logger:
    logger = logging.getLogger("org_bullets")
    logger.setLevel(level)
    if not any(getattr(handler, "_org_bullets_handler", False) for handler in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
        handler._org_bullets_handler = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    return logger


def build_options(args: argparse.Namespace) -> Dict[str, Any]:
    options: Dict[str, Any] = {}
    if args.config:
        options.update(load_config_file(Path(args.config).expanduser()))
    if args.show_current_line:
        options["show_current_line"] = True
    return options


def build_window(path: Optional[Path], options: Dict[str, Any]) -> QMainWindow:
    window = QMainWindow()
    editor = OutlineEditor(options, parent=window)
    window.setCentralWidget(editor)
    editor.status_message.connect(lambda message: window.statusBar().showMessage(message, STATUS_MESSAGE_MS))
    title = "Org Bullets"
    if path is not None:
        try:
            editor.load_text(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            LOGGER.info("%s does not exist yet; starting empty", path)
        except (OSError, UnicodeDecodeError) as exc:
            LOGGER.warning("Failed to read %s: %s", path, exc)
            window.statusBar().showMessage(f"Failed to read {path}: {exc}", STATUS_MESSAGE_MS)
        title = f"{path.name} - Org Bullets"
    window.setWindowTitle(title)
    window.resize(900, 700)
    return window


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="View and edit org outlines with bullet overlays")
    parser.add_argument("path", nargs="?", help="Org file to open")
    parser.add_argument("--config", help="JSON file with bullet options")
    parser.add_argument("--show-current-line", action="store_true", help="Reveal raw markup on the cursor line")
    parser.add_argument("--log-level", help="Logging level name or number")
    args = parser.parse_args(argv)

    configure_logging(resolve_log_level(args.log_level))
    options = build_options(args)
    LOGGER.info("Starting Org Bullets %s (pid=%s)", ORG_BULLETS_VERSION, os.getpid())
    LOGGER.debug("Options: %s", options)

    app = QApplication(sys.argv[:1])
    path = Path(args.path).expanduser() if args.path else None
    window = build_window(path, options)
    window.show()
    return app.exec()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
