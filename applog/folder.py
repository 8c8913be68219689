"""Log folder resolution for an application identity and optional shared group."""

import logging
import os
import sys
from pathlib import Path

from applog.errors import FolderUnavailable

logger = logging.getLogger(__name__)


def split_identity(app_identity: str) -> tuple[str, str]:
    """Split a reverse-DNS identifier ('com.example.MyApp') into (domain, app_name)."""
    identity = app_identity.strip()
    if not identity:
        raise ValueError("Application identity must not be empty")
    domain, sep, app_name = identity.rpartition(".")
    if not sep or not app_name:
        return "", identity.rstrip(".")
    return domain, app_name


def application_support_dir() -> Path:
    """Per-user application support directory for the current platform."""
    override = os.environ.get("APPLOG_SUPPORT_DIR")
    if override:
        return Path(override)
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support"
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        if not appdata:
            raise FolderUnavailable("APPDATA is not set")
        return Path(appdata)
    xdg = os.environ.get("XDG_DATA_HOME")
    return Path(xdg) if xdg else Path.home() / ".local" / "share"


def group_containers_dir() -> Path:
    override = os.environ.get("APPLOG_GROUP_CONTAINERS")
    if override:
        return Path(override)
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Group Containers"
    return application_support_dir() / "Group Containers"


def _validate_group_id(group_id: str) -> str:
    group = group_id.strip()
    if (
        not group
        or os.path.isabs(group)
        or "/" in group
        or "\\" in group
        or group in (".", "..")
    ):
        raise FolderUnavailable(f"Invalid group identifier: {group_id!r}")
    return group


def resolve_log_folder(app_identity: str, group_id: str | None = None) -> Path:
    """Determine and create the directory where log files live.

    Without a group the folder is scoped to the app inside the user's
    application support directory; with a group it lives in the shared
    group container. Raises FolderUnavailable when neither can be created.
    """
    try:
        _, app_name = split_identity(app_identity)
    except ValueError as exc:
        raise FolderUnavailable(str(exc)) from exc

    try:
        if group_id is None:
            folder = application_support_dir() / app_name / "Logs"
        else:
            group = _validate_group_id(group_id)
            folder = group_containers_dir() / group / "Library" / "Application Support" / "Logs"
    except RuntimeError as exc:
        # Path.home() raises RuntimeError when no home directory can be found
        raise FolderUnavailable(f"Cannot locate base directory: {exc}") from exc

    return ensure_folder(folder)


def ensure_folder(folder: Path) -> Path:
    """Create *folder* and its parents. Idempotent."""
    try:
        folder.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FolderUnavailable(f"Unable to create log folder {folder}: {exc}") from exc
    if not folder.is_dir():
        raise FolderUnavailable(f"Log folder path is not a directory: {folder}")
    logger.debug("Log folder ready: %s", folder)
    return folder


def log_file_path(folder: Path, app_identity: str) -> Path:
    _, app_name = split_identity(app_identity)
    return folder / f"{app_name}.log"
