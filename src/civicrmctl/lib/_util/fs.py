import os
from pathlib import Path

from ...ui_utils.terminal import log


def ensure_dir(path: Path) -> None:
    """Create a directory (and parents) if it doesn't exist."""
    path.mkdir(parents=True, exist_ok=True)


def ensure_writable_dir(path: Path) -> None:
    """Create *path* when missing and make sure the current user can write to it.

    Messages follow the wording WP-CLI users already know from ``core download``.
    """
    if not path.is_dir():
        parent = path.parent
        while not parent.exists() and parent != parent.parent:
            parent = parent.parent
        if not os.access(parent, os.W_OK):
            raise SystemExit(f"Insufficient permission to create directory '{path}'.")
        log(f"Creating directory '{path}'.")
        try:
            ensure_dir(path)
        except OSError as e:
            raise SystemExit(f"Failed to create directory '{path}': {e.strerror}.") from None
    if not os.access(path, os.W_OK | os.X_OK):
        raise SystemExit(f"'{path}' is not writable by current user.")


def path_owner(path: Path) -> tuple[str, str] | None:
    """Return ``(user, group)`` names owning *path*, or None if unknown."""
    import grp
    import pwd

    try:
        st = path.stat()
        user = pwd.getpwuid(st.st_uid).pw_name
        group = grp.getgrgid(st.st_gid).gr_name
    except (OSError, KeyError):
        return None
    return user, group
