"""Version and branch information for ``civicrmctl --version``."""

import json
import subprocess
from importlib import metadata
from pathlib import Path
from typing import Any


def get_version_info() -> tuple[str, str | None]:
    """Return ``(version, branch)`` for display.

    The branch is the requested VCS revision recorded by pip (PEP 610
    ``direct_url.json``) for ``pip install git+https://...`` installs, or the
    current git branch when running from a source checkout that is not at a
    ``vX.Y.Z`` tag. Release installs return ``None`` for the branch.
    """
    # version.py -> core -> lib -> civicrmctl -> src -> repo
    repo_root = Path(__file__).parent.parent.parent.parent.parent

    try:
        from civicrmctl import __version__

        version = __version__
    except (ImportError, AttributeError):
        version = "unknown"

    pep610_revision = _get_pep610_revision()
    if pep610_revision:
        return version, pep610_revision

    if not (repo_root / "pyproject.toml").exists():
        return version, None

    def git(*args: str) -> subprocess.CompletedProcess:
        return subprocess.run(
            ["git", *args],
            capture_output=True,
            text=True,
            timeout=1,
            cwd=str(repo_root),
        )

    try:
        inside = git("rev-parse", "--is-inside-work-tree")
        if inside.returncode != 0 or inside.stdout.strip() != "true":
            return version, None
        branch = git("branch", "--show-current")
        detected = branch.stdout.strip() if branch.returncode == 0 else ""
        if not detected:
            return version, None
        tag = git("describe", "--exact-match", "--tags", "HEAD").stdout.strip()
        if tag.startswith("v") and len(tag) > 1 and tag[1].isdigit():
            return version, None
        return version, detected
    except (OSError, subprocess.SubprocessError):
        return version, None


def _get_pep610_revision(dist_name: str = "civicrmctl") -> str | None:
    """Return VCS revision from PEP 610 metadata, if available."""
    try:
        dist = metadata.distribution(dist_name)
        direct_url = dist.read_text("direct_url.json")
    except (metadata.PackageNotFoundError, OSError, UnicodeDecodeError):
        return None

    if not direct_url:
        return None

    try:
        data = json.loads(direct_url)
    except json.JSONDecodeError:
        return None

    vcs_info = data.get("vcs_info")
    if not isinstance(vcs_info, dict):
        return None

    def non_empty(value: Any) -> str | None:
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None

    return non_empty(vcs_info.get("requested_revision")) or non_empty(vcs_info.get("commit_id"))


def format_version_string(version: str, branch: str | None) -> str:
    """Format version and branch, e.g. ``"0.4.0"`` or ``"0.4.0 [main]"``."""
    base_version = f"{version} [{branch}]" if branch else version
    return f"{base_version}\nLicense: Apache-2.0"
