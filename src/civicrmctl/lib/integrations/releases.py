"""CiviCRM release lookups and downloads.

Two public sources are used:

- the version check service (``upgrade.civicrm.org/check?stability=...``) for
  the current ``stable``, ``rc`` and ``nightly`` builds;
- the public Google Cloud Storage bucket for every published release and
  its archives.
"""

from __future__ import annotations

import json
import posixpath
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

import requests

from ..core.config import DEFAULT_HTTP_TIMEOUT, get_release_urls
from ..util.logging_utils import _log_debug
from ..util.versions import sort_versions

STABILITIES = ("stable", "rc", "nightly")
STABLE_PREFIX = "civicrm-stable/"
PACKAGE_SUFFIXES = {"WordPress": "wordpress.zip", "L10n": "l10n.tar.gz"}
CHUNK_SIZE = 64 * 1024


class ReleaseClient:
    def __init__(
        self,
        urls: dict[str, str] | None = None,
        *,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        verify: bool = True,
    ) -> None:
        self.urls = urls or get_release_urls({})
        self.timeout = timeout
        self.verify = verify

    def _get(self, url: str, params: dict[str, Any] | None = None, **kwargs: Any) -> requests.Response:
        _log_debug(f"http: GET {url} params={params or {}}")
        try:
            response = requests.get(
                url, params=params, timeout=self.timeout, verify=self.verify, **kwargs
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise SystemExit(f"Failed to fetch {url}: {e}") from None
        return response

    # ---------- version check service ----------

    def check_update(self, stability: str = "stable") -> tuple[dict[str, Any], str, str]:
        """Return ``(lookup, raw_body, url)`` for *stability*.

        The lookup has ``version`` and ``tar`` (``{"WordPress": url, "L10n": url, ...}``).
        """
        url = f"{self.urls['upgrade_url']}?stability={stability}"
        body = self._get(url).text
        try:
            lookup = json.loads(body)
        except json.JSONDecodeError as e:
            raise SystemExit(f"Failed to decode JSON: {e.msg}.") from None
        if not lookup:
            raise SystemExit(f"Version not found at: {url}")
        if not isinstance(lookup, dict) or not (lookup.get("tar") or {}).get("WordPress"):
            raise SystemExit(f"No WordPress version found at: {url}")
        return lookup, body, url

    # ---------- storage bucket ----------

    def _list_bucket(self, prefix: str, **extra: Any) -> dict[str, Any]:
        params = {"delimiter": "/", "prefix": prefix, **extra}
        response = self._get(self.urls["storage_url"], params=params)
        try:
            data = response.json()
        except ValueError as e:
            raise SystemExit(f"Failed to decode JSON: {e}.") from None
        return data if isinstance(data, dict) else {}

    def list_releases(self) -> list[str]:
        """Every stable release version, oldest first."""
        data = self._list_bucket(STABLE_PREFIX, maxResults=1000)
        versions = []
        for prefix in data.get("prefixes") or []:
            version = prefix.replace(STABLE_PREFIX, "").replace("/", "").strip()
            if version:
                versions.append(version)
        return sort_versions(versions)

    def release_files(self, version: str) -> dict[str, str]:
        """Object names of the WordPress zip and l10n tarball for *version*."""
        data = self._list_bucket(f"{STABLE_PREFIX}{version}/")
        files: dict[str, str] = {}
        for item in data.get("items") or []:
            name = item.get("name") or ""
            for package, suffix in PACKAGE_SUFFIXES.items():
                if suffix in name:
                    files[package] = name
        return files

    def download_url(self, object_name: str) -> str:
        return f"{self.urls['download_url']}{object_name}"

    def check_version(self, version: str) -> dict[str, Any]:
        """``{"version": v, "tar": {"WordPress": url, "L10n": url}}`` for any version.

        ``stable``, ``rc`` and ``nightly`` are answered by the version check
        service; anything else must be a published stable release.
        """
        if version in STABILITIES:
            lookup, _, _ = self.check_update(version)
            return {"version": lookup.get("version"), "tar": lookup.get("tar") or {}}
        if version not in self.list_releases():
            raise SystemExit(f"Version {version} is not a valid CiviCRM version.")
        files = self.release_files(version)
        return {
            "version": version,
            "tar": {package: self.download_url(name) for package, name in files.items()},
        }

    def archive_url(self, version: str, l10n: bool = False) -> str:
        info = self.check_version(version)
        package = "L10n" if l10n else "WordPress"
        url = (info.get("tar") or {}).get(package)
        if not url:
            raise SystemExit(f"No {package} archive found for CiviCRM {version}.")
        return str(url)

    # ---------- downloads ----------

    def download(self, url: str, destination: str | Path) -> Path:
        """Stream *url* into *destination* (a directory); returns the file path."""
        name = posixpath.basename(urlsplit(url).path) or "civicrm-download"
        target = Path(destination) / name
        response = self._get(url, stream=True)
        try:
            with open(target, "wb") as fh:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        fh.write(chunk)
        except requests.RequestException as e:
            raise SystemExit(f"Failed to fetch {url}: {e}") from None
        except OSError as e:
            raise SystemExit(f"Failed to write {target}: {e.strerror}") from None
        finally:
            response.close()
        _log_debug(f"http: saved {url} to {target}")
        return target
