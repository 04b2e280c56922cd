"""Extract and create release archives with the system gzip/tar/unzip/zip tools."""

from __future__ import annotations

import shlex
import shutil
import subprocess
from pathlib import Path

from .logging_utils import _log_debug

# Exit codes documented in unzip(1).
UNZIP_ERRORS: dict[int, str] = {
    0: "No errors or warnings detected.",
    1: (
        "One or more warning errors were encountered, but processing completed successfully "
        "anyway. This includes zipfiles where one or more files was skipped due to unsupported "
        "compression method or encryption with an unknown password."
    ),
    2: (
        "A generic error in the zipfile format was detected. Processing may have completed "
        "successfully anyway; some broken zipfiles created by other archivers have simple "
        "work-arounds."
    ),
    3: "A severe error in the zipfile format was detected. Processing probably failed immediately.",
    4: "unzip was unable to allocate memory for one or more buffers during program initialization.",
    5: "unzip was unable to allocate memory or unable to obtain a tty to read the decryption password(s).",
    6: "unzip was unable to allocate memory during decompression to disk.",
    7: "unzip was unable to allocate memory during in-memory decompression.",
    8: "[currently not used]",
    9: "The specified zipfiles were not found.",
    10: "Invalid options were specified on the command line.",
    11: "No matching files were found.",
    50: "The disk is (or was) full during extraction.",
    51: "The end of the ZIP archive was encountered prematurely.",
    80: "The user aborted unzip prematurely with control-C (or similar)",
    81: (
        "Testing or extraction of one or more files failed due to unsupported compression "
        "methods or unsupported decryption."
    ),
    82: (
        "No files were found due to bad decryption password(s). (If even one file is "
        "successfully processed, however, the exit status is 1.)"
    ),
}


def tar_error_message(result: subprocess.CompletedProcess) -> str:
    """First stderr line plus the exit code, or just the exit code."""
    stderr = (result.stderr or "").strip()
    if stderr:
        first = stderr.splitlines()[0].strip()
        return f"{first} ({result.returncode})"
    return str(result.returncode)


def zip_error_message(code: int) -> str:
    if code in UNZIP_ERRORS:
        return f"{UNZIP_ERRORS[code]} ({code})"
    return str(code)


def _run(argv: list[str]) -> subprocess.CompletedProcess:
    if shutil.which(argv[0]) is None:
        raise SystemExit(f"{argv[0]} not found; please install it")
    _log_debug(f"archive: {shlex.join(argv)}")
    return subprocess.run(argv, capture_output=True, text=True, check=False)


def untar(tarfile: str | Path, destination: str | Path) -> Path:
    """Extract a ``.tar.gz`` archive into *destination*.

    The archive is first decompressed in place with ``gzip -d`` (so the
    ``.tar.gz`` is replaced by the ``.tar``), then unpacked with ``tar``.
    Returns the path of the decompressed tarball.
    """
    tarfile = str(tarfile)
    result = _run(["gzip", "-d", tarfile])
    if result.returncode != 0:
        raise SystemExit(f"Failed to extract gz archive: {tar_error_message(result)}.")

    tarball = tarfile[:-3] if tarfile.endswith(".gz") else tarfile
    result = _run(["tar", "-xf", tarball, "-C", str(destination)])
    if result.returncode != 0:
        raise SystemExit(f"Failed to extract tarball: {tar_error_message(result)}.")
    return Path(tarball)


def unzip(zipfile: str | Path, destination: str | Path) -> None:
    """Extract a zip archive into *destination* quietly."""
    result = _run(["unzip", "-q", str(zipfile), "-d", str(destination)])
    if result.returncode != 0:
        raise SystemExit(f"Failed to extract zip archive: {zip_error_message(result.returncode)}.")


def zip_directory(source: str | Path, archive: str | Path) -> Path:
    """Create *archive* containing the directory *source* (stored by its basename)."""
    source = Path(source)
    archive = Path(archive).resolve()
    archive.parent.mkdir(parents=True, exist_ok=True)
    if shutil.which("zip") is None:
        raise SystemExit("zip not found; please install it")
    argv = ["zip", "-qr", str(archive), source.name]
    _log_debug(f"archive: {shlex.join(argv)} (cwd={source.parent})")
    result = subprocess.run(argv, cwd=str(source.parent), capture_output=True, text=True, check=False)
    if result.returncode != 0:
        raise SystemExit(f"Failed to create zip archive: {tar_error_message(result)}.")
    return archive
