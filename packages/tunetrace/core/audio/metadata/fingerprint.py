"""Chromaprint fingerprinting.

Compute audio fingerprints with the ``fpcalc`` binary from Chromaprint. The
binary is treated as a black box returning a fingerprint string and a
duration; any failure here is terminal and never retried.
"""

import asyncio
import json
import logging
import os
import shutil
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from tunetrace.core.api.http.errors import ErrorKind

logger = logging.getLogger(__name__)

DEFAULT_FPCALC_TIMEOUT_S = 30.0


class FpcalcResult(BaseModel):
    """Raw ``fpcalc -json`` output."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    fingerprint: str = Field(min_length=1, description="Chromaprint fingerprint string")
    duration: float = Field(ge=0.0, description="Audio duration in seconds")


class ChromaprintError(RuntimeError):
    """Chromaprint computation failed."""

    kind = ErrorKind.TOOL_UNAVAILABLE
    retryable = False


class FpcalcNotFoundError(ChromaprintError):
    """The fpcalc binary is not installed or not executable."""


def find_fpcalc_path() -> str:
    """Locate the fpcalc binary.

    Checks PATH first, then the usual Windows install folders.

    Returns:
        Path to fpcalc, or ``"fpcalc"`` to let the OS resolve it at run time
    """
    on_path = shutil.which("fpcalc")
    if on_path:
        return on_path

    for env_var in ("LOCALAPPDATA", "PROGRAMFILES", "PROGRAMFILES(X86)"):
        base = os.environ.get(env_var)
        if not base:
            continue
        candidate = Path(base) / "Chromaprint" / "fpcalc.exe"
        if candidate.is_file():
            return str(candidate)

    return "fpcalc"


def parse_fpcalc_output(stdout: str, *, audio_name: str = "") -> FpcalcResult:
    """Parse ``fpcalc -json`` stdout.

    Raises:
        ChromaprintError: If the output is not JSON or lacks fingerprint/duration
    """
    try:
        data = json.loads(stdout)
    except json.JSONDecodeError as e:
        raise ChromaprintError(
            f"Failed to parse fpcalc output for '{audio_name}': {stdout[:200]}"
        ) from e

    if not isinstance(data, dict) or not data.get("fingerprint"):
        raise ChromaprintError(f"fpcalc returned invalid output for '{audio_name}'")
    if not isinstance(data.get("duration"), (int, float)):
        raise ChromaprintError(f"fpcalc returned invalid output for '{audio_name}'")

    return FpcalcResult(fingerprint=data["fingerprint"], duration=float(data["duration"]))


async def run_fpcalc(
    audio_path: str | Path,
    *,
    timeout_s: float = DEFAULT_FPCALC_TIMEOUT_S,
    fpcalc_path: str | None = None,
) -> FpcalcResult:
    """Compute a Chromaprint fingerprint using the fpcalc binary.

    Args:
        audio_path: Path to audio file
        timeout_s: Timeout for the fpcalc subprocess (seconds)
        fpcalc_path: fpcalc binary (auto-detected when None)

    Returns:
        FpcalcResult with fingerprint and duration

    Raises:
        FileNotFoundError: If the audio file does not exist
        FpcalcNotFoundError: If fpcalc is not installed
        ChromaprintError: If fpcalc times out, exits non-zero, or prints garbage

    Notes:
        Requires chromaprint binary (fpcalc) to be installed:
        - macOS: brew install chromaprint
        - Ubuntu: apt-get install libchromaprint-tools
        - Windows: Download from https://acoustid.org/chromaprint
    """
    path = Path(audio_path)
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {path}")

    binary = fpcalc_path or find_fpcalc_path()

    try:
        proc = await asyncio.create_subprocess_exec(
            binary,
            "-json",
            str(path),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as e:
        raise FpcalcNotFoundError(
            f"fpcalc not found at '{binary}'. "
            "Install chromaprint: https://acoustid.org/chromaprint"
        ) from e
    except PermissionError as e:
        raise FpcalcNotFoundError(f"fpcalc at '{binary}' is not executable") from e

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout_s)
    except asyncio.TimeoutError as e:
        proc.kill()
        await proc.wait()
        raise ChromaprintError(f"fpcalc timeout after {timeout_s}s for '{path.name}'") from e

    if proc.returncode != 0:
        detail = stderr.decode("utf-8", errors="replace").strip()
        raise ChromaprintError(
            f"fpcalc failed for '{path.name}' with exit code {proc.returncode}"
            + (f" ({detail})" if detail else "")
        )

    result = parse_fpcalc_output(stdout.decode("utf-8", errors="replace"), audio_name=path.name)
    logger.debug(f"Computed chromaprint for {path.name}: duration={result.duration}s")
    return result
