"""Typed errors for huffzip.

Single source of truth for exit codes lives here.

Policy:
- Errors are small and boring.
- Low-level readers/writers raise the precise error, callers never swallow it.
- The CLI maps errors to stable exit codes (see EXIT_* constants).
- docs/exit_codes.md is generated from this module (scripts/gen_exit_codes_md.py).
"""

from __future__ import annotations

from dataclasses import dataclass

# -------------------------
# Exit codes (single source)
# -------------------------

EXIT_OK = 0
EXIT_USAGE = 2
EXIT_GENERIC = 10
EXIT_UNSUPPORTED_VERSION = 11
EXIT_HASH_MISMATCH = 13
EXIT_CAPACITY = 14
EXIT_IO = 15


@dataclass(frozen=True, slots=True)
class ExitCodeInfo:
    code: int
    name: str
    description: str


EXIT_CODES: tuple[ExitCodeInfo, ...] = (
    ExitCodeInfo(EXIT_OK, "OK", "Success"),
    ExitCodeInfo(EXIT_USAGE, "USAGE", "Usage/config error (invalid args, invalid config, etc.)"),
    ExitCodeInfo(EXIT_GENERIC, "GENERIC", "Generic failure (corrupt frame, empty input, unexpected error)"),
    ExitCodeInfo(EXIT_UNSUPPORTED_VERSION, "UNSUPPORTED_VERSION", "Unsupported container version"),
    ExitCodeInfo(EXIT_HASH_MISMATCH, "HASH_MISMATCH", "Integrity failure (CRC32 mismatch after decode)"),
    ExitCodeInfo(EXIT_CAPACITY, "CAPACITY_EXCEEDED", "Output size guard tripped (max_output_bytes)"),
    ExitCodeInfo(EXIT_IO, "IO_FAILURE", "Read/write failure from the storage layer"),
)

_EXIT_CODE_BY_CODE: dict[int, ExitCodeInfo] = {e.code: e for e in EXIT_CODES}


def exit_code_info(code: int) -> ExitCodeInfo | None:
    return _EXIT_CODE_BY_CODE.get(int(code))


def render_exit_codes_markdown() -> str:
    """Render docs/exit_codes.md content."""
    lines: list[str] = []
    lines.append("# Exit codes\n")
    lines.append("> GENERATED FILE, do not edit manually.\n")
    lines.append("> Source of truth: `src/huffzip/errors.py` (EXIT_CODES).\n")
    lines.append("> Regenerate: `python scripts/gen_exit_codes_md.py`.\n\n")
    lines.append("| Code | Name | Meaning |\n")
    lines.append("|---:|---|---|\n")
    for e in sorted(EXIT_CODES, key=lambda x: x.code):
        lines.append(f"| {e.code} | `{e.name}` | {e.description} |\n")
    lines.append("\n## Notes\n")
    lines.append("- Every internal error extends `HuffzipError` and carries an `exit_code`.\n")
    lines.append("- `--debug` re-raises errors to show full stack traces.\n")
    lines.append("- A failed `compress`/`decompress` leaves the output file in an unspecified state.\n")
    return "".join(lines)


# ---------------
# Typed exceptions
# ---------------


class HuffzipError(Exception):
    """Base error for huffzip."""

    exit_code: int = EXIT_GENERIC


class UsageError(HuffzipError):
    exit_code = EXIT_USAGE


class CorruptPayload(HuffzipError):
    exit_code = EXIT_GENERIC


class FormatError(CorruptPayload):
    """Malformed or truncated bit frame.

    ``offset`` is the byte offset inside the frame (or bit offset, see message)
    where the problem was detected, when known.
    """

    def __init__(self, message: str, *, offset: int | None = None) -> None:
        if offset is not None:
            message = f"{message} (offset={offset})"
        super().__init__(message)
        self.offset = offset


class BadMagic(CorruptPayload):
    pass


class EndOfStreamError(HuffzipError):
    """Read past the last valid bit of a frame."""

    def __init__(self, message: str = "no more bits", *, offset: int | None = None) -> None:
        if offset is not None:
            message = f"{message} (bits_read={offset})"
        super().__init__(message)
        self.offset = offset


class EmptyInputError(HuffzipError):
    """A code tree was requested for an empty frequency table."""


class CapacityExceededError(HuffzipError):
    exit_code = EXIT_CAPACITY

    def __init__(self, max_bytes: int) -> None:
        super().__init__(
            f"output exceeds max_output_bytes={max_bytes} (infinite loop in the caller?)"
        )
        self.max_bytes = max_bytes


class IOFailure(HuffzipError):
    exit_code = EXIT_IO


class UnsupportedVersion(HuffzipError):
    exit_code = EXIT_UNSUPPORTED_VERSION


class HashMismatch(HuffzipError):
    exit_code = EXIT_HASH_MISMATCH
