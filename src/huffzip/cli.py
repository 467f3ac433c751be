"""huffzip CLI.

This is the stable CLI entrypoint (console-script: ``huffzip``).

Output policy:
  - results on stdout, diagnostics on stderr prefixed with ``[huffzip]``;
  - exit codes come from ``huffzip.errors``;
  - ``--debug`` re-raises instead of mapping to an exit code.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from huffzip.config import ConfigError, HuffzipConfig, load_config
from huffzip.errors import EXIT_GENERIC, EXIT_USAGE, HuffzipError


def _add_common_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--debug", action="store_true", help="Show stack traces on errors")


def _print_stats(label: str, st) -> None:
    print(
        f"[{label}] in={st.input_bytes}B out={st.output_bytes}B "
        f"ratio={st.ratio:.3f} symbols={st.distinct_symbols}"
    )


def _cmd_compress(
    input_path: Path,
    output_path: Path,
    *,
    config_arg: str | None,
    max_output_bytes: int | None,
    verify: bool,
    stats: bool,
) -> int:
    from huffzip.files import compress_file

    cfg = load_config(config_arg) if config_arg else HuffzipConfig()
    # precedence: CLI flags > config > defaults
    cfg = cfg.with_overrides(max_output_bytes=max_output_bytes, verify=True if verify else None)
    st = compress_file(input_path, output_path, config=cfg)
    if stats:
        _print_stats("compress", st)
    return 0


def _cmd_decompress(input_path: Path, output_path: Path, *, stats: bool) -> int:
    from huffzip.files import decompress_file

    st = decompress_file(input_path, output_path)
    if stats:
        _print_stats("decompress", st)
    return 0


def _cmd_verify(input_path: Path, *, full: bool) -> int:
    from huffzip.verify import verify_container_file

    verify_container_file(input_path, full=full)
    print("OK")
    return 0


def _cmd_config_validate(config_arg: str) -> int:
    # load is the validation
    load_config(config_arg)
    print("OK")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="huffzip", description="Huffman file compressor")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_c = sub.add_parser("compress", help="Lossless compress into an HZF container")
    p_c.add_argument("input", type=Path)
    p_c.add_argument("output", type=Path)
    p_c.add_argument(
        "--config",
        default=None,
        help="Config JSON (huffzip.config.v1). Use '@file.json' to load from file, or pass JSON inline.",
    )
    p_c.add_argument(
        "--max-output-bytes",
        type=int,
        default=None,
        help="Abort when the bit frame would exceed this many bytes (overrides config)",
    )
    p_c.add_argument("--verify", action="store_true", help="Full verify after writing")
    p_c.add_argument("--stats", action="store_true", help="Print a size summary")
    _add_common_args(p_c)

    p_d = sub.add_parser("decompress", help="Lossless decompress an HZF container")
    p_d.add_argument("input", type=Path)
    p_d.add_argument("output", type=Path)
    p_d.add_argument("--stats", action="store_true", help="Print a size summary")
    _add_common_args(p_d)

    p_v = sub.add_parser("verify", help="Verify an HZF container")
    p_v.add_argument("input", type=Path)
    p_v.add_argument("--full", action="store_true", help="Decode and check CRC32")
    _add_common_args(p_v)

    p_cv = sub.add_parser("config-validate", help="Validate a config (v1)")
    p_cv.add_argument("config", help="Config JSON (@file.json or inline JSON)")
    _add_common_args(p_cv)

    return p


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    p = build_parser()
    ns = p.parse_args(argv)

    try:
        if ns.cmd == "compress":
            return _cmd_compress(
                ns.input,
                ns.output,
                config_arg=ns.config,
                max_output_bytes=ns.max_output_bytes,
                verify=bool(ns.verify),
                stats=bool(ns.stats),
            )
        if ns.cmd == "decompress":
            return _cmd_decompress(ns.input, ns.output, stats=bool(ns.stats))
        if ns.cmd == "verify":
            return _cmd_verify(ns.input, full=bool(ns.full))
        if ns.cmd == "config-validate":
            return _cmd_config_validate(str(ns.config))
        raise AssertionError("unreachable")

    except SystemExit:
        raise
    except ConfigError as e:
        # Treat as usage/config error.
        if getattr(ns, "debug", False):
            raise
        print(f"[huffzip] {e}", file=sys.stderr)
        return EXIT_USAGE
    except HuffzipError as e:
        if getattr(ns, "debug", False):
            raise
        print(f"[huffzip] {e}", file=sys.stderr)
        return int(getattr(e, "exit_code", EXIT_GENERIC) or EXIT_GENERIC)
    except Exception as e:
        if getattr(ns, "debug", False):
            raise
        print(f"[huffzip] error: {e}", file=sys.stderr)
        return EXIT_GENERIC


if __name__ == "__main__":
    raise SystemExit(main())
