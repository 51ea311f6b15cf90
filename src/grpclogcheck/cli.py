"""grpclogcheck CLI: check a recorded gRPC log for lookup, upload, then execute of one digest."""

import argparse
import sys
from importlib.metadata import version as get_version, PackageNotFoundError
from pathlib import Path

from pydantic import ValidationError


def main():
    """Main CLI entry point.

    Exit status: 0 on PASS, 1 on FAIL or INCOMPLETE, 2 on malformed invocation.
    """
    try:
        grpclogcheck_version = get_version("grpclogcheck")
    except PackageNotFoundError:
        grpclogcheck_version = "dev"

    parser = argparse.ArgumentParser(
        prog="grpclogcheck",
        description=(
            "Check that a remote-execution gRPC log contains, in order, a FindMissingBlobs "
            "with the digest, a Write of it, and an Execute producing it as an output file."
        )
    )
    parser.add_argument("--version", action="version", version=f"grpclogcheck {grpclogcheck_version}")
    parser.add_argument(
        "log_file",
        type=Path,
        help="Path to the gRPC log (length-delimited LogEntry records)"
    )
    parser.add_argument(
        "file_hash",
        help="Expected content hash"
    )
    parser.add_argument(
        "file_size",
        type=int,
        help="Expected content size in bytes"
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Do not dump every log entry; print only stage results."
    )
    parser.add_argument(
        "--report-out",
        type=Path,
        default=None,
        help="Write the check result as canonical JSON to this path"
    )

    args = parser.parse_args()

    from .api import CheckConfig, run_check
    from .kernel.sequence import Verdict

    try:
        config = CheckConfig(
            log_path=args.log_file,
            file_hash=args.file_hash,
            size_bytes=args.file_size,
        )
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        parser.error(errors)

    result = run_check(config, verbose=not args.quiet)

    if args.report_out is not None:
        from ._internal.canonical_json import write_report

        try:
            report_out = write_report(args.report_out, result.model_dump(mode="json"))
        except OSError as e:
            print(f"Error: cannot write report: {e}", file=sys.stderr)
            sys.exit(1)
        if not args.quiet:
            print(f"  Report: {report_out}")

    if result.verdict == Verdict.PASS.value:
        return
    if result.verdict == Verdict.INCOMPLETE.value:
        print(f"INCOMPLETE: {result.message}")
    else:
        print(f"ERROR: {result.message}")
    sys.exit(1)


if __name__ == "__main__":
    main()
