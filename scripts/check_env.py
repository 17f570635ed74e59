"""Operational check for the bridge's environment configuration.

``check`` loads ``AppSettings`` from an ``.env`` file and reports which
Procore or SigniFlow variables are missing before the service is restarted.
``record`` and ``verify`` additionally pin the file's SHA256 so edits made
outside a deploy are noticed.

Example usages::

    python -m scripts.check_env record --env-file /srv/bridge/.env \
        --hash-file /srv/bridge/.env.sha256

    python -m scripts.check_env verify --env-file /srv/bridge/.env \
        --hash-file /srv/bridge/.env.sha256
"""

from __future__ import annotations

import argparse
import hashlib
import sys
from pathlib import Path
from typing import Callable, Iterable

from pydantic import ValidationError

from app.core.config import AppSettings, _load_env_file

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_CHECKSUM_ERROR = 3
EXIT_INSECURE_CONFIG = 4
EXIT_RUNTIME_ERROR = 5


def _compute_hash(env_file: Path) -> str:
    return hashlib.sha256(env_file.read_bytes()).hexdigest()


def _missing_variables(exc: ValidationError) -> list[str]:
    """Map settings validation errors back to environment variable names."""
    names = []
    for error in exc.errors():
        if error.get("type") == "missing" and error.get("loc"):
            names.append(str(error["loc"][-1]))
    return sorted(set(names))


def _load_settings(env_file: Path) -> AppSettings:
    _load_env_file(str(env_file))
    return AppSettings(_env_file=env_file)  # type: ignore[call-arg]


def _security_warnings(settings: AppSettings) -> Iterable[str]:
    if settings.environment.lower() == "production":
        if not settings.security.oauth_state_secret:
            yield "OAUTH_STATE_SECRET is unset; OAuth state falls back to the Procore client secret."
        if "sandbox" in settings.procore.api_base:
            yield f"PROCORE_API_BASE points at a sandbox host ({settings.procore.api_base})."


def _record_checksum(env_file: Path, hash_file: Path) -> int:
    checksum = _compute_hash(env_file)
    hash_file.write_text(f"{checksum}\n", encoding="utf-8")
    print(f"Recorded checksum to {hash_file} ({checksum})")
    return EXIT_OK


def _verify_checksum(env_file: Path, hash_file: Path) -> int:
    """Compare the current checksum to the recorded baseline."""
    if not hash_file.exists():
        print(
            f"Expected checksum file {hash_file} is missing. "
            "Run the 'record' command first.",
            file=sys.stderr,
        )
        return EXIT_RUNTIME_ERROR

    expected = hash_file.read_text(encoding="utf-8").strip()
    actual = _compute_hash(env_file)
    if expected == actual:
        print("Environment checksum OK.")
        return EXIT_OK

    print(
        "Environment checksum mismatch!\n"
        f"  expected: {expected}\n"
        f"  actual:   {actual}\n"
        "Review the .env changes before restarting the bridge.",
        file=sys.stderr,
    )
    return EXIT_CHECKSUM_ERROR


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate bridge settings and detect .env drift."
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail when production settings look unsafe.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, help_text, needs_hash in (
        ("record", "Validate settings and store the checksum baseline.", True),
        ("verify", "Validate settings and compare against the baseline.", True),
        ("check", "Validate settings only.", False),
    ):
        subparser = subparsers.add_parser(name, help=help_text)
        subparser.add_argument(
            "--env-file",
            default=".env",
            type=Path,
            help="Path to the environment file (default: .env in the repo root).",
        )
        if needs_hash:
            subparser.add_argument("--hash-file", required=True, type=Path)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    env_file: Path = args.env_file

    if not env_file.exists():
        print(f"Environment file {env_file} does not exist.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        settings = _load_settings(env_file)
    except ValidationError as exc:
        missing = _missing_variables(exc)
        if missing:
            print("Missing required variables: " + ", ".join(missing), file=sys.stderr)
        print(f"Settings validation failed:\n{exc}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    warnings = list(_security_warnings(settings))
    for warning in warnings:
        print(f"warning: {warning}", file=sys.stderr)
    if warnings and args.strict:
        return EXIT_INSECURE_CONFIG

    handlers: dict[str, Callable[[], int]] = {
        "record": lambda: _record_checksum(env_file, args.hash_file),
        "verify": lambda: _verify_checksum(env_file, args.hash_file),
        "check": lambda: EXIT_OK,
    }
    return handlers[args.command]()


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
