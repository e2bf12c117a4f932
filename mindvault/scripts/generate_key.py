"""
MindVault — Encryption Key Generator (`mindvault-keygen`)
===========================================================

What:  Prints a fresh ENCRYPTION_KEY (64 hex chars) with handling notes.
How:   `--env-file PATH` additionally appends the key to a dotenv file, but
       only when that file has no ENCRYPTION_KEY line yet. An existing key
       is never replaced: doing so would orphan every stored token.
"""

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

from mindvault.services.field_cipher import new_key_material

logger = logging.getLogger(__name__)

ENV_VAR = "ENCRYPTION_KEY"

INSTRUCTIONS = """\
Keep this key secret:
  - Store it in your secret manager or .env file, never in version control.
  - Back it up. Losing it makes all encrypted data permanently unreadable.
  - Do not change it once data has been written with it.
"""


def has_key_line(env_file: Path) -> bool:
    """True if env_file already defines ENCRYPTION_KEY (even an empty one)."""
    if not env_file.exists():
        return False
    with env_file.open("r", encoding="utf-8") as f:
        for line in f:
            if line.strip().startswith(f"{ENV_VAR}="):
                return True
    return False


def append_to_env_file(env_file: Path, key: str) -> bool:
    """
    Appends `ENCRYPTION_KEY=<key>` to env_file, creating it if needed.

    Returns:
        False (and writes nothing) if the file already has the variable.
    """
    if has_key_line(env_file):
        return False

    prefix = ""
    if env_file.exists():
        existing = env_file.read_text(encoding="utf-8")
        if existing and not existing.endswith("\n"):
            prefix = "\n"

    with env_file.open("a", encoding="utf-8") as f:
        f.write(f"{prefix}{ENV_VAR}={key}\n")
    return True


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="mindvault-keygen",
        description="Generate a key for field encryption at rest.",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Append the key to this dotenv file if it has no ENCRYPTION_KEY yet",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    key = new_key_material()
    print(f"{ENV_VAR}={key}")
    print()
    print(INSTRUCTIONS)

    if args.env_file is not None:
        if append_to_env_file(args.env_file, key):
            logger.info("Key appended to %s", args.env_file)
        else:
            logger.warning(
                "%s already defines %s; left unchanged", args.env_file, ENV_VAR
            )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
