"""
Credential loading for message queue authentication.

Secrets are mounted as a flat directory, one file per credential. The file
name is the credential name and the file content is the raw value. Mounted
volumes carry bookkeeping entries (``..data``, ``..2024_01_01...``) which are
hidden and must never be read as credentials.
"""

import errno
import logging
from pathlib import Path

from mqtrigger.errors import SecretsNotFoundError

logger = logging.getLogger(__name__)

HIDDEN_PREFIX = "."


def is_credential_file(entry: Path) -> bool:
    return not entry.name.startswith(HIDDEN_PREFIX) and not entry.is_dir()


def load_secrets(secrets_path: str | Path) -> dict[str, bytes]:
    """
    Read every credential file from a secrets directory.

    Args:
        secrets_path: Directory holding one file per credential

    Returns:
        Mapping of file name to file content

    Raises:
        SecretsNotFoundError: If the directory does not exist
        OSError: The error of the first file that could not be read
    """
    secrets_dir = Path(secrets_path)
    if not secrets_dir.exists():
        raise SecretsNotFoundError(
            errno.ENOENT, "secrets directory not found", str(secrets_dir)
        )

    secrets: dict[str, bytes] = {}
    for entry in sorted(secrets_dir.iterdir()):
        if not is_credential_file(entry):
            continue

        logger.info(f"Reading secret from {entry.name}")
        secrets[entry.name] = entry.read_bytes()

    return secrets
