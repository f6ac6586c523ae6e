"""
Credential lookup.

A file under the secrets mount wins over anything in the environment, so a
rotated container secret takes effect without touching .env. Settings values
already cover environment variables and the .env file.
"""
import logging
from pathlib import Path
from typing import Optional

from ..config import settings
from ..errors import MissingSecretError

logger = logging.getLogger(__name__)


def read_mounted_secret(secret_name: str, secrets_dir: Optional[Path] = None) -> Optional[str]:
    """Contents of `<secrets_dir>/<secret_name>`, or None if absent or blank."""
    secret_path = Path(secrets_dir or settings.secrets_dir) / secret_name
    if not secret_path.is_file():
        return None
    try:
        value = secret_path.read_text(encoding="utf-8").strip()
    except OSError as e:
        raise MissingSecretError(f"Secret file exists but cannot be read: {secret_path}") from e
    if not value:
        logger.warning(f"Secret file {secret_path} is empty, ignoring it")
        return None
    return value


def resolve_secret(
    secret_name: str,
    configured: Optional[str] = None,
    secrets_dir: Optional[Path] = None,
) -> str:
    """
    Resolve a credential.

    Priority:
    1. Mounted secret file `<secrets_dir>/<secret_name>`
    2. `configured`, the value Settings loaded from env or .env

    Raises:
        MissingSecretError: Neither source yields a non-empty value
    """
    mounted = read_mounted_secret(secret_name, secrets_dir)
    if mounted:
        return mounted
    if configured and configured.strip():
        return configured.strip()
    raise MissingSecretError(
        f"Secret '{secret_name}' not found in {secrets_dir or settings.secrets_dir} "
        f"or the {secret_name.upper()} setting"
    )


def get_openai_key(secrets_dir: Optional[Path] = None) -> str:
    """OpenAI key for embeddings and the summary agent."""
    return resolve_secret("openai_api_key", settings.openai_api_key, secrets_dir)
