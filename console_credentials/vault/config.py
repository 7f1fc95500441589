"""
Vault Configuration — storage location, cipher and KDF settings.

Reads settings from environment variables:
    CREDENTIALS_STORAGE_PATH = <path of the credential blob>
    CREDENTIALS_KEY_ENV = <name of the variable holding a persistent key>
    CREDENTIALS_CIPHER_BACKEND = aesgcm | chacha20
    CREDENTIALS_KDF_ITERATIONS = <integer>
    CREDENTIALS_DETECT_AMBIGUOUS = 1 | 0

Security Note:
    Never log key material. Only log variable names and paths.
"""
import os
import secrets
import logging
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger("credentials.vault")

DEFAULT_KEY_ENV_VAR = "CREDENTIALS_SECRET_KEY"
DEFAULT_KDF_ITERATIONS = 600_000

_TRUE_VALUES = ("1", "true", "yes", "on")


def default_storage_path() -> Path:
    """Return the default blob location under the user's data directory.

    Uses ``$XDG_DATA_HOME`` when set, ``~/.local/share`` otherwise.
    """
    base = os.environ.get("XDG_DATA_HOME") or os.path.join("~", ".local", "share")
    return Path(base).expanduser() / "console_credentials" / "credentials.dat"


def generate_secret_key() -> str:
    """Generate a random secret key suitable for a persistent key variable.

    Returns:
        URL-safe text key with 256 bits of entropy.
    """
    return secrets.token_urlsafe(32)


class VaultConfig(BaseModel):
    """Validated vault configuration."""

    storage_path: Path = Field(default_factory=default_storage_path)
    key_env_var: str = Field(default=DEFAULT_KEY_ENV_VAR, min_length=1)
    cipher_backend: str = Field(default="aesgcm")
    kdf_iterations: int = Field(default=DEFAULT_KDF_ITERATIONS, ge=1000)
    autosave: bool = True
    detect_ambiguous_partitions: bool = False

    @field_validator("cipher_backend")
    @classmethod
    def validate_cipher(cls, v: str) -> str:
        """Validate cipher backend is supported."""
        v = v.lower()
        if v not in ("aesgcm", "chacha20"):
            raise ValueError(f"Unsupported cipher backend: {v}")
        return v

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """Create VaultConfig by loading values from environment.

        Unset variables fall back to the field defaults.

        Returns:
            Populated VaultConfig instance.
        """
        values: dict = {}
        path = os.environ.get("CREDENTIALS_STORAGE_PATH")
        if path:
            values["storage_path"] = Path(path).expanduser()
        key_env = os.environ.get("CREDENTIALS_KEY_ENV")
        if key_env:
            values["key_env_var"] = key_env
        cipher = os.environ.get("CREDENTIALS_CIPHER_BACKEND")
        if cipher:
            values["cipher_backend"] = cipher
        iterations = os.environ.get("CREDENTIALS_KDF_ITERATIONS")
        if iterations:
            values["kdf_iterations"] = int(iterations)
        ambiguous = os.environ.get("CREDENTIALS_DETECT_AMBIGUOUS")
        if ambiguous:
            values["detect_ambiguous_partitions"] = ambiguous.lower() in _TRUE_VALUES
        config = cls(**values)
        logger.debug(
            "Vault config loaded: path=%s cipher=%s key_env=%s",
            config.storage_path, config.cipher_backend, config.key_env_var,
        )
        return config
