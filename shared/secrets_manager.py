"""
Secrets management for the X API access service.

Secrets are looked up in the environment first (``XAPI_<NAME>``) and then in
an encrypted JSON secrets file. Run as a module to manage the file::

    python -m shared.secrets_manager set store_url redis://:pw@cache:6379/0
"""

import argparse
import base64
import json
import logging
import os
import sys
from typing import Dict, Iterable, List, Optional

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from shared.config import BaseConfig

logger = logging.getLogger(__name__)

ENV_PREFIX = "XAPI_"
DEFAULT_SECRETS = ("store_url",)


class SecretsManager:
    """
    Reads and writes secrets for the service.
    """

    def __init__(self, master_key: Optional[str] = None, secrets_file: Optional[str] = None):
        """
        Initialize the secrets manager.

        Args:
            master_key: Master key for encryption/decryption
            secrets_file: Path of the encrypted secrets file
        """
        self.master_key = master_key or os.getenv(f"{ENV_PREFIX}MASTER_KEY")
        if not self.master_key:
            raise ValueError("Master key is required")

        self.secrets_file = secrets_file or os.getenv(f"{ENV_PREFIX}SECRETS_FILE", "secrets.json")
        self._fernet = self._create_fernet()

    def _create_fernet(self) -> Fernet:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=b"x_api_secrets_salt",
            iterations=100000,
        )
        key = base64.urlsafe_b64encode(kdf.derive(self.master_key.encode()))
        return Fernet(key)

    def encrypt_secret(self, secret: str) -> str:
        return self._fernet.encrypt(secret.encode()).decode()

    def decrypt_secret(self, encrypted_secret: str) -> str:
        return self._fernet.decrypt(encrypted_secret.encode()).decode()

    def _read_file(self) -> Dict[str, str]:
        if not os.path.exists(self.secrets_file):
            return {}
        try:
            with open(self.secrets_file, "r") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to read secrets file: {e}")
            return {}

    def _write_file(self, secrets: Dict[str, str]) -> None:
        with open(self.secrets_file, "w") as f:
            json.dump(secrets, f, indent=2)

    def get_secret(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """
        Get a secret by key.

        Args:
            key: Secret key
            default: Default value if secret not found

        Returns:
            Secret value or default
        """
        secret = os.getenv(f"{ENV_PREFIX}{key.upper()}")
        if secret:
            return secret

        encrypted = self._read_file().get(key)
        if encrypted is None:
            return default

        try:
            return self.decrypt_secret(encrypted)
        except InvalidToken:
            logger.error(f"Secret '{key}' could not be decrypted with the configured master key")
            return default

    def set_secret(self, key: str, value: str) -> None:
        """Add or replace an encrypted secret in the secrets file."""
        secrets = self._read_file()
        secrets[key] = self.encrypt_secret(value)
        self._write_file(secrets)
        logger.info(f"Secret '{key}' saved to {self.secrets_file}")

    def delete_secret(self, key: str) -> bool:
        """Remove a secret; a secret that is already absent counts as deleted."""
        secrets = self._read_file()
        if secrets.pop(key, None) is not None:
            self._write_file(secrets)
            logger.info(f"Secret '{key}' removed from {self.secrets_file}")
        return True

    def list_secrets(self) -> List[str]:
        return sorted(self._read_file().keys())


def load_secrets(config: BaseConfig, names: Iterable[str] = DEFAULT_SECRETS) -> bool:
    """
    Resolve secrets into ``config`` at startup.

    Returns True when every named secret was found. Missing secrets keep the
    configured value.
    """
    if not config.master_key:
        logger.info("No master key configured; using configuration values as-is")
        return True

    manager = SecretsManager(config.master_key, config.secrets_file)
    loaded_all = True
    for name in names:
        value = manager.get_secret(name)
        if value is None:
            logger.warning(f"Secret '{name}' not found; keeping configured value")
            loaded_all = False
            continue
        setattr(config, name, value)

    return loaded_all


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Manage X API service secrets")
    parser.add_argument("action", choices=["get", "set", "delete", "list"])
    parser.add_argument("name", nargs="?")
    parser.add_argument("value", nargs="?")
    parser.add_argument("--secrets-file", default=None)
    args = parser.parse_args(argv)

    try:
        manager = SecretsManager(secrets_file=args.secrets_file)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.action == "list":
        for name in manager.list_secrets():
            print(name)
        return 0

    if not args.name:
        print(f"'{args.action}' requires a secret name", file=sys.stderr)
        return 1

    if args.action == "get":
        value = manager.get_secret(args.name)
        if value is None:
            return 1
        print(value)
        return 0

    if args.action == "set":
        if not args.value:
            print("'set' requires a secret value", file=sys.stderr)
            return 1
        manager.set_secret(args.name, args.value)
        return 0

    manager.delete_secret(args.name)
    return 0


if __name__ == "__main__":
    sys.exit(main())
