"""Access credentials for brokers with ACL enabled."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Credentials:
    """Access key pair plus optional security token."""

    access_key: str = ""
    secret_key: str = ""
    security_token: str = ""

    def is_empty(self) -> bool:
        """Return True when either the access key or the secret key is missing."""
        return not self.access_key or not self.secret_key