"""Credential records and the immutable set the authenticator cycles through."""

import binascii
from dataclasses import dataclass
from typing import Iterable, Iterator

import pyotp

from .errors import ConfigurationError, SelectionOutOfRange


@dataclass(frozen=True)
class Credential:
    """A labelled shared secret."""

    label: str
    secret: bytes

    def __repr__(self) -> str:
        # Keep secrets out of tracebacks and log output
        return f"Credential(label={self.label!r}, secret=<{len(self.secret)} bytes>)"

    @classmethod
    def from_base32(cls, label: str, secret: str) -> "Credential":
        """Create a credential from a base32 encoded secret.

        Whitespace and missing padding are tolerated, as found in otpauth URIs
        and authenticator exports.

        Args:
            label: Display label
            secret: Base32 text secret

        Returns:
            Credential with the decoded raw secret

        Raises:
            ConfigurationError: If the secret is not valid base32
        """
        if not isinstance(secret, str):
            raise ConfigurationError(f"Secret for '{label}' must be a base32 string")
        cleaned = "".join(secret.split()).upper()
        try:
            raw = pyotp.TOTP(cleaned).byte_secret()
        except (binascii.Error, ValueError) as e:
            raise ConfigurationError(f"Secret for '{label}' is not valid base32: {e}") from e
        return cls(label=label, secret=raw)


class CredentialSet:
    """Ordered, read-only collection of credentials built once at startup."""

    def __init__(self, credentials: Iterable[Credential]):
        """Validate and freeze the credentials.

        Args:
            credentials: Credentials in display order

        Raises:
            ConfigurationError: If there are no credentials or a secret is empty
        """
        items = tuple(credentials)
        if not items:
            raise ConfigurationError("At least one credential is required")
        for position, credential in enumerate(items):
            if not isinstance(credential.secret, (bytes, bytearray)):
                raise ConfigurationError(
                    f"Credential {position} ('{credential.label}') secret must be bytes"
                )
            if not credential.secret:
                raise ConfigurationError(
                    f"Credential {position} ('{credential.label}') has an empty secret"
                )
        self._credentials = items

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, bytes]]) -> "CredentialSet":
        """Build a set from raw ``(label, secret)`` pairs."""
        return cls(Credential(label=label, secret=bytes(secret)) for label, secret in pairs)

    def count(self) -> int:
        """Number of credentials in the set."""
        return len(self._credentials)

    def get(self, index: int) -> Credential:
        """Get the credential at ``index``.

        Raises:
            SelectionOutOfRange: If index is not in ``[0, count)``
        """
        if not 0 <= index < len(self._credentials):
            raise SelectionOutOfRange(index, len(self._credentials))
        return self._credentials[index]

    def labels(self) -> list[str]:
        """Labels in display order."""
        return [credential.label for credential in self._credentials]

    def find(self, label: str) -> int | None:
        """Find a credential index by label.

        Matches in order:
        1. Exact match (case-insensitive)
        2. Prefix match - returns first credential starting with the label

        Args:
            label: The label to search for

        Returns:
            Index of the matching credential or None if not found
        """
        label_lower = label.lower()
        labels = [candidate.lower() for candidate in self.labels()]
        if label_lower in labels:
            return labels.index(label_lower)
        for index, candidate in enumerate(labels):
            if candidate.startswith(label_lower):
                return index
        return None

    def __len__(self) -> int:
        return len(self._credentials)

    def __iter__(self) -> Iterator[Credential]:
        return iter(self._credentials)
