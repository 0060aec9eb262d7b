"""Loading credential manifests into a CredentialSet.

Supported sources, picked by file suffix:

- ``.toml``: ``[[credentials]]`` tables with ``label`` and base32 ``secret``
- ``.txt``: one ``otpauth://totp/...`` URI per line
- ``.json``: Aegis plain JSON export
- ``.sealed``: a TOML manifest encrypted with ``totpwatch seal``
"""

import base64
import json
import logging
import tomllib
from pathlib import Path
from typing import Any, Optional
from urllib.parse import parse_qs, unquote, urlparse

from . import hotp, timestep
from .credentials import Credential, CredentialSet
from .crypto import unseal
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

SEALED_SUFFIX = ".sealed"


def _check_parameters(label: str, digits: Any, period: Any, algorithm: Any) -> None:
    """Reject entries that need anything but SHA1, 6 digits and 30 seconds."""
    try:
        digits, period = int(digits), int(period)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"'{label}': digits and period must be integers") from e
    if digits != hotp.DIGITS:
        raise ConfigurationError(f"'{label}': only {hotp.DIGITS} digit codes are supported")
    if period != timestep.INTERVAL:
        raise ConfigurationError(f"'{label}': only a {timestep.INTERVAL}s period is supported")
    if str(algorithm).upper() != "SHA1":
        raise ConfigurationError(f"'{label}': only SHA1 is supported, got {algorithm}")


def parse_otpauth_uri(uri: str) -> Credential:
    """Parse an ``otpauth://totp/`` URI into a Credential.

    Args:
        uri: The otpauth URI string

    Returns:
        Credential with the decoded secret

    Raises:
        ConfigurationError: If the URI is not a supported TOTP URI
    """
    parsed = urlparse(uri)
    if parsed.scheme != "otpauth" or parsed.netloc != "totp":
        raise ConfigurationError(f"Not an otpauth TOTP URI: {parsed.scheme}://{parsed.netloc}")

    params = parse_qs(parsed.query)
    label = unquote(parsed.path.lstrip("/"))
    issuer = params.get("issuer", [""])[0]
    if issuer and issuer not in label:
        label = f"{issuer}: {label}"

    _check_parameters(
        label,
        params.get("digits", [hotp.DIGITS])[0],
        params.get("period", [timestep.INTERVAL])[0],
        params.get("algorithm", ["SHA1"])[0],
    )
    return Credential.from_base32(label, params.get("secret", [""])[0])


def parse_text(text: str) -> list[Credential]:
    """Parse otpauth URIs, one per line. Blank lines and ``#`` comments are skipped."""
    credentials = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        try:
            credentials.append(parse_otpauth_uri(line))
        except ConfigurationError as e:
            raise ConfigurationError(f"line {lineno}: {e}") from e
    return credentials


def parse_aegis(text: str) -> list[Credential]:
    """Parse an unencrypted Aegis JSON export. Non-TOTP entries are skipped."""
    try:
        data = json.loads(text)
    except ValueError as e:
        raise ConfigurationError(f"Invalid Aegis export: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError("Aegis export must be a JSON object")
    database = data.get("database")
    if not isinstance(database, dict):
        raise ConfigurationError("Aegis export is encrypted or has no database")
    entries = database.get("entries", [])
    if not isinstance(entries, list):
        raise ConfigurationError("Aegis export entries must be a list")

    credentials = []
    for position, item in enumerate(entries):
        if not isinstance(item, dict):
            raise ConfigurationError(f"Aegis entry {position} is not an object")
        if item.get("type") != "totp":
            logger.info("Skipping non-TOTP entry '%s'", item.get("name", "Unknown"))
            continue
        info = item.get("info", {})
        label = item.get("name", "Unknown")
        issuer = item.get("issuer", "")
        if not isinstance(info, dict) or not isinstance(label, str) or not isinstance(issuer, str):
            raise ConfigurationError(f"Aegis entry {position} is malformed")

        # Include issuer in label if present
        if issuer and issuer not in label:
            label = f"{issuer}: {label}"

        _check_parameters(
            label,
            info.get("digits", hotp.DIGITS),
            info.get("period", timestep.INTERVAL),
            info.get("algo", info.get("algorithm", "SHA1")),
        )
        credentials.append(Credential.from_base32(label, info.get("secret", "")))
    return credentials


def parse_toml(text: str) -> list[Credential]:
    """Parse a TOML manifest of ``[[credentials]]`` tables."""
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid manifest: {e}") from e

    entries = data.get("credentials", [])
    if not isinstance(entries, list):
        raise ConfigurationError("Manifest 'credentials' must be an array of tables")

    credentials = []
    for position, item in enumerate(entries):
        if not isinstance(item, dict):
            raise ConfigurationError(f"Manifest entry {position} must be a table")
        label = item.get("label")
        secret = item.get("secret")
        if not label or secret is None:
            raise ConfigurationError(f"Manifest entry {position} needs a label and a secret")
        if not isinstance(label, str) or not isinstance(secret, str):
            raise ConfigurationError(f"Manifest entry {position} label and secret must be strings")
        _check_parameters(
            label,
            item.get("digits", hotp.DIGITS),
            item.get("period", timestep.INTERVAL),
            item.get("algorithm", "SHA1"),
        )
        credentials.append(Credential.from_base32(label, secret))
    return credentials


def dump_toml(credentials: list[Credential]) -> str:
    """Render credentials as a TOML manifest with base32 secrets."""
    blocks = []
    for credential in credentials:
        secret = base64.b32encode(credential.secret).decode().rstrip("=")
        # JSON string escapes are valid TOML basic string escapes
        blocks.append(
            "[[credentials]]\n"
            f"label = {json.dumps(credential.label)}\n"
            f"secret = {json.dumps(secret)}\n"
        )
    return "\n".join(blocks)


def read_credentials(path: Path, password: Optional[str] = None) -> list[Credential]:
    """Read credentials from any supported manifest file.

    Args:
        path: Manifest path; the suffix selects the format
        password: Password for sealed manifests

    Raises:
        ConfigurationError: If the file is missing, malformed or cannot be unsealed
    """
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise ConfigurationError(f"Cannot read manifest {path}: {e}") from e

    suffix = path.suffix.lower()
    if suffix == SEALED_SUFFIX:
        if password is None:
            raise ConfigurationError(f"Manifest {path} is sealed and needs a password")
        raw = unseal(raw, password)

    try:
        text = raw.decode()
    except UnicodeDecodeError as e:
        raise ConfigurationError(f"Manifest {path} is not UTF-8 text") from e

    if suffix == ".txt":
        return parse_text(text)
    if suffix == ".json":
        return parse_aegis(text)
    return parse_toml(text)


def load_manifest(path: Path, password: Optional[str] = None) -> CredentialSet:
    """Build the credential set from a manifest file."""
    credentials = CredentialSet(read_credentials(path, password))
    logger.debug("Loaded %d credentials from %s", credentials.count(), path)
    return credentials
