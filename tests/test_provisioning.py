"""Tests for provisioning module."""

import json

import pytest
from totpwatch.crypto import seal
from totpwatch.errors import ConfigurationError
from totpwatch.provisioning import (
    dump_toml,
    load_manifest,
    parse_aegis,
    parse_otpauth_uri,
    parse_text,
    parse_toml,
    read_credentials,
)

RFC_BASE32 = "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"
RFC_SECRET = b"12345678901234567890"


def test_parse_otpauth_uri():
    """Test parsing otpauth URI."""
    uri = f"otpauth://totp/GitHub?secret={RFC_BASE32}&period=30&digits=6&algorithm=SHA1"
    credential = parse_otpauth_uri(uri)

    assert credential.label == "GitHub"
    assert credential.secret == RFC_SECRET


def test_parse_otpauth_uri_url_encoded():
    """Test parsing otpauth URI with URL-encoded label."""
    uri = f"otpauth://totp/GitHub:%20user@example.com?secret={RFC_BASE32}"
    credential = parse_otpauth_uri(uri)

    assert credential.label == "GitHub: user@example.com"


def test_parse_otpauth_uri_issuer():
    """Test the issuer is prefixed when missing from the label."""
    uri = f"otpauth://totp/alice?secret={RFC_BASE32}&issuer=Example"
    assert parse_otpauth_uri(uri).label == "Example: alice"


@pytest.mark.parametrize(
    "uri",
    [
        f"otpauth://hotp/GitHub?secret={RFC_BASE32}&counter=0",
        f"otpauth://totp/GitHub?secret={RFC_BASE32}&digits=8",
        f"otpauth://totp/GitHub?secret={RFC_BASE32}&period=60",
        f"otpauth://totp/GitHub?secret={RFC_BASE32}&algorithm=SHA256",
        "https://example.com/totp",
    ],
)
def test_parse_otpauth_uri_unsupported(uri):
    """Test unsupported URIs are configuration errors."""
    with pytest.raises(ConfigurationError):
        parse_otpauth_uri(uri)


def test_parse_text():
    """Test parsing a list of URIs with comments and blank lines."""
    text = (
        "# work\n"
        f"otpauth://totp/GitHub?secret={RFC_BASE32}\n"
        "\n"
        "otpauth://totp/GitLab?secret=JBSWY3DPEHPK3PXP\n"
    )
    credentials = parse_text(text)

    assert [c.label for c in credentials] == ["GitHub", "GitLab"]


def test_parse_text_reports_line():
    """Test errors name the offending line."""
    text = f"otpauth://totp/GitHub?secret={RFC_BASE32}\notpauth://totp/Bad?secret=!!\n"
    with pytest.raises(ConfigurationError, match="line 2"):
        parse_text(text)


def test_parse_aegis():
    """Test parsing an Aegis export."""
    aegis_data = {
        "version": 1,
        "database": {
            "entries": [
                {
                    "type": "totp",
                    "name": "user@example.com",
                    "issuer": "GitHub",
                    "info": {"secret": RFC_BASE32, "algo": "SHA1", "digits": 6, "period": 30},
                },
                {
                    "type": "hotp",
                    "name": "counter",
                    "info": {"secret": RFC_BASE32, "counter": 3},
                },
            ]
        },
    }

    credentials = parse_aegis(json.dumps(aegis_data))
    assert len(credentials) == 1
    assert credentials[0].label == "GitHub: user@example.com"
    assert credentials[0].secret == RFC_SECRET


def test_parse_aegis_encrypted():
    """Test encrypted Aegis exports are rejected."""
    with pytest.raises(ConfigurationError):
        parse_aegis(json.dumps({"version": 1, "database": "base64 ciphertext"}))


@pytest.mark.parametrize(
    "data",
    [
        [],
        {"database": {"entries": {"type": "totp"}}},
        {"database": {"entries": ["not an entry"]}},
        {"database": {"entries": [{"type": "totp", "name": "x", "info": "secret"}]}},
        {"database": {"entries": [{"type": "totp", "name": "x", "info": {"secret": 12345}}]}},
    ],
)
def test_parse_aegis_malformed(data):
    """Test wrongly typed Aegis exports are configuration errors."""
    with pytest.raises(ConfigurationError):
        parse_aegis(json.dumps(data))


def test_parse_toml():
    """Test parsing a TOML manifest."""
    text = (
        "[[credentials]]\n"
        'label = "GitHub"\n'
        f'secret = "{RFC_BASE32}"\n'
        "\n"
        "[[credentials]]\n"
        'label = "GitLab"\n'
        'secret = "JBSWY3DPEHPK3PXP"\n'
        "digits = 6\n"
    )
    credentials = parse_toml(text)

    assert [c.label for c in credentials] == ["GitHub", "GitLab"]
    assert credentials[0].secret == RFC_SECRET


@pytest.mark.parametrize(
    "text",
    [
        "[[credentials]]\nsecret = 'JBSWY3DPEHPK3PXP'\n",
        "[[credentials]]\nlabel = 'NoSecret'\n",
        "[[credentials]]\nlabel = 'Long'\nsecret = 'JBSWY3DPEHPK3PXP'\ndigits = 8\n",
        "not = [valid toml",
        "[[credentials]]\nlabel = 'Number'\nsecret = 12345\n",
        "[[credentials]]\nlabel = 7\nsecret = 'JBSWY3DPEHPK3PXP'\n",
        'credentials = ["x"]\n',
        'credentials = "x"\n',
    ],
)
def test_parse_toml_invalid(text):
    """Test malformed manifests are configuration errors."""
    with pytest.raises(ConfigurationError):
        parse_toml(text)


def test_dump_toml_reads_back():
    """Test a dumped manifest parses to the same credentials."""
    credentials = parse_text(
        f'otpauth://totp/Quote%22d%20%5Clabel?secret={RFC_BASE32}\n'
        "otpauth://totp/GitLab?secret=JBSWY3DPEHPK3PXP\n"
    )

    assert parse_toml(dump_toml(credentials)) == credentials


def test_read_credentials_by_suffix(tmp_path):
    """Test the file suffix selects the format."""
    text_file = tmp_path / "codes.txt"
    text_file.write_text(f"otpauth://totp/GitHub?secret={RFC_BASE32}\n")
    toml_file = tmp_path / "manifest.toml"
    toml_file.write_text(f'[[credentials]]\nlabel = "GitHub"\nsecret = "{RFC_BASE32}"\n')

    assert read_credentials(text_file) == read_credentials(toml_file)


def test_read_sealed_manifest(tmp_path):
    """Test sealed manifests are decrypted with the password."""
    sealed = tmp_path / "manifest.sealed"
    sealed.write_bytes(
        seal(f'[[credentials]]\nlabel = "GitHub"\nsecret = "{RFC_BASE32}"\n'.encode(), "123456")
    )

    credentials = read_credentials(sealed, "123456")
    assert credentials[0].secret == RFC_SECRET

    with pytest.raises(ConfigurationError):
        read_credentials(sealed, "654321")
    with pytest.raises(ConfigurationError):
        read_credentials(sealed)


def test_load_manifest(tmp_path):
    """Test building a credential set from a manifest."""
    manifest = tmp_path / "manifest.toml"
    manifest.write_text(f'[[credentials]]\nlabel = "GitHub"\nsecret = "{RFC_BASE32}"\n')

    credentials = load_manifest(manifest)
    assert credentials.count() == 1
    assert credentials.labels() == ["GitHub"]


def test_load_manifest_empty(tmp_path):
    """Test an empty manifest refuses to start."""
    manifest = tmp_path / "manifest.toml"
    manifest.write_text("# nothing here\n")

    with pytest.raises(ConfigurationError):
        load_manifest(manifest)


def test_load_manifest_missing(tmp_path):
    """Test a missing manifest is a configuration error."""
    with pytest.raises(ConfigurationError):
        load_manifest(tmp_path / "missing.toml")
