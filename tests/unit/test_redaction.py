"""Unit tests for secret redaction."""

from forge_deployments.constants import REDACTED
from forge_deployments.redaction import redact, redact_command

PRIVATE_KEY = "ac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
API_KEY = "ABCDEFGHIJKLMNOPQRSTUVWXYZ123456"
ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"


class TestRedact:
    """Test the redact function."""

    def test_redacts_private_key_flag_value(self):
        """Test that the value after --private-key is replaced."""
        text = "forge create src/A.sol:A --private-key mysecret --json"

        result = redact(text)

        assert "mysecret" not in result
        assert f"--private-key {REDACTED}" in result

    def test_redacts_flag_value_with_equals(self):
        """Test that --flag=value form is handled."""
        result = redact("--etherscan-api-key=abc123 --api-key=xyz")

        assert "abc123" not in result
        assert "xyz" not in result
        assert result.count(REDACTED) == 2

    def test_redacts_64_hex_with_prefix(self):
        """Test that 0x-prefixed 64-hex tokens are replaced."""
        result = redact(f"error: invalid key 0x{PRIVATE_KEY}")

        assert PRIVATE_KEY not in result
        assert REDACTED in result

    def test_redacts_64_hex_without_prefix(self):
        """Test that bare 64-hex tokens are replaced."""
        result = redact(f"key={PRIVATE_KEY}.")

        assert PRIVATE_KEY not in result

    def test_redacts_long_alphanumeric_tokens(self):
        """Test that API-key shaped tokens are replaced."""
        result = redact(f"apikey {API_KEY} rejected")

        assert API_KEY not in result
        assert result == f"apikey {REDACTED} rejected"

    def test_keeps_addresses(self):
        """Test that 20-byte addresses survive redaction."""
        text = f"Deployed to: {ADDRESS}"
        assert redact(text) == text

    def test_keeps_short_tokens(self):
        """Test that ordinary words and numbers are untouched."""
        text = "Error: nonce too low (expected 12, got 11)"
        assert redact(text) == text

    def test_empty_text(self):
        """Test that empty text is returned as-is."""
        assert redact("") == ""


class TestRedactCommand:
    """Test the redact_command function."""

    def test_renders_command_without_secrets(self):
        """Test that a command line is joined and redacted."""
        result = redact_command("forge", ["create", "--private-key", f"0x{PRIVATE_KEY}"])

        assert result == f"forge create --private-key {REDACTED}"
