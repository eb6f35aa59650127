"""
Tests for CA file loading.
"""

from unittest.mock import patch, MagicMock

import pytest

from connhub.core import TrustStoreError, load_trust_store

FAKE_PEM = "-----BEGIN CERTIFICATE-----\nMIIBfake\n-----END CERTIFICATE-----\n"


class TestLoadTrustStore:
    """Test trust store construction and its failure modes."""

    def test_missing_file(self, tmp_path):
        """Test that a missing CA file is rejected."""
        with pytest.raises(TrustStoreError, match="Failed to read CA file"):
            load_trust_store(str(tmp_path / "missing.pem"))

    def test_file_without_certificate(self, tmp_path):
        """Test that a file with no PEM block is rejected."""
        ca_file = tmp_path / "ca.pem"
        ca_file.write_text("not a certificate")

        with pytest.raises(TrustStoreError, match="No PEM certificate"):
            load_trust_store(str(ca_file))

    def test_unparseable_certificate(self, tmp_path):
        """Test that a corrupt PEM block is rejected."""
        ca_file = tmp_path / "ca.pem"
        ca_file.write_text(FAKE_PEM)

        with pytest.raises(TrustStoreError, match="Failed to parse CA file"):
            load_trust_store(str(ca_file))

    def test_binary_file(self, tmp_path):
        """Test that undecodable content is rejected."""
        ca_file = tmp_path / "ca.der"
        ca_file.write_bytes(b"\xff\xfe\x00\x81")

        with pytest.raises(TrustStoreError):
            load_trust_store(str(ca_file))

    def test_valid_certificate(self, tmp_path):
        """Test that a parseable CA file yields a trust store."""
        ca_file = tmp_path / "ca.pem"
        ca_file.write_text(FAKE_PEM)
        context = MagicMock()

        with patch("connhub.core.tls.ssl.create_default_context", return_value=context) as create:
            store = load_trust_store(str(ca_file))

        create.assert_called_once_with(cadata=FAKE_PEM)
        assert store.path == str(ca_file)
        assert store.pem == FAKE_PEM
        assert store.context is context
