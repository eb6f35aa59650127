"""
Loading of PEM encoded CA files into an in-memory trust store.
"""

import logging
import ssl
from dataclasses import dataclass, field
from pathlib import Path

from .errors import TrustStoreError

logger = logging.getLogger(__name__)

PEM_CERTIFICATE_MARKER = "-----BEGIN CERTIFICATE-----"


@dataclass(frozen=True)
class TrustStore:
    """Trusted certificate authorities read from one CA file."""
    path: str
    pem: str = field(repr=False)
    context: ssl.SSLContext = field(repr=False, compare=False)


def load_trust_store(ca_file: str) -> TrustStore:
    """
    Read ``ca_file`` and build an SSL context trusting its certificates.

    Args:
        ca_file: Path to a PEM encoded CA certificate bundle

    Returns:
        TrustStore: The PEM text and an SSLContext verifying against it

    Raises:
        TrustStoreError: If the file is missing, unreadable or holds no valid certificate
    """
    try:
        pem = Path(ca_file).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise TrustStoreError(f"Failed to read CA file {ca_file}: {e}") from e

    if PEM_CERTIFICATE_MARKER not in pem:
        raise TrustStoreError(f"No PEM certificate found in CA file {ca_file}")

    try:
        context = ssl.create_default_context(cadata=pem)
    except (ssl.SSLError, ValueError) as e:
        raise TrustStoreError(f"Failed to parse CA file {ca_file}: {e}") from e

    logger.debug(f"Loaded trust store from {ca_file}")
    return TrustStore(path=ca_file, pem=pem, context=context)
