"""
Credential collaborator contract (``finex_kernel.domain.credentials``).

The device-bound credential layer (password-at-rest encoding, role
signing, device fingerprinting) lives outside the kernel.  The kernel
only consumes it through this protocol to stamp users, gate privileged
login and watermark backups.  No cryptographic strength is assumed:
``encrypt`` is reversible and ``sign`` is tamper evidence only.
"""

from typing import Protocol


class CredentialProvider(Protocol):
    """Pluggable interface to the credential/security layer."""

    def encrypt(self, plaintext: str) -> str:
        """Encode a password for storage (reversible)."""
        ...

    def decrypt(self, ciphertext: str) -> str:
        """Decode a stored password."""
        ...

    def sign(self, role: str, identity: str) -> str:
        """Role signature for ``identity`` (the user's phone)."""
        ...

    def verify(self, role: str, identity: str, signature: str) -> bool:
        """Check a stored role signature."""
        ...

    def device_fingerprint(self) -> str:
        """Stable identifier of this device."""
        ...
