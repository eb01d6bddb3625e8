"""Utility modules for the FineX kernel."""

from finex_kernel.utils.hashing import canonicalize_json, hash_payload, watermark_checksum

__all__ = ["canonicalize_json", "hash_payload", "watermark_checksum"]
