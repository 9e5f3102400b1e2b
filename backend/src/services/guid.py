"""
GUID service for entity identification.

Provides utilities for encoding, decoding and validating the Global
Unique Identifiers used in URLs, API responses and real-time payloads.

GUID Format: {prefix}_{base32_uuid}
- prefix: 3-character entity type identifier (usr, evt, pay, vnd, act, tsk,
  con, led, dea)
- base32_uuid: 26-character Crockford Base32 encoded UUIDv7
"""

import re
import uuid
from typing import Optional, Tuple

import base32_crockford
from uuid_extensions import uuid7

ENTITY_PREFIXES = {
    "usr": "User",
    "evt": "Event",
    "pay": "Payment",
    "vnd": "Vendor",
    "act": "Activity",
    "tsk": "Task",
    "con": "Contact",
    "led": "Lead",
    "dea": "Deal",
}

GUID_PATTERN = re.compile(
    r"^(usr|evt|pay|vnd|act|tsk|con|led|dea)_[0-9A-HJKMNP-TV-Za-hjkmnp-tv-z]{26}$",
    re.IGNORECASE
)


class GuidService:
    """Static helpers for generating, encoding and parsing GUIDs."""

    @staticmethod
    def generate_uuid() -> uuid.UUID:
        """Generate a new time-ordered UUIDv7."""
        return uuid7()

    @staticmethod
    def encode_uuid(uuid_value: uuid.UUID, prefix: str) -> str:
        """
        Encode a UUID to a GUID string.

        Args:
            uuid_value: UUID (or its 16 raw bytes) to encode
            prefix: Entity type prefix

        Raises:
            ValueError: If prefix is invalid
        """
        if prefix not in ENTITY_PREFIXES:
            raise ValueError(
                f"Invalid prefix '{prefix}'. "
                f"Valid prefixes: {', '.join(ENTITY_PREFIXES.keys())}"
            )

        if isinstance(uuid_value, bytes):
            uuid_int = int.from_bytes(uuid_value, "big")
        else:
            uuid_int = int.from_bytes(uuid_value.bytes, "big")

        encoded = base32_crockford.encode(uuid_int).zfill(26)
        return f"{prefix}_{encoded.lower()}"

    @staticmethod
    def generate_guid(prefix: str) -> str:
        return GuidService.encode_uuid(GuidService.generate_uuid(), prefix)

    @staticmethod
    def decode_guid(guid: str) -> Tuple[str, uuid.UUID]:
        """
        Decode a GUID string to (prefix, UUID).

        Raises:
            ValueError: If the GUID format is invalid
        """
        if not guid:
            raise ValueError("GUID cannot be empty")

        if not GUID_PATTERN.match(guid):
            raise ValueError(
                f"Invalid GUID format: {guid}. "
                f"Expected format: {{prefix}}_{{26-char base32}}"
            )

        prefix = guid[:3].lower()
        encoded_part = guid[4:]

        try:
            uuid_int = base32_crockford.decode(encoded_part.upper())
            return prefix, uuid.UUID(bytes=uuid_int.to_bytes(16, "big"))
        except (ValueError, OverflowError) as e:
            raise ValueError(f"Invalid GUID encoding: {e}")

    @staticmethod
    def validate_guid(guid: str, expected_prefix: Optional[str] = None) -> bool:
        """Return True if ``guid`` is well-formed (and has the expected prefix)."""
        if not guid or not GUID_PATTERN.match(guid):
            return False

        if expected_prefix:
            return guid[:3].lower() == expected_prefix.lower()

        return True

    @staticmethod
    def get_entity_type(guid: str) -> Optional[str]:
        if not guid or len(guid) < 3:
            return None
        return ENTITY_PREFIXES.get(guid[:3].lower())

    @staticmethod
    def parse_identifier(identifier: str, expected_prefix: Optional[str] = None) -> uuid.UUID:
        """
        Parse a GUID identifier and return the UUID.

        Args:
            identifier: GUID string (e.g., "evt_01hgw2bbg...")
            expected_prefix: Expected prefix for validation

        Raises:
            ValueError: If the identifier format is invalid or prefix doesn't match
        """
        if not identifier:
            raise ValueError("Identifier cannot be empty")

        if GUID_PATTERN.match(identifier):
            if expected_prefix:
                prefix = identifier[:3].lower()
                if prefix != expected_prefix.lower():
                    raise ValueError(
                        f"GUID prefix mismatch. "
                        f"Expected '{expected_prefix}', got '{prefix}'"
                    )

            _prefix, uuid_value = GuidService.decode_guid(identifier)
            return uuid_value

        if identifier.isdigit():
            raise ValueError(
                "Numeric IDs are not supported. "
                "Please use GUID format ({prefix}_{base32})"
            )

        raise ValueError(
            f"Invalid identifier format: {identifier}. "
            f"Expected GUID format ({{prefix}}_{{base32}})"
        )
