"""
Address identity: a deterministic hash of a normalized physical address.

The hash is compared across independently deployed services, so the
normalization and the hash function are frozen. Changing either requires a
migration of every stored ``address_identity_hash`` and a bump of
``ADDRESS_HASH_VERSION``.
"""

ADDRESS_HASH_VERSION = 1

DJB2_SEED = 5381
DJB2_MULTIPLIER = 33
HASH_MASK = 0x7FFFFFFF  # 31 bits: never negative, same on every platform


def normalize_address(street: str, city: str, postal_code: str) -> str:
    """Trim and lowercase each part and join them as ``street-city-postalcode``."""
    parts = (street or "", city or "", postal_code or "")
    return "-".join(part.strip().lower() for part in parts)


def djb2(text: str) -> int:
    h = DJB2_SEED
    for ch in text:
        h = (h * DJB2_MULTIPLIER + ord(ch)) & HASH_MASK
    return h


def identify(street: str, city: str, postal_code: str) -> int:
    """Return the 31-bit identity hash of an address. Empty parts are allowed."""
    return djb2(normalize_address(street, city, postal_code))


def format_identity(identity_hash: int) -> str:
    """Lowercase hex rendering used in admin tooling."""
    return format(identity_hash, "x")
