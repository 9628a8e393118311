"""ID generators (CUID2 document ids)."""

from cuid2 import cuid_wrapper

cuid_generator = cuid_wrapper()


def generate_cuid() -> str:
    """Generate a collision-resistant unique identifier used as a Firestore document id."""
    result = cuid_generator()
    if not isinstance(result, str):
        raise TypeError(
            f"Expected str from cuid_generator, got {type(result).__name__}"
        )
    return result


def daily_document_id(day: str, owner_id: str) -> str:
    """Composite id for one-per-day documents, e.g. ``2024-05-01_stallA``.

    Used for food-stall daily sales (owner = stall) and staff attendance
    (owner = staff uid) so repeated writes for the same day upsert.
    """
    if "/" in owner_id:
        raise ValueError("owner_id must not contain '/'")
    return f"{day}_{owner_id}"
