"""Deletion policy: which actor class may remove which attachment."""

CORRESPONDENT_ORIGIN = "correspondent"


def can_delete(record_origin: str | None, requesting_origin: str | None) -> bool:
    """Return True if requesting_origin may delete an attachment created by record_origin.

    A correspondent may remove only attachments a correspondent created; any
    other actor class (staff, admin, ...) may remove any attachment. Pure and
    total: a missing record is the caller's "not found", never a denial here.
    """
    if requesting_origin == CORRESPONDENT_ORIGIN:
        return record_origin == CORRESPONDENT_ORIGIN
    return True
