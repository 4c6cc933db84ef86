"""ID and name generators (CUID for record ids, UUID-prefixed object names)."""

import os
import uuid

from cuid2 import cuid_wrapper

cuid_generator = cuid_wrapper()


def generate_cuid() -> str:
    """Generate a collision-resistant unique identifier (CUID2).

    Returns:
        A new CUID string.
    """
    result = cuid_generator()
    if not isinstance(result, str):
        raise TypeError(
            f"Expected str from cuid_generator, got {type(result).__name__}"
        )
    return result


def split_extension(filename: str) -> tuple[str, str]:
    """Split filename into (base, extension) on the last dot.

    A leading dot is part of the base (".env" has no extension) and only the
    basename is considered, so directory components never leak into names.
    """
    name = os.path.basename(filename or "")
    dot = name.rfind(".")
    if dot <= 0:
        return name, ""
    return name[:dot], name[dot:]


def generate_unique_object_name(original_filename: str | None) -> str:
    """Return '<uuid4>_<base><ext>' for original_filename, or '<uuid4>' when empty.

    The random prefix makes names collision-free; the original extension is
    preserved so served files keep their type.
    """
    prefix = str(uuid.uuid4())
    base, ext = split_extension(original_filename or "")
    base = base.replace("\x00", "")
    if not base and not ext:
        return prefix
    return f"{prefix}_{base}{ext}"
