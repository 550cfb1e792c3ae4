from __future__ import annotations

import math

from . import constants as const
from .models import StateSchema


def is_schema_broken(before: StateSchema, after: StateSchema) -> bool:
    """
    Return True if going from `before` to `after` is a breaking schema change.

    An app's schema is fixed at creation, so growth in either slot kind needs a new app.
    A smaller or equal schema is fine: the app just doesn't use the extra slots.
    """
    return (
        after.num_uints > before.num_uints
        or after.num_byte_slices > before.num_byte_slices
    )


def required_extra_program_pages(approval_program: bytes, clear_program: bytes) -> int:
    """Extra program pages needed to hold both programs (each page is 2048 bytes)."""
    total = len(approval_program) + len(clear_program)
    pages = max(0, math.ceil(total / const.APP_PAGE_MAX_SIZE) - 1)
    if pages > const.MAX_EXTRA_PROGRAM_PAGES:
        raise ValueError(
            f"Programs too large: {total} bytes needs {pages} extra pages, "
            f"max is {const.MAX_EXTRA_PROGRAM_PAGES}"
        )
    return pages
