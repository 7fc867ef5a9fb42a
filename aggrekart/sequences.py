"""
Human-readable sequential ids: TKT-000042 for tickets, PIL000042 for pilots.

The next id is looked up, then inserted. Two writers can pick the same id between the
lookup and the INSERT; the unique constraint rejects the second one, which looks again
inside its own savepoint and retries.
"""

import logging

from django.db import IntegrityError, transaction

logger = logging.getLogger("aggrekart.sequences")

MAX_ATTEMPTS = 5


def next_free(model, field: str, prefix: str, width: int = 6) -> str:
    n = model.objects.count() + 1
    candidate = f"{prefix}{n:0{width}d}"
    while model.objects.filter(**{field: candidate}).exists():
        n += 1
        candidate = f"{prefix}{n:0{width}d}"
    return candidate


def create_with_next_id(model, field: str, prefix: str, width: int = 6, **values):
    """Create a `model` row with `field` set to the next free id. Other IntegrityErrors propagate."""
    for attempt in range(1, MAX_ATTEMPTS + 1):
        candidate = next_free(model, field, prefix, width)
        try:
            with transaction.atomic():
                return model.objects.create(**{field: candidate}, **values)
        except IntegrityError:
            if not model.objects.filter(**{field: candidate}).exists():
                raise
            logger.warning("%s id %s taken by a concurrent insert (attempt %s)",
                           model.__name__, candidate, attempt)
    raise IntegrityError(f"No free {model.__name__} id after {MAX_ATTEMPTS} attempts")
