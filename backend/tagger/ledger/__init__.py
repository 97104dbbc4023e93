"""
Record ledger: the ordered records of one tagging session.

Scope:
- Record models (event and life variants)
- Variant schemas (tag sets, CSV columns, storage keys)
- Create / update / delete with dense renumbering

Not included:
- Persistence (see tagger.persistence)
- Rendering or confirmation prompts (see tagger.session)
"""

from .errors import (
    LedgerError,
    RecordNotFoundError,
    RecordValidationError,
    UnknownTagError,
)
from .models import EventRecord, LifeRecord, Record
from .variants import (
    RecordKind,
    RecordVariant,
    VariantSchema,
    VARIANTS,
    get_variant,
)
from .ledger import Ledger

__all__ = [
    # Errors
    "LedgerError",
    "RecordNotFoundError",
    "RecordValidationError",
    "UnknownTagError",
    # Models
    "EventRecord",
    "LifeRecord",
    "Record",
    # Variants
    "RecordKind",
    "RecordVariant",
    "VariantSchema",
    "VARIANTS",
    "get_variant",
    # Ledger
    "Ledger",
]
