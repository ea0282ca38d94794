"""Change detection for documents being edited.

`fingerprint()` hashes a canonical JSON serialization of every field a
user can edit.  Identity (`id`) and volatile bookkeeping (`updated_at`)
are left out so that saving a document, which assigns both, does not by
itself make it look edited.

`BaselineTracker` keeps the "last known saved" document.  For a brand-new
document the baseline is still settling while default values (e.g. the
owner's default company profile) load asynchronously: such defaults are
applied to the baseline and the current document through the same patch,
so the baseline ends up equal to "the form once stabilized" without ever
absorbing a real user edit.
"""

from __future__ import annotations

import hashlib
import json
from typing import Callable

from quotebook.core.document import Document

# Excluded from the fingerprint
VOLATILE_FIELDS = {"id", "updated_at"}

DocumentPatch = Callable[[Document], Document]


def canonical_payload(document: Document) -> str:
    data = document.model_dump(mode="json", exclude=VOLATILE_FIELDS)
    return json.dumps(data, sort_keys=True, separators=(",", ":"))


def fingerprint(document: Document) -> str:
    return hashlib.sha256(canonical_payload(document).encode("utf-8")).hexdigest()


def is_dirty(current: Document | str, baseline: Document | str | None) -> bool:
    """Compare a document (or fingerprint) against the baseline."""
    if baseline is None:
        return False
    current_fp = current if isinstance(current, str) else fingerprint(current)
    baseline_fp = baseline if isinstance(baseline, str) else fingerprint(baseline)
    return current_fp != baseline_fp


class BaselineTracker:
    """Holds the baseline document and answers "are there unsaved changes?"."""

    def __init__(self) -> None:
        self._document: Document | None = None
        self._fingerprint: str | None = None
        self._pending_defaults = 0

    @property
    def document(self) -> Document | None:
        return self._document

    @property
    def fingerprint(self) -> str | None:
        return self._fingerprint

    @property
    def stable(self) -> bool:
        """False while default-value loaders are still outstanding."""
        return self._pending_defaults == 0

    def capture(self, document: Document) -> None:
        """Set the baseline: on load, after a successful save, on "new document"."""
        self._document = document
        self._fingerprint = fingerprint(document)

    def expect_defaults(self) -> None:
        self._pending_defaults += 1

    def apply_default(self, patch: DocumentPatch) -> None:
        """Fold a late-arriving default into the baseline document."""
        if self._document is not None:
            self.capture(patch(self._document))

    def defaults_done(self) -> None:
        self._pending_defaults = max(self._pending_defaults - 1, 0)

    def is_dirty(self, current: Document) -> bool:
        return is_dirty(current, self._fingerprint)

    def clear(self) -> None:
        self._document = None
        self._fingerprint = None
        self._pending_defaults = 0
