"""Storage collaborator interface used by the document core.

Records are flat dicts in storage shape (snake_case columns, items as an
embedded list).  Every call carries the owner id; a record belonging to
another owner must look exactly like a missing one (ResourceNotFoundError).
"""

from typing import Any, Protocol

from quotebook.core.document import DocumentKind

Record = dict[str, Any]


class DocumentStore(Protocol):
    async def create(self, kind: DocumentKind, owner_id: str, record: Record) -> Record:
        """Insert a record and return it with its generated `id`."""
        ...

    async def get(self, kind: DocumentKind, owner_id: str, record_id: str) -> Record:
        ...

    async def update(
        self, kind: DocumentKind, owner_id: str, record_id: str, record: Record
    ) -> Record:
        ...

    async def delete(self, kind: DocumentKind, owner_id: str, record_id: str) -> None:
        ...

    async def list(
        self, kind: DocumentKind, owner_id: str, *, status: str | None = None
    ) -> list[Record]:
        """Records for the owner, most recently updated first."""
        ...
