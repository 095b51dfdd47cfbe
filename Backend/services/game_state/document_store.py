# services/game_state/document_store.py
"""
Remote document store used for score sync.

The sync layer only needs `get(collection, id)` and
`set(collection, id, data, merge=...)`; FirestoreDocumentStore provides
them over the firebase-admin async client.
"""

from __future__ import annotations
from typing import Any, Dict, Optional, Protocol

USERSCORES = "userscores"


def global_doc_id(user_id: str) -> str:
    return f"{user_id}_global"


def quiz_doc_id(user_id: str, quiz_id: str) -> str:
    return f"{user_id}_quiz_{quiz_id}"


class DocumentStore(Protocol):
    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        ...

    async def set(self, collection: str, doc_id: str, data: Dict[str, Any], merge: bool = False) -> None:
        ...


class FirestoreDocumentStore:
    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        if self._client is None:
            from services.firebase import get_async_db
            self._client = get_async_db()
        return self._client

    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        snap = await self.client.collection(collection).document(doc_id).get()
        if not snap.exists:
            return None
        return snap.to_dict() or {}

    async def set(self, collection: str, doc_id: str, data: Dict[str, Any], merge: bool = False) -> None:
        await self.client.collection(collection).document(doc_id).set(data, merge=merge)
