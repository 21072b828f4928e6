"""
Firestore implementation of LiveBackend.

The Firestore SDK is synchronous: writes run through asyncio.to_thread and
on_snapshot callbacks arrive on SDK threads, so they are marshalled back
onto the loop with call_soon_threadsafe.
"""

import asyncio
from typing import Any, Dict, Optional

import firebase_admin
from firebase_admin import credentials, firestore
from google.api_core import exceptions as gexc
from google.cloud.firestore_v1.base_query import FieldFilter

from realtime.backend import (
    DESC,
    SERVER_TIMESTAMP,
    Document,
    DocumentRef,
    OnError,
    OnNext,
    QueryRef,
    Source,
    Unsubscribe,
)
from utils import config
from utils.errors import (
    AppError,
    AuthError,
    NetworkError,
    NotFoundError,
    ServerError,
    ValidationError,
)
from utils.logger import get_logger

_logger = get_logger(__name__)


def get_firestore_client():
    """Initialize the default firebase app once and return its Firestore client."""
    try:
        app = firebase_admin.get_app()
    except ValueError:
        options = {"projectId": config.FIREBASE_PROJECT_ID} if config.FIREBASE_PROJECT_ID else None
        if config.FIREBASE_CREDENTIALS:
            cred = credentials.Certificate(config.FIREBASE_CREDENTIALS)
        else:
            cred = credentials.ApplicationDefault()
        app = firebase_admin.initialize_app(cred, options)
        _logger.info(f"Firebase app initialized for project {app.project_id}.")
    return firestore.client(app)


def translate_error(exc: Exception) -> AppError:
    if isinstance(exc, AppError):
        return exc
    if isinstance(exc, gexc.NotFound):
        return NotFoundError()
    if isinstance(exc, (gexc.Unauthenticated, gexc.PermissionDenied)):
        return AuthError()
    if isinstance(exc, (gexc.InvalidArgument, gexc.FailedPrecondition)):
        return ValidationError()
    if isinstance(exc, (gexc.DeadlineExceeded, gexc.ServiceUnavailable, gexc.RetryError)):
        return NetworkError()
    return ServerError()


def _prepare(data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        k: firestore.SERVER_TIMESTAMP if v is SERVER_TIMESTAMP else v
        for k, v in data.items()
    }


class FirestoreBackend:
    def __init__(self, client=None):
        self._db = client or get_firestore_client()

    def _query(self, source: QueryRef):
        query = self._db.collection(source.collection)
        for field, op, value in source.filters:
            if isinstance(value, tuple):
                value = list(value)  # "in" filters
            query = query.where(filter=FieldFilter(field, op, value))
        if source.order_by:
            field, direction = source.order_by
            query = query.order_by(
                field,
                direction=firestore.Query.DESCENDING if direction == DESC else firestore.Query.ASCENDING,
            )
        return query

    def listen(self, source: Source, on_next: OnNext, on_error: OnError) -> Unsubscribe:
        loop = asyncio.get_running_loop()
        if isinstance(source, DocumentRef):
            target = self._db.document(source.path)
        else:
            target = self._query(source)

        def _on_snapshot(snapshots, changes, read_time):
            try:
                docs = [
                    Document(s.id, s.to_dict() or {})
                    for s in snapshots
                    if getattr(s, "exists", True)
                ]
            except Exception as e:  # SDK thread, hand the failure to the loop
                loop.call_soon_threadsafe(on_error, translate_error(e))
                return
            loop.call_soon_threadsafe(on_next, docs)

        watch = target.on_snapshot(_on_snapshot)
        _logger.debug(f"on_snapshot attached: {source}")

        def unsubscribe() -> None:
            watch.unsubscribe()
            _logger.debug(f"on_snapshot detached: {source}")

        return unsubscribe

    async def _call(self, fn, *args, **kwargs):
        try:
            return await asyncio.to_thread(fn, *args, **kwargs)
        except gexc.GoogleAPICallError as e:
            _logger.warning(f"Firestore call failed: {e}")
            raise translate_error(e) from e
        except gexc.RetryError as e:
            _logger.warning(f"Firestore call gave up: {e}")
            raise NetworkError() from e

    async def get(self, path: str) -> Optional[Document]:
        snap = await self._call(self._db.document(path).get)
        if not snap.exists:
            return None
        return Document(snap.id, snap.to_dict() or {})

    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        _, ref = await self._call(self._db.collection(collection).add, _prepare(data))
        return ref.id

    async def set(self, path: str, data: Dict[str, Any], merge: bool = False) -> None:
        await self._call(self._db.document(path).set, _prepare(data), merge=merge)

    async def update(self, path: str, fields: Dict[str, Any]) -> None:
        await self._call(self._db.document(path).update, _prepare(fields))

    async def append_to_array(self, path: str, field: str, item: Dict[str, Any]) -> None:
        await self._call(
            self._db.document(path).set,
            {field: firestore.ArrayUnion([item])},
            merge=True,
        )

    async def delete(self, path: str) -> None:
        await self._call(self._db.document(path).delete)
