from __future__ import annotations

import logging
from datetime import datetime

from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from .estimate_store import stamp_for_save
from .models.estimate import Estimate

logger = logging.getLogger(__name__)


class FirestoreEstimateStore:
    """Firestore-backed estimate repository for production use."""

    COLLECTION_NAME = "estimates"

    def __init__(self, project_id: str | None = None, *, collection_name: str | None = None) -> None:
        self._db = firestore.Client(project=project_id)
        self._collection = self._db.collection(collection_name or self.COLLECTION_NAME)

    def get(self, estimate_id: str) -> Estimate | None:
        """Retrieve an estimate by ID from Firestore."""
        doc = self._collection.document(estimate_id).get()

        if not doc.exists:
            return None

        return self._from_firestore_dict(doc.id, doc.to_dict())

    def save(self, estimate: Estimate) -> Estimate:
        """Create or overwrite an estimate document."""
        if not estimate.id:
            # Use Firestore auto-generated ID
            estimate = estimate.model_copy(update={"id": self._collection.document().id})

        saved = stamp_for_save(estimate, datetime.utcnow())
        self._collection.document(saved.id).set(self._to_firestore_dict(saved))

        logger.info(
            "Saved estimate",
            extra={
                "estimate_id": saved.id,
                "estimate_number": saved.estimate_number,
                "rows": len(saved.table_data),
            },
        )

        return saved

    def delete(self, estimate_id: str) -> bool:
        """Delete an estimate; returns False when it did not exist."""
        doc_ref = self._collection.document(estimate_id)
        if not doc_ref.get().exists:
            return False

        doc_ref.delete()
        logger.info("Deleted estimate", extra={"estimate_id": estimate_id})
        return True

    def find_by_estimate_number(self, estimate_number: str) -> Estimate | None:
        """Look up an estimate by its business key."""
        query = self._collection.where(
            filter=FieldFilter("projectInfo.estimateNumber", "==", estimate_number)
        ).limit(1)

        for doc in query.stream():
            return self._from_firestore_dict(doc.id, doc.to_dict())
        return None

    def list_estimates(self, *, limit: int = 100) -> list[Estimate]:
        """List estimates, most recently updated first."""
        query = self._collection.order_by(
            "updatedAt", direction=firestore.Query.DESCENDING
        ).limit(limit)

        return [self._from_firestore_dict(doc.id, doc.to_dict()) for doc in query.stream()]

    def _to_firestore_dict(self, estimate: Estimate) -> dict:
        """Convert Estimate to Firestore document dict."""
        data = estimate.model_dump(by_alias=True, mode="json", exclude={"id"})
        # Timestamps are stored natively so they can be ordered on.
        data["createdAt"] = estimate.created_at
        data["updatedAt"] = estimate.updated_at
        return data

    def _from_firestore_dict(self, estimate_id: str, data: dict) -> Estimate:
        """Convert Firestore document dict to Estimate."""
        return Estimate.model_validate({**data, "id": estimate_id})


__all__ = ["FirestoreEstimateStore"]
