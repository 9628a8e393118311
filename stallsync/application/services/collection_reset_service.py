"""Batched wipe of whole collections behind a typed confirmation phrase."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from stallsync.application.dtos.reset import CollectionResetOutcome, ResetReport
from stallsync.application.interfaces.services import ICollectionPurger
from stallsync.domain.exceptions import ConfirmationMismatchException, StallSyncException
from stallsync.shared.telemetry.tracing import add_span_attributes, traced

logger = logging.getLogger(__name__)

RESET_DATA_PHRASE = "RESET DATA"
RESET_STAFF_DATA_PHRASE = "RESET STAFF DATA"


class CollectionResetService:
    """Deletes every document of each collection, one bounded batch at a time.

    Per collection: fetch a page of at most ``batch_size`` documents, delete it
    in a single commit, repeat until a page comes back empty. A failing
    collection is recorded and the next one is processed; there is no
    transaction across collections.
    """

    def __init__(self, purger: ICollectionPurger, batch_size: int = 500) -> None:
        if not 1 <= batch_size <= 500:
            raise ValueError("batch_size must be between 1 and 500")
        self._purger = purger
        self._batch_size = batch_size

    async def _wipe_collection(self, collection: str) -> CollectionResetOutcome:
        outcome = CollectionResetOutcome(collection=collection)
        try:
            while True:
                deleted = await self._purger.delete_page(collection, self._batch_size)
                if deleted == 0:
                    break
                outcome.documents_deleted += deleted
                outcome.batches_committed += 1
        except StallSyncException as e:
            outcome.error = e.message
        except Exception as e:  # noqa: BLE001
            logger.exception("Unexpected error wiping collection %s", collection)
            outcome.error = str(e) or type(e).__name__
        if outcome.error:
            logger.error(
                "Failed to wipe collection %s after %d documents: %s",
                collection,
                outcome.documents_deleted,
                outcome.error,
            )
        else:
            logger.info(
                "Wiped collection %s: %d documents in %d batches",
                collection,
                outcome.documents_deleted,
                outcome.batches_committed,
            )
        return outcome

    @traced("collection_reset.reset")
    async def reset(
        self,
        collections: Sequence[str],
        confirmation: str,
        expected_phrase: str,
    ) -> ResetReport:
        """Wipe collections in order after checking the confirmation phrase.

        Raises:
            ConfirmationMismatchException: confirmation != expected_phrase; nothing is deleted.
        """
        if confirmation != expected_phrase:
            raise ConfirmationMismatchException(expected_phrase)
        report = ResetReport()
        for collection in collections:
            report.outcomes.append(await self._wipe_collection(collection))
        add_span_attributes(
            reset_successes=report.successes,
            reset_errors=report.errors,
            reset_documents=report.documents_deleted,
        )
        return report
