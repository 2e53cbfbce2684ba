from typing import Iterable, Optional

from flask import current_app

from lms.errors import LibraryError
from lms.services.issue_request_service import IssueRequestService


class BulkService:
    @staticmethod
    def bulk_approve(request_ids: Iterable[int], processed_by_id: Optional[int] = None) -> dict:
        """Approve each id in its own transaction and tally the outcome.

        Never aborts on an individual failure; a stale or already-processed id
        only counts as rejected. Per-item reasons go to the log, not the caller.
        """
        ids = list(request_ids)
        fulfilled = 0
        rejected = 0

        for request_id in ids:
            try:
                IssueRequestService.approve(request_id, processed_by_id=processed_by_id)
                fulfilled += 1
            except LibraryError as e:
                rejected += 1
                current_app.logger.warning(f"[BulkService] request {request_id} not approved: {e.code}: {e.message}")
            except Exception as e:
                rejected += 1
                current_app.logger.exception(f"[BulkService] request {request_id} failed: {e}")

        current_app.logger.info(
            f"[BulkService] bulk approval done: {fulfilled} approved, {rejected} failed out of {len(ids)}"
        )
        return {"fulfilled": fulfilled, "rejected": rejected}
