"""Contact form submissions."""

import logging
from datetime import datetime
from typing import Any, Callable, List, Optional
from uuid import uuid4

from bookings.results import OperationResult, run_operation
from bookings.validation import validate_contact_request
from db.base import BookingStore
from models.contact import ContactSubmission
from utils.constants import DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT
from utils.datetime_utils import utc_now
from utils.exceptions import ContactNotFoundError, ValidationError
from utils.validation import validate_uuid

logger = logging.getLogger(__name__)


class ContactService:
    def __init__(self, store: BookingStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self._clock = clock

    async def submit(self, payload: Any, source: str = "website") -> OperationResult[ContactSubmission]:
        return await run_operation("submit contact form", lambda: self._submit(payload, source))

    async def list_submissions(
        self,
        is_read: Optional[bool] = None,
        limit: int = DEFAULT_LIST_LIMIT,
        offset: int = 0,
    ) -> OperationResult[List[ContactSubmission]]:
        return await run_operation(
            "list contact submissions", lambda: self._list(is_read, limit, offset)
        )

    async def mark_read(self, contact_id: str, is_read: bool = True) -> OperationResult[ContactSubmission]:
        return await run_operation(
            "mark contact submission", lambda: self._mark_read(contact_id, is_read)
        )

    async def _submit(self, payload: Any, source: str) -> ContactSubmission:
        request = validate_contact_request(payload)
        contact = ContactSubmission(
            id=str(uuid4()),
            **request.model_dump(),
            source=source,
            created_at=self._clock(),
        )
        async with self.store.unit_of_work() as uow:
            uow.insert_contact(contact)

        logger.info(f"Contact submission {contact.id} received from {contact.email}")
        return contact

    async def _list(self, is_read: Optional[bool], limit: int, offset: int) -> List[ContactSubmission]:
        if limit < 1 or limit > MAX_LIST_LIMIT or offset < 0:
            raise ValidationError(
                f"validation error: limit must be 1-{MAX_LIST_LIMIT} and offset non-negative"
            )
        return await self.store.list_contacts(is_read=is_read, limit=limit, offset=offset)

    async def _mark_read(self, contact_id: str, is_read: bool) -> ContactSubmission:
        if not validate_uuid(contact_id):
            raise ContactNotFoundError()
        if not isinstance(is_read, bool):
            raise ValidationError("validation error: isRead must be true or false")

        async with self.store.unit_of_work() as uow:
            uow.update_contact(contact_id, {"is_read": is_read})

        contact = await self.store.get_contact(contact_id)
        if contact is None:
            raise ContactNotFoundError()
        return contact
