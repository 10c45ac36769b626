# pharmacy_pos/domain/bill_import/extraction.py
import logging
from typing import List, Optional

import httpx

from pharmacy_pos.core.config import settings
from pharmacy_pos.core.errors import RemoteRejection, TransportFailure, ValidationFailure

from .normalize import normalize_medicine_name
from .schemas import ImportedLine

logger = logging.getLogger(__name__)

SUPPORTED_CONTENT_TYPES = ("application/pdf", "image/png", "image/jpeg", "image/jpg", "image/webp")


class ExtractionService:
    """Forwards an uploaded supplier bill to the OCR/AI extraction service.

    The extraction service answers with the medicine rows it found, either as
    a bare list or wrapped as ``{"data": [...]}``. Names are normalized here so
    that the review screen and the reconciler compare like with like.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url or settings.EXTRACTION_URL
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECONDS
        self._transport = transport

    async def extract(self, filename: str, content: bytes, content_type: Optional[str]) -> List[ImportedLine]:
        content_type = (content_type or "").lower()
        if content_type not in SUPPORTED_CONTENT_TYPES:
            raise ValidationFailure("Unsupported file type")
        if not content:
            raise ValidationFailure("No file uploaded")

        logger.info(f"Sending {filename} ({len(content)} bytes) for extraction")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.url, files={"bill": (filename, content, content_type)})
        except httpx.TransportError as e:
            logger.warning(f"Extraction service unreachable: {e}")
            raise TransportFailure("Extraction service is unavailable") from e

        if response.is_error:
            logger.warning(f"Extraction service returned {response.status_code} for {filename}")
            raise RemoteRejection("Failed to analyze bill. Please try again.", response.status_code)

        try:
            payload = response.json()
        except ValueError:
            logger.warning(f"Extraction service sent a non-JSON reply for {filename}")
            raise RemoteRejection("Failed to analyze bill. Please try again.", 502)

        rows = payload.get("data", []) if isinstance(payload, dict) else payload
        if not isinstance(rows or [], list):
            logger.warning(f"Extraction service sent rows of type {type(rows).__name__} for {filename}")
            raise RemoteRejection("Failed to analyze bill. Please try again.", 502)
        return [self._normalized(ImportedLine.model_validate(row)) for row in rows or [] if isinstance(row, dict)]

    @staticmethod
    def _normalized(line: ImportedLine) -> ImportedLine:
        return line.model_copy(
            update={
                "original_name": line.medicine_name,
                "medicine_name": normalize_medicine_name(line.medicine_name),
            }
        )


def get_extraction_service() -> ExtractionService:
    return ExtractionService()
