# pharmacy_pos/clients/pos_api.py
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

import httpx

from pharmacy_pos.core.config import settings
from pharmacy_pos.core.errors import RemoteRejection, TransportFailure
from pharmacy_pos.domain.bill_import.schemas import ConfirmImportResponse, ImportBillResponse, ImportedLine, ImportSummary
from pharmacy_pos.domain.bill_import.staging import StagedFile
from pharmacy_pos.domain.cart.terminal import FinalizedSale
from pharmacy_pos.domain.checkout.schemas import BillOut, BillPage, BillResponse, ProductSearchResponse
from pharmacy_pos.domain.inventory.schemas import ProductCreate, ProductOut, ProductPage, ProductResponse, ProductUpdate

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Something went wrong. Please try again."


def _server_message(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        message = body.get("message") or body.get("detail")
        if isinstance(message, str) and message:
            return message
    return None


class PosApiClient:
    """Async client for the POS backend.

    Implements the collaborator protocols used by the counter workflows:
    ``SaleRecorder`` (``record_sale``), ``BillExtractor`` (``import_bill``)
    and ``ImportCommitter`` (``confirm_import``). Failed calls raise
    ``RemoteRejection`` with the server's message when it sent one, or
    ``TransportFailure`` when no answer came back. Nothing is retried.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {}
        token = token or settings.API_TOKEN
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._client = httpx.AsyncClient(
            base_url=base_url or settings.API_BASE_URL,
            headers=headers,
            timeout=timeout or settings.HTTP_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def __aenter__(self) -> "PosApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, fallback: str = GENERIC_FAILURE, **kwargs) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise TransportFailure(fallback) from e

        if response.is_error:
            message = _server_message(response) or fallback
            logger.warning(f"{method} {path} rejected with {response.status_code}: {message}")
            raise RemoteRejection(message, response.status_code)

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # -- catalog ---------------------------------------------------------

    async def create_product(self, data: ProductCreate) -> ProductOut:
        body = await self._request(
            "POST", "/products", json=data.model_dump(mode="json"), fallback="Failed to create product"
        )
        return ProductResponse.model_validate(body).data

    async def update_product(self, product_id: UUID, data: ProductUpdate) -> ProductOut:
        body = await self._request(
            "PATCH",
            f"/products/{product_id}",
            json=data.model_dump(mode="json", exclude_unset=True),
            fallback="Failed to update product",
        )
        return ProductResponse.model_validate(body).data

    async def delete_product(self, product_id: UUID) -> None:
        await self._request("DELETE", f"/products/{product_id}", fallback="Failed to delete product")

    async def list_products(
        self,
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
        low_stock: bool = False,
        expiring: bool = False,
    ) -> ProductPage:
        params: Dict[str, Any] = {"page": page, "limit": limit}
        if search:
            params["search"] = search
        if low_stock:
            params["low_stock"] = "true"
        if expiring:
            params["expiring"] = "true"
        body = await self._request("GET", "/products", params=params, fallback="Failed to load products")
        return ProductPage.model_validate(body)

    # -- bill import -----------------------------------------------------

    async def import_bill(self, file: StagedFile) -> List[ImportedLine]:
        fallback = "Failed to analyze bill. Please try again."
        body = await self._request(
            "POST",
            "/inventory/import-bill",
            files={"bill": (file.filename, file.content, file.content_type)},
            fallback=fallback,
        )
        result = ImportBillResponse.model_validate(body)
        if not result.success:
            raise RemoteRejection("Failed to process bill", 200)
        return result.data

    async def confirm_import(self, items: Sequence[ImportedLine]) -> ImportSummary:
        body = await self._request(
            "POST",
            "/inventory/confirm-import",
            json={"items": [item.to_commit_payload() for item in items]},
            fallback="Failed to save inventory",
        )
        return ConfirmImportResponse.model_validate(body).data

    # -- sales and customers ---------------------------------------------

    async def record_sale(self, sale: FinalizedSale) -> BillOut:
        body = await self._request(
            "POST",
            "/billing/bills",
            json=sale.to_bill_create().model_dump(mode="json"),
            fallback="Checkout Failed",
        )
        return BillResponse.model_validate(body).data

    async def search_customers(self, query: str) -> List[Dict[str, Any]]:
        body = await self._request(
            "GET", "/customers/search", params={"q": query}, fallback="Failed to search customers"
        )
        return list((body or {}).get("data", []))

    async def list_bills(
        self,
        page: int = 1,
        limit: int = 20,
        status: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        search: Optional[str] = None,
    ) -> BillPage:
        params: Dict[str, Any] = {"page": page, "limit": limit}
        if status:
            params["status"] = status
        if start_date:
            params["start_date"] = start_date.isoformat()
        if end_date:
            params["end_date"] = end_date.isoformat()
        if search:
            params["search"] = search
        body = await self._request("GET", "/billing/bills", params=params, fallback="Failed to fetch bills")
        return BillPage.model_validate(body)

    async def search_products_for_billing(self, query: str) -> List[ProductOut]:
        body = await self._request(
            "GET", "/billing/products/search", params={"q": query}, fallback="Failed to search products"
        )
        return ProductSearchResponse.model_validate(body).data
