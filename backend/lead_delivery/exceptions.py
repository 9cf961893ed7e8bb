"""Domain errors raised by services and translated to HTTP errors by routers."""

from typing import Optional, List, Dict


class ProductNotFoundError(Exception):
    """No product matches the requested identifier."""

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"Product not found: {identifier}")


class ProductConflictError(Exception):
    """A product with the same gateway identifier already exists."""

    def __init__(self, sale_product_id: str):
        self.sale_product_id = sale_product_id
        super().__init__(f"Product already exists for sale_product_id {sale_product_id}")


class FileDownloadError(Exception):
    """Product file could not be downloaded from the blob store."""

    def __init__(self, url: str, status_code: Optional[int] = None, reason: str = ""):
        self.url = url
        self.status_code = status_code
        self.reason = reason
        if status_code is not None:
            message = f"Error downloading file: {status_code} {reason}".strip()
        else:
            message = f"Error downloading file: {reason}".strip()
        super().__init__(message)


class LeadPersistenceError(Exception):
    """Lead create/update did not produce a row."""


class LeadConflictError(Exception):
    """A lead with the same email or phone already exists."""

    def __init__(self, lead_id):
        self.lead_id = lead_id
        super().__init__(f"Lead already exists: {lead_id}")


class RequestDataError(Exception):
    """Field-level validation failures detected outside pydantic."""

    def __init__(self, errors: List[Dict[str, str]]):
        self.errors = errors
        super().__init__("; ".join(e["message"] for e in errors))
