"""
Async REST client for the hospital billing API.

Every call goes through ``ApiClient.request``: the body is serialized as
JSON, the session's bearer token is attached, and the response is decoded
and validated into the schema the caller asked for. Failures surface as
``ApiError`` subclasses; nothing is retried.
"""

import datetime
from decimal import Decimal
from enum import Enum
from functools import lru_cache
from typing import Any, Dict, List, Mapping, Optional, Union

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from hospital_billing.billing import ensure_transition
from hospital_billing.core.config import settings
from hospital_billing.core.logging import get_logger
from hospital_billing.exceptions import (
    ApiError,
    AuthenticationError,
    ResponseValidationError,
    TransportError,
)
from hospital_billing.schemas import (
    AuditLog,
    AuditLogCreate,
    BillableItem,
    BillableItemCreate,
    DiscountReason,
    DiscountReasonCreate,
    Doctor,
    DoctorDetails,
    DoctorStats,
    DoctorWithStats,
    Invoice,
    InvoiceCreate,
    InvoiceStats,
    InvoiceStatus,
    LoginResponse,
    Package,
    PackageCreate,
    PaginatedResponse,
    Patient,
    PatientCreate,
    Treatment,
    TreatmentCreate,
    User,
    UserCreate,
    UserRole,
)
from hospital_billing.session import Session

logger = get_logger("client")

Payload = Union[BaseModel, Mapping[str, Any]]


@lru_cache(maxsize=None)
def _adapter(shape: Any) -> TypeAdapter:
    return TypeAdapter(shape)


def _jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", exclude_none=True)
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def _partial(data: Payload) -> Dict[str, Any]:
    """Body for a PUT: only fields the caller actually set."""
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", exclude_unset=True)
    return _jsonable(dict(data))


def _clean_params(params: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    if not params:
        return None
    cleaned = {k: _jsonable(v) for k, v in params.items() if v is not None and v != ""}
    return cleaned or None


def _error_message(response: httpx.Response) -> tuple[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return f"Request failed: {response.status_code}", None
    if isinstance(body, dict):
        message = body.get("error") or body.get("message")
        if message:
            return str(message), body
    return f"Request failed: {response.status_code}", body


class ApiClient:
    def __init__(
        self,
        session: Optional[Session] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.session = session if session is not None else Session()
        self.base_url = (base_url or settings.API_URL).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else settings.REQUEST_TIMEOUT,
            transport=transport,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json: Any = None,
        response_model: Any = None,
    ) -> Any:
        headers = {"Content-Type": "application/json"}
        headers.update(self.session.authorization_header())

        try:
            response = await self._client.request(
                method,
                endpoint,
                params=_clean_params(params),
                json=json,
                headers=headers,
            )
        except httpx.RequestError as exc:
            logger.warning(f"{method} {endpoint} failed: {exc!r}")
            raise TransportError("Network error") from exc

        logger.debug(f"{method} {endpoint} -> {response.status_code}")

        if not response.is_success:
            message, body = _error_message(response)
            if response.status_code == 401:
                self.session.invalidate()
                raise AuthenticationError(message, status_code=401, payload=body)
            logger.warning(f"{method} {endpoint} returned {response.status_code}: {message}")
            raise ApiError(message, status_code=response.status_code, payload=body)

        if not response.content:
            if response_model is not None:
                raise ResponseValidationError(
                    f"Empty response body from {endpoint}", status_code=response.status_code
                )
            return None
        try:
            data = response.json()
        except ValueError as exc:
            raise ResponseValidationError(
                "Response body is not valid JSON", status_code=response.status_code
            ) from exc

        if response_model is None:
            return data
        try:
            return _adapter(response_model).validate_python(data)
        except ValidationError as exc:
            raise ResponseValidationError(
                f"Unexpected response shape from {endpoint}",
                status_code=response.status_code,
                payload=data,
            ) from exc

    # --- Auth ---

    async def login(self, email: str, password: str) -> LoginResponse:
        return await self.request(
            "POST", "/auth/login",
            json={"email": email, "password": password},
            response_model=LoginResponse,
        )

    async def register(self, email: str, password: str, role: Union[UserRole, str], **fields: Any) -> User:
        body = _jsonable({**fields, "email": email, "password": password, "role": UserRole(role)})
        return await self.request("POST", "/auth/register", json=body, response_model=User)

    async def get_profile(self) -> User:
        return await self.request("GET", "/auth/profile", response_model=User)

    # --- Users ---

    async def get_users(self, role: Optional[Union[UserRole, str]] = None) -> List[User]:
        params = {"role": UserRole(role)} if role else None
        return await self.request("GET", "/users", params=params, response_model=List[User])

    async def get_user(self, user_id: str) -> User:
        return await self.request("GET", f"/users/{user_id}", response_model=User)

    async def create_user(self, data: UserCreate) -> User:
        return await self.request("POST", "/users", json=_jsonable(data), response_model=User)

    async def update_user(self, user_id: str, data: Payload) -> User:
        return await self.request("PUT", f"/users/{user_id}", json=_partial(data), response_model=User)

    async def delete_user(self, user_id: str) -> None:
        await self.request("DELETE", f"/users/{user_id}")

    # --- Doctors ---

    async def get_doctors(self) -> List[Doctor]:
        return await self.request("GET", "/doctors", response_model=List[Doctor])

    async def get_doctor(self, doctor_id: str) -> Doctor:
        return await self.request("GET", f"/doctors/{doctor_id}", response_model=Doctor)

    async def create_doctor(self, data: Payload) -> Doctor:
        body = _jsonable(data)
        body["role"] = UserRole.DOCTOR.value
        return await self.request("POST", "/doctors", json=body, response_model=Doctor)

    async def update_doctor(self, doctor_id: str, data: Payload) -> Doctor:
        return await self.request("PUT", f"/doctors/{doctor_id}", json=_partial(data), response_model=Doctor)

    async def delete_doctor(self, doctor_id: str) -> None:
        await self.request("DELETE", f"/doctors/{doctor_id}")

    async def get_doctor_stats(self, doctor_id: str) -> DoctorStats:
        return await self.request("GET", f"/doctors/{doctor_id}/stats", response_model=DoctorStats)

    async def get_doctor_details(self, doctor_id: str) -> DoctorDetails:
        return await self.request("GET", f"/doctors/{doctor_id}/details", response_model=DoctorDetails)

    async def get_doctors_with_stats(self) -> List[DoctorWithStats]:
        return await self.request("GET", "/doctors/stats", response_model=List[DoctorWithStats])

    async def get_doctor_invoices(self, doctor_id: str) -> List[Invoice]:
        return await self.request("GET", f"/doctors/{doctor_id}/invoices", response_model=List[Invoice])

    # --- Patients ---

    async def get_patients(self, search: Optional[str] = None, doctor_id: Optional[str] = None) -> List[Patient]:
        params = {"search": search, "doctor_id": doctor_id}
        return await self.request("GET", "/patients", params=params, response_model=List[Patient])

    async def get_patient(self, patient_id: str) -> Patient:
        return await self.request("GET", f"/patients/{patient_id}", response_model=Patient)

    async def create_patient(self, data: PatientCreate) -> Patient:
        return await self.request("POST", "/patients", json=_jsonable(data), response_model=Patient)

    async def update_patient(self, patient_id: str, data: Payload) -> Patient:
        return await self.request("PUT", f"/patients/{patient_id}", json=_partial(data), response_model=Patient)

    async def delete_patient(self, patient_id: str) -> None:
        await self.request("DELETE", f"/patients/{patient_id}")

    async def get_recent_patients(self, limit: int = 5) -> List[Patient]:
        return await self.request("GET", "/patients/recent", params={"limit": limit}, response_model=List[Patient])

    # --- Billable items ---

    async def get_billable_items(self, category: Optional[str] = None, search: Optional[str] = None) -> List[BillableItem]:
        params = {"category": category, "search": search}
        return await self.request("GET", "/billables", params=params, response_model=List[BillableItem])

    async def get_billable_categories(self) -> List[str]:
        return await self.request("GET", "/billables/categories", response_model=List[str])

    async def get_billable_item(self, item_id: str) -> BillableItem:
        return await self.request("GET", f"/billables/{item_id}", response_model=BillableItem)

    async def create_billable_item(self, data: BillableItemCreate) -> BillableItem:
        return await self.request("POST", "/billables", json=_jsonable(data), response_model=BillableItem)

    async def update_billable_item(self, item_id: str, data: Payload) -> BillableItem:
        return await self.request("PUT", f"/billables/{item_id}", json=_partial(data), response_model=BillableItem)

    async def delete_billable_item(self, item_id: str) -> None:
        await self.request("DELETE", f"/billables/{item_id}")

    # --- Packages ---

    async def get_packages(self) -> List[Package]:
        return await self.request("GET", "/packages", response_model=List[Package])

    async def get_package(self, package_id: str) -> Package:
        return await self.request("GET", f"/packages/{package_id}", response_model=Package)

    async def create_package(self, data: PackageCreate) -> Package:
        return await self.request("POST", "/packages", json=_jsonable(data), response_model=Package)

    async def update_package(self, package_id: str, data: Payload) -> Package:
        return await self.request("PUT", f"/packages/{package_id}", json=_partial(data), response_model=Package)

    async def delete_package(self, package_id: str) -> None:
        await self.request("DELETE", f"/packages/{package_id}")

    # --- Treatments ---

    async def get_treatments(self) -> List[Treatment]:
        return await self.request("GET", "/treatments", response_model=List[Treatment])

    async def get_treatment(self, treatment_id: str) -> Treatment:
        return await self.request("GET", f"/treatments/{treatment_id}", response_model=Treatment)

    async def create_treatment(self, data: TreatmentCreate) -> Treatment:
        return await self.request("POST", "/treatments", json=_jsonable(data), response_model=Treatment)

    async def update_treatment(self, treatment_id: str, data: Payload) -> Treatment:
        return await self.request("PUT", f"/treatments/{treatment_id}", json=_partial(data), response_model=Treatment)

    async def delete_treatment(self, treatment_id: str) -> None:
        await self.request("DELETE", f"/treatments/{treatment_id}")

    # --- Invoices ---

    async def create_invoice(self, data: InvoiceCreate) -> Invoice:
        return await self.request("POST", "/invoices", json=_jsonable(data), response_model=Invoice)

    async def get_invoices(
        self,
        *,
        status: Optional[Union[InvoiceStatus, str]] = None,
        patient_id: Optional[str] = None,
        doctor_id: Optional[str] = None,
        start_date: Optional[Union[datetime.date, str]] = None,
        end_date: Optional[Union[datetime.date, str]] = None,
    ) -> List[Invoice]:
        params = {
            "status": InvoiceStatus(status) if status else None,
            "patient_id": patient_id,
            "doctor_id": doctor_id,
            "start_date": start_date,
            "end_date": end_date,
        }
        return await self.request("GET", "/invoices", params=params, response_model=List[Invoice])

    async def get_invoice(self, invoice_id: str) -> Invoice:
        return await self.request("GET", f"/invoices/{invoice_id}", response_model=Invoice)

    async def get_recent_invoices(self, limit: int = 5) -> List[Invoice]:
        return await self.request("GET", "/invoices/recent", params={"limit": limit}, response_model=List[Invoice])

    async def update_invoice_status(
        self,
        invoice_id: str,
        status: Union[InvoiceStatus, str],
        *,
        current: Optional[Union[InvoiceStatus, str]] = None,
    ) -> Invoice:
        """PATCH the status. With ``current`` the move is checked locally first."""
        target = InvoiceStatus(status)
        if current is not None:
            ensure_transition(current, target)
        return await self.request(
            "PATCH", f"/invoices/{invoice_id}/status",
            json={"status": target.value},
            response_model=Invoice,
        )

    async def update_invoice(self, invoice_id: str, data: Payload) -> Invoice:
        return await self.request("PUT", f"/invoices/{invoice_id}", json=_partial(data), response_model=Invoice)

    async def delete_invoice(self, invoice_id: str) -> None:
        await self.request("DELETE", f"/invoices/{invoice_id}")

    async def get_dashboard_stats(self) -> InvoiceStats:
        return await self.request("GET", "/invoices/stats", response_model=InvoiceStats)

    # --- Discount reasons ---

    async def get_discount_reasons(self) -> List[DiscountReason]:
        return await self.request("GET", "/discounts", response_model=List[DiscountReason])

    async def create_discount_reason(self, data: DiscountReasonCreate) -> DiscountReason:
        return await self.request("POST", "/discounts", json=_jsonable(data), response_model=DiscountReason)

    async def update_discount_reason(self, reason_id: str, data: Payload) -> DiscountReason:
        return await self.request("PUT", f"/discounts/{reason_id}", json=_partial(data), response_model=DiscountReason)

    async def delete_discount_reason(self, reason_id: str) -> None:
        await self.request("DELETE", f"/discounts/{reason_id}")

    # --- Audit ---

    async def get_audit_logs(
        self,
        *,
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
        start_date: Optional[Union[datetime.date, str]] = None,
        end_date: Optional[Union[datetime.date, str]] = None,
        action: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> PaginatedResponse[AuditLog]:
        params = {
            "entity_type": entity_type,
            "entity_id": entity_id,
            "start_date": start_date,
            "end_date": end_date,
            "action": action,
            "page": page,
            "limit": limit,
        }
        return await self.request("GET", "/audit", params=params, response_model=PaginatedResponse[AuditLog])

    async def log_audit(self, entry: AuditLogCreate) -> None:
        await self.request("POST", "/audit/log", json=_jsonable(entry))
