from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field, PlainSerializer, PositiveInt, field_validator

from hospital_billing import pricing

# Amounts are Decimal in Python and JSON numbers on the wire
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]
Rate = Annotated[Decimal, Field(ge=0, le=100), PlainSerializer(float, return_type=float, when_used="json")]

T = TypeVar("T")


class ApiModel(BaseModel):
    """Base for every shape returned by the billing API."""

    model_config = ConfigDict(
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )


class RequestModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class UserRole(str, Enum):
    ADMIN = "admin"
    DOCTOR = "doctor"
    BILLING_CLERK = "billing_clerk"


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    FINALIZED = "finalized"
    PAID = "paid"
    CANCELLED = "cancelled"


class ItemType(str, Enum):
    BILLABLE = "billable"
    PACKAGE = "package"


class PricingType(str, Enum):
    FIXED = "fixed"
    ITEMIZED = "itemized"


# === USER SCHEMAS ===
class User(ApiModel):
    id: str
    email: str
    role: UserRole
    full_name: Optional[str] = None
    phone_number: Optional[str] = None
    specialty: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Doctor(User):
    license_number: Optional[str] = None
    department: Optional[str] = None


class LoginResponse(ApiModel):
    user: User
    token: str


class UserCreate(RequestModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    role: UserRole
    full_name: Optional[str] = None
    phone_number: Optional[str] = None
    specialty: Optional[str] = None
    license_number: Optional[str] = None
    department: Optional[str] = None
    is_active: Optional[bool] = None


# === CATALOG SCHEMAS ===
class BillableItem(ApiModel):
    id: str
    item_code: str
    name: str
    description: str = ""
    category: str = ""
    unit_price: Money
    tax_rate: Money = Decimal("0")
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BillableItemCreate(RequestModel):
    item_code: str
    name: str
    description: str = ""
    category: str
    unit_price: Money = Field(..., ge=0)
    tax_rate: Rate = Decimal("0")
    is_active: bool = True


class PackageItem(ApiModel):
    id: str
    package_id: str
    billable_item_id: str
    quantity: int = 1
    billable_item: Optional[BillableItem] = None
    billable_name: Optional[str] = None
    unit_price: Optional[Money] = None
    tax_rate: Optional[Money] = None
    category: Optional[str] = None


class Package(ApiModel):
    id: str
    package_code: str
    name: str
    description: str = ""
    pricing_type: PricingType = PricingType.FIXED
    fixed_price: Money = Decimal("0")
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items: Optional[List[PackageItem]] = None


class PackageItemInput(RequestModel):
    billable_item_id: str
    quantity: PositiveInt = 1


class PackageCreate(RequestModel):
    package_code: str
    name: str
    description: str = ""
    pricing_type: PricingType = PricingType.FIXED
    fixed_price: Money = Field(default=Decimal("0"), ge=0)
    is_active: bool = True
    items: List[PackageItemInput] = Field(default_factory=list)


class TreatmentItem(ApiModel):
    id: str
    treatment_id: str
    billable_item_id: Optional[str] = None
    package_id: Optional[str] = None
    quantity: int = 1
    created_at: Optional[datetime] = None
    billable_item: Optional[BillableItem] = None
    package: Optional[Package] = None


class Treatment(ApiModel):
    id: str
    treatment_code: str
    name: str
    description: str = ""
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items: Optional[List[TreatmentItem]] = None


class TreatmentItemInput(RequestModel):
    billable_item_id: Optional[str] = None
    package_id: Optional[str] = None
    quantity: PositiveInt = 1


class TreatmentCreate(RequestModel):
    treatment_code: str
    name: str
    description: str = ""
    is_active: bool = True
    items: List[TreatmentItemInput] = Field(default_factory=list)


# === INVOICE SCHEMAS ===
class InvoiceItem(ApiModel):
    id: str
    invoice_id: str
    item_type: ItemType
    billable_item_id: Optional[str] = None
    package_id: Optional[str] = None
    description: str = ""
    quantity: int
    unit_price: Money
    tax_rate: Money = Decimal("0")
    line_total: Money
    category: str = ""
    parent_package_id: Optional[str] = None
    created_at: Optional[datetime] = None


class Invoice(ApiModel):
    id: str
    invoice_number: str
    patient_id: str
    doctor_id: Optional[str] = None
    created_by: Optional[str] = None
    status: InvoiceStatus
    subtotal: Money = Decimal("0")
    tax_amount: Money = Decimal("0")
    discount_amount: Money = Decimal("0")
    total_amount: Money = Decimal("0")
    discount_reason: Optional[str] = None
    notes: Optional[str] = None
    finalized_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    patient_name: Optional[str] = None
    patient_code: Optional[str] = None
    doctor_name: Optional[str] = None
    items: Optional[List[InvoiceItem]] = None


class LineItem(RequestModel):
    """One priced row of an invoice being composed. Immutable."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    item_type: ItemType = ItemType.BILLABLE
    billable_item_id: Optional[str] = None
    package_id: Optional[str] = None
    description: str = ""
    quantity: PositiveInt = 1
    unit_price: Money = Field(..., ge=0)
    tax_rate: Rate = Decimal("0")
    category: str = ""
    parent_package_id: Optional[str] = None

    @property
    def kind(self) -> ItemType:
        return self.item_type

    @property
    def line_total(self) -> Decimal:
        return pricing.line_total(self.quantity, self.unit_price, self.tax_rate)


class InvoiceCreate(RequestModel):
    patient_id: str
    doctor_id: Optional[str] = None
    items: List[LineItem] = Field(..., min_length=1)
    discount_percentage: Optional[Rate] = None
    discount_reason: Optional[str] = None
    notes: Optional[str] = None
    status: InvoiceStatus = InvoiceStatus.DRAFT

    @field_validator("status")
    @classmethod
    def validate_initial_status(cls, v: InvoiceStatus) -> InvoiceStatus:
        if v not in (InvoiceStatus.DRAFT, InvoiceStatus.FINALIZED):
            raise ValueError("A new invoice must be draft or finalized")
        return v


class InvoiceStats(ApiModel):
    total_invoices: int = Field(0, alias="totalInvoices")
    total_patients: int = Field(0, alias="totalPatients")
    total_packages: int = Field(0, alias="totalPackages")
    total_revenue: Money = Field(Decimal("0"), alias="totalRevenue")
    today_revenue: Money = Field(Decimal("0"), alias="todayRevenue")
    pending_invoices: int = Field(0, alias="pendingInvoices")


# === PATIENT SCHEMAS ===
class Patient(ApiModel):
    id: str
    patient_code: str
    full_name: str
    contact_number: str = ""
    email: Optional[str] = None
    address: Optional[str] = None
    date_of_birth: Optional[str] = None
    gender: Optional[Literal["male", "female", "other"]] = None
    blood_group: Optional[str] = None
    emergency_contact: Optional[str] = None
    doctor_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    doctor: Optional[Doctor] = None
    invoices: Optional[List[Invoice]] = None


class PatientCreate(RequestModel):
    patient_code: str
    full_name: str = Field(..., min_length=1)
    contact_number: str
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    date_of_birth: Optional[str] = None
    gender: Optional[Literal["male", "female", "other"]] = None
    blood_group: Optional[str] = None
    emergency_contact: Optional[str] = None
    doctor_id: Optional[str] = None


# === DOCTOR STATISTICS ===
class DoctorStatsSummary(ApiModel):
    total_patients: int = Field(0, alias="totalPatients")
    total_invoices: int = Field(0, alias="totalInvoices")
    total_revenue: Money = Field(Decimal("0"), alias="totalRevenue")
    average_invoice_value: Money = Field(Decimal("0"), alias="averageInvoiceValue")
    active_patients: int = Field(0, alias="activePatients")


class DoctorStats(DoctorStatsSummary):
    recent_invoices: List[Invoice] = Field(default_factory=list, alias="recentInvoices")


class DoctorWithStats(Doctor):
    total_patients: int = Field(0, alias="totalPatients")
    total_invoices: int = Field(0, alias="totalInvoices")
    total_revenue: Money = Field(Decimal("0"), alias="totalRevenue")
    average_invoice_value: Money = Field(Decimal("0"), alias="averageInvoiceValue")
    active_patients: int = Field(0, alias="activePatients")
    recent_invoices: List[Invoice] = Field(default_factory=list, alias="recentInvoices")
    patients: List[Patient] = Field(default_factory=list)
    invoices: List[Invoice] = Field(default_factory=list)


class DoctorDetails(ApiModel):
    doctor: Doctor
    stats: DoctorStatsSummary
    patients: List[Patient] = Field(default_factory=list)
    invoices: List[Invoice] = Field(default_factory=list)


# === DISCOUNTS & AUDIT ===
class DiscountReason(ApiModel):
    id: str
    reason: str
    requires_approval: bool = False
    max_percentage: Money = Decimal("100")
    is_active: bool = True
    created_at: Optional[datetime] = None


class DiscountReasonCreate(RequestModel):
    reason: str = Field(..., min_length=1)
    requires_approval: bool = False
    max_percentage: Rate = Decimal("100")
    is_active: bool = True


class AuditLog(ApiModel):
    id: str
    user_id: Optional[str] = None
    action: str
    entity_type: str
    entity_id: str
    old_values: Any = None
    new_values: Any = None
    created_at: Optional[datetime] = None
    user_email: Optional[str] = None
    user_role: Optional[str] = None


class AuditLogCreate(RequestModel):
    action: str
    entity_type: str
    entity_id: str
    old_values: Optional[dict[str, Any]] = None
    new_values: Optional[dict[str, Any]] = None


class Pagination(ApiModel):
    page: int
    limit: int
    total: int
    pages: int


class PaginatedResponse(ApiModel, Generic[T]):
    data: List[T]
    pagination: Pagination
