from dataclasses import dataclass
from typing import List, Optional, Union

from hospital_billing.schemas import UserRole


@dataclass(frozen=True)
class Page:
    id: str
    name: str
    admin_only: bool = False


PAGES: List[Page] = [
    Page("dashboard", "Dashboard"),
    Page("create-invoice", "Create Invoice"),
    Page("invoices", "Invoices"),
    Page("patients", "Patients"),
    Page("billables", "Billable Items", admin_only=True),
    Page("packages", "Packages", admin_only=True),
    Page("treatments", "Treatments", admin_only=True),
    Page("manage-doctors", "Manage Doctors", admin_only=True),
]

DEFAULT_PAGE = "dashboard"


def visible_pages(role: Optional[Union[UserRole, str]]) -> List[Page]:
    """Pages shown in the sidebar for the server-reported role."""
    is_admin = role is not None and UserRole(role) is UserRole.ADMIN
    return [page for page in PAGES if is_admin or not page.admin_only]


def resolve_page(page_id: str, role: Optional[Union[UserRole, str]]) -> str:
    """Fall back to the dashboard for unknown or forbidden pages."""
    allowed = {page.id for page in visible_pages(role)}
    return page_id if page_id in allowed else DEFAULT_PAGE
