from typing import Any, Dict, Optional

from pydantic import ValidationError

from hospital_billing.client import ApiClient
from hospital_billing.core.logging import get_logger
from hospital_billing.exceptions import ApiError
from hospital_billing.schemas import AuditLogCreate

logger = get_logger("audit")


class AuditLogger:
    """Best-effort audit trail: entries are logged locally and posted to the API.

    A failed post never interrupts the action being audited.
    """

    def __init__(self, client: ApiClient) -> None:
        self.client = client

    async def log(
        self,
        action: str,
        entity_type: str,
        entity_id: str,
        old_values: Optional[Dict[str, Any]] = None,
        new_values: Optional[Dict[str, Any]] = None,
    ) -> bool:
        user = self.client.session.user
        logger.info(
            f"Audit: {action} {entity_type}/{entity_id} by {user.id if user else 'system'}"
        )
        try:
            entry = AuditLogCreate(
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                old_values=old_values,
                new_values=new_values,
            )
            await self.client.log_audit(entry)
        except ValidationError as exc:
            logger.error(f"Invalid audit entry for {entity_type}/{entity_id}: {exc.error_count()} error(s)")
            return False
        except ApiError as exc:
            logger.error(f"Error logging audit for {entity_type}/{entity_id}: {exc.message}")
            return False
        return True
