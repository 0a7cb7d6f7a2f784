"""Work activity records reported against projects."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class WorkActivity(BaseModel):
    """One employee's work record for one work day."""

    employee_id: str
    project_id: str
    work_date: date
    total_hours: Optional[Decimal] = None
    site_hours: Optional[Decimal] = None

    @property
    def hours(self) -> Decimal:
        """Total hours, falling back to on-site hours, else zero."""
        if self.total_hours is not None:
            return self.total_hours
        if self.site_hours is not None:
            return self.site_hours
        return Decimal("0")
