from __future__ import annotations

from typing import Optional, Protocol


class ApprovalAuthority(Protocol):
    """Resolves who may approve or reject an employee's requests."""

    def manager_of(self, employee_id: int) -> Optional[int]:
        """Return the approving manager's employee id, or None when unassigned."""

        raise NotImplementedError
