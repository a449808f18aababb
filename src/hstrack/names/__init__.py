"""
Name change management module.

Players rename themselves; hstrack follows them by reviewing name change
requests and, on approval, reconciling the renamed player's history with
any player already tracked under the new name.

Key components:
- NameChangeService: submit / deny / approve lifecycle
- NameChangeTransfer: atomic history transfer run on approval
- NameChangeReporter: comparison shown to reviewers
"""

from hstrack.names.details import NameChangeDetails, NameChangeReporter
from hstrack.names.service import NameChangeService
from hstrack.names.transfer import NameChangeTransfer, TransferResult, find_transition_date

__all__ = [
    "NameChangeDetails",
    "NameChangeReporter",
    "NameChangeService",
    "NameChangeTransfer",
    "TransferResult",
    "find_transition_date",
]
