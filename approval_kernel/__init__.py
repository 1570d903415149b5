"""
Approval Kernel - multi-level approval workflow for HR requests.

Routes leave, loan, salary raise, deduction, payroll and project requests
through a configurable chain of approval levels with:
- Department / project / global chain precedence
- Approver resolution from organizational data and fixed role holders
- A forward-only level-advancement state machine
- Timeline reconstruction without a persisted audit log
"""

__version__ = "0.1.0"
