"""
Typed Exception Hierarchy for the Approval Kernel.

===============================================================================
HANDLING
===============================================================================

Domain services map these to their own responses (a rejected submission, a
403, a configuration alert) by type and `code`, and read the structured
attributes rather than the message:

    try:
        progress = workflow.initialize(context)
    except NoApprovalChainError as e:
        log.error("no chain", extra={"request_type": e.request_type})
        api_response(code=e.code, request_type=e.request_type)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from ApprovalKernelError:

    ApprovalKernelError (base)
    |
    +-- ConfigurationError
    |   +-- NoApprovalChainError
    |   +-- LevelNotInChainError
    |   +-- InvalidChainDefinitionError
    |
    +-- UnknownRoutingRuleError
    |
    +-- DirectoryError
    |   +-- MissingEmployeeError
    |
    +-- ApprovalActionError
        +-- RequestNotPendingError
        +-- UnauthorizedApproverError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                         | When Raised
----------------|------------------------------|----------------------------------------
Configuration   | NO_APPROVAL_CHAIN            | No active chain for type/scope
                | APPROVAL_LEVEL_NOT_IN_CHAIN  | Recorded level vanished from chain
                | INVALID_APPROVAL_CHAIN       | Chain definition failed validation
----------------|------------------------------|----------------------------------------
Routing         | UNKNOWN_ROUTING_RULE         | Approver rule code not recognized
----------------|------------------------------|----------------------------------------
Directory       | EMPLOYEE_NOT_FOUND           | Originating employee does not exist
----------------|------------------------------|----------------------------------------
Action          | REQUEST_NOT_PENDING          | Approve/reject on a closed request
                | UNAUTHORIZED_APPROVER        | Actor is not the expected approver

===============================================================================
PROPAGATION
===============================================================================

Fatal errors bubble unchanged to the calling domain service.  The engine
never catches and hides them.  Degraded conditions (department without a
manager, chain exhausted without a final marker, malformed role key) are
logged and absorbed; they are NOT represented here.
"""


class ApprovalKernelError(Exception):
    """
    Base exception for all approval kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "APPROVAL_KERNEL_ERROR"


# Configuration exceptions


class ConfigurationError(ApprovalKernelError):
    """Administrative misconfiguration of approval chains. Never swallowed."""

    code: str = "APPROVAL_CONFIGURATION_ERROR"


class NoApprovalChainError(ConfigurationError):
    """No active approval chain exists for the request type at any scope."""

    code: str = "NO_APPROVAL_CHAIN"

    def __init__(
        self,
        request_type: str,
        department_id: int | None = None,
        project_id: int | None = None,
    ):
        self.request_type = request_type
        self.department_id = department_id
        self.project_id = project_id
        super().__init__(
            f"No approval chain configured for request type {request_type} "
            f"(department={department_id}, project={project_id})"
        )


class LevelNotInChainError(ConfigurationError):
    """
    The level a request claims to be at is not part of its chain.

    Typically the chain was edited while the request was in flight.
    """

    code: str = "APPROVAL_LEVEL_NOT_IN_CHAIN"

    def __init__(self, request_type: str, level_number: int):
        self.request_type = request_type
        self.level_number = level_number
        super().__init__(
            f"Approval level {level_number} does not exist in the "
            f"{request_type} chain"
        )


class InvalidChainDefinitionError(ConfigurationError):
    """Chain configuration failed validation."""

    code: str = "INVALID_APPROVAL_CHAIN"

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__(
            "Invalid approval chain configuration: " + "; ".join(self.errors)
        )


# Routing exceptions


class UnknownRoutingRuleError(ApprovalKernelError):
    """
    Approver rule code is not in the known set.

    Unlike a missing manager this is a data bug, so it never routes anywhere.
    """

    code: str = "UNKNOWN_ROUTING_RULE"

    def __init__(self, rule_code: str):
        self.rule_code = rule_code
        super().__init__(f"Unknown approver routing rule: {rule_code}")


# Directory exceptions


class DirectoryError(ApprovalKernelError):
    """Base exception for organizational directory lookups."""

    code: str = "DIRECTORY_ERROR"


class MissingEmployeeError(DirectoryError):
    """Employee referenced by an approval context does not exist."""

    code: str = "EMPLOYEE_NOT_FOUND"

    def __init__(self, employee_id: int):
        self.employee_id = employee_id
        super().__init__(f"Employee not found: {employee_id}")


# Action exceptions


class ApprovalActionError(ApprovalKernelError):
    """Base exception for approve/reject actions."""

    code: str = "APPROVAL_ACTION_ERROR"


class RequestNotPendingError(ApprovalActionError):
    """Approve or reject attempted on a request that is not awaiting approval."""

    code: str = "REQUEST_NOT_PENDING"

    def __init__(self, request_id: str, status: str):
        self.request_id = request_id
        self.status = status
        super().__init__(
            f"Request {request_id} is not pending approval (status={status})"
        )


class UnauthorizedApproverError(ApprovalActionError):
    """Acting employee is not the approver captured on the request."""

    code: str = "UNAUTHORIZED_APPROVER"

    def __init__(
        self,
        request_id: str,
        actor_id: int,
        expected_approver_id: int | None,
        level_number: int | None = None,
    ):
        self.request_id = request_id
        self.actor_id = actor_id
        self.expected_approver_id = expected_approver_id
        self.level_number = level_number
        super().__init__(
            f"Employee {actor_id} is not authorized to act on request "
            f"{request_id} at level {level_number} "
            f"(expected approver {expected_approver_id})"
        )
