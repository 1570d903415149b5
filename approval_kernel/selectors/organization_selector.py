"""
OrganizationSelector -- SQLAlchemy-backed organizational directory.

Implements the ``OrganizationDirectory`` protocol consumed by the approval
engines.  Missing departments and projects are reported as None so that
approver resolution can degrade to the HR manager; a missing employee is an
error because every routing and timeline call starts from a real
originator.
"""

from __future__ import annotations

from sqlalchemy import select

from approval_kernel.domain.approval import DepartmentInfo, EmployeeInfo, ProjectInfo
from approval_kernel.exceptions import MissingEmployeeError
from approval_kernel.logging_config import get_logger
from approval_kernel.models.organization import Department, Employee, Project
from approval_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.organization")


class OrganizationSelector(BaseSelector[Employee]):
    """Read-only lookups of employees, departments and projects by business code."""

    def get_department(self, department_id: int) -> DepartmentInfo | None:
        stmt = select(Department).where(Department.dept_code == department_id)
        department = self.session.execute(stmt).scalar_one_or_none()
        if department is None:
            return None
        return DepartmentInfo(
            department_id=department.dept_code,
            name=department.dept_name,
            manager_id=department.dept_mgr_code,
        )

    def get_project(self, project_id: int) -> ProjectInfo | None:
        stmt = select(Project).where(Project.project_code == project_id)
        project = self.session.execute(stmt).scalar_one_or_none()
        if project is None:
            return None
        return ProjectInfo(
            project_id=project.project_code,
            name=project.project_name,
            manager_id=project.project_mgr,
            regional_manager_id=project.regional_mgr,
        )

    def find_employee(self, employee_id: int) -> EmployeeInfo | None:
        """Return the employee, or None if no such employee number exists."""
        stmt = select(Employee).where(Employee.employee_no == employee_id)
        employee = self.session.execute(stmt).scalar_one_or_none()
        if employee is None:
            return None
        return EmployeeInfo(
            employee_id=employee.employee_no,
            display_name=employee.employee_name,
            department_id=employee.department_code,
            project_id=employee.project_code,
        )

    def get_employee(self, employee_id: int) -> EmployeeInfo:
        """
        Return the employee.

        Raises:
            MissingEmployeeError: If no such employee number exists.
        """
        employee = self.find_employee(employee_id)
        if employee is None:
            logger.warning("employee_not_found", extra={"employee_id": employee_id})
            raise MissingEmployeeError(employee_id)
        return employee
