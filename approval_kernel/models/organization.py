"""
Module: approval_kernel.models.organization
Responsibility: ORM persistence for the organizational data the approval
    engine routes by: employees, departments and projects.
Architecture position: Kernel > Models.  May import from db/base.py only.

The approval engine only reads these tables (through OrganizationSelector).
They are owned by the HR side of the system; the engine needs the manager
columns and display names and nothing else.
"""

from sqlalchemy import Boolean, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from approval_kernel.db.base import TrackedBase


class Employee(TrackedBase):
    """An employee, keyed by employee number."""

    __tablename__ = "employees"

    __table_args__ = (
        UniqueConstraint("employee_no", name="uq_employees_employee_no"),
        Index("idx_employees_department", "department_code"),
        Index("idx_employees_project", "project_code"),
    )

    employee_no: Mapped[int] = mapped_column(nullable=False)
    employee_name: Mapped[str] = mapped_column(String(255), nullable=False)
    department_code: Mapped[int | None] = mapped_column(nullable=True)
    project_code: Mapped[int | None] = mapped_column(nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Employee {self.employee_no} {self.employee_name}>"


class Department(TrackedBase):
    """A department; dept_mgr_code is the direct manager of its members."""

    __tablename__ = "departments"

    __table_args__ = (
        UniqueConstraint("dept_code", name="uq_departments_dept_code"),
    )

    dept_code: Mapped[int] = mapped_column(nullable=False)
    dept_name: Mapped[str] = mapped_column(String(255), nullable=False)
    dept_mgr_code: Mapped[int | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<Department {self.dept_code} {self.dept_name}>"


class Project(TrackedBase):
    """A project with its manager and regional manager."""

    __tablename__ = "projects"

    __table_args__ = (
        UniqueConstraint("project_code", name="uq_projects_project_code"),
    )

    project_code: Mapped[int] = mapped_column(nullable=False)
    project_name: Mapped[str] = mapped_column(String(255), nullable=False)
    project_mgr: Mapped[int | None] = mapped_column(nullable=True)
    regional_mgr: Mapped[int | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<Project {self.project_code} {self.project_name}>"
