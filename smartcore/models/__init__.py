from .user import User, UserRole, ROLES
from .payroll import EmployeeSalary, Advance, PayrollRecord, PAYROLL_STATUSES
from .expense import Expense, EXPENSE_CATEGORIES, EXPENSE_STATUSES
from .task import Task, TaskHistory, Vendor, TASK_STATUSES, TASK_ACTIONS

__all__ = [
    "User", "UserRole", "ROLES",
    "EmployeeSalary", "Advance", "PayrollRecord", "PAYROLL_STATUSES",
    "Expense", "EXPENSE_CATEGORIES", "EXPENSE_STATUSES",
    "Task", "TaskHistory", "Vendor", "TASK_STATUSES", "TASK_ACTIONS",
]
