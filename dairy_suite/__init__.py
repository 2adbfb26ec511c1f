"""Core utilities for the Dairy Suite application."""

from .config import AppConfig, configure_logging, load_config
from .auth import AuthResult, AuthService, SessionManager, SessionUser, Subscription
from .data_store import DataStore
from .exceptions import DairySuiteError, DataAccessError, RecordNotFoundError, ValidationError
from .models import ALL_CUSTOMERS, Customer, Order, OrderItem, Product
from .repositories import CollectionRepository, Database, UserRepository
from .security import AccountLockoutService, PasswordService
from .statement import StatementResult, generate_statement, statement_filename

__all__ = [
    "ALL_CUSTOMERS",
    "AccountLockoutService",
    "AppConfig",
    "AuthResult",
    "AuthService",
    "CollectionRepository",
    "Customer",
    "DairySuiteError",
    "DataAccessError",
    "DataStore",
    "Database",
    "Order",
    "OrderItem",
    "PasswordService",
    "Product",
    "RecordNotFoundError",
    "SessionManager",
    "SessionUser",
    "StatementResult",
    "Subscription",
    "UserRepository",
    "ValidationError",
    "configure_logging",
    "generate_statement",
    "load_config",
    "statement_filename",
]
