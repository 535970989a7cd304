"""The bank: a registry of customers and the entry point for loan operations."""

from __future__ import annotations

import threading

from .customers import Customer
from .loans import Loan, LoanStatus, Payment


class BankError(Exception):
    """Base class for errors reported by the bank."""


class CustomerNotFoundError(BankError, LookupError):
    """Raised when no customer has the requested id."""


class NoActiveLoanError(BankError, LookupError):
    """Raised when a customer has no open loan with the requested id."""


class Bank:
    """Holds customers and routes loan operations to their loans."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._customers: dict[str, Customer] = {}

    def _active_loan(self, customer_id: str, loan_id: str) -> Loan:
        customer = self._customers.get(customer_id)
        if customer is None:
            raise CustomerNotFoundError("Customer does not exist")
        loan = customer.get_loan(loan_id)
        if loan is None or loan.status is LoanStatus.CLOSED:
            raise NoActiveLoanError("No active loan for customer")
        return loan

    def get_outstanding_balance(self, customer_id: str, loan_id: str) -> float:
        """Return the amount still owed on an open loan."""
        with self._lock:
            return self._active_loan(customer_id, loan_id).outstanding()

    def get_delinquent_status(self, customer_id: str, loan_id: str) -> bool:
        """Tell whether the borrower of an open loan is delinquent."""
        with self._lock:
            return self._active_loan(customer_id, loan_id).is_delinquent()

    def make_payment(self, customer_id: str, loan_id: str, payment: Payment) -> None:
        """Apply a repayment to an open loan."""
        with self._lock:
            self._active_loan(customer_id, loan_id).make_payment(payment)

    def create_customer(
        self, first_name: str, last_name: str, contact_number: int = 0
    ) -> Customer:
        """Register a new customer and return it."""
        customer = Customer(first_name, last_name, contact_number)
        with self._lock:
            self._customers[customer.customer_id] = customer
        return customer

    def get_customer(self, customer_id: str) -> Customer:
        """Return the customer with the given id."""
        with self._lock:
            customer = self._customers.get(customer_id)
        if customer is None:
            raise CustomerNotFoundError("Customer does not exist")
        return customer


_instance: Bank | None = None
_instance_lock = threading.Lock()


def get_bank_instance() -> Bank:
    """Return the process-wide bank, creating it on first use."""
    global _instance
    with _instance_lock:
        if _instance is None:
            _instance = Bank()
        return _instance