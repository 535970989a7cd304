"""Bank customers and the loans they hold."""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass, field

from .loans import Loan

_id_lock = threading.Lock()
_customer_numbers = itertools.count(1)
_account_numbers = itertools.count(1000000001)


def _next_customer_id() -> str:
    with _id_lock:
        return f"cust-{next(_customer_numbers)}"


def _next_account_number() -> int:
    with _id_lock:
        return next(_account_numbers)


@dataclass
class Customer:
    """A customer with a generated id, an account number and a list of loans."""

    first_name: str
    last_name: str
    contact_number: int = 0
    customer_id: str = field(init=False, default_factory=_next_customer_id)
    account_number: int = field(init=False, default_factory=_next_account_number)
    balance: float = field(init=False, default=0.0)
    loans: list[Loan] = field(init=False, default_factory=list, repr=False)

    def get_loan(self, loan_id: str) -> Loan | None:
        """Return the loan with the given id, or None."""
        return next((loan for loan in self.loans if loan.loan_id == loan_id), None)

    def add_loan(self, loan: Loan) -> None:
        """Attach another loan to this customer."""
        self.loans.append(loan)