"""Business loans: weekly instalment schedules, repayments and delinquency."""

from __future__ import annotations

import itertools
import re
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Mapping

LOAN_TERM_WEEKS = 50
INTEREST_RATE = 10.0

_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)
_TIMESTAMP = re.compile(
    r"(\d{4}-\d{2}-\d{2})[Tt](\d{2}:\d{2}:\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})"
)

_id_lock = threading.Lock()
_loan_numbers = itertools.count(1)
_loan_accounts = itertools.count(1000000001)


class LoanStatus(str, Enum):
    """Lifecycle state of a loan."""

    OPEN = "OPEN"
    CLOSED = "CLOSED"


class LoanError(Exception):
    """Raised when a loan operation cannot be carried out."""


@dataclass(frozen=True)
class Installment:
    """One scheduled weekly repayment."""

    amount: float
    due_date: datetime
    paid_on: datetime | None = None


def _parse_timestamp(text: Any) -> datetime:
    match = _TIMESTAMP.fullmatch(text) if isinstance(text, str) else None
    if match is None:
        raise ValueError(f"invalid payment date: {text!r}")
    date_part, time_part, fraction, offset = match.groups()
    fraction = (fraction or "")[:6].ljust(6, "0")
    if offset.upper() == "Z":
        offset = "+00:00"
    return datetime.fromisoformat(f"{date_part}T{time_part}.{fraction}{offset}")


@dataclass
class Payment:
    """A repayment made towards a loan."""

    amount: float
    date: datetime
    mode: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Payment":
        """Build a payment from its JSON form (``loanAmount``, ``paymentDate``)."""
        amount = data.get("loanAmount")
        if amount is None:
            amount = 0
        if isinstance(amount, bool) or not isinstance(amount, (int, float)):
            raise ValueError(f"invalid payment amount: {amount!r}")
        raw_date = data.get("paymentDate")
        date = _ZERO_TIME if raw_date is None else _parse_timestamp(raw_date)
        mode = data.get("Mode", data.get("mode")) or ""
        if not isinstance(mode, str):
            raise ValueError(f"invalid payment mode: {mode!r}")
        return cls(float(amount), date, mode)


def _week(moment: datetime) -> tuple[int, int]:
    year, week, _ = moment.isocalendar()
    return year, week


def _now() -> datetime:
    return datetime.now().astimezone()


class Loan(ABC):
    """Common interface of every loan product."""

    loan_id: str
    status: LoanStatus
    total_amount: float

    @abstractmethod
    def outstanding(self) -> float:
        """Return the amount still owed; raise LoanError if the loan is closed."""

    @abstractmethod
    def make_payment(self, payment: Payment) -> None:
        """Apply a repayment; raise LoanError if it cannot be accepted."""

    @abstractmethod
    def is_delinquent(self, now: datetime | None = None) -> bool:
        """Tell whether the borrower has missed consecutive instalments."""


class BusinessLoan(Loan):
    """A flat-interest loan repaid in equal weekly instalments."""

    def __init__(self, amount: float, created_at: datetime | None = None) -> None:
        with _id_lock:
            self.loan_id = f"BUSINESS-LOAN-ID-{next(_loan_numbers)}"
            self.account_number = next(_loan_accounts)
        self.total_amount = float(amount)
        self.created_at = created_at if created_at is not None else _now()
        self.last_repayment_at = self.created_at
        self.status = LoanStatus.OPEN
        self._lock = threading.RLock()
        self._delinquent = False
        self._delayed: list[Installment] = []

        payable = self.total_amount + (self.total_amount * INTEREST_RATE / 100)
        self._outstanding = payable
        emi = payable / LOAN_TERM_WEEKS
        self._upcoming: list[Installment] = [
            Installment(emi, self.created_at + timedelta(weeks=week))
            for week in range(1, LOAN_TERM_WEEKS + 1)
        ]

    @property
    def upcoming_installments(self) -> tuple[Installment, ...]:
        with self._lock:
            return tuple(self._upcoming)

    @property
    def delayed_installments(self) -> tuple[Installment, ...]:
        with self._lock:
            return tuple(self._delayed)

    def outstanding(self) -> float:
        with self._lock:
            if self.status is LoanStatus.CLOSED:
                raise LoanError(f"Loan is closed for loan-id {self.loan_id}")
            return self._outstanding

    def is_delinquent(self, now: datetime | None = None) -> bool:
        with self._lock:
            if self._delinquent:
                return True
            current = _week(now if now is not None else _now())
            if any(_week(emi.due_date) == current for emi in self._upcoming[1:]):
                self._delinquent = True
            return self._delinquent

    def make_payment(self, payment: Payment) -> None:
        """Apply a payment to the instalment due in the payment's ISO week.

        Instalments scheduled before that week are moved to the delayed list;
        once the schedule is exhausted, payments settle delayed instalments.
        """
        with self._lock:
            if self.status is LoanStatus.CLOSED:
                raise LoanError(
                    f"Loan is closed for loan-id {self.loan_id}, payment is not accepted"
                )
            if not self._upcoming and not self._delayed:
                raise LoanError(
                    f"Loan repayment is done, no scheduled emi left for loan-id {self.loan_id}"
                )

            pay_year, pay_week = _week(payment.date)

            if not self._upcoming:
                self._outstanding -= payment.amount
                self._delayed = self._delayed[1:]
                if self._outstanding == 0.0:
                    self.status = LoanStatus.CLOSED
                return

            start_year, start_week = _week(self._upcoming[0].due_date)
            end_year, end_week = _week(self._upcoming[-1].due_date)
            if (start_week > pay_week and start_year == pay_year) or (
                pay_week > end_week and end_year == pay_year
            ):
                raise LoanError(
                    f"payment date is supposed to be within week range of year {start_year} "
                    f"and week {start_week} - year {end_year} and week {end_week}"
                )

            for index, emi in enumerate(self._upcoming):
                if _week(emi.due_date) == (pay_year, pay_week):
                    if payment.amount != emi.amount:
                        raise LoanError(
                            "repayment amount is not matching, not accepting the payment"
                        )
                    self._outstanding -= payment.amount
                    if self._outstanding == 0.0:
                        self.status = LoanStatus.CLOSED
                    self._upcoming = self._upcoming[index + 1:]
                    break
                if index >= 1:
                    self._delinquent = True
                self._delayed.append(emi)

            self.last_repayment_at = payment.date