from datetime import datetime, timedelta

import pytest

from billingengine.bank import (
    Bank,
    CustomerNotFoundError,
    NoActiveLoanError,
    get_bank_instance,
)
from billingengine.loans import BusinessLoan, LoanError, Payment


@pytest.fixture
def bank():
    return Bank()


def _open_loan(bank, amount, created_at, first="ab1", last="ab2"):
    customer = bank.create_customer(first, last)
    loan = BusinessLoan(amount, created_at=created_at)
    bank.get_customer(customer.customer_id).add_loan(loan)
    return customer.customer_id, loan.loan_id


def test_get_bank_instance_is_shared():
    customer = get_bank_instance().create_customer("shared", "instance")
    found = get_bank_instance().get_customer(customer.customer_id)
    assert found is customer
    assert found.first_name == "shared"


def test_create_customer_registers_customer(bank):
    first = bank.create_customer("ab1", "ab2", 5)
    second = bank.create_customer("acf", "ghj")
    assert first.customer_id != second.customer_id
    assert first.customer_id.startswith("cust-")
    assert bank.get_customer(first.customer_id) is first
    assert bank.get_customer(second.customer_id).last_name == "ghj"


def test_unknown_customer_raises(bank):
    payment = Payment(1210.00, datetime.now().astimezone())
    with pytest.raises(CustomerNotFoundError):
        bank.get_customer("cust-missing")
    with pytest.raises(CustomerNotFoundError):
        bank.get_outstanding_balance("cust-missing", "loan")
    with pytest.raises(CustomerNotFoundError):
        bank.get_delinquent_status("cust-missing", "loan")
    with pytest.raises(CustomerNotFoundError):
        bank.make_payment("cust-missing", "loan", payment)


def test_unknown_loan_raises(bank):
    customer = bank.create_customer("ab1", "ab2")
    payment = Payment(1210.00, datetime.now().astimezone())
    with pytest.raises(NoActiveLoanError):
        bank.get_outstanding_balance(customer.customer_id, "BUSINESS-LOAN-ID-0")
    with pytest.raises(NoActiveLoanError):
        bank.get_delinquent_status(customer.customer_id, "BUSINESS-LOAN-ID-0")
    with pytest.raises(NoActiveLoanError):
        bank.make_payment(customer.customer_id, "BUSINESS-LOAN-ID-0", payment)


def test_payment_reduces_outstanding(bank):
    base = datetime.now().astimezone()
    customer_id, loan_id = _open_loan(bank, 55000, base)
    before = bank.get_outstanding_balance(customer_id, loan_id)
    bank.make_payment(customer_id, loan_id, Payment(1210.00, base + timedelta(weeks=1)))
    assert bank.get_outstanding_balance(customer_id, loan_id) == before - 1210.00


def test_wrong_amount_is_rejected(bank):
    base = datetime.now().astimezone()
    customer_id, loan_id = _open_loan(bank, 55000, base)
    before = bank.get_outstanding_balance(customer_id, loan_id)
    with pytest.raises(LoanError):
        bank.make_payment(customer_id, loan_id, Payment(1000.00, base + timedelta(weeks=1)))
    assert bank.get_outstanding_balance(customer_id, loan_id) == before


def test_payment_for_past_week_is_rejected(bank):
    base = datetime.now().astimezone()
    customer_id, loan_id = _open_loan(bank, 55000, base)
    bank.make_payment(customer_id, loan_id, Payment(1210.00, base + timedelta(weeks=5)))
    with pytest.raises(LoanError):
        bank.make_payment(customer_id, loan_id, Payment(1210.00, base + timedelta(weeks=3)))


def test_make_payment_happy_billing(bank):
    base = datetime.now().astimezone()
    customer_id, loan_id = _open_loan(bank, 55000, base)
    for week in range(1, 51):
        payment = Payment(1210.00, base + timedelta(weeks=week))
        bank.make_payment(customer_id, loan_id, payment)
        if week < 50:
            assert bank.get_delinquent_status(customer_id, loan_id) is False
    with pytest.raises(NoActiveLoanError):
        bank.get_delinquent_status(customer_id, loan_id)
    with pytest.raises(NoActiveLoanError):
        bank.make_payment(
            customer_id, loan_id, Payment(1210.00, base + timedelta(weeks=51))
        )


def test_make_payment_mixed_cases(bank):
    base = datetime.now().astimezone()
    customer_id, loan_id = _open_loan(bank, 55000, base, "acf", "ghj")
    for week in range(5, 61):
        payment = Payment(1210.00, base + timedelta(weeks=week))
        if week < 55:
            bank.make_payment(customer_id, loan_id, payment)
            if week < 54:
                assert bank.get_delinquent_status(customer_id, loan_id) is True
            else:
                with pytest.raises(NoActiveLoanError):
                    bank.get_delinquent_status(customer_id, loan_id)
        else:
            with pytest.raises(NoActiveLoanError):
                bank.make_payment(customer_id, loan_id, payment)
            with pytest.raises(NoActiveLoanError):
                bank.get_delinquent_status(customer_id, loan_id)