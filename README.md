# billingengine

A small billing engine for business loans repaid in weekly instalments.

Each loan is charged a flat 10% interest and split into 50 equal weekly
instalments (EMIs), the first due one week after the loan is created.
Payments are matched to the instalment falling in the same ISO week as the
payment date, and the amount must equal the instalment exactly. Instalments
skipped along the way are recorded as delayed, and a borrower who skips past
two or more instalments is marked delinquent. Once the schedule is used up,
further payments settle the delayed instalments one at a time. When the
outstanding amount reaches zero the loan is closed and further payments are
refused.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Running the HTTP service

```
billingengine-server
```

By default the service listens on all addresses on port 8989; use `--host`
and `--port` to change that. It is a WSGI application
(`billingengine.server.BillingApp`) served by the standard library's
`wsgiref` server, one thread per request. It exposes JSON endpoints:

| Method | Path                       | Input                                                          |
|--------|----------------------------|----------------------------------------------------------------|
| POST   | `/customer/create`         | body `{"firstName", "lastName", "contactNumber"}`              |
| POST   | `/loans/create`            | body `{"customerId", "loanAmount"}`                            |
| GET    | `/loans/balance`           | query `custId`, `loanId`                                       |
| POST   | `/loans/payment`           | query `custId`, `loanId`; body `{"loanAmount", "paymentDate"}` |
| GET    | `/loans/delinquentStatus`  | query `custId`, `loanId`                                       |

A typical session: create a customer, create a loan for the returned
`customerId`, then post one payment per week using the instalment amount
(for a loan of 55000 that is 1210) and an RFC 3339 `paymentDate` such as
`2025-03-10T12:00:00+01:00`.

Missing parameters answer `400`, a wrong method `405`, and an unknown
customer, a missing or closed loan, or a refused payment `404` (the
delinquency endpoint answers `400` for those). Creating a loan for an unknown
customer answers `400` with `Create Customer First`. Unknown paths answer
`404`.

`BillingApp.handle(method, path, query, body)` serves a single request
without a server and returns a `Response` with `status`, `body` and
`headers`, which is handy for testing.

## Using the library

```python
from datetime import datetime, timedelta

from billingengine.loans import BusinessLoan, LoanError, Payment

start = datetime.now()
loan = BusinessLoan(55000, start)
print(loan.outstanding())          # 60500.0

loan.make_payment(Payment(1210.0, start + timedelta(weeks=1)))
print(loan.outstanding())          # 59290.0
print(loan.is_delinquent(start))   # False

try:
    loan.make_payment(Payment(1000.0, start + timedelta(weeks=2)))
except LoanError as exc:
    print(exc)                     # repayment amount is not matching, ...
```

`Payment.from_dict` builds a payment from its JSON form, with `loanAmount`
and an RFC 3339 `paymentDate` that carries a time-zone offset or `Z`.

`billingengine.customers.Customer` holds a generated `customer_id`, an
account number and its loans (`add_loan`, `get_loan`).

`billingengine.bank.Bank` keeps customers and their loans together
(`create_customer`, `get_customer`, `get_outstanding_balance`,
`get_delinquent_status`, `make_payment`); `get_bank_instance()` returns the
shared instance used by the HTTP service. Lookups of unknown customers raise
`CustomerNotFoundError`, and lookups of missing or closed loans raise
`NoActiveLoanError`, both subclasses of `BankError`. Refused payments raise
`LoanError` from `billingengine.loans`.

## Limitations

All customers and loans live in memory only; nothing is stored, and
everything is lost when the process ends. Every loan created through the HTTP
service is a `BusinessLoan`. There is no authentication.