"""HTTP interface of the billing engine, served as a WSGI application."""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from http import HTTPStatus
from socketserver import ThreadingMixIn
from typing import Any, Callable, Iterable, Mapping
from urllib.parse import parse_qs
from wsgiref.simple_server import WSGIServer, make_server

from .bank import Bank, BankError, CustomerNotFoundError, get_bank_instance
from .loans import BusinessLoan, LoanError, Payment

DEFAULT_PORT = 8989

_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)
_JSON_HEADERS = (("Content-Type", "application/json"),)
_TEXT_HEADERS = (
    ("Content-Type", "text/plain; charset=utf-8"),
    ("X-Content-Type-Options", "nosniff"),
)

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Response:
    """Status, body and headers produced for one request."""

    status: int
    body: bytes
    headers: tuple[tuple[str, str], ...] = field(default=_JSON_HEADERS)


def _error(status: int, message: str) -> Response:
    return Response(status, (message + "\n").encode("utf-8"), _TEXT_HEADERS)


def _rfc3339(moment: datetime) -> str:
    text = moment.strftime("%Y-%m-%dT%H:%M:%S")
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    offset = moment.utcoffset()
    if not offset:
        return text + "Z"
    total = int(offset.total_seconds())
    sign = "+" if total >= 0 else "-"
    total = abs(total)
    return f"{text}{sign}{total // 3600:02d}:{total % 3600 // 60:02d}"


def _plain(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e21:
        return int(value)
    if isinstance(value, datetime):
        return _rfc3339(value)
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return value


def _json(payload: Mapping[str, Any], *, sort_keys: bool = True) -> Response:
    text = json.dumps(
        _plain(dict(payload)), ensure_ascii=False, separators=(",", ":"), sort_keys=sort_keys
    )
    for char, escape in (
        ("<", "\\u003c"),
        (">", "\\u003e"),
        ("&", "\\u0026"),
        ("\u2028", "\\u2028"),
        ("\u2029", "\\u2029"),
    ):
        text = text.replace(char, escape)
    return Response(HTTPStatus.OK, (text + "\n").encode("utf-8"))


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _decode_payment(body: bytes) -> Payment:
    try:
        data = json.loads(body)
        if isinstance(data, dict):
            return Payment.from_dict(data)
    except ValueError:
        pass
    return Payment(0.0, _ZERO_TIME)


def _decode_loan_request(body: bytes) -> tuple[str, float]:
    try:
        data = json.loads(body)
    except ValueError:
        return "", 0.0
    if not isinstance(data, dict):
        return "", 0.0
    customer_id = data.get("customerId")
    amount = data.get("loanAmount")
    return (
        customer_id if isinstance(customer_id, str) else "",
        float(amount) if _is_number(amount) else 0.0,
    )


def _decode_customer_request(body: bytes) -> tuple[str, str, int]:
    if not body.strip():
        raise ValueError("EOF")
    data = json.loads(body)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError("json: cannot unmarshal value into CreateCustomerRequest")

    def text(key: str) -> str:
        value = data.get(key)
        if value is None:
            return ""
        if not isinstance(value, str):
            raise ValueError(f"json: cannot unmarshal value into field {key} of type string")
        return value

    contact = data.get("contactNumber")
    if contact is None:
        contact = 0
    if isinstance(contact, bool) or not isinstance(contact, int):
        raise ValueError("json: cannot unmarshal value into field contactNumber of type int64")
    return text("firstName"), text("lastName"), contact


class BillingApp:
    """Routes billing requests to a bank and renders the replies."""

    def __init__(self, bank: Bank | None = None) -> None:
        self.bank = bank if bank is not None else get_bank_instance()
        self._routes: dict[str, Callable[[str, Mapping[str, str], bytes], Response]] = {
            "/loans/balance": self._balance,
            "/loans/payment": self._payment,
            "/loans/delinquentStatus": self._delinquent,
            "/customer/create": self._create_customer,
            "/loans/create": self._create_loan,
        }

    def handle(
        self, method: str, path: str, query: Mapping[str, str] | None = None, body: bytes = b""
    ) -> Response:
        """Serve one request and return its response."""
        route = self._routes.get(path)
        if route is None:
            return _error(HTTPStatus.NOT_FOUND, "404 page not found")
        return route(method.upper(), query or {}, body or b"")

    @staticmethod
    def _loan_ids(query: Mapping[str, str]) -> tuple[str, str] | None:
        customer_id = query.get("custId", "")
        loan_id = query.get("loanId", "")
        if not customer_id or not loan_id:
            return None
        return customer_id, loan_id

    def _balance(self, method: str, query: Mapping[str, str], body: bytes) -> Response:
        ids = self._loan_ids(query)
        if ids is None:
            return _error(HTTPStatus.BAD_REQUEST, "Pass customerId and loanId")
        if method != "GET":
            return _error(HTTPStatus.METHOD_NOT_ALLOWED, "Invalid request method")
        customer_id, loan_id = ids
        try:
            balance = self.bank.get_outstanding_balance(customer_id, loan_id)
        except (BankError, LoanError) as exc:
            return _error(HTTPStatus.NOT_FOUND, str(exc))
        return _json(
            {"outstandingPayment": balance, "loanId": loan_id, "customerId": customer_id},
            sort_keys=False,
        )

    def _payment(self, method: str, query: Mapping[str, str], body: bytes) -> Response:
        ids = self._loan_ids(query)
        if ids is None:
            return _error(HTTPStatus.BAD_REQUEST, "Pass customerId and loanId")
        if method != "POST":
            return _error(HTTPStatus.METHOD_NOT_ALLOWED, "Invalid request method")
        customer_id, loan_id = ids
        try:
            self.bank.make_payment(customer_id, loan_id, _decode_payment(body))
        except (BankError, LoanError) as exc:
            return _error(HTTPStatus.NOT_FOUND, str(exc))
        try:
            remaining = self.bank.get_outstanding_balance(customer_id, loan_id)
        except (BankError, LoanError):
            remaining = 0.0
        return _json(
            {"customerId": customer_id, "loanId": loan_id, "outstandingAmount": remaining}
        )

    def _delinquent(self, method: str, query: Mapping[str, str], body: bytes) -> Response:
        ids = self._loan_ids(query)
        if ids is None:
            return _error(HTTPStatus.BAD_REQUEST, "Pass customerId and loanId")
        if method != "GET":
            return _error(HTTPStatus.METHOD_NOT_ALLOWED, "Invalid request method")
        try:
            delinquent = self.bank.get_delinquent_status(*ids)
        except (BankError, LoanError) as exc:
            return _error(HTTPStatus.BAD_REQUEST, str(exc))
        return _json({"isDelinquent": delinquent})

    def _create_loan(self, method: str, query: Mapping[str, str], body: bytes) -> Response:
        customer_id, amount = _decode_loan_request(body)
        if not customer_id or amount == 0:
            return _error(HTTPStatus.BAD_REQUEST, "Pass customerId and loanAmount")
        if method != "POST":
            return _error(
                HTTPStatus.METHOD_NOT_ALLOWED,
                "Invalid request method, expecting POST method call",
            )
        try:
            customer = self.bank.get_customer(customer_id)
        except CustomerNotFoundError:
            return _error(HTTPStatus.BAD_REQUEST, "Create Customer First")
        # Every loan is a business loan for now.
        loan = BusinessLoan(amount)
        customer.add_loan(loan)
        try:
            remaining = loan.outstanding()
        except LoanError:
            remaining = 0.0
        return _json(
            {
                "customerId": customer.customer_id,
                "loanId": loan.loan_id,
                "totalLoan": loan.total_amount,
                "loanStatus": loan.status.value,
                "outstandingAmount": remaining,
                "firstEmiDate": datetime.now().astimezone() + timedelta(days=7),
            }
        )

    def _create_customer(self, method: str, query: Mapping[str, str], body: bytes) -> Response:
        if method != "POST":
            return _error(
                HTTPStatus.METHOD_NOT_ALLOWED,
                "Invalid request method, expecting POST method call",
            )
        try:
            first_name, last_name, contact_number = _decode_customer_request(body)
        except ValueError as exc:
            return _error(HTTPStatus.BAD_REQUEST, str(exc))
        if not first_name or not last_name:
            return _error(HTTPStatus.BAD_REQUEST, "Pass firstName and LastName")
        customer = self.bank.create_customer(first_name, last_name, contact_number)
        return _json({"customerId": customer.customer_id})

    def __call__(
        self, environ: Mapping[str, Any], start_response: Callable[..., Any]
    ) -> Iterable[bytes]:
        query = {
            key: values[0]
            for key, values in parse_qs(
                environ.get("QUERY_STRING", ""), keep_blank_values=True
            ).items()
        }
        try:
            length = int(environ.get("CONTENT_LENGTH") or 0)
        except ValueError:
            length = 0
        body = environ["wsgi.input"].read(length) if length > 0 else b""
        response = self.handle(
            environ.get("REQUEST_METHOD", "GET"), environ.get("PATH_INFO", "/"), query, body
        )
        status = HTTPStatus(response.status)
        headers = [*response.headers, ("Content-Length", str(len(response.body)))]
        start_response(f"{status.value} {status.phrase}", headers)
        return [response.body]


class _ThreadingWSGIServer(ThreadingMixIn, WSGIServer):
    daemon_threads = True


def serve(host: str = "", port: int = DEFAULT_PORT) -> None:
    """Serve the billing API until interrupted."""
    with make_server(host, port, BillingApp(), server_class=_ThreadingWSGIServer) as server:
        log.info("listening on %s:%d", host or "*", port)
        server.serve_forever()


def main(argv: list[str] | None = None) -> int:
    """Run the billing HTTP server."""
    parser = argparse.ArgumentParser(description="Loan billing HTTP server.")
    parser.add_argument("--host", default="", help="address to bind (default: all)")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="port to listen on")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    try:
        serve(args.host, args.port)
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    raise SystemExit(main())