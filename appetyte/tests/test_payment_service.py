"""
Payment service tests
"""

import re

import pytest

from ..core.exceptions import BusinessRuleError, PaymentNotFoundError, ValidationError
from ..models.payment import PaymentStatus
from ..services.payment_service import PaymentService, generate_reference
from .helpers import balance_of, count_rows, set_balance


class TestPayments:

    def test_pending_payment_does_not_credit(self, test_db, customer):
        payment = PaymentService(test_db).record_payment(customer.id, 20000)

        assert payment.status == PaymentStatus.PENDING
        assert payment.settled_at is None
        assert payment.reference.startswith("pay_")
        assert balance_of(test_db, customer.id) == 0

    def test_mark_paid_credits_once(self, test_db, customer):
        set_balance(test_db, customer.id, -8000)
        service = PaymentService(test_db)
        payment = service.record_payment(customer.id, 10000, reference="UPI-1234")

        paid = service.mark_paid(payment.id)

        assert paid.status == PaymentStatus.PAID
        assert paid.settled_at is not None
        assert balance_of(test_db, customer.id) == 2000
        assert count_rows(test_db, "transactions", "type = 'payment' AND payment_id = ?", [payment.id]) == 1

        with pytest.raises(BusinessRuleError):
            service.mark_paid(payment.id)
        assert balance_of(test_db, customer.id) == 2000

    def test_record_as_paid_credits_immediately(self, test_db, customer):
        payment = PaymentService(test_db).record_payment(customer.id, 5000, status="paid")
        assert payment.status == PaymentStatus.PAID
        assert payment.settled_at is not None
        assert balance_of(test_db, customer.id) == 5000

    def test_mark_failed(self, test_db, customer):
        service = PaymentService(test_db)
        payment = service.record_payment(customer.id, 5000)
        assert service.mark_failed(payment.id).status == PaymentStatus.FAILED
        with pytest.raises(BusinessRuleError):
            service.mark_paid(payment.id)
        assert balance_of(test_db, customer.id) == 0

    def test_amount_must_be_positive(self, test_db, customer):
        with pytest.raises(ValidationError):
            PaymentService(test_db).record_payment(customer.id, 0)

    def test_provider_scoping(self, test_db, provider, customer):
        service = PaymentService(test_db)
        payment = service.record_payment(customer.id, 5000)
        with pytest.raises(PaymentNotFoundError):
            service.mark_paid(payment.id, provider_id=provider.id + 1)

    def test_listings(self, test_db, provider, customer):
        service = PaymentService(test_db)
        first = service.record_payment(customer.id, 5000)
        second = service.record_payment(customer.id, 7000, status="paid")

        assert {p.id for p in service.list_payments(customer.id)} == {first.id, second.id}
        assert [p.id for p in service.list_provider_payments(provider.id, "paid")] == [second.id]

    def test_generate_reference(self):
        assert re.fullmatch(r"pay_\d{13}[a-z0-9]{9}", generate_reference())
        assert generate_reference() != generate_reference()
