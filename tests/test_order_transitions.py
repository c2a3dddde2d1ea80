from unittest.mock import Mock

import pytest
from django.core.exceptions import ValidationError

from orders.exceptions import OrderNotCancellable
from orders.models import Order
from orders.services.cancellation import cancel_order
from orders.signals import order_status_changed
from payments.services import PaymentServiceClient, PaymentServiceError
from tests.factories import OrderFactory


@pytest.mark.django_db
def test_allowed_transition_sequence_emits_signal():
    order = OrderFactory()
    events = []

    def _receiver(sender, order, old, new, by_user, **kwargs):
        events.append((old, new, getattr(by_user, "id", None)))

    order_status_changed.connect(_receiver)
    try:
        for status in ("accepted", "preparing", "on_the_way", "delivered"):
            order.transition_to(status, by_user=order.user)
            order.refresh_from_db()
            assert order.status == status
        assert order.is_terminal
        assert events[0] == (Order.STATUS_PLACED, Order.STATUS_ACCEPTED, order.user.id)
        assert len(events) == 4
    finally:
        order_status_changed.disconnect(_receiver)


@pytest.mark.django_db
def test_blocked_transitions_raise_validation_error():
    order = OrderFactory()
    with pytest.raises(ValidationError):
        order.transition_to("delivered")
    order.transition_to("cancelled")
    # terminal
    with pytest.raises(ValidationError):
        order.transition_to("placed")


@pytest.mark.django_db
def test_mark_paid_moves_pending_upi_order_to_placed():
    order = OrderFactory(
        payment_method=Order.METHOD_UPI,
        status=Order.STATUS_PENDING_PAYMENT,
    )
    order.mark_paid(raw_status="paid")
    order.refresh_from_db()
    assert order.payment_status == Order.PAYMENT_PAID
    assert order.status == Order.STATUS_PLACED


@pytest.mark.django_db
def test_cod_cancel_deletes_order():
    order = OrderFactory()
    client = Mock(spec=PaymentServiceClient)
    assert cancel_order(order, client=client) is None
    assert not Order.objects.filter(pk=order.pk).exists()
    client.cancel.assert_not_called()


@pytest.mark.django_db
def test_upi_cancel_goes_through_payment_service_and_keeps_order():
    order = OrderFactory(payment_method=Order.METHOD_UPI, status=Order.STATUS_PENDING_PAYMENT)
    client = Mock(spec=PaymentServiceClient)

    cancelled = cancel_order(order, client=client)

    client.cancel.assert_called_once_with(str(order.pk))
    cancelled.refresh_from_db()
    assert cancelled.status == Order.STATUS_CANCELLED
    assert Order.objects.filter(pk=order.pk).exists()


@pytest.mark.django_db
def test_upi_cancel_refused_by_service_leaves_order_pending():
    order = OrderFactory(payment_method=Order.METHOD_UPI, status=Order.STATUS_PENDING_PAYMENT)
    client = Mock(spec=PaymentServiceClient)
    client.cancel.side_effect = PaymentServiceError("HTTP 500", status=500)

    with pytest.raises(PaymentServiceError):
        cancel_order(order, client=client)
    order.refresh_from_db()
    assert order.status == Order.STATUS_PENDING_PAYMENT


@pytest.mark.django_db
@pytest.mark.parametrize(
    "fields",
    [
        {"status": Order.STATUS_ACCEPTED},
        {"status": Order.STATUS_DELIVERED},
        {"payment_status": Order.PAYMENT_PAID},
        {"payment_method": Order.METHOD_UPI, "status": Order.STATUS_PLACED, "payment_status": Order.PAYMENT_PAID},
    ],
)
def test_other_orders_are_not_cancellable(fields):
    order = OrderFactory(**fields)
    with pytest.raises(OrderNotCancellable):
        cancel_order(order, client=Mock(spec=PaymentServiceClient))
    assert Order.objects.filter(pk=order.pk).exists()
