from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from canteen.reconciliation import find_order_for_payment, find_student, reconcile


PAID_AT = datetime(2024, 5, 1, 6, 30, tzinfo=timezone.utc)


def order(pk, customer_ref='asha@college.edu', offset=0, razorpay_order_id='', order_number=None, external_id=''):
    return SimpleNamespace(
        pk=pk,
        order_number=order_number if order_number is not None else pk,
        customer_ref=customer_ref,
        placed_at=PAID_AT + timedelta(seconds=offset),
        razorpay_order_id=razorpay_order_id,
        external_id=external_id,
    )


def payment(customer_ref='asha@college.edu', razorpay_order_id='', paid_at=PAID_AT):
    return SimpleNamespace(customer_ref=customer_ref, razorpay_order_id=razorpay_order_id, paid_at=paid_at)


def test_razorpay_order_id_match_wins():
    close = order(1, offset=5)
    linked = order(2, customer_ref='someone-else', offset=-4000, razorpay_order_id='order_XYZ')

    assert find_order_for_payment(payment(razorpay_order_id='order_XYZ'), [close, linked]) is linked


def test_closest_order_of_same_customer_within_window():
    orders = [order(1, offset=-200), order(2, offset=60), order(3, customer_ref='other', offset=1)]
    assert find_order_for_payment(payment(), orders).pk == 2


def test_orders_outside_window_do_not_match():
    assert find_order_for_payment(payment(), [order(1, offset=400), order(2, offset=-301)]) is None


def test_payment_without_time_or_customer_has_no_heuristic_match():
    assert find_order_for_payment(payment(paid_at=None), [order(1)]) is None
    assert find_order_for_payment(payment(customer_ref=''), [order(1, customer_ref='')]) is None


def test_match_window_is_configurable(settings):
    settings.CANTEEN_PAYMENT_MATCH_WINDOW = 600
    assert find_order_for_payment(payment(), [order(1, offset=400)]).pk == 1


def test_find_student_by_email_or_roll_number():
    asha = SimpleNamespace(email='asha@college.edu', roll_no='21CS001')
    ravi = SimpleNamespace(email='', roll_no='21CS042')

    assert find_student('asha@college.edu', [asha, ravi]) is asha
    assert find_student('21CS042', [asha, ravi]) is ravi
    assert find_student('', [asha, ravi]) is None
    assert find_student('nobody', [asha, ravi]) is None


def test_reconcile_builds_rows_and_filters_by_order():
    asha = SimpleNamespace(email='asha@college.edu', roll_no='21CS001')
    orders = [order(17, order_number=105), order(18, customer_ref='21CS042', order_number=106)]
    payments = [payment(), payment(customer_ref='21CS042'), payment(customer_ref='ghost')]

    rows = reconcile(payments, orders, [asha])

    assert [(row[1].pk if row[1] else None) for row in rows] == [17, 18, None]
    assert rows[0][2] is asha
    assert rows[1][2] is None

    assert [row[1].pk for row in reconcile(payments, orders, [asha], search='17')] == [17]
    assert [row[1].pk for row in reconcile(payments, orders, [asha], search='06')] == [18]
    assert reconcile(payments, orders, [asha], search='999') == []


def test_reconcile_search_matches_imported_order_id():
    orders = [order(17, external_id='AbC123xyz'), order(18, customer_ref='21CS042', external_id='QrS987')]
    payments = [payment(), payment(customer_ref='21CS042')]

    assert [row[1].pk for row in reconcile(payments, orders, [], search='abc123')] == [17]
