"""
Cross-reference payments with orders and students.
The mobile app never stores a payment id on the order, so matching is heuristic.
"""
from datetime import timedelta

from django.conf import settings


def match_window():
    return timedelta(seconds=getattr(settings, 'CANTEEN_PAYMENT_MATCH_WINDOW', 300))


def find_order_for_payment(payment, orders):
    """
    Find the order a payment belongs to.

    A shared Razorpay order id wins. Otherwise take the order of the same
    customer placed closest to the payment, within the match window.
    """
    if payment.razorpay_order_id:
        for order in orders:
            if order.razorpay_order_id and order.razorpay_order_id == payment.razorpay_order_id:
                return order

    if not payment.paid_at or not payment.customer_ref:
        return None

    window = match_window()
    best = None
    best_gap = None
    for order in orders:
        if order.customer_ref != payment.customer_ref:
            continue
        gap = abs(order.placed_at - payment.paid_at)
        if gap < window and (best_gap is None or gap < best_gap):
            best, best_gap = order, gap
    return best


def find_student(customer_ref, students):
    """Student whose email or roll number is the given reference"""
    if not customer_ref:
        return None
    for student in students:
        if customer_ref in (student.email, student.roll_no):
            return student
    return None


def payment_matches_search(order, search):
    if not search:
        return True
    if order is None:
        return False
    needle = search.lower()
    if needle in str(order.pk).lower() or needle in (order.external_id or '').lower():
        return True
    return order.order_number is not None and search in str(order.order_number)


def reconcile(payments, orders, students, search=''):
    """
    Returns:
        list of (payment, order or None, student or None)
    """
    orders = list(orders)
    students = list(students)
    search = (search or '').strip()

    rows = []
    for payment in payments:
        order = find_order_for_payment(payment, orders)
        if not payment_matches_search(order, search):
            continue
        rows.append((payment, order, find_student(payment.customer_ref, students)))
    return rows
