from datetime import timedelta
from decimal import Decimal
from io import BytesIO

import pytest
from django.urls import reverse
from django.utils import timezone
from openpyxl import load_workbook

from canteen.exports import XLSX_CONTENT_TYPE
from canteen.models import Order, OrderStatus

from .conftest import local_dt

pytestmark = pytest.mark.django_db


def test_dashboard_shows_orders_and_counters(staff_client, make_order, category):
    make_order(lines=[('Samosa', 15, 2, category)])
    make_order(lines=[('Veg Puff', 20, 1, category)], status=OrderStatus.READY)
    make_order(lines=[('Tea', 10, 1, None)], status=OrderStatus.DELIVERED)

    response = staff_client.get(reverse('admin_dashboard'))

    assert response.status_code == 200
    assert response.context['counts'] == {'preparing': 1, 'ready': 1, 'delivered': 1}
    assert response.context['month_data']['amount'] == Decimal('60.00')
    assert response.context['month_data']['orders'] == 3
    assert len(response.context['rows']) == 3
    assert b'Samosa (x2)' in response.content


def test_dashboard_filters(staff_client, make_order, category):
    make_order(customer_ref='asha@college.edu', lines=[('Samosa', 15, 1, category)])
    make_order(customer_ref='21CS042', lines=[('Tea', 10, 1, None)])

    response = staff_client.get(reverse('admin_dashboard'), {'q': 'asha'})
    assert [order.customer_ref for order in response.context['orders']] == ['asha@college.edu']

    response = staff_client.get(reverse('admin_dashboard'), {'category': str(category.pk)})
    assert [order.customer_ref for order in response.context['orders']] == ['asha@college.edu']


def test_dashboard_earnings_for_selected_month(staff_client, make_order):
    today = timezone.localdate()
    this_month = f"{today.year}-{today.month:02d}"
    make_order(lines=[('Thali', 80, 1, None)])

    response = staff_client.get(reverse('admin_dashboard'), {'month': this_month})
    assert response.context['selected_month'] == this_month
    assert response.context['month_data']['amount'] == Decimal('80.00')

    response = staff_client.get(reverse('admin_dashboard'), {'month': 'garbage'})
    assert response.context['selected_month'] == this_month


def test_update_status_moves_order_forward(staff_client, make_order):
    order = make_order()

    response = staff_client.post(reverse('admin_update_order_status', args=[order.pk]), {'status': 'Collect your order'})

    assert response.status_code == 302
    assert response.url == reverse('admin_dashboard')
    order.refresh_from_db()
    assert order.status == OrderStatus.READY


def test_update_status_refuses_backward_moves(staff_client, make_order):
    order = make_order(status=OrderStatus.DELIVERED)

    response = staff_client.post(
        reverse('admin_update_order_status', args=[order.pk]), {'status': 'Preparing'}, follow=True,
    )

    order.refresh_from_db()
    assert order.status == OrderStatus.DELIVERED
    assert b'Failed to update order status.' in response.content


def test_update_status_rejects_unknown_status(staff_client, make_order):
    order = make_order()

    response = staff_client.post(
        reverse('admin_update_order_status', args=[order.pk]), {'status': 'Cancelled'}, follow=True,
    )

    order.refresh_from_db()
    assert order.status == OrderStatus.PREPARING
    assert b'Failed to update order status.' in response.content


def test_update_status_keeps_next_url_on_site(staff_client, make_order):
    order = make_order()
    url = reverse('admin_update_order_status', args=[order.pk])

    response = staff_client.post(url, {'status': 'Ready', 'next': '/admin/dashboard/?q=asha'})
    assert response.url == '/admin/dashboard/?q=asha'

    response = staff_client.post(url, {'status': 'Delivered', 'next': 'https://evil.example/'})
    assert response.url == reverse('admin_dashboard')


def test_update_status_requires_post(staff_client, make_order):
    order = make_order()
    response = staff_client.get(reverse('admin_update_order_status', args=[order.pk]))
    assert response.status_code == 405


def test_mark_delivered(staff_client, make_order):
    order = make_order(status=OrderStatus.READY)

    staff_client.post(reverse('admin_mark_delivered', args=[order.pk]))

    order.refresh_from_db()
    assert order.status == OrderStatus.DELIVERED


def test_orders_feed(staff_client, make_order, category):
    order = make_order(lines=[('Samosa', 15, 2, category)])

    data = staff_client.get(reverse('admin_orders_feed')).json()

    assert data['counts'] == {'preparing': 1, 'ready': 0, 'delivered': 0}
    assert data['orders'][0]['id'] == order.pk
    assert data['orders'][0]['next_status'] == OrderStatus.READY
    assert data['orders'][0]['items'] == [
        {'name': 'Samosa', 'price': '15.00', 'qty': 2, 'category_id': category.pk},
    ]
    assert 'server_time' in data


def test_orders_feed_since_returns_only_changes(staff_client, make_order):
    order = make_order()
    later = (timezone.now() + timedelta(minutes=5)).isoformat()
    earlier = (timezone.now() - timedelta(minutes=5)).isoformat()

    assert staff_client.get(reverse('admin_orders_feed'), {'since': later}).json()['orders'] == []
    assert [o['id'] for o in staff_client.get(reverse('admin_orders_feed'), {'since': earlier}).json()['orders']] == [order.pk]


def test_orders_feed_rejects_bad_since(staff_client):
    response = staff_client.get(reverse('admin_orders_feed'), {'since': 'yesterday'})
    assert response.status_code == 400
    assert 'error' in response.json()


def test_orders_feed_requires_staff(client):
    response = client.get(reverse('admin_orders_feed'))
    assert response.status_code == 302


def test_export_orders_download(staff_client, make_order, category):
    make_order(lines=[('Samosa', 15, 2, category)], placed_at=local_dt(2024, 5, 1, 12, 0))

    response = staff_client.get(reverse('admin_export_orders'), {'date': '2024-05-01'})

    assert response.status_code == 200
    assert response['Content-Type'] == XLSX_CONTENT_TYPE
    assert response['Content-Disposition'] == 'attachment; filename="canteen-orders-2024-05-01.xlsx"'
    assert response['X-Order-Count'] == '1'
    ws = load_workbook(BytesIO(response.content)).active
    assert ws['C2'].value == 'Samosa (x2)'


def test_export_orders_rejects_bad_date(staff_client):
    response = staff_client.get(reverse('admin_export_orders'), {'date': '01/05/2024'})

    assert response.status_code == 302
    assert response.url == reverse('admin_dashboard')
    assert Order.objects.count() == 0


def test_site_admin_order_form_shows_status_read_only(admin_client, make_order):
    order = make_order()

    response = admin_client.get(reverse('admin:canteen_order_change', args=[order.pk]))

    assert response.status_code == 200
    assert b'name="status"' not in response.content
    assert b'name="customer_ref"' in response.content
