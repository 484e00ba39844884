import json
from unittest import mock

import pytest
from django.urls import reverse
from pywebpush import WebPushException

from canteen.email_utils import send_order_status_update
from canteen.models import OrderStatus, PushSubscription
from canteen.status import transition

pytestmark = pytest.mark.django_db


@pytest.fixture
def resend_configured(settings):
    settings.RESEND_API_KEY = 're_test_key'
    settings.CANTEEN_FROM_EMAIL = 'Canteen <orders@college.edu>'
    with mock.patch('resend.Emails.send', return_value={'id': 'email_1'}) as send:
        yield send


@pytest.fixture
def push_configured(settings):
    settings.VAPID_PUBLIC_KEY = 'public-key'
    settings.VAPID_PRIVATE_KEY = 'private-key'
    subscription = PushSubscription.objects.create(
        endpoint='https://push.example.com/sub/1', keys={'p256dh': 'abc', 'auth': 'def'},
    )
    with mock.patch('canteen.push_utils.webpush') as webpush:
        yield webpush, subscription


def test_ready_order_emails_the_student(resend_configured, make_order):
    order = make_order(customer_ref='Asha@College.edu', lines=[('Samosa', 15, 2, None)])

    transition(order, OrderStatus.READY)

    resend_configured.assert_called_once()
    params = resend_configured.call_args[0][0]
    assert params['to'] == ['asha@college.edu']
    assert params['from'] == 'Canteen <orders@college.edu>'
    assert f"#{order.order_number}" in params['subject']
    assert '2x Samosa' in params['html']


def test_no_email_for_roll_numbers_or_other_statuses(resend_configured, make_order):
    transition(make_order(customer_ref='21CS042'), OrderStatus.READY)
    transition(make_order(customer_ref='asha@college.edu'), OrderStatus.DELIVERED)

    resend_configured.assert_not_called()


def test_no_email_without_api_key(make_order):
    order = make_order(customer_ref='asha@college.edu')
    with mock.patch('resend.Emails.send') as send:
        assert send_order_status_update(order, OrderStatus.PREPARING, OrderStatus.READY) is False
    send.assert_not_called()


def test_email_failure_does_not_block_status_change(resend_configured, make_order):
    resend_configured.side_effect = RuntimeError('resend is down')
    order = make_order(customer_ref='asha@college.edu')

    assert transition(order, OrderStatus.READY) is True

    order.refresh_from_db()
    assert order.status == OrderStatus.READY


def test_status_change_pushes_to_subscribers(push_configured, make_order):
    webpush, subscription = push_configured
    order = make_order()

    transition(order, OrderStatus.READY)

    webpush.assert_called_once()
    kwargs = webpush.call_args.kwargs
    assert kwargs['subscription_info']['endpoint'] == subscription.endpoint
    payload = json.loads(kwargs['data'])
    assert payload['body'] == f'Order #{order.order_number} is ready for collection'
    assert payload['tag'] == 'canteen-order'


def test_new_orders_do_not_notify(push_configured, resend_configured, make_order):
    webpush, _ = push_configured
    make_order(customer_ref='asha@college.edu', status=OrderStatus.READY)

    webpush.assert_not_called()
    resend_configured.assert_not_called()


def test_gone_subscriptions_are_removed(push_configured, make_order):
    webpush, subscription = push_configured
    webpush.side_effect = WebPushException('gone', response=mock.Mock(status_code=410))

    transition(make_order(), OrderStatus.READY)

    assert not PushSubscription.objects.filter(pk=subscription.pk).exists()


def test_push_subscribe_and_unsubscribe(staff_client, staff_user):
    body = {'endpoint': 'https://push.example.com/sub/9', 'keys': {'p256dh': 'abc', 'auth': 'def'}}

    response = staff_client.post(reverse('canteen:push_subscribe'), json.dumps(body), content_type='application/json')
    assert response.json()['created'] is True
    assert PushSubscription.objects.get().user == staff_user

    response = staff_client.post(
        reverse('canteen:push_unsubscribe'), json.dumps({'endpoint': body['endpoint']}), content_type='application/json',
    )
    assert response.json()['deleted'] == 1
    assert not PushSubscription.objects.exists()


def test_push_subscribe_validates_body(staff_client):
    response = staff_client.post(reverse('canteen:push_subscribe'), '{oops', content_type='application/json')
    assert response.status_code == 400

    response = staff_client.post(
        reverse('canteen:push_subscribe'), json.dumps({'endpoint': 'https://x'}), content_type='application/json',
    )
    assert response.status_code == 400


def test_vapid_key_endpoint(client, settings):
    assert client.get(reverse('canteen:get_vapid_public_key')).status_code == 503

    settings.VAPID_PUBLIC_KEY = 'public-key'
    assert client.get(reverse('canteen:get_vapid_public_key')).json() == {'publicKey': 'public-key'}


def test_send_test_push(staff_client, push_configured):
    webpush, _ = push_configured

    response = staff_client.post(reverse('canteen:send_push_notification'))

    assert response.json()['success_count'] == 1
    webpush.assert_called_once()


def test_ready_email_escapes_item_names(resend_configured, make_order):
    order = make_order(customer_ref='asha@college.edu', lines=[('<b>Tea</b>', 10, 1, None)],
                       slot_label='<i>12:00</i>')

    transition(order, OrderStatus.READY)

    html = resend_configured.call_args[0][0]['html']
    assert '&lt;b&gt;Tea&lt;/b&gt;' in html
    assert '&lt;i&gt;12:00&lt;/i&gt;' in html
    assert '<b>Tea</b>' not in html
