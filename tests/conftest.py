from datetime import datetime
from decimal import Decimal

import pytest
from django.core.cache import cache
from django.utils import timezone

from canteen.models import Category, Item, Order, OrderItem


@pytest.fixture(autouse=True)
def isolated_settings(settings, tmp_path):
    """Keep uploads, mail and push away from anything real"""
    settings.MEDIA_ROOT = tmp_path / 'media'
    settings.RESEND_API_KEY = ''
    settings.VAPID_PUBLIC_KEY = ''
    settings.VAPID_PRIVATE_KEY = ''
    cache.clear()
    yield settings
    cache.clear()


@pytest.fixture
def staff_user(django_user_model):
    return django_user_model.objects.create_user(
        username='admin', email='admin@canteen.local', password='s3cret-pass', is_staff=True,
    )


@pytest.fixture
def student_user(django_user_model):
    return django_user_model.objects.create_user(
        username='student', email='student@college.edu', password='s3cret-pass',
    )


@pytest.fixture
def staff_client(client, staff_user):
    client.force_login(staff_user)
    return client


@pytest.fixture
def category(db):
    return Category.objects.create(name='Snacks')


@pytest.fixture
def make_item(category):
    def _make(name='Samosa', price='15.00', quantity=40, **kwargs):
        kwargs.setdefault('category', category)
        return Item.objects.create(name=name, price=Decimal(price), quantity=quantity, **kwargs)
    return _make


@pytest.fixture
def make_order(db):
    """
    Build an order with lines given as (name, price, qty, category) tuples.
    """
    def _make(customer_ref='student@college.edu', lines=(), placed_at=None, **kwargs):
        if placed_at is not None:
            kwargs['placed_at'] = placed_at
        total = sum((Decimal(str(price)) * qty for _, price, qty, _ in lines), Decimal('0'))
        kwargs.setdefault('total_amount', total)
        order = Order.objects.create(customer_ref=customer_ref, **kwargs)
        for name, price, qty, line_category in lines:
            OrderItem.objects.create(
                order=order, name=name, price=Decimal(str(price)), qty=qty, category=line_category,
            )
        return order
    return _make


def local_dt(*args):
    """Aware datetime in the project time zone"""
    return timezone.make_aware(datetime(*args))
