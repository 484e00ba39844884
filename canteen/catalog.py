"""
Catalog helpers shared by the product views and the snapshot importer
"""
import logging
from urllib.parse import quote

from django.db import transaction

from .models import Category, Item, normalize_category_key

logger = logging.getLogger(__name__)


def placeholder_image_url(name):
    return "/placeholder.svg?height=200&width=200&query=" + quote(name, safe='')


def filter_products(products, search='', category='all'):
    """Name search (case-insensitive) plus category filter"""
    search = (search or '').strip().lower()
    category = str(category or 'all')
    return [
        product for product in products
        if (not search or search in product.name.lower())
        and (category == 'all' or str(product.category_id) == category)
    ]


def resolve_category(category_id='', category_name=''):
    """
    Find the category an old record points at.

    The id is tried against imported ids and primary keys first. Records that
    only carry a name are matched on the normalised name key.
    """
    if category_id:
        category = Category.objects.filter(external_id=category_id).first()
        if category:
            return category
        if str(category_id).isdigit():
            category = Category.objects.filter(pk=int(category_id)).first()
            if category:
                return category

    key = normalize_category_key(category_name) or normalize_category_key(category_id)
    if not key:
        return None
    for category in Category.objects.all():
        if category.key == key:
            return category
    return None


def rename_category(category, name):
    """Rename a category; the post_save handler rewrites its items"""
    with transaction.atomic():
        category.name = name
        category.save()
    logger.info("Category %s renamed to %r", category.pk, name)
    return category


def delete_category(category):
    """Delete a category together with every item in it"""
    with transaction.atomic():
        removed = Item.objects.filter(category=category).count()
        category.delete()
    logger.info("Category %r deleted with %d items", category.name, removed)
    return removed
