"""
URL configuration for the canteen admin project.

Custom admin routes live under /admin/ and must be listed before Django's own
admin site, which is kept at /admin/site/ for raw record edits.
"""
from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.http import FileResponse, Http404
from canteen import admin_views
import os
import mimetypes


def serve_media(request, path):
    """
    Serve uploaded product images from MEDIA_ROOT.
    """
    # Security: prevent directory traversal attacks
    path = path.replace('..', '').lstrip('/')

    file_path = os.path.join(settings.MEDIA_ROOT, path)

    if not os.path.isfile(file_path):
        raise Http404(f"Media file not found: {path}")

    content_type, encoding = mimetypes.guess_type(file_path)
    if content_type is None:
        content_type = 'application/octet-stream'

    try:
        response = FileResponse(open(file_path, 'rb'), content_type=content_type)
    except OSError:
        raise Http404(f"Cannot read media file: {path}")
    response['Cache-Control'] = 'public, max-age=86400'  # 1 day
    return response


urlpatterns = [
    # Authentication gate
    path('admin/login/', admin_views.admin_login, name='admin_login'),
    path('admin/logout/', admin_views.admin_logout, name='admin_logout'),
    path('admin/denied/', admin_views.access_denied, name='access_denied'),

    # Orders
    path('admin/dashboard/', admin_views.admin_dashboard, name='admin_dashboard'),
    path('admin/orders/feed/', admin_views.admin_orders_feed, name='admin_orders_feed'),
    path('admin/orders/export/', admin_views.admin_export_orders, name='admin_export_orders'),
    path('admin/orders/<int:order_id>/status/', admin_views.admin_update_order_status, name='admin_update_order_status'),
    path('admin/orders/<int:order_id>/deliver/', admin_views.admin_mark_delivered, name='admin_mark_delivered'),

    # Catalog
    path('admin/products/', admin_views.admin_products, name='admin_products'),
    path('admin/products/add/', admin_views.admin_add_product, name='admin_add_product'),
    path('admin/products/<int:item_id>/edit/', admin_views.admin_edit_product, name='admin_edit_product'),
    path('admin/products/<int:item_id>/delete/', admin_views.admin_delete_product, name='admin_delete_product'),
    path('admin/categories/', admin_views.admin_categories, name='admin_categories'),

    # Payments
    path('admin/payments/', admin_views.admin_payments, name='admin_payments'),

    # Django default admin
    path('admin/site/', admin.site.urls),

    # App routes
    path('', include('canteen.urls')),

    # PWA routes
    path('', include('pwa.urls')),
]

urlpatterns += [
    re_path(r'^media/(?P<path>.*)$', serve_media, name='serve_media'),
]

if settings.DEBUG:
    from django.contrib.staticfiles.urls import staticfiles_urlpatterns
    urlpatterns += staticfiles_urlpatterns()
