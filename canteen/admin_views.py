"""
Admin views for the canteen dashboard
"""
import logging
from datetime import date

from django.shortcuts import render, redirect, get_object_or_404
from django.contrib import messages, auth
from django.contrib.auth import login, logout
from django.contrib.auth.decorators import login_required, user_passes_test
from django.views.decorators.csrf import csrf_protect
from django.views.decorators.http import require_http_methods
from django.http import HttpResponse, JsonResponse
from django.utils import timezone
from django.utils.dateparse import parse_datetime
from django.utils.http import url_has_allowed_host_and_scheme
from decimal import Decimal

from . import catalog, reporting, status as order_status
from .exports import XLSX_CONTENT_TYPE, export_day
from .models import Category, Item, Order, OrderStatus, Payment, Student
from .reconciliation import reconcile
from .security import (
    check_rate_limit, clear_failed_attempts, get_lockout_time_remaining, record_failed_attempt,
    sanitize_string, validate_decimal, validate_file_upload, validate_integer,
)

logger = logging.getLogger(__name__)


def is_staff_user(user):
    """Check if user is staff"""
    return user.is_authenticated and (user.is_staff or user.is_superuser)


# ============================================
# Authentication gate
# ============================================

@csrf_protect
@require_http_methods(["GET", "POST"])
def admin_login(request):
    """Admin login, only staff accounts get through"""
    if request.user.is_authenticated:
        if is_staff_user(request.user):
            return redirect('admin_dashboard')
        return redirect('access_denied')

    if not check_rate_limit(request):
        remaining = get_lockout_time_remaining(request)
        minutes = remaining // 60
        seconds = remaining % 60
        messages.error(
            request,
            f'Too many failed login attempts. Please try again in {minutes}m {seconds}s.'
        )
        return render(request, 'canteen/login.html', {'lockout': True, 'remaining': remaining})

    if request.method == 'POST':
        username = sanitize_string(request.POST.get('username', ''), max_length=150)
        password = request.POST.get('password', '')
        remember_me = request.POST.get('remember_me') == 'on'

        if not username or not password:
            messages.error(request, 'Please provide both username and password.')
            record_failed_attempt(request)
            return render(request, 'canteen/login.html')

        user = auth.authenticate(request, username=username, password=password)

        if user is None:
            messages.error(request, 'Invalid username or password.')
            record_failed_attempt(request)
        elif not is_staff_user(user):
            messages.error(request, 'You do not have admin privileges to access this dashboard.')
            record_failed_attempt(request)
            logger.warning("Non-admin account %s refused at the admin login", username)
        else:
            clear_failed_attempts(request)
            login(request, user)

            if remember_me:
                request.session.set_expiry(1209600)  # 2 weeks
            else:
                request.session.set_expiry(3600)  # 1 hour

            messages.success(request, f'Welcome, {user.email or user.username}!')
            return redirect('admin_dashboard')

    return render(request, 'canteen/login.html')


@login_required
def access_denied(request):
    """Signed in, but not an admin"""
    if is_staff_user(request.user):
        return redirect('admin_dashboard')
    return render(request, 'canteen/access_denied.html', status=403)


@require_http_methods(["GET", "POST"])
def admin_logout(request):
    """Sign out and go back to the login form"""
    logout(request)
    messages.success(request, 'You have been successfully logged out.')
    return redirect('admin_login')


# ============================================
# Orders
# ============================================

def _serialize_order(order):
    return {
        'id': order.pk,
        'order_number': order.order_number,
        'customer': order.customer_ref,
        'items': [
            {'name': line.name, 'price': str(line.price), 'qty': line.qty, 'category_id': line.category_id}
            for line in order.order_items.all()
        ],
        'total_amount': str(order.total_amount),
        'status': order.status,
        'next_status': order_status.next_status(order.status),
        'placed_at': order.placed_at.isoformat(),
        'updated_at': order.updated_at.isoformat() if order.updated_at else None,
        'collection_slot': order.slot_label,
    }


def _next_url(request):
    """Posted 'next' URL when it stays on this site, else the dashboard"""
    next_url = request.POST.get('next', '')
    if next_url and url_has_allowed_host_and_scheme(next_url, allowed_hosts={request.get_host()}):
        return next_url
    return 'admin_dashboard'


@login_required
@user_passes_test(is_staff_user, login_url='admin_login')
def admin_dashboard(request):
    """Orders tab with earnings and status counters"""
    search = request.GET.get('q', '').strip()
    months = reporting.month_options()
    selected_month = reporting.parse_month(request.GET.get('month', '')) or months[0][0]
    selected_category = request.GET.get('category', 'all') or 'all'

    all_orders = list(Order.objects.prefetch_related('order_items').order_by('-placed_at'))
    orders = reporting.filter_orders(all_orders, search=search, month=selected_month, category=selected_category)

    earnings = reporting.monthly_earnings(all_orders, [selected_month])
    counts = reporting.status_counts(all_orders)

    rows = [(order, order_status.next_status(order.status)) for order in orders]

    context = {
        'rows': rows,
        'orders': orders,
        'categories': Category.objects.all(),
        'months': months,
        'selected_month': selected_month,
        'selected_category': selected_category,
        'search': search,
        'month_data': earnings[selected_month],
        'counts': counts,
        'today': timezone.localdate(),
    }
    return render(request, 'canteen/dashboard.html', context)


@login_required
@user_passes_test(is_staff_user, login_url='admin_login')
@csrf_protect
@require_http_methods(["POST"])
def admin_update_order_status(request, order_id):
    """Move an order to the posted status"""
    order = get_object_or_404(Order, id=order_id)
    new_status = request.POST.get('status', '')

    try:
        changed = order_status.transition(order, new_status)
    except (order_status.UnknownOrderStatus, order_status.InvalidStatusTransition) as e:
        messages.error(request, f'Failed to update order status. {e}')
    else:
        if changed:
            messages.success(request, f'Order status updated to: {order.status}')
        else:
            messages.info(request, f'Order #{order.order_number} is already {order.status}.')

    return redirect(_next_url(request))


@login_required
@user_passes_test(is_staff_user, login_url='admin_login')
@csrf_protect
@require_http_methods(["POST"])
def admin_mark_delivered(request, order_id):
    order = get_object_or_404(Order, id=order_id)

    if order.is_delivered:
        messages.error(request, f'Order #{order.order_number} has already been delivered.')
    else:
        order_status.transition(order, OrderStatus.DELIVERED)
        messages.success(request, f'Order #{order.order_number} marked as delivered.')

    return redirect(_next_url(request))


@login_required
@user_passes_test(is_staff_user, login_url='admin_login')
def admin_orders_feed(request):
    """JSON change feed polled by the dashboard"""
    orders = Order.objects.prefetch_related('order_items').order_by('-placed_at')

    since_param = request.GET.get('since', '').strip()
    if since_param:
        try:
            since = parse_datetime(since_param.replace(' ', '+'))
        except ValueError:
            since = None
        if since is None:
            return JsonResponse({'error': f'Invalid "since" timestamp: {since_param}'}, status=400)
        if timezone.is_naive(since):
            since = timezone.make_aware(since)
        orders = orders.filter(updated_at__gt=since)

    return JsonResponse({
        'orders': [_serialize_order(order) for order in orders],
        'counts': reporting.status_counts(Order.objects.only('status')),
        'server_time': timezone.now().isoformat(),
    })


@login_required
@user_passes_test(is_staff_user, login_url='admin_login')
def admin_export_orders(request):
    """Download a day's orders as an Excel file"""
    day_param = request.GET.get('date', '').strip()
    if day_param:
        try:
            day = date.fromisoformat(day_param)
        except ValueError:
            messages.error(request, 'Invalid date. Use the YYYY-MM-DD format.')
            return redirect('admin_dashboard')
    else:
        day = timezone.localdate()

    try:
        filename, content, count = export_day(day)
    except Exception:
        logger.exception("Excel export failed for %s", day)
        messages.error(request, 'Error generating Excel file. Please try again.')
        return redirect('admin_dashboard')

    response = HttpResponse(content, content_type=XLSX_CONTENT_TYPE)
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    response['X-Order-Count'] = str(count)
    return response


# ============================================
# Products and categories
# ============================================

def _read_product_form(request):
    """
    Validate the product form.

    Returns:
        tuple: (cleaned data dict, list of error messages)
    """
    name = sanitize_string(request.POST.get('name', ''), max_length=200)
    description = sanitize_string(request.POST.get('description', ''), max_length=2000)
    price = request.POST.get('price', '').strip()
    category_id = request.POST.get('category', '').strip()
    image_url = sanitize_string(request.POST.get('image_url', ''), max_length=500)
    quantity = request.POST.get('quantity', '1').strip()
    default_status = request.POST.get('default_order_status', OrderStatus.PREPARING).strip()
    image = request.FILES.get('image')

    errors = []
    if not name:
        errors.append('Product name is required.')

    price_valid, price_decimal, price_error = validate_decimal(price, min_value=Decimal('0'))
    if not price_valid:
        errors.append(f'Price: {price_error}')

    qty_valid, qty_int, qty_error = validate_integer(quantity, min_value=0, max_value=100000)
    if not qty_valid:
        errors.append(f'Quantity: {qty_error}')

    category = Category.objects.filter(pk=category_id).first() if category_id.isdigit() else None
    if category is None:
        errors.append('Please select a valid category.')

    if default_status not in (OrderStatus.PREPARING, OrderStatus.READY):
        errors.append('Default order status must be Preparing or Ready.')

    if image:
        img_valid, img_error = validate_file_upload(image)
        if not img_valid:
            errors.append(f'Image: {img_error}')

    data = {
        'name': name,
        'description': description,
        'price': price_decimal,
        'category': category,
        'image_url': image_url,
        'quantity': qty_int,
        'default_order_status': default_status,
        'image': image,
    }
    return data, errors


@login_required
@user_passes_test(is_staff_user, login_url='admin_login')
def admin_products(request):
    """Product table with search and category filter"""
    search = request.GET.get('q', '').strip()
    selected_category = request.GET.get('category', 'all') or 'all'

    products = catalog.filter_products(
        Item.objects.select_related('category').order_by('name'),
        search=search,
        category=selected_category,
    )

    context = {
        'products': products,
        'categories': Category.objects.all(),
        'search': search,
        'selected_category': selected_category,
    }
    return render(request, 'canteen/products.html', context)


@login_required
@user_passes_test(is_staff_user, login_url='admin_login')
@csrf_protect
@require_http_methods(["GET", "POST"])
def admin_add_product(request):
    """Add a product to the menu"""
    categories = Category.objects.all()

    if request.method == 'POST':
        data, errors = _read_product_form(request)
        if errors:
            for error in errors:
                messages.error(request, error)
        else:
            item = Item(
                name=data['name'],
                description=data['description'],
                price=data['price'],
                category=data['category'],
                image_url=data['image_url'] or catalog.placeholder_image_url(data['name']),
                quantity=data['quantity'],
                default_order_status=data['default_order_status'],
            )
            if data['image']:
                item.image = data['image']
            item.save()
            if item.image:
                Item.objects.filter(pk=item.pk).update(image_url=item.image.url)

            logger.info("Product %r added in %r", item.name, item.category_name)
            messages.success(request, 'Product successfully added!')
            return redirect('admin_products')

        return render(request, 'canteen/product_form.html', {'categories': categories, 'form': request.POST})

    return render(request, 'canteen/product_form.html', {'categories': categories, 'form': {}})


@login_required
@user_passes_test(is_staff_user, login_url='admin_login')
@csrf_protect
@require_http_methods(["GET", "POST"])
def admin_edit_product(request, item_id):
    """Edit an existing product"""
    item = get_object_or_404(Item, id=item_id)
    categories = Category.objects.all()

    if request.method == 'POST':
        data, errors = _read_product_form(request)
        if errors:
            for error in errors:
                messages.error(request, error)
        else:
            item.name = data['name']
            item.description = data['description']
            item.price = data['price']
            item.category = data['category']
            item.quantity = data['quantity']
            item.default_order_status = data['default_order_status']
            if data['image']:
                item.image = data['image']
            elif data['image_url']:
                item.image_url = data['image_url']
            item.save()
            if data['image']:
                Item.objects.filter(pk=item.pk).update(image_url=item.image.url)

            messages.success(request, 'Product successfully updated!')
            return redirect('admin_products')

        return render(request, 'canteen/product_form.html', {'item': item, 'categories': categories, 'form': request.POST})

    form = {
        'name': item.name,
        'description': item.description,
        'price': item.price,
        'category': str(item.category_id),
        'image_url': item.image_url,
        'quantity': item.quantity,
        'default_order_status': item.default_order_status,
    }
    return render(request, 'canteen/product_form.html', {'item': item, 'categories': categories, 'form': form})


@login_required
@user_passes_test(is_staff_user, login_url='admin_login')
@csrf_protect
@require_http_methods(["POST"])
def admin_delete_product(request, item_id):
    item = get_object_or_404(Item, id=item_id)
    item.delete()
    messages.success(request, 'Product successfully removed!')
    return redirect('admin_products')


@login_required
@user_passes_test(is_staff_user, login_url='admin_login')
@csrf_protect
@require_http_methods(["GET", "POST"])
def admin_categories(request):
    """Add, rename and delete categories"""
    if request.method == 'POST':
        action = request.POST.get('action')
        name = sanitize_string(request.POST.get('name', ''), max_length=100)
        category_id = request.POST.get('category_id', '').strip()

        if action in ('update', 'delete') and not category_id.isdigit():
            messages.error(request, 'Please select a valid category.')

        elif action == 'add':
            if not name:
                messages.error(request, 'Category name cannot be empty.')
            else:
                Category.objects.create(name=name)
                messages.success(request, 'Category added successfully!')

        elif action == 'update':
            category = get_object_or_404(Category, id=category_id)
            if not name:
                messages.error(request, 'Category name cannot be empty.')
            else:
                catalog.rename_category(category, name)
                messages.success(request, 'Category updated successfully!')

        elif action == 'delete':
            category = get_object_or_404(Category, id=category_id)
            removed = catalog.delete_category(category)
            messages.success(request, f'Category and {removed} associated product(s) deleted successfully!')

        else:
            messages.error(request, 'Unknown action.')

        return redirect('admin_categories')

    context = {
        'categories': Category.objects.all(),
    }
    return render(request, 'canteen/categories.html', context)


# ============================================
# Payments
# ============================================

@login_required
@user_passes_test(is_staff_user, login_url='admin_login')
def admin_payments(request):
    """Payments cross-referenced with orders and students"""
    search = request.GET.get('q', '').strip()

    rows = reconcile(
        Payment.objects.all().order_by('-paid_at'),
        Order.objects.all(),
        Student.objects.all(),
        search=search,
    )

    context = {
        'rows': rows,
        'search': search,
    }
    return render(request, 'canteen/payments.html', context)
