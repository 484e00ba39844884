import json
import logging

from django.shortcuts import redirect
from django.contrib.auth.decorators import login_required, user_passes_test
from django.views.decorators.http import require_http_methods
from django.http import JsonResponse
from django.conf import settings

from .admin_views import is_staff_user
from .models import PushSubscription
from .push_utils import send_push_notification_to_all

logger = logging.getLogger(__name__)


def home(request):
    """The dashboard is the only page; send everyone through the gate"""
    return redirect('admin_dashboard')


def _json_body(request):
    try:
        return json.loads(request.body or b'{}'), None
    except ValueError:
        return None, JsonResponse({'error': 'Invalid JSON'}, status=400)


# ============================================
# Push notifications
# ============================================

@login_required
@user_passes_test(is_staff_user, login_url='admin_login')
@require_http_methods(["POST"])
def push_subscribe(request):
    """Store a browser push subscription for the signed-in staff member"""
    data, error = _json_body(request)
    if error:
        return error

    endpoint = data.get('endpoint', '')
    keys = data.get('keys') or {}
    if not endpoint or not keys.get('p256dh') or not keys.get('auth'):
        return JsonResponse({'error': 'endpoint and keys are required'}, status=400)

    subscription, created = PushSubscription.objects.update_or_create(
        endpoint=endpoint,
        defaults={'keys': keys, 'user': request.user},
    )
    return JsonResponse({'success': True, 'created': created, 'id': subscription.id})


@login_required
@user_passes_test(is_staff_user, login_url='admin_login')
@require_http_methods(["POST"])
def push_unsubscribe(request):
    data, error = _json_body(request)
    if error:
        return error

    deleted, _ = PushSubscription.objects.filter(endpoint=data.get('endpoint', '')).delete()
    return JsonResponse({'success': True, 'deleted': deleted})


@require_http_methods(["GET"])
def get_vapid_public_key(request):
    public_key = getattr(settings, 'VAPID_PUBLIC_KEY', '')
    if not public_key:
        return JsonResponse({'error': 'VAPID keys not configured'}, status=503)
    return JsonResponse({'publicKey': public_key})


@login_required
@user_passes_test(is_staff_user, login_url='admin_login')
@require_http_methods(["POST"])
def send_push_notification(request):
    """Send a test notification to every subscribed device"""
    result = send_push_notification_to_all(
        title='Canteen Orders',
        body='Test notification from the canteen dashboard',
        url='/admin/dashboard/',
    )
    logger.info("Test push sent: %s ok, %s failed", result['success_count'], result['error_count'])
    return JsonResponse(result)
