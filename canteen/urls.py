from django.urls import path
from . import views

app_name = 'canteen'

urlpatterns = [
    path('', views.home, name='home'),

    # Push notification endpoints
    path('push/subscribe/', views.push_subscribe, name='push_subscribe'),
    path('push/unsubscribe/', views.push_unsubscribe, name='push_unsubscribe'),
    path('push/vapid-key/', views.get_vapid_public_key, name='get_vapid_public_key'),
    path('push/send-test/', views.send_push_notification, name='send_push_notification'),
]
