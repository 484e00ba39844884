from django.contrib import admin
from .models import Category, Item, Student, Order, OrderItem, Payment, PushSubscription, OrderStatus


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'item_count', 'external_id', 'created_at']
    search_fields = ['name']
    readonly_fields = ['created_at']

    def item_count(self, obj):
        return obj.items.count()
    item_count.short_description = 'Products'


@admin.register(Item)
class ItemAdmin(admin.ModelAdmin):
    list_display = ['name', 'category_name', 'price', 'quantity', 'availability', 'default_order_status', 'is_available']
    list_filter = ['category', 'is_available', 'default_order_status']
    search_fields = ['name', 'description']
    list_editable = ['price', 'quantity']
    readonly_fields = ['category_name', 'is_available', 'availability', 'created_at', 'updated_at']

    fieldsets = (
        ('Basic Information', {
            'fields': ('name', 'description', 'category', 'category_name', 'image_url', 'image')
        }),
        ('Pricing & Stock', {
            'fields': ('price', 'quantity', 'availability', 'is_available', 'default_order_status')
        }),
        ('Timestamps', {
            'fields': ('external_id', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = ['name', 'email', 'roll_no', 'created_at']
    search_fields = ['name', 'email', 'roll_no']
    readonly_fields = ['created_at']


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ['subtotal']
    fields = ['name', 'item', 'category', 'price', 'qty', 'subtotal']


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'customer_ref', 'status', 'total_amount', 'slot_label', 'placed_at']
    list_filter = ['status', 'placed_at']
    search_fields = ['order_number', 'customer_ref', 'razorpay_order_id', 'order_items__name']
    readonly_fields = ['status', 'updated_at']
    inlines = [OrderItemInline]
    date_hierarchy = 'placed_at'

    fieldsets = (
        ('Order Information', {
            'fields': ('order_number', 'customer_ref', 'status', 'total_amount', 'razorpay_order_id')
        }),
        ('Collection', {
            'fields': ('slot_label', 'slot_start', 'slot_end', 'block_until')
        }),
        ('Timestamps', {
            'fields': ('placed_at', 'updated_at', 'external_id'),
            'classes': ('collapse',)
        }),
    )

    actions = ['mark_ready', 'mark_delivered']

    def mark_ready(self, request, queryset):
        updated = 0
        for order in queryset.filter(status=OrderStatus.PREPARING):
            order.status = OrderStatus.READY
            order.save()
            updated += 1
        self.message_user(request, f'{updated} order(s) marked ready.')
    mark_ready.short_description = 'Mark selected orders as ready'

    def mark_delivered(self, request, queryset):
        updated = 0
        for order in queryset.exclude(status=OrderStatus.DELIVERED):
            order.status = OrderStatus.DELIVERED
            order.save()
            updated += 1
        self.message_user(request, f'{updated} order(s) marked delivered.')
    mark_delivered.short_description = 'Mark selected orders as delivered'


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ['razorpay_payment_id', 'amount', 'method', 'status', 'customer_ref', 'verified', 'paid_at']
    list_filter = ['status', 'method', 'verified']
    search_fields = ['razorpay_payment_id', 'razorpay_order_id', 'customer_ref']
    date_hierarchy = 'paid_at'


@admin.register(PushSubscription)
class PushSubscriptionAdmin(admin.ModelAdmin):
    list_display = ['endpoint', 'user', 'created_at']
    readonly_fields = ['created_at']
