from django.db import models
from django.conf import settings
from django.core.validators import MinValueValidator
from django.utils import timezone
from decimal import Decimal


def normalize_category_key(name):
    """Lower-cased category name with all whitespace removed"""
    return ''.join((name or '').split()).lower()


class OrderStatus(models.TextChoices):
    PREPARING = 'Preparing', 'Preparing'
    READY = 'Ready', 'Ready'
    DELIVERED = 'Delivered', 'Delivered'


class Category(models.Model):
    """Menu category shown in the mobile app"""
    name = models.CharField(max_length=100)
    external_id = models.CharField(max_length=128, blank=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['name']
        verbose_name_plural = 'categories'

    def __str__(self):
        return self.name

    @property
    def key(self):
        return normalize_category_key(self.name)


class Item(models.Model):
    """Food item sold in the canteen"""
    DEFAULT_STATUS_CHOICES = [
        (OrderStatus.PREPARING, 'Preparing'),
        (OrderStatus.READY, 'Ready'),
    ]

    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0'))])
    category = models.ForeignKey(Category, on_delete=models.CASCADE, related_name='items')
    category_name = models.CharField(max_length=100, blank=True, help_text="Copy of the category name, read by the mobile app")
    image_url = models.CharField(max_length=500, blank=True)
    image = models.ImageField(upload_to='items/', blank=True, null=True)
    quantity = models.IntegerField(default=1, validators=[MinValueValidator(0)], help_text="Units in stock")
    default_order_status = models.CharField(max_length=20, choices=DEFAULT_STATUS_CHOICES, default=OrderStatus.PREPARING)
    is_available = models.BooleanField(default=True)
    external_id = models.CharField(max_length=128, blank=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['category_name', 'name']
        indexes = [
            models.Index(fields=['quantity'], name='canteen_item_qty_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.category_name})"

    def save(self, *args, **kwargs):
        """Keep the denormalised category name and availability in step"""
        if self.category_id:
            self.category_name = self.category.name
        self.is_available = self.quantity > 0
        super().save(*args, **kwargs)

    @property
    def availability(self):
        """Label for the stock badge"""
        threshold = getattr(settings, 'CANTEEN_LOW_STOCK_THRESHOLD', 30)
        if self.quantity <= 0:
            return 'Sold Out'
        if self.quantity < threshold:
            return 'Few stocks'
        return 'Available'

    @property
    def display_image(self):
        if self.image:
            return self.image.url
        return self.image_url or '/placeholder.svg'


class Student(models.Model):
    """App user who places orders"""
    name = models.CharField(max_length=200, blank=True)
    email = models.EmailField(blank=True, db_index=True)
    roll_no = models.CharField(max_length=50, blank=True, db_index=True)
    external_id = models.CharField(max_length=128, blank=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.email or self.roll_no})"


class Order(models.Model):
    """Order placed from the mobile app"""
    order_number = models.PositiveIntegerField(null=True, blank=True, db_index=True, help_text="Token shown to the student")
    customer_ref = models.CharField(max_length=200, blank=True, help_text="Email or roll number of the student")
    total_amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    status = models.CharField(max_length=20, choices=OrderStatus.choices, default=OrderStatus.PREPARING)
    placed_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)
    razorpay_order_id = models.CharField(max_length=100, blank=True, db_index=True)

    # Collection time slot
    slot_label = models.CharField(max_length=100, blank=True)
    slot_start = models.CharField(max_length=20, blank=True)
    slot_end = models.CharField(max_length=20, blank=True)
    block_until = models.DateTimeField(null=True, blank=True)

    external_id = models.CharField(max_length=128, blank=True, db_index=True)

    class Meta:
        ordering = ['-placed_at']
        indexes = [
            models.Index(fields=['status'], name='canteen_ord_status_idx'),
            models.Index(fields=['placed_at'], name='canteen_ord_placed_idx'),
            models.Index(fields=['updated_at'], name='canteen_ord_updated_idx'),
        ]

    def __str__(self):
        return f"Order #{self.order_number} - {self.customer_ref} - {self.status}"

    def save(self, *args, **kwargs):
        """Assign the next token number to orders that arrive without one"""
        if self.order_number is None:
            last = Order.objects.aggregate(models.Max('order_number'))['order_number__max']
            self.order_number = (last or 0) + 1
        super().save(*args, **kwargs)

    @property
    def items_summary(self):
        return ', '.join(f"{line.name} (x{line.qty})" for line in self.order_items.all())

    @property
    def is_delivered(self):
        return self.status == OrderStatus.DELIVERED


class OrderItem(models.Model):
    """Line of an order, snapshotted at purchase time"""
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='order_items')
    item = models.ForeignKey(Item, on_delete=models.SET_NULL, null=True, blank=True, related_name='order_items')
    category = models.ForeignKey(Category, on_delete=models.SET_NULL, null=True, blank=True, related_name='order_items')
    name = models.CharField(max_length=200, blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    qty = models.IntegerField(default=0, validators=[MinValueValidator(0)])

    class Meta:
        ordering = ['id']

    def __str__(self):
        return f"{self.qty}x {self.name} in Order #{self.order.order_number}"

    @property
    def subtotal(self):
        return self.price * self.qty


class Payment(models.Model):
    """Razorpay payment record written by the mobile app"""
    amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    method = models.CharField(max_length=50, blank=True)
    status = models.CharField(max_length=50, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    customer_ref = models.CharField(max_length=200, blank=True)
    razorpay_order_id = models.CharField(max_length=100, blank=True, db_index=True)
    razorpay_payment_id = models.CharField(max_length=100, blank=True)
    verified = models.BooleanField(default=False)
    external_id = models.CharField(max_length=128, blank=True, db_index=True)

    class Meta:
        ordering = ['-paid_at']

    def __str__(self):
        return f"{self.razorpay_payment_id or 'payment'} - ₹{self.amount}"


class PushSubscription(models.Model):
    """Browser push subscription of a staff device"""
    user = models.ForeignKey('auth.User', on_delete=models.CASCADE, null=True, blank=True, related_name='push_subscriptions')
    endpoint = models.URLField(max_length=500, unique=True)
    keys = models.JSONField(default=dict)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.endpoint[:60]
