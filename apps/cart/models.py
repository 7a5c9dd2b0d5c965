# ==========================================
# apps/cart/models.py
# ==========================================

from django.db import models
from django.core.validators import MinValueValidator
from django.utils import timezone
from decimal import Decimal
import uuid

from statesync.timestamps import EPOCH_DATETIME


class Cart(models.Model):
    """
    Per-user cart header.

    ``updated_at`` is the cart entity's timestamp. It advances on every
    mutation, removals and clears included, so it never moves backwards
    even when the last line disappears.
    """

    user = models.OneToOneField(
        'accounts.User',
        on_delete=models.CASCADE,
        primary_key=True,
        related_name='cart',
    )
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=EPOCH_DATETIME)

    class Meta:
        db_table = 'carts'

    def __str__(self):
        return f"Cart of {self.user}"


class CartItem(models.Model):
    """One product line in a cart; at most one line per product."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    cart = models.ForeignKey(Cart, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey('inventory.Product', on_delete=models.CASCADE, related_name='cart_items')
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))],
    )
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'cart_items'
        constraints = [
            models.UniqueConstraint(fields=['cart', 'product'], name='unique_cart_product'),
        ]
        indexes = [
            models.Index(fields=['cart', 'updated_at'], name='cart_items_cart_upd_idx'),
        ]
        ordering = ['-updated_at']

    def __str__(self):
        return f"{self.quantity} x {self.product_id}"

    @property
    def total_price(self):
        return self.price * self.quantity
