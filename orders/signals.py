from django.dispatch import Signal

# Sent after every validated status change: order, old, new, by_user
order_status_changed = Signal()

# Sent once a UPI order's payment is confirmed: order
order_paid = Signal()
