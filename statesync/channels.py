"""
Realtime channel names shared by the publisher and the subscribers.

    cart:{user_id}            cart changes of one customer
    orders:{user_id}          order/delivery updates of one customer
    products                  stock changes, visible to everyone
    order:{order_id}:tracking driver position for one order
    admin:orders              every order and delivery update
    admin:inventory           low stock alerts
    delivery:assignments      assignments, visible to every driver
    driver:{driver_id}        one driver's assignments and positions
"""

PRODUCTS = 'products'
ADMIN_ORDERS = 'admin:orders'
ADMIN_INVENTORY = 'admin:inventory'
DELIVERY_ASSIGNMENTS = 'delivery:assignments'


def cart_channel(user_id) -> str:
    return f'cart:{user_id}'


def orders_channel(user_id) -> str:
    return f'orders:{user_id}'


def order_tracking_channel(order_id) -> str:
    return f'order:{order_id}:tracking'


def driver_channel(driver_id) -> str:
    return f'driver:{driver_id}'
