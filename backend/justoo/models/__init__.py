from .accounts import Admin, InventoryUser, Rider, Customer, SessionToken
from .catalog import Item
from .customers import CustomerAddress, DeliveryZone, CartItem
from .orders import Order, OrderItem, Payment, DocumentSequence
from .notifications import RiderNotification, CustomerNotification

__all__ = [
    'Admin', 'InventoryUser', 'Rider', 'Customer', 'SessionToken',
    'Item',
    'CustomerAddress', 'DeliveryZone', 'CartItem',
    'Order', 'OrderItem', 'Payment', 'DocumentSequence',
    'RiderNotification', 'CustomerNotification',
]
