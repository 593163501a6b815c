from .auth import User, Role, Profile, Permission, RolePermission, SessionToken, PasswordResetToken
from .catalog import Product, Service
from .bookings import Appointment, AppointmentStatus
from .orders import Order, OrderLine, PaymentStatus, ShippingStatus
from .audit import AuditEntry

__all__ = [
    'User', 'Role', 'Profile', 'Permission', 'RolePermission',
    'SessionToken', 'PasswordResetToken',
    'Product', 'Service',
    'Appointment', 'AppointmentStatus',
    'Order', 'OrderLine', 'PaymentStatus', 'ShippingStatus',
    'AuditEntry',
]
