from .accounts import RoleType, User, SessionToken, ROLE_ADMIN, ROLE_MANAGER, ROLE_EMPLOYEE, ROLE_CUSTOMER, STAFF_ROLE_IDS
from .catalog import Brand, Category, ConditionItem, Product, ProductImage
from .vehicles import Car, CarModel, ProductYear, ProductCarCompatibility
from .supply import Supplier, Supply, SupplyDetail
from .sales import Sale, SaleDetail, Courier, DeliveryStatus, Delivery, DeliveryHistory
from .locations import Region, Province, Municipality, Barangay, ApprovedAddress, Address
from .cart import UserCart

__all__ = [
    'RoleType', 'User', 'SessionToken',
    'ROLE_ADMIN', 'ROLE_MANAGER', 'ROLE_EMPLOYEE', 'ROLE_CUSTOMER', 'STAFF_ROLE_IDS',
    'Brand', 'Category', 'ConditionItem', 'Product', 'ProductImage',
    'Car', 'CarModel', 'ProductYear', 'ProductCarCompatibility',
    'Supplier', 'Supply', 'SupplyDetail',
    'Sale', 'SaleDetail', 'Courier', 'DeliveryStatus', 'Delivery', 'DeliveryHistory',
    'Region', 'Province', 'Municipality', 'Barangay', 'ApprovedAddress', 'Address',
    'UserCart',
]
