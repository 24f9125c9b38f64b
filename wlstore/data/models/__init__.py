#import all models so SQLAlchemy registers them in Base.metadata

from wlstore.data.models.product import ProductModel
from wlstore.data.models.user import UserModel
from wlstore.data.models.address import AddressModel
from wlstore.data.models.order import OrderModel
from wlstore.data.models.order_item import OrderItemModel

__all__ = ["ProductModel", "UserModel", "AddressModel", "OrderModel", "OrderItemModel"]
