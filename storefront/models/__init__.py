from storefront.models.user import User
from storefront.models.product import Product
from storefront.models.coupon import Coupon
from storefront.models.cart import Cart, CartItem
from storefront.models.order_item import OrderItem
from storefront.models.order import Order
from storefront.models.order_status_history import OrderStatusHistory
from storefront.models.payment import Payment
from storefront.models.email import EmailLog
from storefront.models.review import Review
from storefront.models.wishlist import WishlistItem

# add ALL models here
