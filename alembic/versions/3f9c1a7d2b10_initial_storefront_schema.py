"""initial storefront schema

Revision ID: 3f9c1a7d2b10
Revises:
Create Date: 2026-10-19 09:12:41.503118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
import sqlmodel

# revision identifiers, used by Alembic.
revision: str = '3f9c1a7d2b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

String = sqlmodel.sql.sqltypes.AutoString


def upgrade():
    op.create_table(
        "user",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("first_name", String(), nullable=False),
        sa.Column("last_name", String(), nullable=False),
        sa.Column("email", String(), nullable=False),
        sa.Column("phone", String(), nullable=True),
        sa.Column("role", String(), nullable=False),
        sa.Column("can_login", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_user_email", "user", ["email"], unique=True)

    op.create_table(
        "product",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", String(), nullable=False),
        sa.Column("slug", String(), nullable=False),
        sa.Column("description", String(), nullable=False),
        sa.Column("category", String(), nullable=False),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("discount_price", sa.Float(), nullable=True),
        sa.Column("stock", sa.Integer(), nullable=False),
        sa.Column("sku", String(), nullable=False, unique=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("is_featured", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("stock >= 0", name="ck_product_stock_non_negative"),
    )
    op.create_index("ix_product_slug", "product", ["slug"], unique=True)
    op.create_index("ix_product_category", "product", ["category"])

    op.create_table(
        "coupon",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("code", String(), nullable=False),
        sa.Column("description", String(), nullable=True),
        sa.Column("discount_type", String(), nullable=False),
        sa.Column("discount_value", sa.Float(), nullable=False),
        sa.Column("max_discount_amount", sa.Float(), nullable=True),
        sa.Column("min_purchase_amount", sa.Float(), nullable=False),
        sa.Column("usage_limit", sa.Integer(), nullable=True),
        sa.Column("usage_count", sa.Integer(), nullable=False),
        sa.Column("usage_per_customer", sa.Integer(), nullable=False),
        sa.Column("categories", sa.JSON(), nullable=True),
        sa.Column("product_ids", sa.JSON(), nullable=True),
        sa.Column("valid_from", sa.DateTime(), nullable=False),
        sa.Column("valid_until", sa.DateTime(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_coupon_code", "coupon", ["code"], unique=True)

    op.create_table(
        "cart",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False, unique=True),
        sa.Column("coupon_code", String(), nullable=True),
        sa.Column("coupon_discount", sa.Float(), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "cartitem",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("cart_id", sa.Integer(), sa.ForeignKey("cart.id"), nullable=False),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("product.id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("added_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_cartitem_cart_id", "cartitem", ["cart_id"])

    op.create_table(
        "order",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_number", String(), nullable=True),
        sa.Column("payment_reference", String(), nullable=False),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("shipping_address", sa.JSON(), nullable=False),
        sa.Column("billing_address", sa.JSON(), nullable=False),
        sa.Column("subtotal", sa.Float(), nullable=False),
        sa.Column("tax", sa.Float(), nullable=False),
        sa.Column("shipping_cost", sa.Float(), nullable=False),
        sa.Column("discount", sa.Float(), nullable=False),
        sa.Column("total", sa.Float(), nullable=False),
        sa.Column("coupon_code", String(), nullable=True),
        sa.Column("payment_status", String(), nullable=False),
        sa.Column("order_status", String(), nullable=False),
        sa.Column("payment_method", String(), nullable=False),
        sa.Column("payment_details", sa.JSON(), nullable=True),
        sa.Column("tracking_number", String(), nullable=True),
        sa.Column("shipping_provider", String(), nullable=True),
        sa.Column("fulfillment_exception", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_order_order_number", "order", ["order_number"], unique=True)
    op.create_index("ix_order_payment_reference", "order", ["payment_reference"], unique=True)
    op.create_index("ix_order_customer_id", "order", ["customer_id"])
    op.create_index("ix_order_payment_status", "order", ["payment_status"])
    op.create_index("ix_order_order_status", "order", ["order_status"])

    op.create_table(
        "orderitem",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("order.id"), nullable=False),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("product.id"), nullable=False),
        sa.Column("product_name", String(), nullable=False),
        sa.Column("unit_price", sa.Float(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("stock_applied", sa.Boolean(), nullable=False),
    )
    op.create_index("ix_orderitem_order_id", "orderitem", ["order_id"])

    op.create_table(
        "order_status_history",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("order.id"), nullable=False),
        sa.Column("status", String(), nullable=False),
        sa.Column("note", String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("created_by", String(), nullable=False, server_default="system"),
    )
    # indexes for fast timeline queries
    op.create_index("ix_order_status_history_order_id", "order_status_history", ["order_id"])
    op.create_index("ix_order_status_history_status", "order_status_history", ["status"])

    op.create_table(
        "payment",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("order.id"), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=False),
        sa.Column("reference", String(), nullable=False),
        sa.Column("transaction_id", String(), nullable=True),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("currency", String(), nullable=False),
        sa.Column("status", String(), nullable=False),
        sa.Column("method", String(), nullable=False),
        sa.Column("channel", String(), nullable=True),
        sa.Column("card_brand", String(), nullable=True),
        sa.Column("card_last4", String(), nullable=True),
        sa.Column("paid_at", String(), nullable=True),
        sa.Column("refund_reference", String(), nullable=True),
        sa.Column("refunded_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_payment_order_id", "payment", ["order_id"])
    op.create_index("ix_payment_customer_id", "payment", ["customer_id"])
    op.create_index("ix_payment_reference", "payment", ["reference"], unique=True)
    op.create_index("ix_payment_transaction_id", "payment", ["transaction_id"])

    op.create_table(
        "emaillog",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("to_email", String(), nullable=False),
        sa.Column("subject", String(), nullable=False),
        sa.Column("html", String(), nullable=False),
        sa.Column("event", String(), nullable=False),
        sa.Column("order_id", sa.Integer(), nullable=True),
        sa.Column("status", String(), nullable=False),
        sa.Column("attempts", sa.Integer(), nullable=False),
        sa.Column("last_error", String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("sent_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_emaillog_event", "emaillog", ["event"])
    op.create_index("ix_emaillog_order_id", "emaillog", ["order_id"])
    op.create_index("ix_emaillog_status", "emaillog", ["status"])


def downgrade():
    op.drop_table("emaillog")
    op.drop_table("payment")
    op.drop_table("order_status_history")
    op.drop_table("orderitem")
    op.drop_table("order")
    op.drop_table("cartitem")
    op.drop_table("cart")
    op.drop_table("coupon")
    op.drop_table("product")
    op.drop_table("user")
