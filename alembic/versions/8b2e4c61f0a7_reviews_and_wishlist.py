"""reviews and wishlist

Revision ID: 8b2e4c61f0a7
Revises: 3f9c1a7d2b10
Create Date: 2026-10-19 15:40:07.218734

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
import sqlmodel

# revision identifiers, used by Alembic.
revision: str = '8b2e4c61f0a7'
down_revision: Union[str, Sequence[str], None] = '3f9c1a7d2b10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

String = sqlmodel.sql.sqltypes.AutoString


def upgrade():
    op.add_column("product", sa.Column("rating", sa.Float(), nullable=False, server_default="0"))
    op.add_column("product", sa.Column("review_count", sa.Integer(), nullable=False, server_default="0"))

    op.create_table(
        "review",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("product.id"), nullable=False),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("title", String(), nullable=True),
        sa.Column("comment", String(), nullable=False),
        sa.Column("verified", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("product_id", "customer_id", name="uq_review_product_customer"),
    )
    op.create_index("ix_review_product_id", "review", ["product_id"])
    op.create_index("ix_review_customer_id", "review", ["customer_id"])

    op.create_table(
        "wishlistitem",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("product.id", ondelete="CASCADE"), nullable=False),
        sa.Column("added_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("customer_id", "product_id", name="uq_wishlist_customer_product"),
    )
    op.create_index("ix_wishlistitem_customer_id", "wishlistitem", ["customer_id"])


def downgrade():
    op.drop_table("wishlistitem")
    op.drop_table("review")
    op.drop_column("product", "review_count")
    op.drop_column("product", "rating")
