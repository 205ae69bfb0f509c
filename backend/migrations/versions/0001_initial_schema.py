"""Initial schema: counters, products, sales, debts, gahans

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 12:00:00.000000
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "counters",
        sa.Column("name", sa.String(length=64), primary_key=True),
        sa.Column("value", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("category", sa.String(length=64), nullable=False),
        sa.Column("type", sa.String(length=16), nullable=False, server_default="standard"),
        sa.Column("stock", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("weight", sa.Numeric(12, 3), nullable=False, server_default="0"),
        sa.Column("purity", sa.Numeric(5, 2), nullable=True),
        sa.Column("price_per_gram", sa.Numeric(12, 2), nullable=True),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.CheckConstraint("stock >= 0", name="ck_products_stock_nonnegative"),
        sa.CheckConstraint("weight >= 0", name="ck_products_weight_nonnegative"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_products_active_name", "products", ["is_active", "name"], unique=False)

    op.create_table(
        "sales",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("invoice_number", sa.Integer(), nullable=False),
        sa.Column("customer_name", sa.String(length=255), nullable=False),
        sa.Column("customer_address", sa.String(length=512), nullable=False, server_default=""),
        sa.Column("customer_mobile", sa.String(length=32), nullable=False),
        sa.Column("subtotal", sa.Numeric(14, 2), nullable=False),
        sa.Column("total_making_charges", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("discount", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("total_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("advance_payment", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("balance_due", sa.Numeric(14, 2), nullable=False),
        sa.Column("old_gold_weight", sa.Numeric(12, 3), nullable=False, server_default="0"),
        sa.Column("created_by_user_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.UniqueConstraint("invoice_number"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_sales_created_at", "sales", ["created_at"], unique=False)
    op.create_index("ix_sales_customer_mobile", "sales", ["customer_mobile"], unique=False)

    op.create_table(
        "sale_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("sale_id", sa.Integer(), nullable=False),
        sa.Column("line_number", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("selling_weight", sa.Numeric(12, 3), nullable=False),
        sa.Column("selling_price_per_gram", sa.Numeric(12, 2), nullable=False),
        sa.Column("selling_purity", sa.String(length=16), nullable=True),
        sa.Column("making_charge_per_gram", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.ForeignKeyConstraint(["sale_id"], ["sales.id"]),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.UniqueConstraint("sale_id", "line_number", name="uq_sale_items_sale_line"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_sale_items_sale_id", "sale_items", ["sale_id"], unique=False)
    op.create_index("ix_sale_items_product_id", "sale_items", ["product_id"], unique=False)

    op.create_table(
        "debts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("customer_name", sa.String(length=255), nullable=False),
        sa.Column("customer_mobile", sa.String(length=32), nullable=False),
        sa.Column("sale_id", sa.Integer(), nullable=True),
        sa.Column("initial_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("amount_paid", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("amount_remaining", sa.Numeric(14, 2), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="Pending"),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_payment_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by_user_id", sa.Integer(), nullable=True),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.ForeignKeyConstraint(["sale_id"], ["sales.id"]),
        sa.UniqueConstraint("sale_id"),
        sa.CheckConstraint("initial_amount > 0", name="ck_debts_initial_positive"),
        sa.CheckConstraint("amount_paid >= 0", name="ck_debts_paid_nonnegative"),
        sa.CheckConstraint("amount_remaining >= 0", name="ck_debts_remaining_nonnegative"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_debts_customer_mobile", "debts", ["customer_mobile"], unique=False)
    op.create_index("ix_debts_status_created", "debts", ["status", "created_at"], unique=False)

    op.create_table(
        "debt_payments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("debt_id", sa.Integer(), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("method", sa.String(length=32), nullable=False, server_default="Cash"),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("recorded_by_user_id", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["debt_id"], ["debts.id"]),
        sa.CheckConstraint("amount > 0", name="ck_debt_payments_amount_positive"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_debt_payments_debt_id", "debt_payments", ["debt_id"], unique=False)

    op.create_table(
        "gahans",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("record_number", sa.Integer(), nullable=False),
        sa.Column("customer_name", sa.String(length=255), nullable=False),
        sa.Column("customer_address", sa.String(length=512), nullable=True),
        sa.Column("customer_mobile", sa.String(length=32), nullable=True),
        sa.Column("item_name", sa.String(length=255), nullable=False),
        sa.Column("item_weight", sa.Numeric(12, 3), nullable=False),
        sa.Column("item_purity", sa.String(length=16), nullable=True),
        sa.Column("amount_given", sa.Numeric(14, 2), nullable=False),
        sa.Column("interest_rate", sa.Numeric(6, 2), nullable=False),
        sa.Column("pawn_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="Active"),
        sa.Column("release_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by_user_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.UniqueConstraint("record_number"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_gahans_status_due", "gahans", ["status", "due_date"], unique=False)


def downgrade():
    op.drop_index("ix_gahans_status_due", table_name="gahans")
    op.drop_table("gahans")
    op.drop_index("ix_debt_payments_debt_id", table_name="debt_payments")
    op.drop_table("debt_payments")
    op.drop_index("ix_debts_status_created", table_name="debts")
    op.drop_index("ix_debts_customer_mobile", table_name="debts")
    op.drop_table("debts")
    op.drop_index("ix_sale_items_product_id", table_name="sale_items")
    op.drop_index("ix_sale_items_sale_id", table_name="sale_items")
    op.drop_table("sale_items")
    op.drop_index("ix_sales_customer_mobile", table_name="sales")
    op.drop_index("ix_sales_created_at", table_name="sales")
    op.drop_table("sales")
    op.drop_index("ix_products_active_name", table_name="products")
    op.drop_table("products")
    op.drop_table("counters")
