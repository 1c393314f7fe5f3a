"""initial shop schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the complete schema from scratch:
- accounts: role_type, user_employee, session_tokens
- catalog: brand, category, condition_item, product, product_image
- vehicles: cars, car_models, product_years, product_car_compatibility
- supply: supplier, supply, supply_details
- locations: region, province, municipality, barangay, approved_address, address
- orders: sale, sale_details, courier, delivery_statuses, delivery, delivery_history
- cart: user_cart
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # Accounts
    # ============================================================================
    op.create_table(
        'role_type',
        sa.Column('role_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=64), nullable=False),
        sa.PrimaryKeyConstraint('role_id'),
        sa.UniqueConstraint('title'),
    )

    op.create_table(
        'user_employee',
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('user_name', sa.String(length=255), nullable=False),
        sa.Column('username', sa.String(length=150), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('mobile_phone', sa.String(length=20), nullable=True),
        sa.Column('password', sa.String(length=255), nullable=False),
        sa.Column('role_id', sa.Integer(), nullable=False),
        sa.Column('is_superuser', sa.Boolean(), nullable=False),
        sa.Column('contact_type', sa.String(length=16), nullable=True),
        sa.Column('profile_picture', sa.String(length=255), nullable=True),
        sa.Column('profile_picture_bytes', sa.LargeBinary(), nullable=True),
        sa.Column('profile_picture_mime', sa.String(length=64), nullable=True),
        sa.Column('profile_picture_updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['role_id'], ['role_type.role_id']),
        sa.PrimaryKeyConstraint('user_id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_user_employee_username', 'user_employee', ['username'], unique=True)
    op.create_index('ix_user_employee_role_id', 'user_employee', ['role_id'])

    op.create_table(
        'session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('last_used_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(length=255), nullable=True),
        sa.Column('user_agent', sa.String(length=255), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['user_employee.user_id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_session_tokens_token_hash', 'session_tokens', ['token_hash'], unique=True)
    op.create_index('ix_session_tokens_user_id', 'session_tokens', ['user_id'])
    op.create_index('ix_session_tokens_expires_at', 'session_tokens', ['expires_at'])
    op.create_index('ix_session_tokens_is_revoked', 'session_tokens', ['is_revoked'])
    op.create_index('ix_session_tokens_user_active', 'session_tokens', ['user_id', 'is_revoked'])

    # ============================================================================
    # Catalog
    # ============================================================================
    for table, key in (('brand', 'brand_id'), ('category', 'category_id'), ('condition_item', 'condition_id')):
        op.create_table(
            table,
            sa.Column(key, sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=255), nullable=False),
            sa.PrimaryKeyConstraint(key),
            sa.UniqueConstraint('name'),
        )

    op.create_table(
        'product',
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('purchase_price', sa.Integer(), nullable=True),
        sa.Column('selling_price', sa.Integer(), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('weight', sa.Numeric(precision=10, scale=3), nullable=True),
        sa.Column('brand_id', sa.Integer(), nullable=True),
        sa.Column('category_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['brand_id'], ['brand.brand_id']),
        sa.ForeignKeyConstraint(['category_id'], ['category.category_id']),
        sa.PrimaryKeyConstraint('product_id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_product_name', 'product', ['name'])
    op.create_index('ix_product_brand_id', 'product', ['brand_id'])
    op.create_index('ix_product_category_id', 'product', ['category_id'])
    op.create_index('ix_product_brand_category_name', 'product', ['brand_id', 'category_id', 'name'])

    op.create_table(
        'product_image',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('image', sa.String(length=255), nullable=True),
        sa.Column('image_bytes', sa.LargeBinary(), nullable=True),
        sa.Column('image_mime', sa.String(length=64), nullable=True),
        sa.Column('image_updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['product_id'], ['product.product_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_product_image_product_id', 'product_image', ['product_id'])

    # ============================================================================
    # Vehicles: car_models keeps the display name plus its base/variant split
    # ============================================================================
    op.create_table(
        'cars',
        sa.Column('car_id', sa.Integer(), nullable=False),
        sa.Column('make', sa.String(length=100), nullable=False),
        sa.PrimaryKeyConstraint('car_id'),
        sa.UniqueConstraint('make'),
    )

    op.create_table(
        'car_models',
        sa.Column('model_id', sa.Integer(), nullable=False),
        sa.Column('car_id', sa.Integer(), nullable=False),
        sa.Column('model_name', sa.String(length=255), nullable=False),
        sa.Column('base_model', sa.String(length=150), nullable=True),
        sa.Column('variant', sa.String(length=150), nullable=True),
        sa.ForeignKeyConstraint(['car_id'], ['cars.car_id']),
        sa.PrimaryKeyConstraint('model_id'),
        sa.UniqueConstraint('car_id', 'model_name', name='uq_car_models_car_model_name'),
    )
    op.create_index('ix_car_models_car_id', 'car_models', ['car_id'])

    op.create_table(
        'product_years',
        sa.Column('year_id', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('year_id'),
        sa.UniqueConstraint('year'),
    )

    op.create_table(
        'product_car_compatibility',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('model_id', sa.Integer(), nullable=False),
        sa.Column('start_year_id', sa.Integer(), nullable=False),
        sa.Column('end_year_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['product_id'], ['product.product_id']),
        sa.ForeignKeyConstraint(['model_id'], ['car_models.model_id']),
        sa.ForeignKeyConstraint(['start_year_id'], ['product_years.year_id']),
        sa.ForeignKeyConstraint(['end_year_id'], ['product_years.year_id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_product_car_compatibility_product_id', 'product_car_compatibility', ['product_id'])
    op.create_index('ix_product_car_compatibility_model_id', 'product_car_compatibility', ['model_id'])
    op.create_index('ix_compat_product_model', 'product_car_compatibility', ['product_id', 'model_id'])

    # ============================================================================
    # Supply receipts
    # ============================================================================
    op.create_table(
        'supplier',
        sa.Column('supplier_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint('supplier_id'),
        sa.UniqueConstraint('name'),
    )

    op.create_table(
        'supply',
        sa.Column('supply_id', sa.Integer(), nullable=False),
        sa.Column('supplier_id', sa.Integer(), nullable=False),
        sa.Column('receipt_number', sa.String(length=100), nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('total_cost', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['supplier_id'], ['supplier.supplier_id']),
        sa.PrimaryKeyConstraint('supply_id'),
        sa.UniqueConstraint('receipt_number'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_supply_supplier_id', 'supply', ['supplier_id'])
    op.create_index('ix_supply_date', 'supply', ['date'])

    op.create_table(
        'supply_details',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('supply_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('price', sa.Integer(), nullable=False),
        sa.Column('sub_total', sa.Integer(), nullable=False),
        sa.Column('condition_id', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['supply_id'], ['supply.supply_id']),
        sa.ForeignKeyConstraint(['product_id'], ['product.product_id']),
        sa.ForeignKeyConstraint(['condition_id'], ['condition_item.condition_id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_supply_details_supply_id', 'supply_details', ['supply_id'])
    op.create_index('ix_supply_details_product_id', 'supply_details', ['product_id'])

    # ============================================================================
    # Locations
    # ============================================================================
    op.create_table(
        'region',
        sa.Column('region_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint('region_id'),
    )
    op.create_table(
        'province',
        sa.Column('province_id', sa.Integer(), nullable=False),
        sa.Column('region_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.ForeignKeyConstraint(['region_id'], ['region.region_id']),
        sa.PrimaryKeyConstraint('province_id'),
    )
    op.create_index('ix_province_region_id', 'province', ['region_id'])
    op.create_table(
        'municipality',
        sa.Column('municipality_id', sa.Integer(), nullable=False),
        sa.Column('province_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('postal_code', sa.String(length=10), nullable=True),
        sa.ForeignKeyConstraint(['province_id'], ['province.province_id']),
        sa.PrimaryKeyConstraint('municipality_id'),
    )
    op.create_index('ix_municipality_province_id', 'municipality', ['province_id'])
    op.create_table(
        'barangay',
        sa.Column('barangay_id', sa.Integer(), nullable=False),
        sa.Column('municipality_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.ForeignKeyConstraint(['municipality_id'], ['municipality.municipality_id']),
        sa.PrimaryKeyConstraint('barangay_id'),
    )
    op.create_index('ix_barangay_municipality_id', 'barangay', ['municipality_id'])

    op.create_table(
        'approved_address',
        sa.Column('approved_address_id', sa.Integer(), nullable=False),
        sa.Column('barangay_id', sa.Integer(), nullable=False),
        sa.Column('street_house_building_no', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['barangay_id'], ['barangay.barangay_id']),
        sa.PrimaryKeyConstraint('approved_address_id'),
        sa.UniqueConstraint('barangay_id', 'street_house_building_no', name='uq_approved_address_barangay_street'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_approved_address_barangay_id', 'approved_address', ['barangay_id'])

    op.create_table(
        'address',
        sa.Column('address_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('barangay_id', sa.Integer(), nullable=True),
        sa.Column('approved_address_id', sa.Integer(), nullable=True),
        sa.Column('street_house_building_no', sa.String(length=255), nullable=True),
        sa.Column('is_default', sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['user_employee.user_id']),
        sa.ForeignKeyConstraint(['barangay_id'], ['barangay.barangay_id']),
        sa.ForeignKeyConstraint(['approved_address_id'], ['approved_address.approved_address_id']),
        sa.PrimaryKeyConstraint('address_id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_address_user_id', 'address', ['user_id'])
    op.create_index('ix_address_barangay_id', 'address', ['barangay_id'])
    op.create_index('ix_address_approved_address_id', 'address', ['approved_address_id'])

    # ============================================================================
    # Orders: delivery_history is append-only
    # ============================================================================
    op.create_table(
        'sale',
        sa.Column('sale_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('total_amount', sa.Integer(), nullable=False),
        sa.Column('payment_type', sa.String(length=255), nullable=True),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['user_employee.user_id']),
        sa.PrimaryKeyConstraint('sale_id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_sale_user_id', 'sale', ['user_id'])
    op.create_index('ix_sale_date', 'sale', ['date'])

    op.create_table(
        'sale_details',
        sa.Column('sale_detail_id', sa.Integer(), nullable=False),
        sa.Column('sale_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('selling_price', sa.Integer(), nullable=False),
        sa.Column('sub_total', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['sale_id'], ['sale.sale_id']),
        sa.ForeignKeyConstraint(['product_id'], ['product.product_id']),
        sa.PrimaryKeyConstraint('sale_detail_id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_sale_details_sale_id', 'sale_details', ['sale_id'])
    op.create_index('ix_sale_details_product_id', 'sale_details', ['product_id'])

    op.create_table(
        'courier',
        sa.Column('courier_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('base_rate', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('rate_per_kg', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('max_weight', sa.Numeric(precision=10, scale=3), nullable=True),
        sa.Column('delivery_time', sa.String(length=100), nullable=True),
        sa.PrimaryKeyConstraint('courier_id'),
    )

    op.create_table(
        'delivery_statuses',
        sa.Column('status_id', sa.Integer(), nullable=False),
        sa.Column('status_name', sa.String(length=100), nullable=False),
        sa.Column('sequence_order', sa.Integer(), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint('status_id'),
        sa.UniqueConstraint('status_name'),
    )

    op.create_table(
        'delivery',
        sa.Column('delivery_id', sa.Integer(), nullable=False),
        sa.Column('sale_id', sa.Integer(), nullable=True),
        sa.Column('courier_id', sa.Integer(), nullable=True),
        sa.Column('address_id', sa.Integer(), nullable=True),
        sa.Column('delivery_fee', sa.Integer(), nullable=False),
        sa.Column('overall_total', sa.Integer(), nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status_id', sa.Integer(), nullable=True),
        sa.Column('tracking_number', sa.String(length=255), nullable=True),
        sa.ForeignKeyConstraint(['sale_id'], ['sale.sale_id']),
        sa.ForeignKeyConstraint(['courier_id'], ['courier.courier_id']),
        sa.ForeignKeyConstraint(['address_id'], ['address.address_id']),
        sa.ForeignKeyConstraint(['status_id'], ['delivery_statuses.status_id']),
        sa.PrimaryKeyConstraint('delivery_id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_delivery_sale_id', 'delivery', ['sale_id'])
    op.create_index('ix_delivery_status_id', 'delivery', ['status_id'])

    op.create_table(
        'delivery_history',
        sa.Column('history_id', sa.Integer(), nullable=False),
        sa.Column('delivery_id', sa.Integer(), nullable=False),
        sa.Column('status_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('location_details', sa.String(length=255), nullable=True),
        sa.Column('timestamp_changed', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['delivery_id'], ['delivery.delivery_id']),
        sa.ForeignKeyConstraint(['status_id'], ['delivery_statuses.status_id']),
        sa.ForeignKeyConstraint(['user_id'], ['user_employee.user_id']),
        sa.PrimaryKeyConstraint('history_id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_delivery_history_delivery_id', 'delivery_history', ['delivery_id'])
    op.create_index('ix_delivery_history_status_time', 'delivery_history', ['status_id', 'timestamp_changed'])

    # ============================================================================
    # Cart: one row per (user, product)
    # ============================================================================
    op.create_table(
        'user_cart',
        sa.Column('cart_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('price_at_addition', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['user_employee.user_id']),
        sa.ForeignKeyConstraint(['product_id'], ['product.product_id']),
        sa.PrimaryKeyConstraint('cart_id'),
        sa.UniqueConstraint('user_id', 'product_id', name='uq_user_cart_user_product'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_user_cart_user_id', 'user_cart', ['user_id'])
    op.create_index('ix_user_cart_product_id', 'user_cart', ['product_id'])


def downgrade():
    for table in (
        'user_cart',
        'delivery_history',
        'delivery',
        'delivery_statuses',
        'courier',
        'sale_details',
        'sale',
        'address',
        'approved_address',
        'barangay',
        'municipality',
        'province',
        'region',
        'supply_details',
        'supply',
        'supplier',
        'product_car_compatibility',
        'product_years',
        'car_models',
        'cars',
        'product_image',
        'product',
        'condition_item',
        'category',
        'brand',
        'session_tokens',
        'user_employee',
        'role_type',
    ):
        op.drop_table(table)
