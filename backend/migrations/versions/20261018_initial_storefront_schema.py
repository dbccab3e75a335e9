"""initial storefront schema

Revision ID: sf001
Revises:
Create Date: 2026-10-18 00:00:00.000000

Creates the storefront schema from scratch:
- device taxonomy: device_brands -> device_types -> device_series -> device_models
- catalog: brands, categories, products, product_variants
- refurbished_products + refurbished_product_images
- banners
- repair_statuses + appointments
- trade-ins: phone_conditions, phone_trade_ins, trade_in_audit_log
- pricing tables read by the trade-in pricing procedure
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'sf001'
down_revision = None
branch_labels = None
depends_on = None


def _created_at():
    return sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                     server_default=sa.text('CURRENT_TIMESTAMP'))


def upgrade():
    # ============================================================================
    # Device taxonomy
    # ============================================================================
    op.create_table(
        'device_brands',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
        sqlite_autoincrement=True
    )

    op.create_table(
        'device_types',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('brand_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['brand_id'], ['device_brands.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('brand_id', 'name', name='uq_device_types_brand_name'),
        sqlite_autoincrement=True
    )
    op.create_index(op.f('ix_device_types_brand_id'), 'device_types', ['brand_id'])

    op.create_table(
        'device_series',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('device_type_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['device_type_id'], ['device_types.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('device_type_id', 'name', name='uq_device_series_type_name'),
        sqlite_autoincrement=True
    )
    op.create_index(op.f('ix_device_series_device_type_id'), 'device_series', ['device_type_id'])

    op.create_table(
        'device_models',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('device_series_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['device_series_id'], ['device_series.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('device_series_id', 'name', name='uq_device_models_series_name'),
        sqlite_autoincrement=True
    )
    op.create_index(op.f('ix_device_models_device_series_id'), 'device_models', ['device_series_id'])

    # ============================================================================
    # Catalog
    # ============================================================================
    op.create_table(
        'brands',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
        sqlite_autoincrement=True
    )

    op.create_table(
        'categories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        sa.Column('parent_id', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['parent_id'], ['categories.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index(op.f('ix_categories_parent_id'), 'categories', ['parent_id'])

    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('base_price_cents', sa.Integer(), nullable=False),
        sa.Column('in_stock', sa.Integer(), nullable=False),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        sa.Column('brand_id', sa.Integer(), nullable=True),
        sa.Column('category_id', sa.Integer(), nullable=True),
        sa.Column('is_repair_part', sa.Boolean(), nullable=False),
        sa.Column('discount_percentage', sa.Integer(), nullable=False),
        sa.Column('embedding', sa.JSON(), nullable=True),
        _created_at(),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['brand_id'], ['brands.id']),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index(op.f('ix_products_brand_id'), 'products', ['brand_id'])
    op.create_index(op.f('ix_products_category_id'), 'products', ['category_id'])
    op.create_index(op.f('ix_products_created_at'), 'products', ['created_at'])
    op.create_index('ix_products_brand_category', 'products', ['brand_id', 'category_id'])

    op.create_table(
        'product_variants',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('variant_name', sa.String(length=120), nullable=False),
        sa.Column('variant_value', sa.String(length=120), nullable=False),
        sa.Column('price_adjustment_cents', sa.Integer(), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False),
        sa.Column('images', sa.JSON(), nullable=False),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index(op.f('ix_product_variants_product_id'), 'product_variants', ['product_id'])

    # ============================================================================
    # Refurbished devices
    # ============================================================================
    op.create_table(
        'refurbished_products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('condition', sa.String(length=16), nullable=False),
        sa.Column('original_price_cents', sa.Integer(), nullable=False),
        sa.Column('refurbished_price_cents', sa.Integer(), nullable=False),
        sa.Column('discount_percentage', sa.Integer(), nullable=False),
        sa.Column('warranty_months', sa.Integer(), nullable=False),
        sa.Column('in_stock', sa.Integer(), nullable=False),
        sa.Column('is_featured', sa.Boolean(), nullable=False),
        sa.Column('brand_id', sa.Integer(), nullable=True),
        sa.Column('category_id', sa.Integer(), nullable=True),
        sa.Column('compatible_with_model_id', sa.Integer(), nullable=True),
        sa.Column('refurbishment_date', sa.Date(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['brand_id'], ['brands.id']),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id']),
        sa.ForeignKeyConstraint(['compatible_with_model_id'], ['device_models.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index(op.f('ix_refurbished_products_brand_id'), 'refurbished_products', ['brand_id'])
    op.create_index(op.f('ix_refurbished_products_category_id'), 'refurbished_products', ['category_id'])
    op.create_index(op.f('ix_refurbished_products_compatible_with_model_id'), 'refurbished_products',
                    ['compatible_with_model_id'])
    op.create_index(op.f('ix_refurbished_products_created_at'), 'refurbished_products', ['created_at'])
    op.create_index('ix_refurbished_condition', 'refurbished_products', ['condition'])

    op.create_table(
        'refurbished_product_images',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('image_url', sa.String(length=500), nullable=False),
        sa.Column('is_primary', sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(['product_id'], ['refurbished_products.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index(op.f('ix_refurbished_product_images_product_id'), 'refurbished_product_images',
                    ['product_id'])

    # ============================================================================
    # Banners
    # ============================================================================
    op.create_table(
        'banners',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('subtitle', sa.String(length=500), nullable=True),
        sa.Column('image_url', sa.String(length=500), nullable=False),
        sa.Column('link_url', sa.String(length=500), nullable=True),
        sa.Column('button_text', sa.String(length=80), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('display_order', sa.Integer(), nullable=False),
        sa.Column('target_page', sa.String(length=64), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_banners_page_active_order', 'banners', ['target_page', 'is_active', 'display_order'])

    # ============================================================================
    # Repairs
    # ============================================================================
    op.create_table(
        'repair_statuses',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('color', sa.String(length=16), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
        sqlite_autoincrement=True
    )

    op.create_table(
        'appointments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('customer_name', sa.String(length=200), nullable=False),
        sa.Column('customer_email', sa.String(length=255), nullable=True),
        sa.Column('customer_phone', sa.String(length=64), nullable=True),
        sa.Column('device_model_id', sa.Integer(), nullable=True),
        sa.Column('problem_description', sa.Text(), nullable=False),
        sa.Column('diagnosis', sa.Text(), nullable=True),
        sa.Column('technician_notes', sa.Text(), nullable=True),
        sa.Column('status_id', sa.Integer(), nullable=False),
        sa.Column('appointment_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('estimated_completion_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('actual_completion_date', sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['device_model_id'], ['device_models.id']),
        sa.ForeignKeyConstraint(['status_id'], ['repair_statuses.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index(op.f('ix_appointments_device_model_id'), 'appointments', ['device_model_id'])
    op.create_index(op.f('ix_appointments_status_id'), 'appointments', ['status_id'])
    op.create_index(op.f('ix_appointments_appointment_date'), 'appointments', ['appointment_date'])
    op.create_index('ix_appointments_status_date', 'appointments', ['status_id', 'appointment_date'])

    # ============================================================================
    # Trade-ins
    # ============================================================================
    op.create_table(
        'phone_conditions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('multiplier', sa.Float(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
        sqlite_autoincrement=True
    )

    op.create_table(
        'phone_trade_ins',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=True),
        sa.Column('device_model_id', sa.Integer(), nullable=False),
        sa.Column('condition_id', sa.Integer(), nullable=False),
        sa.Column('storage_capacity', sa.String(length=16), nullable=False),
        sa.Column('color', sa.String(length=64), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('images', sa.JSON(), nullable=False),
        sa.Column('has_charger', sa.Boolean(), nullable=False),
        sa.Column('has_box', sa.Boolean(), nullable=False),
        sa.Column('has_accessories', sa.Boolean(), nullable=False),
        sa.Column('estimated_value_cents', sa.Integer(), nullable=False),
        sa.Column('estimate_source', sa.String(length=16), nullable=False),
        sa.Column('offered_value_cents', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        _created_at(),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['device_model_id'], ['device_models.id']),
        sa.ForeignKeyConstraint(['condition_id'], ['phone_conditions.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index(op.f('ix_phone_trade_ins_user_id'), 'phone_trade_ins', ['user_id'])
    op.create_index(op.f('ix_phone_trade_ins_device_model_id'), 'phone_trade_ins', ['device_model_id'])
    op.create_index(op.f('ix_phone_trade_ins_status'), 'phone_trade_ins', ['status'])
    op.create_index('ix_trade_ins_status_created', 'phone_trade_ins', ['status', 'created_at'])

    op.create_table(
        'trade_in_audit_log',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('trade_in_id', sa.Integer(), nullable=False),
        sa.Column('status_from', sa.String(length=16), nullable=True),
        sa.Column('status_to', sa.String(length=16), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('actor_id', sa.String(length=64), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['trade_in_id'], ['phone_trade_ins.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index(op.f('ix_trade_in_audit_log_trade_in_id'), 'trade_in_audit_log', ['trade_in_id'])

    # ============================================================================
    # Trade-in pricing tables
    # ============================================================================
    op.create_table(
        'trade_in_prices',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('device_model_id', sa.Integer(), nullable=False),
        sa.Column('base_price_cents', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['device_model_id'], ['device_models.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('device_model_id'),
        sqlite_autoincrement=True
    )

    op.create_table(
        'price_prediction_parameters',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('parameter_name', sa.String(length=64), nullable=False),
        sa.Column('parameter_value', sa.Float(), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('parameter_name'),
        sqlite_autoincrement=True
    )

    op.create_table(
        'storage_price_adjustments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('device_model_id', sa.Integer(), nullable=False),
        sa.Column('storage_capacity', sa.String(length=16), nullable=False),
        sa.Column('price_adjustment_cents', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['device_model_id'], ['device_models.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('device_model_id', 'storage_capacity', name='uq_storage_adj_model_storage'),
        sqlite_autoincrement=True
    )
    op.create_index(op.f('ix_storage_price_adjustments_device_model_id'), 'storage_price_adjustments',
                    ['device_model_id'])

    op.create_table(
        'color_price_adjustments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('device_model_id', sa.Integer(), nullable=False),
        sa.Column('color', sa.String(length=64), nullable=False),
        sa.Column('price_adjustment_cents', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['device_model_id'], ['device_models.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('device_model_id', 'color', name='uq_color_adj_model_color'),
        sqlite_autoincrement=True
    )
    op.create_index(op.f('ix_color_price_adjustments_device_model_id'), 'color_price_adjustments',
                    ['device_model_id'])

    op.create_table(
        'accessory_price_adjustments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('accessory_type', sa.String(length=32), nullable=False),
        sa.Column('device_brand_id', sa.Integer(), nullable=False),
        sa.Column('price_adjustment_cents', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['device_brand_id'], ['device_brands.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('device_brand_id', 'accessory_type', name='uq_accessory_adj_brand_type'),
        sqlite_autoincrement=True
    )
    op.create_index(op.f('ix_accessory_price_adjustments_device_brand_id'), 'accessory_price_adjustments',
                    ['device_brand_id'])


def downgrade():
    # Reverse dependency order
    op.drop_table('accessory_price_adjustments')
    op.drop_table('color_price_adjustments')
    op.drop_table('storage_price_adjustments')
    op.drop_table('price_prediction_parameters')
    op.drop_table('trade_in_prices')
    op.drop_table('trade_in_audit_log')
    op.drop_table('phone_trade_ins')
    op.drop_table('phone_conditions')
    op.drop_table('appointments')
    op.drop_table('repair_statuses')
    op.drop_table('banners')
    op.drop_table('refurbished_product_images')
    op.drop_table('refurbished_products')
    op.drop_table('product_variants')
    op.drop_table('products')
    op.drop_table('categories')
    op.drop_table('brands')
    op.drop_table('device_models')
    op.drop_table('device_series')
    op.drop_table('device_types')
    op.drop_table('device_brands')
