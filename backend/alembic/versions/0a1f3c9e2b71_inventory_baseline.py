"""Inventory baseline: catalog, stock ledger, equipment categories, consumables

Revision ID: 0a1f3c9e2b71
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# Revision identifiers used by Alembic
revision: str = '0a1f3c9e2b71'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

EQUIPMENT_TABLES = ('dvrs', 'mikrotiks', 'servers', 'printers', 'assigned_equipment', 'telephones')


def _equipment_columns():
    """Columns every equipment table shares."""
    return [
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('stock_bucket', sa.String(length=10), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('location', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('stock_item_id', sa.Integer(), sa.ForeignKey('stock_items.id', ondelete='SET NULL'), nullable=True),
        sa.Column('site_id', sa.Integer(), sa.ForeignKey('sites.id'), nullable=True),
        sa.Column('department_id', sa.Integer(), sa.ForeignKey('departments.id'), nullable=True),
    ]


def _equipment_indexes(table: str):
    for col in ('id', 'status', 'stock_item_id', 'site_id', 'department_id'):
        op.create_index(f'ix_{table}_{col}', table, [col])


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('role', sa.String(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('ts', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('action', sa.String(length=50)),
        sa.Column('resource', sa.String(length=50)),
        sa.Column('resource_id', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=20)),
        sa.Column('ip', sa.String(length=64), nullable=True),
        sa.Column('meta', sa.JSON(), nullable=True),
    )
    for col in ('id', 'ts', 'action', 'resource', 'resource_id', 'status'):
        op.create_index(f'ix_logs_{col}', 'logs', [col])

    # Catalog
    op.create_table(
        'sites',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('address', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
    )
    op.create_index('ix_sites_id', 'sites', ['id'])
    op.create_index('ix_sites_name', 'sites', ['name'], unique=True)

    op.create_table(
        'departments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('site_id', sa.Integer(), sa.ForeignKey('sites.id'), nullable=True),
    )
    for col in ('id', 'name', 'site_id'):
        op.create_index(f'ix_departments_{col}', 'departments', [col])

    op.create_table(
        'equipment_types',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False, unique=True),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('requires_ip', sa.Boolean(), nullable=False),
        sa.Column('requires_serial', sa.Boolean(), nullable=False),
    )
    op.create_index('ix_equipment_types_id', 'equipment_types', ['id'])

    op.create_table(
        'employees',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('first_name', sa.String(), nullable=False),
        sa.Column('last_name', sa.String(), nullable=False),
        sa.Column('position', sa.String(), nullable=True),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('site_id', sa.Integer(), sa.ForeignKey('sites.id'), nullable=True),
        sa.Column('department_id', sa.Integer(), sa.ForeignKey('departments.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    for col in ('id', 'last_name', 'site_id', 'department_id'):
        op.create_index(f'ix_employees_{col}', 'employees', [col])

    # Stock ledger
    op.create_table(
        'stock_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('equipment_type_id', sa.Integer(), sa.ForeignKey('equipment_types.id'), nullable=True),
        sa.Column('brand', sa.String(), nullable=False),
        sa.Column('model', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('total_qty', sa.Integer(), nullable=False),
        sa.Column('available_qty', sa.Integer(), nullable=False),
        sa.Column('assigned_qty', sa.Integer(), nullable=False),
        sa.Column('minimum_threshold', sa.Integer(), nullable=True),
        sa.Column('acquisition_date', sa.Date(), nullable=True),
        sa.Column('acquisition_value', sa.Numeric(12, 2), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint('total_qty >= 0', name='ck_stock_items_total_non_negative'),
        sa.CheckConstraint('available_qty >= 0', name='ck_stock_items_available_non_negative'),
        sa.CheckConstraint('assigned_qty >= 0', name='ck_stock_items_assigned_non_negative'),
        sa.CheckConstraint('total_qty = available_qty + assigned_qty', name='ck_stock_items_counters_balance'),
    )
    for col in ('id', 'equipment_type_id', 'brand', 'model'):
        op.create_index(f'ix_stock_items_{col}', 'stock_items', [col])

    op.create_table(
        'stock_movements',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('stock_item_id', sa.Integer(), sa.ForeignKey('stock_items.id', ondelete='SET NULL'), nullable=True),
        sa.Column('stock_label', sa.String(), nullable=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('op', sa.String(length=10), nullable=False),
        sa.Column('qty', sa.Integer(), nullable=False),
        sa.Column('bucket', sa.String(length=10), nullable=True),
        sa.Column('reason', sa.String(), nullable=True),
        sa.Column('total_after', sa.Integer(), nullable=True),
        sa.Column('available_after', sa.Integer(), nullable=True),
        sa.Column('assigned_after', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    for col in ('id', 'stock_item_id', 'op'):
        op.create_index(f'ix_stock_movements_{col}', 'stock_movements', [col])

    # Equipment categories
    op.create_table(
        'dvrs',
        *_equipment_columns(),
        sa.Column('camera_count', sa.Integer(), nullable=False),
        sa.Column('ip', sa.String(), nullable=True, unique=True),
        sa.Column('serial', sa.String(), nullable=True, unique=True),
        sa.Column('mac', sa.String(), nullable=True, unique=True),
        sa.Column('switch_name', sa.String(), nullable=True),
    )
    for table in ('mikrotiks', 'servers'):
        op.create_table(
            table,
            *_equipment_columns(),
            sa.Column('ip', sa.String(), nullable=True, unique=True),
            sa.Column('serial', sa.String(), nullable=True, unique=True),
        )
    op.create_table(
        'printers',
        *_equipment_columns(),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('ip', sa.String(), nullable=True, unique=True),
        sa.Column('serial', sa.String(), nullable=True, unique=True),
        sa.Column('toner_model', sa.String(), nullable=True),
        sa.Column('current_toner_id', sa.Integer(), sa.ForeignKey('stock_items.id', ondelete='SET NULL'), nullable=True),
        sa.Column('toner_installed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('toner_install_count', sa.Integer(), nullable=False),
        sa.Column('print_count', sa.Integer(), nullable=False),
    )
    op.create_table(
        'assigned_equipment',
        *_equipment_columns(),
        sa.Column('employee_id', sa.Integer(), sa.ForeignKey('employees.id'), nullable=False),
        sa.Column('assigned_by_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('assigned_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('returned_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('ip', sa.String(), nullable=True, unique=True),
        sa.Column('serial', sa.String(), nullable=True, unique=True),
        sa.Column('notes', sa.Text(), nullable=True),
    )
    op.create_table(
        'telephones',
        *_equipment_columns(),
        sa.Column('employee_id', sa.Integer(), sa.ForeignKey('employees.id'), nullable=False),
        sa.Column('assigned_by_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('assigned_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('returned_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('number', sa.String(), nullable=True, unique=True),
        sa.Column('line', sa.String(), nullable=True),
        sa.Column('ip', sa.String(), nullable=True, unique=True),
        sa.Column('mac', sa.String(), nullable=True, unique=True),
        sa.Column('imei', sa.String(), nullable=True, unique=True),
    )
    for table in EQUIPMENT_TABLES:
        _equipment_indexes(table)
    op.create_index('ix_assigned_equipment_employee_id', 'assigned_equipment', ['employee_id'])
    op.create_index('ix_telephones_employee_id', 'telephones', ['employee_id'])

    # Consumable shipments
    op.create_table(
        'consumables',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('site_id', sa.Integer(), sa.ForeignKey('sites.id'), nullable=True),
        sa.Column('department_id', sa.Integer(), sa.ForeignKey('departments.id'), nullable=True),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('created_by_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    for col in ('id', 'name', 'site_id', 'department_id', 'created_at'):
        op.create_index(f'ix_consumables_{col}', 'consumables', [col])

    op.create_table(
        'consumable_lines',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('consumable_id', sa.Integer(), sa.ForeignKey('consumables.id', ondelete='CASCADE'), nullable=False),
        sa.Column('stock_item_id', sa.Integer(), sa.ForeignKey('stock_items.id', ondelete='SET NULL'), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.CheckConstraint('quantity > 0', name='ck_consumable_lines_quantity_positive'),
        sa.UniqueConstraint('consumable_id', 'stock_item_id', name='uq_consumable_lines_item'),
    )
    for col in ('id', 'consumable_id', 'stock_item_id'):
        op.create_index(f'ix_consumable_lines_{col}', 'consumable_lines', [col])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('consumable_lines')
    op.drop_table('consumables')
    for table in reversed(EQUIPMENT_TABLES):
        op.drop_table(table)
    op.drop_table('stock_movements')
    op.drop_table('stock_items')
    op.drop_table('employees')
    op.drop_table('equipment_types')
    op.drop_table('departments')
    op.drop_table('sites')
    op.drop_table('logs')
    op.drop_table('users')
