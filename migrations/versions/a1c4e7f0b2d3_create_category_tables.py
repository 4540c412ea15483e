"""create_category_tables

Revision ID: a1c4e7f0b2d3
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'a1c4e7f0b2d3'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    existing_tables = inspector.get_table_names()

    # Create categories table
    if 'categories' not in existing_tables:
        op.create_table(
        'categories',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('handle', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('parent_id', sa.String(length=36), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_internal', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('rank', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('thumbnail', sa.String(length=2048), nullable=True),
        sa.Column('image_id', sa.String(length=36), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['parent_id'], ['categories.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
        op.create_index(op.f('ix_categories_name'), 'categories', ['name'], unique=False)
        # Handles are unique among live rows only
        op.create_index(
            'ix_categories_handle_live', 'categories', ['handle'], unique=True,
            sqlite_where=sa.text('deleted_at IS NULL'),
            postgresql_where=sa.text('deleted_at IS NULL'),
        )
        op.create_index(
            'ix_categories_parent_id_live', 'categories', ['parent_id'],
            sqlite_where=sa.text('deleted_at IS NULL'),
            postgresql_where=sa.text('deleted_at IS NULL'),
        )

    # Create product_categories table
    if 'product_categories' not in existing_tables:
        op.create_table(
        'product_categories',
        sa.Column('product_id', sa.String(length=255), nullable=False),
        sa.Column('category_id', sa.String(length=36), nullable=False),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('product_id', 'category_id')
    )
        op.create_index(op.f('ix_product_categories_category_id'), 'product_categories', ['category_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_product_categories_category_id'), table_name='product_categories')
    op.drop_table('product_categories')
    op.drop_index('ix_categories_parent_id_live', table_name='categories')
    op.drop_index('ix_categories_handle_live', table_name='categories')
    op.drop_index(op.f('ix_categories_name'), table_name='categories')
    op.drop_table('categories')
