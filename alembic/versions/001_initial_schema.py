"""initial schema: sellers, offers, tasks

Revision ID: 001_initial_schema
Revises:
Create Date: 2025-10-15 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """
    Create the catalog and ingestion task tables.

    Tables created:
    - sellers: Sellers that upload offer spreadsheets
    - offers: Offers currently listed by sellers
    - tasks: Offer ingestion attempts
    """

    op.create_table(
        'sellers',
        sa.Column('seller_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('seller_name', sa.String(length=255), nullable=False, comment='Display name, starts with a Latin or Cyrillic letter'),
        sa.Column('created_at', sa.TIMESTAMP(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False, comment='Registration timestamp'),
        sa.PrimaryKeyConstraint('seller_id'),
        sa.UniqueConstraint('seller_name'),
        comment='Sellers that upload offer spreadsheets'
    )
    op.create_index('idx_sellers_created_at', 'sellers', ['created_at'])

    op.create_table(
        'offers',
        sa.Column('seller_id', sa.Integer(), nullable=False),
        sa.Column('offer_id', sa.Integer(), autoincrement=False, nullable=False, comment='Seller-scoped offer identifier from the spreadsheet'),
        sa.Column('offer_name', sa.String(length=512), nullable=False),
        sa.Column('price', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.CheckConstraint('price >= 0', name='offers_price_check'),
        sa.CheckConstraint('quantity > 0', name='offers_quantity_check'),
        sa.ForeignKeyConstraint(['seller_id'], ['sellers.seller_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('seller_id', 'offer_id'),
        comment='Offers currently listed by sellers'
    )
    op.create_index('idx_offers_name', 'offers', ['offer_name'])

    op.create_table(
        'tasks',
        sa.Column('task_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('seller_id', sa.Integer(), nullable=False, comment='Seller the uploaded file belongs to'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='Running', comment='Current task status'),
        sa.Column('start_time', sa.TIMESTAMP(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False, comment='Task creation timestamp'),
        sa.Column('finish_time', sa.TIMESTAMP(), nullable=True, comment='Set once, when the task reaches a terminal status'),
        sa.Column('num_errors', sa.Integer(), nullable=True, comment='Rows rejected during validation'),
        sa.Column('num_created', sa.Integer(), nullable=True),
        sa.Column('num_updated', sa.Integer(), nullable=True),
        sa.Column('num_deleted', sa.Integer(), nullable=True),
        sa.CheckConstraint("status IN ('Running', 'Completed', 'Error')", name='tasks_status_check'),
        sa.ForeignKeyConstraint(['seller_id'], ['sellers.seller_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('task_id'),
        comment='Tracks offer ingestion attempts'
    )
    op.create_index('idx_tasks_status', 'tasks', ['status'])
    op.create_index('idx_tasks_start_time', 'tasks', ['start_time'])
    op.create_index('idx_tasks_seller_id', 'tasks', ['seller_id'])


def downgrade() -> None:
    """
    Remove the catalog and ingestion task tables.
    """
    op.drop_index('idx_tasks_seller_id', table_name='tasks')
    op.drop_index('idx_tasks_start_time', table_name='tasks')
    op.drop_index('idx_tasks_status', table_name='tasks')
    op.drop_table('tasks')

    op.drop_index('idx_offers_name', table_name='offers')
    op.drop_table('offers')

    op.drop_index('idx_sellers_created_at', table_name='sellers')
    op.drop_table('sellers')
