"""add_wallet_transactions_table

Revision ID: 3b8e41c2d7a5
Revises:
Create Date: 2026-10-19 09:00:12.418352

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3b8e41c2d7a5'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'wallet_transactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False, comment='宿主订单ID'),
        sa.Column('order_reference', sa.String(length=100), nullable=True, comment='远端 order reference ID'),
        sa.Column('authorization_id', sa.String(length=100), nullable=True, comment='远端授权ID'),
        sa.Column('authorization_reference_id', sa.String(length=100), nullable=True, comment='最近一次授权的幂等键'),
        sa.Column('capture_id', sa.String(length=100), nullable=True, comment='远端扣款ID'),
        sa.Column('closed_at', sa.DateTime(timezone=True), nullable=True, comment='远端关闭时间'),
        sa.Column('success', sa.Boolean(), nullable=True, comment='授权是否成功（未知为空）'),
        sa.Column('message', sa.Text(), nullable=True, comment='结果说明'),
        sa.Column('soft_decline', sa.Boolean(), nullable=True, comment='是否软拒绝'),
        sa.Column('retry', sa.Boolean(), nullable=False, server_default=sa.false(), comment='是否为重试'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='创建时间'),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='更新时间'),
        sa.PrimaryKeyConstraint('id'),
        comment='钱包交易记录表，镜像远端 order reference 生命周期'
    )

    op.create_index('ix_wallet_transactions_order_id', 'wallet_transactions', ['order_id'], unique=False)
    op.create_index('ix_wallet_transactions_order_reference', 'wallet_transactions', ['order_reference'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_wallet_transactions_order_reference', table_name='wallet_transactions')
    op.drop_index('ix_wallet_transactions_order_id', table_name='wallet_transactions')
    op.drop_table('wallet_transactions')
