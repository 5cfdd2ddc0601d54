"""
钱包交易记录数据库模型 - SQLAlchemy ORM模型
注意：这是基础设施层的实现细节，不是领域模型
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, Index
from datetime import datetime, timezone

from .base import Base


class WalletTransactionModel(Base):
    """
    钱包交易记录数据库模型

    所有业务规则都在 domain.payment.entity.TransactionRecord 中
    """
    __tablename__ = "wallet_transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # 宿主订单
    order_id = Column(Integer, nullable=False, comment="宿主订单ID")

    # 远端订单引用
    order_reference = Column(String(100), nullable=True, comment="远端 order reference ID")
    authorization_id = Column(String(100), nullable=True, comment="远端授权ID")
    authorization_reference_id = Column(String(100), nullable=True, comment="最近一次授权的幂等键")
    capture_id = Column(String(100), nullable=True, comment="远端扣款ID")
    closed_at = Column(DateTime(timezone=True), nullable=True, comment="远端关闭时间")

    # 授权结果
    success = Column(Boolean, nullable=True, comment="授权是否成功（未知为空）")
    message = Column(Text, nullable=True, comment="结果说明")
    soft_decline = Column(Boolean, nullable=True, comment="是否软拒绝")
    retry = Column(Boolean, nullable=False, default=False, comment="是否为重试")

    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="创建时间"
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="更新时间"
    )

    __table_args__ = (
        Index("ix_wallet_transactions_order_id", "order_id"),
        Index("ix_wallet_transactions_order_reference", "order_reference"),
    )

    def __repr__(self):
        return (
            f"<WalletTransactionModel(id={self.id}, order_id={self.order_id}, "
            f"order_reference='{self.order_reference}', success={self.success})>"
        )
