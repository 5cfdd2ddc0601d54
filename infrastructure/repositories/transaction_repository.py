"""
钱包交易记录仓储实现 - 使用SQLAlchemy实现数据访问
"""
from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, delete

from domain.common.exceptions import TransactionRecordNotFoundException
from domain.payment.entity import TransactionRecord
from domain.payment.repository import TransactionRecordRepository
from infrastructure.models.transaction import WalletTransactionModel
from core.logging_config import get_logger


logger = get_logger(__name__)


class SQLAlchemyTransactionRecordRepository(TransactionRecordRepository):
    """交易记录仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: WalletTransactionModel) -> TransactionRecord:
        """将数据库模型转换为领域实体"""
        return TransactionRecord(
            id=model.id,
            order_id=model.order_id,
            order_reference=model.order_reference,
            authorization_id=model.authorization_id,
            authorization_reference_id=model.authorization_reference_id,
            capture_id=model.capture_id,
            closed_at=model.closed_at,
            success=model.success,
            message=model.message,
            soft_decline=model.soft_decline,
            retry=bool(model.retry),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: TransactionRecord) -> WalletTransactionModel:
        """将领域实体转换为数据库模型"""
        return WalletTransactionModel(
            id=entity.id,
            order_id=entity.order_id,
            order_reference=entity.order_reference,
            authorization_id=entity.authorization_id,
            authorization_reference_id=entity.authorization_reference_id,
            capture_id=entity.capture_id,
            closed_at=entity.closed_at,
            success=entity.success,
            message=entity.message,
            soft_decline=entity.soft_decline,
            retry=entity.retry,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    async def create(self, record: TransactionRecord) -> TransactionRecord:
        """创建交易记录"""
        db_record = self._to_model(record)
        self.session.add(db_record)
        await self.session.flush()
        await self.session.refresh(db_record)
        logger.info(
            "wallet_transaction_created",
            record_id=db_record.id,
            order_id=db_record.order_id,
            order_reference=db_record.order_reference,
            retry=db_record.retry,
        )
        record.id = db_record.id
        record.created_at = db_record.created_at
        record.updated_at = db_record.updated_at
        return self._to_entity(db_record)

    async def get_by_id(self, record_id: int) -> Optional[TransactionRecord]:
        """根据ID获取交易记录"""
        result = await self.session.execute(
            select(WalletTransactionModel).where(WalletTransactionModel.id == record_id)
        )
        db_record = result.scalar_one_or_none()
        return self._to_entity(db_record) if db_record else None

    async def get_active_for_order(self, order_id: int) -> Optional[TransactionRecord]:
        """最近创建的一条即为生效记录"""
        result = await self.session.execute(
            select(WalletTransactionModel)
            .where(WalletTransactionModel.order_id == order_id)
            .order_by(WalletTransactionModel.id.desc())
            .limit(1)
        )
        db_record = result.scalar_one_or_none()
        return self._to_entity(db_record) if db_record else None

    async def list_for_order(self, order_id: int) -> List[TransactionRecord]:
        result = await self.session.execute(
            select(WalletTransactionModel)
            .where(WalletTransactionModel.order_id == order_id)
            .order_by(WalletTransactionModel.id.asc())
        )
        return [self._to_entity(m) for m in result.scalars().all()]

    async def any_unsuccessful_for_order(self, order_id: int) -> bool:
        """success 显式为 False 才算失败，未知(None)不算"""
        result = await self.session.execute(
            select(func.count(WalletTransactionModel.id)).where(
                WalletTransactionModel.order_id == order_id,
                WalletTransactionModel.success.is_(False),
            )
        )
        return result.scalar_one() > 0

    async def update(self, record: TransactionRecord) -> TransactionRecord:
        """更新交易记录"""
        result = await self.session.execute(
            select(WalletTransactionModel).where(WalletTransactionModel.id == record.id)
        )
        db_record = result.scalar_one_or_none()

        if not db_record:
            raise TransactionRecordNotFoundException(record_id=record.id)

        db_record.order_reference = record.order_reference
        db_record.authorization_id = record.authorization_id
        db_record.authorization_reference_id = record.authorization_reference_id
        db_record.capture_id = record.capture_id
        db_record.closed_at = record.closed_at
        db_record.success = record.success
        db_record.message = record.message
        db_record.soft_decline = record.soft_decline
        db_record.retry = record.retry

        await self.session.flush()
        await self.session.refresh(db_record)

        logger.info(
            "wallet_transaction_updated",
            record_id=db_record.id,
            order_id=db_record.order_id,
            success=db_record.success,
            soft_decline=db_record.soft_decline,
        )
        return self._to_entity(db_record)

    async def delete_for_order(self, order_id: int) -> int:
        result = await self.session.execute(
            delete(WalletTransactionModel).where(WalletTransactionModel.order_id == order_id)
        )
        await self.session.flush()
        deleted = result.rowcount or 0
        logger.info("wallet_transactions_purged", order_id=order_id, count=deleted)
        return deleted
