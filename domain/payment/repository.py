"""
钱包交易记录仓储接口 - 定义数据访问的抽象接口
"""
from abc import ABC, abstractmethod
from typing import Optional, List

from .entity import TransactionRecord


class TransactionRecordRepository(ABC):
    """交易记录仓储抽象接口 - 只定义能做什么，不管怎么做"""

    @abstractmethod
    async def create(self, record: TransactionRecord) -> TransactionRecord:
        """创建交易记录"""
        pass

    @abstractmethod
    async def get_by_id(self, record_id: int) -> Optional[TransactionRecord]:
        """根据ID获取交易记录"""
        pass

    @abstractmethod
    async def get_active_for_order(self, order_id: int) -> Optional[TransactionRecord]:
        """获取订单当前生效的交易记录（最近创建的一条）"""
        pass

    @abstractmethod
    async def list_for_order(self, order_id: int) -> List[TransactionRecord]:
        """按创建顺序列出订单的交易记录"""
        pass

    @abstractmethod
    async def any_unsuccessful_for_order(self, order_id: int) -> bool:
        """订单是否存在失败的交易记录"""
        pass

    @abstractmethod
    async def update(self, record: TransactionRecord) -> TransactionRecord:
        """更新交易记录"""
        pass

    @abstractmethod
    async def delete_for_order(self, order_id: int) -> int:
        """删除订单的全部交易记录，返回删除条数"""
        pass
