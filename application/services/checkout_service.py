"""
钱包结账应用服务（application/services）- 编排宿主订单与远端订单引用

Sequences the wallet checkout steps. Authorization itself runs inside the
host's payment pipeline when the order advances past ``confirm``; this
service only reads the outcome back from the active TransactionRecord.
"""
from __future__ import annotations

from typing import Any, Callable, Optional

from application.dtos.payments import CheckoutOutcome, CheckoutStatus, DeliveryResult
from application.ports.host import CountryCatalog, HostOrder, HostPayment
from application.ports.payment_gateway import RemoteOrderFactory, RemoteOrderPort
from core.logging_config import get_logger
from domain.common.exceptions import TransactionRecordNotFoundException
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.payment.address import WalletAddress, host_address_attributes
from domain.payment.entity import TransactionRecord


logger = get_logger(__name__)

PENDING_EMAIL = "pending@amazon.com"
CART_STATE = "cart"
ADDRESS_STATE = "address"
PROCESSED_UNSUCCESSFULLY = "Your order could not be processed. Please try again or choose another payment method."


class CheckoutService:
    """钱包结账应用服务"""

    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        remote_orders: RemoteOrderFactory,
        countries: Optional[CountryCatalog] = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._remote_orders = remote_orders
        self._countries = countries

    async def _active_record(self, order: HostOrder) -> TransactionRecord:
        async with self._uow_factory(readonly=True) as uow:
            record = await uow.transaction_repository.get_active_for_order(order.id)
        if record is None or not record.order_reference:
            raise TransactionRecordNotFoundException(order_id=order.id)
        return record

    async def _remote_order(self, order: HostOrder) -> RemoteOrderPort:
        record = await self._active_record(order)
        return self._remote_orders(record.order_reference)

    async def _address_attributes(self, address: WalletAddress, saved: Optional[Any] = None) -> dict[str, Any]:
        country = None
        if self._countries is not None and address.country_code:
            country = await self._countries.find_by_iso(address.country_code)
        return host_address_attributes(address, saved=saved, country=country)

    async def start_payment(self, order: HostOrder, order_reference: str) -> tuple[HostPayment, TransactionRecord]:
        """Attach a wallet payment and its TransactionRecord to the order."""
        payment_count = len(await order.payments())
        existing = await order.wallet_payments()
        payment = existing[0] if existing else await order.create_payment()
        payment.number = f"{order_reference}_{payment_count}"

        async with self._uow_factory() as uow:
            repo = uow.transaction_repository
            record = await repo.get_by_id(payment.source_id) if payment.source_id is not None else None
            if record is None:
                retry = await repo.any_unsuccessful_for_order(order.id)
                record = await repo.create(
                    TransactionRecord(id=None, order_id=order.id, order_reference=order_reference, retry=retry)
                )
                payment.source_id = record.id
        await payment.save()

        logger.info(
            "wallet_payment_started",
            order_number=order.number,
            payment_number=payment.number,
            order_reference=order_reference,
            record_id=record.id,
            retry=record.retry,
        )
        return payment, record

    async def load_addresses(
        self,
        order: HostOrder,
        *,
        shopper_email: Optional[str] = None,
        saved_ship_address: Optional[Any] = None,
        saved_bill_address: Optional[Any] = None,
        address_consent_token: Optional[str] = None,
    ) -> DeliveryResult:
        """Copy the wallet's shipping address onto the order and advance it once."""
        remote = await self._remote_order(order)
        await remote.fetch(address_consent_token)
        order.state = ADDRESS_STATE

        address = remote.address
        if address is None:
            logger.info("wallet_address_missing", order_number=order.number, order_reference=remote.reference_id)
            return DeliveryResult()

        order.email = shopper_email or PENDING_EMAIL
        await order.set_ship_address(await self._address_attributes(address, saved_ship_address))
        await order.set_bill_address(await self._address_attributes(address, saved_bill_address))
        await order.save()
        await order.advance()

        shippable = order.has_shipments
        if not shippable:
            logger.info("wallet_address_not_shippable", order_number=order.number, country=address.country_code)
        return DeliveryResult(address=address, shippable=shippable)

    async def confirm(self, order: HostOrder) -> bool:
        """Advance to ``confirm`` and sync the wallet payment amount to the order total."""
        while not order.is_confirm:
            if not await order.advance():
                break

        for payment in await order.wallet_payments():
            payment.amount = order.total
            await payment.save()
            break

        if not order.is_confirm:
            await order.advance()
        return order.is_confirm

    async def complete(self, order: HostOrder) -> CheckoutOutcome:
        record = await self._active_record(order)
        remote = self._remote_orders(record.order_reference)

        if not record.retry:
            details = await remote.set_order_reference_details(
                order.total,
                currency=order.currency,
                seller_order_id=order.number,
                store_name=order.store_name,
            )
            if not details.success:
                logger.warning(
                    "wallet_checkout_details_rejected",
                    order_number=order.number,
                    error_code=details.error_code,
                )
                return CheckoutOutcome(
                    status=CheckoutStatus.RETRY_ADDRESS,
                    message=details.error_message or details.error_code,
                    order_number=order.number,
                )
            if details.constraints:
                logger.info(
                    "wallet_checkout_constrained",
                    order_number=order.number,
                    constraints=[c.id for c in details.constraints],
                )
                return CheckoutOutcome(
                    status=CheckoutStatus.RETRY_ADDRESS,
                    message=details.constraint_message,
                    order_number=order.number,
                )

        await remote.confirm()
        await remote.fetch()
        order.email = remote.email
        if remote.address is not None:
            await order.set_ship_address(await self._address_attributes(remote.address))

        if order.is_confirm and await order.advance():
            logger.info("wallet_checkout_completed", order_number=order.number)
            return CheckoutOutcome(status=CheckoutStatus.COMPLETED, order_number=order.number)

        return await self._fail(order)

    async def _fail(self, order: HostOrder) -> CheckoutOutcome:
        order.state = CART_STATE
        async with self._uow_factory() as uow:
            repo = uow.transaction_repository
            record = await repo.get_active_for_order(order.id)
            if record is not None and record.soft_decline:
                await order.save()
                logger.info("wallet_checkout_soft_declined", order_number=order.number, message=record.message)
                return CheckoutOutcome(
                    status=CheckoutStatus.RETRY_ADDRESS,
                    message=record.message,
                    order_number=order.number,
                )
            purged = await repo.delete_for_order(order.id)
        await order.save()
        logger.warning("wallet_checkout_failed", order_number=order.number, purged=purged)
        return CheckoutOutcome(
            status=CheckoutStatus.RETURN_TO_CART,
            message=PROCESSED_UNSUCCESSFULLY,
            order_number=order.number,
        )
