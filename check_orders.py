"""Log the fund's open make orders and per-asset cooldowns."""
import asyncio
import logging

from fundtrade.config import Settings
from fundtrade.factory import create_coordinator
from fundtrade.infra.logging_cfg import log_event


async def main() -> None:
    cfg = Settings.load()
    coordinator = await create_coordinator(cfg)
    log = logging.getLogger("fundtrade")
    try:
        context = await coordinator.context_for()
        orders = await coordinator.list_open_orders()
        now = await coordinator.reader.latest_timestamp()
        for o in orders:
            exposure = await coordinator.ledger.asset_exposure(context, o.sell_asset)
            log_event(
                log,
                "open_order",
                exchange=o.exchange,
                sell=o.sell_asset,
                buy=o.buy_asset,
                order_id=o.order_id,
                expires_at=o.expires_at_datetime.isoformat(),
                expired=o.is_expired(now),
                **exposure,
            )
        for c in await coordinator.ledger.get_cooldowns(context):
            if c.active(now):
                log_event(log, "cooldown", asset=c.asset, until=c.until_datetime.isoformat())
        print(f"Open orders: {len(orders)}")
    finally:
        await coordinator.reader.contracts.rpc.close()


if __name__ == "__main__":
    asyncio.run(main())
