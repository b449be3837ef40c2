"""Pure assembly of liquidation records, no I/O."""
from __future__ import annotations

from ..errors import RecordBuildError
from ..models import LiquidationEvent, LiquidationRecord, PriceQuote, TokenDescriptor
from .valuation import format_amount, usd_value


def build_record(
    event: LiquidationEvent,
    collateral_token: TokenDescriptor | None,
    debt_token: TokenDescriptor | None,
    collateral_price: PriceQuote | None,
    debt_price: PriceQuote | None,
) -> LiquidationRecord:
    """Value a liquidation event.

    Raises RecordBuildError rather than returning a partial record when a
    token or price is missing.
    """
    missing = [
        name
        for name, value in (
            ("collateral token", collateral_token),
            ("debt token", debt_token),
            ("collateral price", collateral_price),
            ("debt price", debt_price),
        )
        if value is None
    ]
    if missing:
        raise RecordBuildError(
            f"Cannot build record for {event.transaction_hash}#{event.log_index}: "
            f"missing {', '.join(missing)}"
        )

    seized = event.liquidated_collateral_amount
    debt = event.debt_to_cover
    try:
        return LiquidationRecord(
            transaction_hash=event.transaction_hash.lower(),
            log_index=event.log_index,
            protocol=event.protocol,
            event_type=event.event_type,
            block_number=event.block_number,
            block_timestamp=event.block_timestamp,
            borrower_address=event.borrower,
            liquidator_address=event.liquidator,
            collateral_token=collateral_token,
            debt_token=debt_token,
            seized_token_amount_raw=seized,
            formatted_collateral_amount=format_amount(seized, collateral_token.decimals),
            usd_value_seized=usd_value(
                seized, collateral_token.decimals, collateral_price.price_usd
            ),
            debt_amount_raw=debt,
            formatted_debt_amount=format_amount(debt, debt_token.decimals),
            usd_value_debt=usd_value(debt, debt_token.decimals, debt_price.price_usd),
            collateral_price_usd=collateral_price.price_usd,
            debt_price_usd=debt_price.price_usd,
            receive_a_token=event.receive_a_token,
        )
    except ValueError as e:
        raise RecordBuildError(str(e)) from e
