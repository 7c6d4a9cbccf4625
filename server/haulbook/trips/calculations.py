from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from haulbook.utils.money import ZERO, quantize_money, quantize_to, safe_div, to_decimal

HUNDRED = Decimal("100")

DRIVER_PAY_TYPES = ("percentage_of_carrier_pay", "dispatch_fee_percent", "per_mile", "per_car")


@dataclass(frozen=True)
class TripOrderInput:
    revenue: Decimal
    broker_fee: Decimal = ZERO
    local_fee: Decimal = ZERO
    distance_miles: Optional[Decimal] = None
    driver_pay_rate_override: Optional[Decimal] = None


@dataclass(frozen=True)
class DriverPayConfig:
    driver_type: str
    pay_type: str
    pay_rate: Decimal


@dataclass(frozen=True)
class TripFinancials:
    revenue: Decimal
    broker_fees: Decimal
    local_fees: Decimal
    carrier_pay: Decimal
    driver_pay: Decimal
    expenses: Decimal
    clean_gross: Decimal
    truck_gross: Decimal
    net_profit: Decimal
    total_miles: Decimal
    order_count: int
    revenue_per_mile: Decimal
    cost_per_mile: Decimal
    profit_per_mile: Decimal
    avg_pay_per_car: Decimal

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _clean_gross(order: TripOrderInput) -> Decimal:
    return to_decimal(order.revenue) - to_decimal(order.broker_fee) - to_decimal(order.local_fee)


def _order_rate(order: TripOrderInput, driver: DriverPayConfig) -> Decimal:
    if order.driver_pay_rate_override is not None:
        return to_decimal(order.driver_pay_rate_override)
    return to_decimal(driver.pay_rate)


def calculate_driver_pay(orders: List[TripOrderInput], driver: Optional[DriverPayConfig]) -> Decimal:
    if driver is None or driver.pay_type not in DRIVER_PAY_TYPES:
        return ZERO

    if driver.pay_type == "percentage_of_carrier_pay":
        # Company driver earns a share of each order's clean gross.
        return sum(
            (_clean_gross(order) * _order_rate(order, driver) / HUNDRED for order in orders),
            ZERO,
        )

    if driver.pay_type == "dispatch_fee_percent":
        # Owner-operator keeps clean gross less the dispatch fee.
        return sum(
            (_clean_gross(order) * (HUNDRED - _order_rate(order, driver)) / HUNDRED for order in orders),
            ZERO,
        )

    if driver.pay_type == "per_car":
        return to_decimal(driver.pay_rate) * len(orders)

    if driver.pay_type == "per_mile":
        miles = sum((to_decimal(order.distance_miles) for order in orders), ZERO)
        return miles * to_decimal(driver.pay_rate)

    return ZERO


def calculate_trip_financials(
    orders: Iterable[TripOrderInput],
    driver: Optional[DriverPayConfig],
    expenses: Iterable[Any],
    carrier_pay: Any,
) -> TripFinancials:
    orders = list(orders)
    revenue = sum((to_decimal(order.revenue) for order in orders), ZERO)
    broker_fees = sum((to_decimal(order.broker_fee) for order in orders), ZERO)
    local_fees = sum((to_decimal(order.local_fee) for order in orders), ZERO)
    total_expenses = sum((to_decimal(amount) for amount in expenses), ZERO)
    carrier_pay = to_decimal(carrier_pay)

    driver_pay = quantize_money(calculate_driver_pay(orders, driver))
    clean_gross = revenue - broker_fees - local_fees
    truck_gross = clean_gross - driver_pay
    total_costs = broker_fees + local_fees + driver_pay + total_expenses + carrier_pay
    net_profit = revenue - total_costs
    total_miles = sum((to_decimal(order.distance_miles) for order in orders), ZERO)

    return TripFinancials(
        revenue=quantize_money(revenue),
        broker_fees=quantize_money(broker_fees),
        local_fees=quantize_money(local_fees),
        carrier_pay=quantize_money(carrier_pay),
        driver_pay=driver_pay,
        expenses=quantize_money(total_expenses),
        clean_gross=quantize_to(clean_gross, "0.01"),
        truck_gross=quantize_to(truck_gross, "0.01"),
        net_profit=quantize_to(net_profit, "0.01"),
        total_miles=total_miles,
        order_count=len(orders),
        revenue_per_mile=quantize_to(safe_div(revenue, total_miles), "0.01"),
        cost_per_mile=quantize_to(safe_div(total_costs, total_miles), "0.01"),
        profit_per_mile=quantize_to(safe_div(net_profit, total_miles), "0.01"),
        avg_pay_per_car=quantize_to(safe_div(revenue, Decimal(len(orders))), "0.01"),
    )
