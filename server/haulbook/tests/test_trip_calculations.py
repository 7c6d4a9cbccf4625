from decimal import Decimal

from haulbook.trips.calculations import (
    DriverPayConfig,
    TripOrderInput,
    calculate_driver_pay,
    calculate_trip_financials,
)

ORDERS = [
    TripOrderInput(revenue=Decimal("1500"), broker_fee=Decimal("100"), local_fee=Decimal("50"), distance_miles=Decimal("400")),
    TripOrderInput(revenue=Decimal("1000"), broker_fee=Decimal("0"), local_fee=Decimal("0"), distance_miles=Decimal("600")),
]


def test_percentage_of_carrier_pay_driver():
    driver = DriverPayConfig(driver_type="company", pay_type="percentage_of_carrier_pay", pay_rate=Decimal("30"))
    # clean gross 1350 + 1000 = 2350
    assert calculate_driver_pay(ORDERS, driver) == Decimal("705")


def test_dispatch_fee_percent_honours_order_override():
    driver = DriverPayConfig(driver_type="owner_operator", pay_type="dispatch_fee_percent", pay_rate=Decimal("10"))
    orders = [
        ORDERS[0],
        TripOrderInput(revenue=Decimal("1000"), driver_pay_rate_override=Decimal("20")),
    ]
    # 1350 * 0.90 + 1000 * 0.80
    assert calculate_driver_pay(orders, driver) == Decimal("2015")


def test_per_car_and_per_mile_driver():
    per_car = DriverPayConfig(driver_type="company", pay_type="per_car", pay_rate=Decimal("150"))
    per_mile = DriverPayConfig(driver_type="company", pay_type="per_mile", pay_rate=Decimal("0.55"))
    assert calculate_driver_pay(ORDERS, per_car) == Decimal("300")
    assert calculate_driver_pay(ORDERS, per_mile) == Decimal("550")


def test_missing_or_unknown_driver_pays_nothing():
    unknown = DriverPayConfig(driver_type="company", pay_type="hourly", pay_rate=Decimal("25"))
    assert calculate_driver_pay(ORDERS, None) == Decimal("0")
    assert calculate_driver_pay(ORDERS, unknown) == Decimal("0")


def test_trip_financials_totals_and_ratios():
    driver = DriverPayConfig(driver_type="company", pay_type="per_mile", pay_rate=Decimal("0.55"))
    financials = calculate_trip_financials(ORDERS, driver, [Decimal("120"), "80"], Decimal("0"))

    assert financials.revenue == Decimal("2500.00")
    assert financials.broker_fees == Decimal("100.00")
    assert financials.local_fees == Decimal("50.00")
    assert financials.driver_pay == Decimal("550.00")
    assert financials.expenses == Decimal("200.00")
    assert financials.clean_gross == Decimal("2350.00")
    assert financials.truck_gross == Decimal("1800.00")
    assert financials.net_profit == Decimal("1600.00")
    assert financials.total_miles == Decimal("1000")
    assert financials.order_count == 2
    assert financials.revenue_per_mile == Decimal("2.50")
    assert financials.cost_per_mile == Decimal("0.90")
    assert financials.profit_per_mile == Decimal("1.60")
    assert financials.avg_pay_per_car == Decimal("1250.00")


def test_trip_without_orders_is_all_zero():
    financials = calculate_trip_financials([], None, [], None)
    assert financials.revenue == Decimal("0.00")
    assert financials.revenue_per_mile == Decimal("0.00")
    assert financials.avg_pay_per_car == Decimal("0.00")
    assert financials.net_profit == Decimal("0.00")
