from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from .db import Base


class Tenant(Base):
    __tablename__ = "tenants"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    factoring_fee_rate = Column(Numeric(6, 3), nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    users = relationship("User", back_populates="tenant")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    full_name = Column(String(200), nullable=True)
    role = Column(String(50), nullable=False, default="dispatcher")
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    tenant = relationship("Tenant", back_populates="users")


class Broker(Base):
    __tablename__ = "brokers"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=True)
    payment_terms = Column(String(10), nullable=True)

    orders = relationship("Order", back_populates="broker")


class Driver(Base):
    __tablename__ = "drivers"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    driver_type = Column(String(30), nullable=False, default="company")
    pay_type = Column(String(40), nullable=False, default="percentage_of_carrier_pay")
    pay_rate = Column(Numeric(10, 2), nullable=False, default=0)
    status = Column(String(20), nullable=False, default="active")


class Truck(Base):
    __tablename__ = "trucks"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False)
    unit_number = Column(String(50), nullable=False)
    truck_type = Column(String(20), nullable=True)
    status = Column(String(20), nullable=False, default="active")


class Trip(Base):
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False)
    trip_number = Column(String(50), nullable=True)
    driver_id = Column(Integer, ForeignKey("drivers.id"), nullable=True)
    truck_id = Column(Integer, ForeignKey("trucks.id"), nullable=True)
    status = Column(String(20), nullable=False, default="planned")
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    carrier_pay = Column(Numeric(14, 2), nullable=False, default=0)
    driver_pay = Column(Numeric(14, 2), nullable=False, default=0)

    driver = relationship("Driver")
    truck = relationship("Truck")
    orders = relationship("Order", back_populates="trip")
    expenses = relationship("TripExpense", back_populates="trip", cascade="all, delete-orphan")


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False)
    order_number = Column(String(50), nullable=True)
    broker_id = Column(Integer, ForeignKey("brokers.id"), nullable=True)
    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=True)
    dispatcher_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    status = Column(String(20), nullable=False, default="new")
    payment_status = Column(String(20), nullable=False, default="unpaid")
    vehicle_year = Column(Integer, nullable=True)
    vehicle_make = Column(String(50), nullable=True)
    vehicle_model = Column(String(50), nullable=True)
    pickup_city = Column(String(100), nullable=True)
    pickup_state = Column(String(2), nullable=True)
    delivery_city = Column(String(100), nullable=True)
    delivery_state = Column(String(2), nullable=True)
    revenue = Column(Numeric(14, 2), nullable=False, default=0)
    carrier_pay = Column(Numeric(14, 2), nullable=False, default=0)
    broker_fee = Column(Numeric(14, 2), nullable=False, default=0)
    local_fee = Column(Numeric(14, 2), nullable=False, default=0)
    amount_paid = Column(Numeric(14, 2), nullable=False, default=0)
    distance_miles = Column(Numeric(10, 1), nullable=True)
    driver_pay_rate_override = Column(Numeric(6, 2), nullable=True)
    delivered_at = Column(Date, nullable=True)
    invoice_date = Column(Date, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    broker = relationship("Broker", back_populates="orders")
    trip = relationship("Trip", back_populates="orders")
    dispatcher = relationship("User")
    payments = relationship("Payment", back_populates="order")


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    payment_date = Column(Date, nullable=False)

    order = relationship("Order", back_populates="payments")


class TripExpense(Base):
    __tablename__ = "trip_expenses"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False)
    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False)
    category = Column(String(20), nullable=False, default="misc")
    amount = Column(Numeric(14, 2), nullable=False)
    expense_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)

    trip = relationship("Trip", back_populates="expenses")


class BusinessExpense(Base):
    __tablename__ = "business_expenses"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False)
    name = Column(String(200), nullable=False)
    category = Column(String(40), nullable=False, default="other")
    recurrence = Column(String(20), nullable=False, default="monthly")
    amount = Column(Numeric(14, 2), nullable=False)
    truck_id = Column(Integer, ForeignKey("trucks.id"), nullable=True)
    effective_from = Column(Date, nullable=False)
    effective_to = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)


class FuelEntry(Base):
    __tablename__ = "fuel_entries"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False)
    truck_id = Column(Integer, ForeignKey("trucks.id"), nullable=True)
    entry_date = Column(Date, nullable=False)
    gallons = Column(Numeric(10, 3), nullable=False, default=0)
    total_cost = Column(Numeric(14, 2), nullable=False, default=0)
