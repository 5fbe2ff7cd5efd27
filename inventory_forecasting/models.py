# inventory_forecasting/models.py
from sqlalchemy import Column, Integer, String, Float, Date, DateTime, Boolean, Text, Index, UniqueConstraint
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class Product(Base):
    """A sellable SKU with its supplier and buffer settings."""
    __tablename__ = 'products'

    id = Column(Integer, primary_key=True)
    sku = Column(String(64), nullable=False, unique=True)
    title = Column(String(255))
    category = Column(String(64))
    is_active = Column(Boolean, default=True, nullable=False)

    # Supplier terms
    supplier_name = Column(String(255))
    lead_time_days = Column(Float)           # Quoted by the supplier
    avg_actual_lead_time_days = Column(Float)  # Measured from PO receipts
    lead_time_std_dev = Column(Float)
    moq = Column(Integer)

    # Overrides the configured buffer when set
    safety_stock_days = Column(Float)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Product(sku='{self.sku}', category='{self.category}')>"


class DailySales(Base):
    """Units sold per SKU per day, appended by the order sync.

    Late corrections are inserted as additional rows for the same day.
    """
    __tablename__ = 'daily_sales'

    id = Column(Integer, primary_key=True)
    sku = Column(String(64), nullable=False)
    date = Column(Date, nullable=False)
    units_sold = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, server_default=func.now())

    __table_args__ = (
        Index('ix_daily_sales_sku_date', 'sku', 'date'),
    )

    def __repr__(self):
        return f"<DailySales(sku='{self.sku}', date={self.date}, units={self.units_sold})>"


class InventoryLevel(Base):
    """Latest stock position per SKU, written by the inventory sync."""
    __tablename__ = 'inventory_levels'

    id = Column(Integer, primary_key=True)
    sku = Column(String(64), nullable=False, unique=True)
    warehouse_available = Column(Integer, default=0)
    fba_available = Column(Integer, default=0)
    fba_inbound_working = Column(Integer, default=0)
    fba_inbound_shipped = Column(Integer, default=0)
    fba_inbound_receiving = Column(Integer, default=0)
    incoming_from_po = Column(Integer, default=0)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    @property
    def fba_inbound(self):
        return (
            (self.fba_inbound_working or 0) +
            (self.fba_inbound_shipped or 0) +
            (self.fba_inbound_receiving or 0)
        )

    def __repr__(self):
        return f"<InventoryLevel(sku='{self.sku}', warehouse={self.warehouse_available}, fba={self.fba_available})>"


class SeasonalEventRecord(Base):
    """Recurring calendar event (month/day range) affecting demand."""
    __tablename__ = 'seasonal_events'

    id = Column(Integer, primary_key=True)
    name = Column(String(128), nullable=False, unique=True)
    event_type = Column(String(32), default='custom')  # micro_peak, major_peak, custom
    start_month = Column(Integer, nullable=False)
    start_day = Column(Integer, nullable=False)
    end_month = Column(Integer, nullable=False)
    end_day = Column(Integer, nullable=False)
    base_multiplier = Column(Float, nullable=False, default=1.0)
    learned_multiplier = Column(Float)
    sku_multipliers = Column(Text)  # JSON object: sku -> multiplier
    categories = Column(Text)       # Comma separated; empty applies to all
    exclusive = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<SeasonalEventRecord(name='{self.name}', multiplier={self.base_multiplier})>"


class PlannedSpikeRecord(Base):
    """A dated demand lift planned for one SKU, and how it turned out."""
    __tablename__ = 'planned_spikes'

    id = Column(Integer, primary_key=True)
    sku = Column(String(64), nullable=False)
    spike_type = Column(String(32), nullable=False, default='promotion')  # promotion, deal, ads, launch
    lift_multiplier = Column(Float, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    notes = Column(Text)
    status = Column(String(16), nullable=False, default='scheduled')  # scheduled, active, completed, cancelled
    actual_lift = Column(Float)
    variance = Column(Float)  # Percent difference of actual vs planned lift
    created_at = Column(DateTime, server_default=func.now())

    __table_args__ = (
        Index('ix_planned_spikes_sku_dates', 'sku', 'start_date', 'end_date'),
    )

    def __repr__(self):
        return f"<PlannedSpikeRecord(sku='{self.sku}', lift={self.lift_multiplier}, status='{self.status}')>"


class ForecastSetting(Base):
    """Key/value overrides for forecasting policy."""
    __tablename__ = 'forecast_settings'

    id = Column(Integer, primary_key=True)
    key = Column(String(64), nullable=False, unique=True)
    value = Column(String(255))


class ForecastRecommendation(Base):
    """Stored outcome of the latest forecasting run for one SKU."""
    __tablename__ = 'forecast_recommendations'

    id = Column(Integer, primary_key=True)
    sku = Column(String(64), nullable=False)
    as_of = Column(Date, nullable=False)
    status = Column(String(16), nullable=False)  # 'ok' or 'skipped'
    skip_reason = Column(Text)

    adjusted_velocity = Column(Float)
    reorder_point = Column(Integer)
    safety_stock = Column(Integer)
    recommended_order_qty = Column(Integer)
    recommended_fba_qty = Column(Integer)
    urgency = Column(String(16))
    stockout_date = Column(Date)
    days_until_stockout = Column(Integer)
    purchase_by_date = Column(Date)
    days_to_purchase = Column(Integer)
    confidence = Column(Float)
    reasoning = Column(Text)  # JSON list

    created_at = Column(DateTime, server_default=func.now())

    __table_args__ = (
        UniqueConstraint('sku', name='uq_forecast_recommendations_sku'),
    )

    def __repr__(self):
        return f"<ForecastRecommendation(sku='{self.sku}', status='{self.status}', urgency='{self.urgency}')>"
