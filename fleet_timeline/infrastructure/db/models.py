"""
Database Models (SQLAlchemy ORM)
Read by the timeline; written by the rental back office
"""

from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey, Index, Integer, String
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from fleet_timeline.infrastructure.db.database import Base


class VehicleClassModel(Base):
    """Vehicle class (Scooter, Motorbike, ...)"""
    __tablename__ = "vehicle_classes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)

    vehicles = relationship("VehicleModel", back_populates="vehicle_class")


class VehicleStatusModel(Base):
    """Operational status a vehicle can be in"""
    __tablename__ = "vehicle_statuses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    status_name = Column(String(100), nullable=False)
    is_rentable = Column(Boolean, nullable=False, default=True)


class VehicleModel(Base):
    """Vehicle - deleted_at marks retirement (soft delete)"""
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_class_id = Column(Integer, ForeignKey("vehicle_classes.id"), nullable=True, index=True)
    current_status_id = Column(Integer, ForeignKey("vehicle_statuses.id"), nullable=True)
    current_rental_id = Column(Integer, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    deleted_at = Column(DateTime, nullable=True)

    vehicle_class = relationship("VehicleClassModel", back_populates="vehicles")
    status = relationship("VehicleStatusModel")

    __table_args__ = (
        Index("ix_vehicles_lifecycle", "created_at", "deleted_at"),
    )


class RentalModel(Base):
    """Rental - end_date NULL means still ongoing"""
    __tablename__ = "rentals"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=True)
    deleted_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_rentals_interval", "start_date", "end_date"),
    )
