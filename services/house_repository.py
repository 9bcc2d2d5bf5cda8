"""
House Repository - Database access layer for homeowner properties.
Handles houses, their appliances, and the maintenance log history.
"""

import logging
from calendar import monthrange
from datetime import datetime, date
from typing import List, Optional, Dict
from sqlalchemy.orm import Session

from database.models import House, HomeAppliance, MaintenanceLog

logger = logging.getLogger(__name__)


class HouseRepository:
    """Repository for house, appliance and maintenance log operations, scoped to one homeowner."""

    HOUSE_FIELDS = ['name', 'address', 'climate_zone', 'home_systems', 'is_default']
    APPLIANCE_FIELDS = ['appliance_type', 'brand', 'model', 'year_installed',
                        'serial_number', 'location', 'notes']
    APPLIANCE_DATE_FIELDS = ['warranty_expiration', 'last_service_date']
    LOG_FIELDS = ['service_type', 'home_area', 'description', 'cost', 'contractor_name',
                  'contractor_company', 'completion_method', 'notes', 'warranty_period']
    LOG_DATE_FIELDS = ['service_date', 'next_service_due']

    def __init__(self, session: Session, homeowner_id: str):
        self.session = session
        self.homeowner_id = homeowner_id

    # =========================================================================
    # HOUSES
    # =========================================================================

    def _house_query(self):
        return self.session.query(House).filter(House.homeowner_id == self.homeowner_id)

    def _get_house(self, house_id: str) -> Optional[House]:
        return self._house_query().filter(House.id == house_id).first()

    def list_houses(self) -> List[Dict]:
        """List the homeowner's houses, default house first."""
        houses = self._house_query().order_by(House.is_default.desc(), House.created_at).all()
        return [h.to_dict() for h in houses]

    def get_house(self, house_id: str) -> Optional[Dict]:
        """Get a house by ID."""
        house = self._get_house(house_id)
        return house.to_dict() if house else None

    def create_house(self, data: Dict) -> Dict:
        """Create a new house. The first house becomes the default."""
        is_first = self._house_query().count() == 0
        house = House(
            homeowner_id=self.homeowner_id,
            name=data.get('name', ''),
            address=data.get('address'),
            climate_zone=data.get('climate_zone'),
            home_systems=list(data.get('home_systems') or []),
            is_default=bool(data.get('is_default', is_first))
        )
        self.session.add(house)
        self.session.flush()
        logger.info(f"Created house: {house.id}")
        return house.to_dict()

    def update_house(self, house_id: str, data: Dict) -> Optional[Dict]:
        """Update a house."""
        house = self._get_house(house_id)
        if not house:
            return None

        for key in self.HOUSE_FIELDS:
            if key in data:
                setattr(house, key, data[key])

        house.updated_at = datetime.utcnow()
        self.session.flush()
        logger.info(f"Updated house: {house_id}")
        return house.to_dict()

    def delete_house(self, house_id: str) -> bool:
        """Delete a house with its appliances, logs, custom tasks, overrides and completions."""
        house = self._get_house(house_id)
        if not house:
            return False
        self.session.delete(house)
        self.session.flush()
        logger.info(f"Deleted house: {house_id}")
        return True

    # =========================================================================
    # APPLIANCES
    # =========================================================================

    def list_appliances(self, house_id: str) -> List[Dict]:
        """List appliances for a house."""
        appliances = self.session.query(HomeAppliance).filter(
            HomeAppliance.house_id == house_id,
            HomeAppliance.homeowner_id == self.homeowner_id
        ).order_by(HomeAppliance.appliance_type).all()
        return [a.to_dict() for a in appliances]

    def create_appliance(self, house_id: str, data: Dict) -> Optional[Dict]:
        """Add an appliance to a house. Returns None if the house is not the homeowner's."""
        if not self._get_house(house_id):
            return None
        appliance = HomeAppliance(
            house_id=house_id,
            homeowner_id=self.homeowner_id,
            appliance_type=data.get('appliance_type', ''),
            brand=data.get('brand'),
            model=data.get('model'),
            year_installed=data.get('year_installed'),
            serial_number=data.get('serial_number'),
            location=data.get('location'),
            warranty_expiration=self._parse_date(data.get('warranty_expiration')),
            last_service_date=self._parse_date(data.get('last_service_date')),
            notes=data.get('notes')
        )
        self.session.add(appliance)
        self.session.flush()
        logger.info(f"Created appliance: {appliance.id}")
        return appliance.to_dict()

    def _get_appliance(self, appliance_id: str) -> Optional[HomeAppliance]:
        return self.session.query(HomeAppliance).filter(
            HomeAppliance.id == appliance_id,
            HomeAppliance.homeowner_id == self.homeowner_id
        ).first()

    def update_appliance(self, appliance_id: str, data: Dict) -> Optional[Dict]:
        """Update an appliance."""
        appliance = self._get_appliance(appliance_id)
        if not appliance:
            return None

        for key in self.APPLIANCE_FIELDS:
            if key in data:
                setattr(appliance, key, data[key])
        for key in self.APPLIANCE_DATE_FIELDS:
            if key in data:
                setattr(appliance, key, self._parse_date(data[key]))

        appliance.updated_at = datetime.utcnow()
        self.session.flush()
        logger.info(f"Updated appliance: {appliance_id}")
        return appliance.to_dict()

    def delete_appliance(self, appliance_id: str) -> bool:
        """Delete an appliance."""
        appliance = self._get_appliance(appliance_id)
        if not appliance:
            return False
        self.session.delete(appliance)
        self.session.flush()
        logger.info(f"Deleted appliance: {appliance_id}")
        return True

    # =========================================================================
    # MAINTENANCE LOGS
    # =========================================================================

    def list_logs(self, house_id: str) -> List[Dict]:
        """List maintenance logs for a house, newest first."""
        logs = self.session.query(MaintenanceLog).filter(
            MaintenanceLog.house_id == house_id,
            MaintenanceLog.homeowner_id == self.homeowner_id
        ).order_by(MaintenanceLog.service_date.desc()).all()
        return [log.to_dict() for log in logs]

    def list_logs_for_month(self, house_id: str, month: int, year: int) -> List[Dict]:
        """Logs whose service date falls in the given month."""
        start = date(year, month, 1)
        end = date(year, month, monthrange(year, month)[1])
        logs = self.session.query(MaintenanceLog).filter(
            MaintenanceLog.house_id == house_id,
            MaintenanceLog.homeowner_id == self.homeowner_id,
            MaintenanceLog.service_date >= start,
            MaintenanceLog.service_date <= end
        ).order_by(MaintenanceLog.service_date).all()
        return [log.to_dict() for log in logs]

    def create_log(self, house_id: str, data: Dict) -> Optional[Dict]:
        """Record a completed service. Returns None if the house is not the homeowner's."""
        if not self._get_house(house_id):
            return None
        log = MaintenanceLog(
            house_id=house_id,
            homeowner_id=self.homeowner_id,
            service_date=self._parse_date(data.get('service_date')),
            service_type=data.get('service_type', ''),
            home_area=data.get('home_area'),
            description=data.get('description'),
            cost=data.get('cost'),
            contractor_name=data.get('contractor_name'),
            contractor_company=data.get('contractor_company'),
            completion_method=data.get('completion_method'),
            notes=data.get('notes'),
            warranty_period=data.get('warranty_period'),
            next_service_due=self._parse_date(data.get('next_service_due'))
        )
        self.session.add(log)
        self.session.flush()
        logger.info(f"Created maintenance log: {log.id}")
        return log.to_dict()

    def _get_log(self, log_id: str) -> Optional[MaintenanceLog]:
        return self.session.query(MaintenanceLog).filter(
            MaintenanceLog.id == log_id,
            MaintenanceLog.homeowner_id == self.homeowner_id
        ).first()

    def update_log(self, log_id: str, data: Dict) -> Optional[Dict]:
        """Update a maintenance log."""
        log = self._get_log(log_id)
        if not log:
            return None

        for key in self.LOG_FIELDS:
            if key in data:
                setattr(log, key, data[key])
        for key in self.LOG_DATE_FIELDS:
            if key in data:
                setattr(log, key, self._parse_date(data[key]))

        self.session.flush()
        logger.info(f"Updated maintenance log: {log_id}")
        return log.to_dict()

    def delete_log(self, log_id: str) -> bool:
        """Delete a maintenance log."""
        log = self._get_log(log_id)
        if not log:
            return False
        self.session.delete(log)
        self.session.flush()
        logger.info(f"Deleted maintenance log: {log_id}")
        return True

    # =========================================================================
    # HELPERS
    # =========================================================================

    @staticmethod
    def _parse_date(value) -> Optional[date]:
        """Parse a date from string or return None."""
        if not value:
            return None
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        try:
            return datetime.fromisoformat(value.replace('Z', '+00:00')).date()
        except (ValueError, AttributeError):
            return None
