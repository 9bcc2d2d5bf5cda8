"""
SQLAlchemy models for HomeBase.
Defines the homeowner maintenance tables and the contractor CRM tables.

Column types are kept portable (String ids, generic JSON) so the same models
run on PostgreSQL in production and SQLite in tests.
"""

import uuid
from datetime import datetime
from sqlalchemy import (
    Column, String, Text, Integer, Float, Boolean, DateTime, Date,
    ForeignKey, JSON, Index, UniqueConstraint
)
from sqlalchemy.orm import relationship
from database.connection import Base


def generate_uuid():
    """Generate a new UUID."""
    return str(uuid.uuid4())


def _iso(value):
    return value.isoformat() if value else None


# =============================================================================
# HOMEOWNER - HOUSES
# =============================================================================

class House(Base):
    """A homeowner's property; climate zone and installed systems drive the task schedule."""
    __tablename__ = 'houses'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    homeowner_id = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    address = Column(Text)
    climate_zone = Column(String(100))
    home_systems = Column(JSON, default=list)
    is_default = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    appliances = relationship("HomeAppliance", back_populates="house", cascade="all, delete-orphan")
    maintenance_logs = relationship("MaintenanceLog", back_populates="house", cascade="all, delete-orphan")
    custom_tasks = relationship("CustomMaintenanceTask", back_populates="house", cascade="all, delete-orphan")
    task_overrides = relationship("TaskOverride", back_populates="house", cascade="all, delete-orphan")
    task_completions = relationship("TaskCompletion", back_populates="house", cascade="all, delete-orphan")

    __table_args__ = (
        Index('ix_houses_homeowner', 'homeowner_id'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'homeowner_id': self.homeowner_id,
            'name': self.name,
            'address': self.address,
            'climate_zone': self.climate_zone,
            'home_systems': self.home_systems or [],
            'is_default': self.is_default,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at)
        }


class HomeAppliance(Base):
    """Appliances installed in a house."""
    __tablename__ = 'home_appliances'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    house_id = Column(String(36), ForeignKey('houses.id'), nullable=False)
    homeowner_id = Column(String(255), nullable=False)
    appliance_type = Column(String(100), nullable=False)  # hvac, water_heater, washer, etc.
    brand = Column(String(255))
    model = Column(String(255))
    year_installed = Column(Integer)
    serial_number = Column(String(255))
    location = Column(String(255))
    warranty_expiration = Column(Date)
    last_service_date = Column(Date)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    house = relationship("House", back_populates="appliances")

    __table_args__ = (
        Index('ix_home_appliances_house', 'house_id'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'house_id': self.house_id,
            'homeowner_id': self.homeowner_id,
            'appliance_type': self.appliance_type,
            'brand': self.brand,
            'model': self.model,
            'year_installed': self.year_installed,
            'serial_number': self.serial_number,
            'location': self.location,
            'warranty_expiration': _iso(self.warranty_expiration),
            'last_service_date': _iso(self.last_service_date),
            'notes': self.notes,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at)
        }


class MaintenanceLog(Base):
    """A completed service on a house, DIY or by a contractor."""
    __tablename__ = 'maintenance_logs'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    house_id = Column(String(36), ForeignKey('houses.id'), nullable=False)
    homeowner_id = Column(String(255), nullable=False)
    service_date = Column(Date, nullable=False)
    service_type = Column(String(255), nullable=False)
    home_area = Column(String(100))
    description = Column(Text)
    cost = Column(Float)
    contractor_name = Column(String(255))
    contractor_company = Column(String(255))
    completion_method = Column(String(20))  # diy, contractor
    notes = Column(Text)
    warranty_period = Column(String(100))
    next_service_due = Column(Date)
    created_at = Column(DateTime, default=datetime.utcnow)

    house = relationship("House", back_populates="maintenance_logs")

    __table_args__ = (
        Index('ix_maintenance_logs_house', 'house_id'),
        Index('ix_maintenance_logs_service_date', 'service_date'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'house_id': self.house_id,
            'homeowner_id': self.homeowner_id,
            'service_date': _iso(self.service_date),
            'service_type': self.service_type,
            'home_area': self.home_area,
            'description': self.description,
            'cost': self.cost,
            'contractor_name': self.contractor_name,
            'contractor_company': self.contractor_company,
            'completion_method': self.completion_method,
            'notes': self.notes,
            'warranty_period': self.warranty_period,
            'next_service_due': _iso(self.next_service_due),
            'created_at': _iso(self.created_at)
        }


# =============================================================================
# HOMEOWNER - SCHEDULE CUSTOMIZATION
# =============================================================================

class CustomMaintenanceTask(Base):
    """User-authored recurring task that is not in the regional catalog."""
    __tablename__ = 'custom_maintenance_tasks'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    homeowner_id = Column(String(255), nullable=False)
    house_id = Column(String(36), ForeignKey('houses.id'))
    title = Column(String(255), nullable=False)
    description = Column(Text)
    category = Column(String(100))
    priority = Column(String(20), default='medium')  # low, medium, high
    difficulty = Column(String(20), default='easy')  # easy, moderate, difficult
    estimated_time = Column(String(100))
    frequency_type = Column(String(20), nullable=False, default='monthly')
    frequency_value = Column(String(100))
    specific_months = Column(JSON)
    tools = Column(JSON)
    cost = Column(String(100))
    pro_cost_low = Column(Float)
    pro_cost_high = Column(Float)
    materials_cost_low = Column(Float)
    materials_cost_high = Column(Float)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    house = relationship("House", back_populates="custom_tasks")

    __table_args__ = (
        Index('ix_custom_tasks_homeowner', 'homeowner_id'),
        Index('ix_custom_tasks_house', 'house_id'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'homeowner_id': self.homeowner_id,
            'house_id': self.house_id,
            'title': self.title,
            'description': self.description,
            'category': self.category,
            'priority': self.priority,
            'difficulty': self.difficulty,
            'estimated_time': self.estimated_time,
            'frequency_type': self.frequency_type,
            'frequency_value': self.frequency_value,
            'specific_months': self.specific_months or [],
            'tools': self.tools or [],
            'cost': self.cost,
            'pro_cost_low': self.pro_cost_low,
            'pro_cost_high': self.pro_cost_high,
            'materials_cost_low': self.materials_cost_low,
            'materials_cost_high': self.materials_cost_high,
            'is_active': self.is_active,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at)
        }


class TaskOverride(Base):
    """Per-house customization of a catalog or custom task. No row means catalog defaults."""
    __tablename__ = 'task_overrides'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    homeowner_id = Column(String(255), nullable=False)
    house_id = Column(String(36), ForeignKey('houses.id'), nullable=False)
    task_id = Column(String(255), nullable=False)  # catalog key / title slug
    is_enabled = Column(Boolean, default=True, nullable=False)
    frequency_type = Column(String(20))
    frequency_value = Column(String(100))
    specific_months = Column(JSON)
    custom_description = Column(Text)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    house = relationship("House", back_populates="task_overrides")

    __table_args__ = (
        UniqueConstraint('house_id', 'task_id', name='uq_task_overrides_house_task'),
        Index('ix_task_overrides_house', 'house_id'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'homeowner_id': self.homeowner_id,
            'house_id': self.house_id,
            'task_id': self.task_id,
            'is_enabled': self.is_enabled,
            'frequency_type': self.frequency_type,
            'frequency_value': self.frequency_value,
            'specific_months': self.specific_months,
            'custom_description': self.custom_description,
            'notes': self.notes,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at)
        }


class TaskCompletion(Base):
    """Lightweight 'done this month' flag for a scheduled task."""
    __tablename__ = 'task_completions'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    homeowner_id = Column(String(255), nullable=False)
    house_id = Column(String(36), ForeignKey('houses.id'), nullable=False)
    task_key = Column(String(255), nullable=False)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    completed_at = Column(DateTime, default=datetime.utcnow)

    house = relationship("House", back_populates="task_completions")

    __table_args__ = (
        UniqueConstraint('house_id', 'task_key', 'month', 'year', name='uq_task_completions_key'),
        Index('ix_task_completions_house_period', 'house_id', 'year', 'month'),
    )

    @property
    def completion_key(self):
        return f"{self.task_key}-{self.month}-{self.year}"

    def to_dict(self):
        return {
            'id': self.id,
            'homeowner_id': self.homeowner_id,
            'house_id': self.house_id,
            'task_key': self.task_key,
            'month': self.month,
            'year': self.year,
            'completion_key': self.completion_key,
            'completed_at': _iso(self.completed_at)
        }


# =============================================================================
# CRM - LEADS
# =============================================================================

class CrmLead(Base):
    """Sales leads for a contractor."""
    __tablename__ = 'crm_leads'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    contractor_id = Column(String(255), nullable=False)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    email = Column(String(255))
    phone = Column(String(50))
    address = Column(Text)
    city = Column(String(100))
    state = Column(String(100))
    postal_code = Column(String(20))
    source = Column(String(50), default='other')
    status = Column(String(50), default='new')  # new, contacted, qualified, proposal_sent, won, lost, not_interested
    priority = Column(String(20), default='medium')  # low, medium, high, urgent
    project_type = Column(String(100))
    estimated_value = Column(Float)
    follow_up_date = Column(Date)
    tags = Column(JSON, default=list)
    lost_reason = Column(Text)
    client_id = Column(String(36), ForeignKey('crm_clients.id'))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    notes = relationship("CrmNote", back_populates="lead", cascade="all, delete-orphan",
                         order_by="CrmNote.created_at")

    __table_args__ = (
        Index('ix_crm_leads_contractor', 'contractor_id'),
        Index('ix_crm_leads_status', 'status'),
    )

    def to_dict(self, include_notes=False):
        data = {
            'id': self.id,
            'contractor_id': self.contractor_id,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'email': self.email,
            'phone': self.phone,
            'address': self.address,
            'city': self.city,
            'state': self.state,
            'postal_code': self.postal_code,
            'source': self.source,
            'status': self.status,
            'priority': self.priority,
            'project_type': self.project_type,
            'estimated_value': self.estimated_value,
            'follow_up_date': _iso(self.follow_up_date),
            'tags': self.tags or [],
            'lost_reason': self.lost_reason,
            'client_id': self.client_id,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at)
        }
        if include_notes:
            data['notes'] = [n.to_dict() for n in self.notes]
        return data


class CrmNote(Base):
    """Free-text notes attached to a lead."""
    __tablename__ = 'crm_notes'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    lead_id = Column(String(36), ForeignKey('crm_leads.id'), nullable=False)
    contractor_id = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    note_type = Column(String(50), default='note')  # note, call, email, meeting
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    lead = relationship("CrmLead", back_populates="notes")

    def to_dict(self):
        return {
            'id': self.id,
            'lead_id': self.lead_id,
            'contractor_id': self.contractor_id,
            'content': self.content,
            'note_type': self.note_type,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at)
        }


# =============================================================================
# CRM - CLIENTS & JOBS
# =============================================================================

class CrmClient(Base):
    """Contractor's customer records."""
    __tablename__ = 'crm_clients'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    contractor_id = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    company = Column(String(255))
    email = Column(String(255))
    phone = Column(String(50))
    address = Column(Text)
    city = Column(String(100))
    state = Column(String(100))
    postal_code = Column(String(20))
    notes = Column(Text)
    tags = Column(JSON, default=list)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    jobs = relationship("CrmJob", back_populates="client")
    quotes = relationship("CrmQuote", back_populates="client")
    invoices = relationship("CrmInvoice", back_populates="client")

    __table_args__ = (
        Index('ix_crm_clients_contractor', 'contractor_id'),
        Index('ix_crm_clients_name', 'name'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'contractor_id': self.contractor_id,
            'name': self.name,
            'company': self.company,
            'email': self.email,
            'phone': self.phone,
            'address': self.address,
            'city': self.city,
            'state': self.state,
            'postal_code': self.postal_code,
            'notes': self.notes,
            'tags': self.tags or [],
            'is_active': self.is_active,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at)
        }


class CrmJob(Base):
    """Work orders for a client."""
    __tablename__ = 'crm_jobs'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    contractor_id = Column(String(255), nullable=False)
    client_id = Column(String(36), ForeignKey('crm_clients.id'))
    title = Column(String(255), nullable=False)
    description = Column(Text)
    status = Column(String(50), default='scheduled')  # scheduled, in_progress, completed, cancelled
    priority = Column(String(20), default='medium')
    service_type = Column(String(100))
    address = Column(Text)
    scheduled_date = Column(DateTime)
    completed_date = Column(DateTime)
    estimated_hours = Column(Float)
    actual_hours = Column(Float)
    labor_cost = Column(Float, default=0)
    materials_cost = Column(Float, default=0)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    client = relationship("CrmClient", back_populates="jobs")

    __table_args__ = (
        Index('ix_crm_jobs_contractor', 'contractor_id'),
        Index('ix_crm_jobs_client', 'client_id'),
        Index('ix_crm_jobs_status', 'status'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'contractor_id': self.contractor_id,
            'client_id': self.client_id,
            'title': self.title,
            'description': self.description,
            'status': self.status,
            'priority': self.priority,
            'service_type': self.service_type,
            'address': self.address,
            'scheduled_date': _iso(self.scheduled_date),
            'completed_date': _iso(self.completed_date),
            'estimated_hours': self.estimated_hours,
            'actual_hours': self.actual_hours,
            'labor_cost': self.labor_cost,
            'materials_cost': self.materials_cost,
            'notes': self.notes,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at)
        }


# =============================================================================
# CRM - QUOTES & INVOICES
# =============================================================================

class CrmQuote(Base):
    """Quotes/Estimates sent to clients."""
    __tablename__ = 'crm_quotes'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    contractor_id = Column(String(255), nullable=False)
    client_id = Column(String(36), ForeignKey('crm_clients.id'))
    job_id = Column(String(36), ForeignKey('crm_jobs.id'))
    quote_number = Column(String(50))
    title = Column(String(255), nullable=False)
    description = Column(Text)
    status = Column(String(50), default='draft')  # draft, sent, accepted, rejected, expired
    subtotal = Column(Float, default=0)
    tax_rate = Column(Float, default=0)
    tax_amount = Column(Float, default=0)
    total_amount = Column(Float, default=0)
    valid_until = Column(Date)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    client = relationship("CrmClient", back_populates="quotes")
    line_items = relationship("CrmLineItem", back_populates="quote", cascade="all, delete-orphan",
                              foreign_keys="CrmLineItem.quote_id", order_by="CrmLineItem.position")

    __table_args__ = (
        UniqueConstraint('contractor_id', 'quote_number', name='uq_crm_quotes_number'),
        Index('ix_crm_quotes_contractor', 'contractor_id'),
        Index('ix_crm_quotes_status', 'status'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'contractor_id': self.contractor_id,
            'client_id': self.client_id,
            'job_id': self.job_id,
            'quote_number': self.quote_number,
            'title': self.title,
            'description': self.description,
            'status': self.status,
            'subtotal': self.subtotal,
            'tax_rate': self.tax_rate,
            'tax_amount': self.tax_amount,
            'total_amount': self.total_amount,
            'valid_until': _iso(self.valid_until),
            'notes': self.notes,
            'line_items': [item.to_dict() for item in self.line_items],
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at)
        }


class CrmInvoice(Base):
    """Invoices billed to clients."""
    __tablename__ = 'crm_invoices'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    contractor_id = Column(String(255), nullable=False)
    client_id = Column(String(36), ForeignKey('crm_clients.id'))
    quote_id = Column(String(36), ForeignKey('crm_quotes.id'))
    job_id = Column(String(36), ForeignKey('crm_jobs.id'))
    invoice_number = Column(String(50), nullable=False)
    status = Column(String(50), default='draft')  # draft, sent, paid, overdue, cancelled
    subtotal = Column(Float, default=0)
    tax_rate = Column(Float, default=0)
    tax_amount = Column(Float, default=0)
    total_amount = Column(Float, default=0)
    issue_date = Column(Date)
    due_date = Column(Date)
    paid_date = Column(Date)
    payment_method = Column(String(50))
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    client = relationship("CrmClient", back_populates="invoices")
    line_items = relationship("CrmLineItem", back_populates="invoice", cascade="all, delete-orphan",
                              foreign_keys="CrmLineItem.invoice_id", order_by="CrmLineItem.position")

    __table_args__ = (
        UniqueConstraint('contractor_id', 'invoice_number', name='uq_crm_invoices_number'),
        Index('ix_crm_invoices_contractor', 'contractor_id'),
        Index('ix_crm_invoices_status', 'status'),
        Index('ix_crm_invoices_due_date', 'due_date'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'contractor_id': self.contractor_id,
            'client_id': self.client_id,
            'quote_id': self.quote_id,
            'job_id': self.job_id,
            'invoice_number': self.invoice_number,
            'status': self.status,
            'subtotal': self.subtotal,
            'tax_rate': self.tax_rate,
            'tax_amount': self.tax_amount,
            'total_amount': self.total_amount,
            'issue_date': _iso(self.issue_date),
            'due_date': _iso(self.due_date),
            'paid_date': _iso(self.paid_date),
            'payment_method': self.payment_method,
            'notes': self.notes,
            'line_items': [item.to_dict() for item in self.line_items],
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at)
        }


class CrmLineItem(Base):
    """A priced line on a quote or an invoice."""
    __tablename__ = 'crm_line_items'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    quote_id = Column(String(36), ForeignKey('crm_quotes.id'))
    invoice_id = Column(String(36), ForeignKey('crm_invoices.id'))
    description = Column(String(255), nullable=False)
    quantity = Column(Float, default=1)
    unit_price = Column(Float, default=0)
    total_price = Column(Float, default=0)
    position = Column(Integer, default=0)

    quote = relationship("CrmQuote", back_populates="line_items", foreign_keys=[quote_id])
    invoice = relationship("CrmInvoice", back_populates="line_items", foreign_keys=[invoice_id])

    def to_dict(self):
        return {
            'id': self.id,
            'description': self.description,
            'quantity': self.quantity,
            'unit_price': self.unit_price,
            'total_price': self.total_price,
            'position': self.position
        }


# =============================================================================
# EVENTS & NOTIFICATIONS
# =============================================================================

class EventLog(Base):
    """
    Event log for tracking CRM activity.
    Powers the activity feed and reminders.
    """
    __tablename__ = 'event_log'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    owner_id = Column(String(255))
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False)
    actor_type = Column(String(50))  # user, system
    actor_id = Column(String(255))
    entity_type = Column(String(50), nullable=False)  # lead, client, job, quote, invoice
    entity_id = Column(String(36), nullable=False)
    event_type = Column(String(100), nullable=False)  # CREATED, UPDATED, STATUS_CHANGED, etc.
    description = Column(Text)
    extra_data = Column(JSON, default=dict)

    __table_args__ = (
        Index('ix_event_log_owner', 'owner_id'),
        Index('ix_event_log_entity', 'entity_type', 'entity_id'),
        Index('ix_event_log_timestamp', 'timestamp'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'owner_id': self.owner_id,
            'timestamp': _iso(self.timestamp),
            'actor_type': self.actor_type,
            'actor_id': self.actor_id,
            'entity_type': self.entity_type,
            'entity_id': self.entity_id,
            'event_type': self.event_type,
            'description': self.description,
            'metadata': self.extra_data or {}
        }


class Notification(Base):
    """In-app notifications (reminders, alerts). Delivery channels live elsewhere."""
    __tablename__ = 'notifications'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(255), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text)
    notification_type = Column(String(50), default='info')  # info, reminder, alert
    priority = Column(String(20), default='normal')  # low, normal, high, urgent
    entity_type = Column(String(50))
    entity_id = Column(String(36))
    dedupe_key = Column(String(255))
    is_read = Column(Boolean, default=False)
    read_at = Column(DateTime)
    extra_data = Column(JSON, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index('ix_notifications_user', 'user_id'),
        Index('ix_notifications_is_read', 'is_read'),
        Index('ix_notifications_dedupe', 'user_id', 'dedupe_key'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'title': self.title,
            'message': self.message,
            'notification_type': self.notification_type,
            'priority': self.priority,
            'entity_type': self.entity_type,
            'entity_id': self.entity_id,
            'is_read': self.is_read,
            'read_at': _iso(self.read_at),
            'metadata': self.extra_data or {},
            'created_at': _iso(self.created_at)
        }
