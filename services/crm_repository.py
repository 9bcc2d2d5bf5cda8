"""
CRM Repository - Database access layer for contractor CRM entities.
Handles leads (with notes), clients, jobs, quotes and invoices.
All mutations are logged to the event_log table for the activity feed.
"""

import logging
from datetime import datetime, date, timedelta
from typing import List, Optional, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy import or_, func

from database.models import (
    CrmLead, CrmNote, CrmClient, CrmJob,
    CrmQuote, CrmInvoice, CrmLineItem, EventLog
)

logger = logging.getLogger(__name__)

OPEN_LEAD_STATUSES = ('new', 'contacted', 'qualified', 'proposal_sent')
DEFAULT_PAYMENT_TERMS_DAYS = 30


class CRMRepository:
    """Repository for CRM database operations with event logging."""

    LEAD_FIELDS = ['first_name', 'last_name', 'email', 'phone', 'address', 'city', 'state',
                   'postal_code', 'source', 'status', 'priority', 'project_type',
                   'estimated_value', 'tags', 'lost_reason']
    CLIENT_FIELDS = ['name', 'company', 'email', 'phone', 'address', 'city', 'state',
                     'postal_code', 'notes', 'tags', 'is_active']
    JOB_FIELDS = ['title', 'description', 'status', 'priority', 'service_type', 'address',
                  'estimated_hours', 'actual_hours', 'labor_cost', 'materials_cost', 'notes']

    def __init__(self, session: Session, contractor_id: str, user_id: str = None):
        self.session = session
        self.contractor_id = contractor_id
        self.user_id = user_id or contractor_id  # For tracking who made changes

    def _log_event(self, entity_type: str, entity_id: str, event_type: str,
                   description: str = None, metadata: Dict = None):
        """Log an event to the event_log table."""
        try:
            event = EventLog(
                owner_id=self.contractor_id,
                timestamp=datetime.utcnow(),
                actor_type='user' if self.user_id else 'system',
                actor_id=self.user_id,
                entity_type=entity_type,
                entity_id=entity_id,
                event_type=event_type,
                description=description,
                extra_data=metadata or {}
            )
            self.session.add(event)
        except Exception as e:
            logger.warning(f"Failed to log event: {e}")

    def _track_changes(self, entity, fields: List[str], data: Dict) -> Dict[str, Any]:
        """Apply ``data`` to ``entity`` for the given fields and return what changed."""
        changes = {}
        for key in fields:
            if key in data:
                old_value = getattr(entity, key)
                new_value = data[key]
                if old_value != new_value:
                    changes[key] = {'old': old_value, 'new': new_value}
                setattr(entity, key, new_value)
        return changes

    def _owned(self, model, entity_id: str):
        return self.session.query(model).filter(
            model.id == entity_id,
            model.contractor_id == self.contractor_id
        ).first()

    def list_events(self, entity_type: str = None, entity_id: str = None,
                    limit: int = 50) -> List[Dict]:
        """Recent activity, newest first."""
        query = self.session.query(EventLog).filter(EventLog.owner_id == self.contractor_id)
        if entity_type:
            query = query.filter(EventLog.entity_type == entity_type)
        if entity_id:
            query = query.filter(EventLog.entity_id == entity_id)
        events = query.order_by(EventLog.timestamp.desc()).limit(limit).all()
        return [e.to_dict() for e in events]

    # =========================================================================
    # LEADS
    # =========================================================================

    def list_leads(self, status: str = None, priority: str = None,
                   search: str = None) -> List[Dict]:
        """List leads with optional filters."""
        query = self.session.query(CrmLead).filter(CrmLead.contractor_id == self.contractor_id)
        if status:
            query = query.filter(CrmLead.status == status)
        if priority:
            query = query.filter(CrmLead.priority == priority)
        if search:
            term = f"%{search}%"
            query = query.filter(or_(
                CrmLead.first_name.ilike(term),
                CrmLead.last_name.ilike(term),
                CrmLead.email.ilike(term),
                CrmLead.project_type.ilike(term)
            ))
        leads = query.order_by(CrmLead.created_at.desc()).all()
        return [lead.to_dict() for lead in leads]

    def get_lead(self, lead_id: str) -> Optional[Dict]:
        """Get a lead by ID, including its notes."""
        lead = self._owned(CrmLead, lead_id)
        return lead.to_dict(include_notes=True) if lead else None

    def create_lead(self, data: Dict) -> Dict:
        """Create a new lead."""
        lead = CrmLead(
            contractor_id=self.contractor_id,
            first_name=data.get('first_name', ''),
            last_name=data.get('last_name', ''),
            email=data.get('email'),
            phone=data.get('phone'),
            address=data.get('address'),
            city=data.get('city'),
            state=data.get('state'),
            postal_code=data.get('postal_code'),
            source=data.get('source', 'other'),
            status=data.get('status', 'new'),
            priority=data.get('priority', 'medium'),
            project_type=data.get('project_type'),
            estimated_value=data.get('estimated_value'),
            follow_up_date=self._parse_date(data.get('follow_up_date')),
            tags=data.get('tags', [])
        )
        self.session.add(lead)
        self.session.flush()

        self._log_event(
            entity_type='lead',
            entity_id=lead.id,
            event_type='CREATED',
            description=f"Lead '{lead.first_name} {lead.last_name}' was created",
            metadata={'source': lead.source, 'estimated_value': lead.estimated_value}
        )

        logger.info(f"Created lead: {lead.id}")
        return lead.to_dict()

    def update_lead(self, lead_id: str, data: Dict) -> Optional[Dict]:
        """Update a lead. Status changes are logged separately."""
        lead = self._owned(CrmLead, lead_id)
        if not lead:
            return None

        old_status = lead.status
        changes = self._track_changes(lead, self.LEAD_FIELDS, data)
        if 'follow_up_date' in data:
            lead.follow_up_date = self._parse_date(data['follow_up_date'])

        lead.updated_at = datetime.utcnow()
        self.session.flush()

        if 'status' in changes:
            self._log_event(
                entity_type='lead',
                entity_id=lead_id,
                event_type='STATUS_CHANGED',
                description=f"Lead status changed from '{old_status}' to '{lead.status}'",
                metadata={'old_status': old_status, 'new_status': lead.status}
            )
        elif changes:
            self._log_event(
                entity_type='lead',
                entity_id=lead_id,
                event_type='UPDATED',
                description=f"Lead '{lead.first_name} {lead.last_name}' was updated",
                metadata={'updated_fields': list(changes.keys())}
            )

        logger.info(f"Updated lead: {lead_id}")
        return lead.to_dict()

    def delete_lead(self, lead_id: str) -> bool:
        """Delete a lead and its notes."""
        lead = self._owned(CrmLead, lead_id)
        if not lead:
            return False
        name = f"{lead.first_name} {lead.last_name}"
        self.session.delete(lead)
        self.session.flush()

        self._log_event(
            entity_type='lead',
            entity_id=lead_id,
            event_type='DELETED',
            description=f"Lead '{name}' was deleted"
        )
        logger.info(f"Deleted lead: {lead_id}")
        return True

    def add_lead_note(self, lead_id: str, content: str, note_type: str = 'note') -> Optional[Dict]:
        """Attach a note to a lead."""
        lead = self._owned(CrmLead, lead_id)
        if not lead:
            return None
        note = CrmNote(
            lead_id=lead_id,
            contractor_id=self.contractor_id,
            content=content,
            note_type=note_type or 'note'
        )
        self.session.add(note)
        lead.updated_at = datetime.utcnow()
        self.session.flush()

        self._log_event(
            entity_type='lead',
            entity_id=lead_id,
            event_type='NOTE_ADDED',
            description=f"{note.note_type.capitalize()} added to lead",
            metadata={'note_id': note.id}
        )
        logger.info(f"Added note {note.id} to lead {lead_id}")
        return note.to_dict()

    def list_lead_notes(self, lead_id: str) -> Optional[List[Dict]]:
        lead = self._owned(CrmLead, lead_id)
        if not lead:
            return None
        return [n.to_dict() for n in lead.notes]

    def convert_lead(self, lead_id: str) -> Optional[Dict]:
        """
        Convert a lead into a client and mark the lead won.

        Converting an already converted lead returns the existing client.
        """
        lead = self._owned(CrmLead, lead_id)
        if not lead:
            return None

        if lead.client_id:
            client = self._owned(CrmClient, lead.client_id)
            if client:
                return {'lead': lead.to_dict(), 'client': client.to_dict()}

        client = CrmClient(
            contractor_id=self.contractor_id,
            name=f"{lead.first_name} {lead.last_name}".strip(),
            email=lead.email,
            phone=lead.phone,
            address=lead.address,
            city=lead.city,
            state=lead.state,
            postal_code=lead.postal_code,
            tags=list(lead.tags or [])
        )
        self.session.add(client)
        self.session.flush()

        old_status = lead.status
        lead.client_id = client.id
        lead.status = 'won'
        lead.updated_at = datetime.utcnow()
        self.session.flush()

        self._log_event(
            entity_type='lead',
            entity_id=lead_id,
            event_type='CONVERTED',
            description=f"Lead converted to client '{client.name}'",
            metadata={'client_id': client.id, 'old_status': old_status}
        )
        self._log_event(
            entity_type='client',
            entity_id=client.id,
            event_type='CREATED',
            description=f"Client '{client.name}' was created from a lead",
            metadata={'lead_id': lead_id}
        )

        logger.info(f"Converted lead {lead_id} to client {client.id}")
        return {'lead': lead.to_dict(), 'client': client.to_dict()}

    # =========================================================================
    # CLIENTS
    # =========================================================================

    def list_clients(self, active_only: bool = True, search: str = None) -> List[Dict]:
        """List all clients."""
        query = self.session.query(CrmClient).filter(CrmClient.contractor_id == self.contractor_id)
        if active_only:
            query = query.filter(CrmClient.is_active == True)
        if search:
            term = f"%{search}%"
            query = query.filter(or_(
                CrmClient.name.ilike(term),
                CrmClient.company.ilike(term),
                CrmClient.email.ilike(term)
            ))
        clients = query.order_by(CrmClient.name).all()
        return [c.to_dict() for c in clients]

    def get_client(self, client_id: str) -> Optional[Dict]:
        """Get a client by ID."""
        client = self._owned(CrmClient, client_id)
        return client.to_dict() if client else None

    def create_client(self, data: Dict) -> Dict:
        """Create a new client."""
        client = CrmClient(
            contractor_id=self.contractor_id,
            name=data.get('name', ''),
            company=data.get('company'),
            email=data.get('email'),
            phone=data.get('phone'),
            address=data.get('address'),
            city=data.get('city'),
            state=data.get('state'),
            postal_code=data.get('postal_code'),
            notes=data.get('notes'),
            tags=data.get('tags', [])
        )
        self.session.add(client)
        self.session.flush()

        self._log_event(
            entity_type='client',
            entity_id=client.id,
            event_type='CREATED',
            description=f"Client '{client.name}' was created",
            metadata={'client_name': client.name, 'email': client.email}
        )

        logger.info(f"Created client: {client.id}")
        return client.to_dict()

    def update_client(self, client_id: str, data: Dict) -> Optional[Dict]:
        """Update a client."""
        client = self._owned(CrmClient, client_id)
        if not client:
            return None

        changes = self._track_changes(client, self.CLIENT_FIELDS, data)
        client.updated_at = datetime.utcnow()
        self.session.flush()

        if changes:
            self._log_event(
                entity_type='client',
                entity_id=client_id,
                event_type='UPDATED',
                description=f"Client '{client.name}' was updated",
                metadata={'changes': changes}
            )

        logger.info(f"Updated client: {client_id}")
        return client.to_dict()

    def delete_client(self, client_id: str) -> bool:
        """Soft delete a client (set inactive)."""
        client = self._owned(CrmClient, client_id)
        if not client:
            return False

        client.is_active = False
        client.updated_at = datetime.utcnow()
        self.session.flush()

        self._log_event(
            entity_type='client',
            entity_id=client_id,
            event_type='DELETED',
            description=f"Client '{client.name}' was deactivated"
        )

        logger.info(f"Deleted (deactivated) client: {client_id}")
        return True

    # =========================================================================
    # JOBS
    # =========================================================================

    def list_jobs(self, client_id: str = None, status: str = None) -> List[Dict]:
        """List jobs, optionally filtered by client or status."""
        query = self.session.query(CrmJob).filter(CrmJob.contractor_id == self.contractor_id)
        if client_id:
            query = query.filter(CrmJob.client_id == client_id)
        if status:
            query = query.filter(CrmJob.status == status)
        jobs = query.order_by(CrmJob.scheduled_date.desc(), CrmJob.created_at.desc()).all()
        return [j.to_dict() for j in jobs]

    def get_job(self, job_id: str) -> Optional[Dict]:
        """Get a job by ID."""
        job = self._owned(CrmJob, job_id)
        return job.to_dict() if job else None

    def create_job(self, data: Dict) -> Dict:
        """Create a new job."""
        job = CrmJob(
            contractor_id=self.contractor_id,
            client_id=data.get('client_id') or None,
            title=data.get('title', ''),
            description=data.get('description'),
            status=data.get('status', 'scheduled'),
            priority=data.get('priority', 'medium'),
            service_type=data.get('service_type'),
            address=data.get('address'),
            scheduled_date=self._parse_datetime(data.get('scheduled_date')),
            estimated_hours=data.get('estimated_hours'),
            labor_cost=data.get('labor_cost', 0),
            materials_cost=data.get('materials_cost', 0),
            notes=data.get('notes')
        )
        self.session.add(job)
        self.session.flush()

        self._log_event(
            entity_type='job',
            entity_id=job.id,
            event_type='CREATED',
            description=f"Job '{job.title}' was created",
            metadata={'client_id': job.client_id, 'status': job.status}
        )

        logger.info(f"Created job: {job.id}")
        return job.to_dict()

    def update_job(self, job_id: str, data: Dict) -> Optional[Dict]:
        """Update a job. Completing a job stamps completed_date."""
        job = self._owned(CrmJob, job_id)
        if not job:
            return None

        old_status = job.status
        changes = self._track_changes(job, self.JOB_FIELDS, data)
        if 'client_id' in data:
            job.client_id = data['client_id'] or None
        if 'scheduled_date' in data:
            job.scheduled_date = self._parse_datetime(data['scheduled_date'])
        if 'completed_date' in data:
            job.completed_date = self._parse_datetime(data['completed_date'])
        elif job.status == 'completed' and old_status != 'completed' and not job.completed_date:
            job.completed_date = datetime.utcnow()

        job.updated_at = datetime.utcnow()
        self.session.flush()

        if 'status' in changes:
            self._log_event(
                entity_type='job',
                entity_id=job_id,
                event_type='JOB_COMPLETED' if job.status == 'completed' else 'STATUS_CHANGED',
                description=f"Job '{job.title}' status changed from '{old_status}' to '{job.status}'",
                metadata={'old_status': old_status, 'new_status': job.status}
            )
        else:
            self._log_event(
                entity_type='job',
                entity_id=job_id,
                event_type='UPDATED',
                description=f"Job '{job.title}' was updated",
                metadata={'updated_fields': list(data.keys())}
            )

        logger.info(f"Updated job: {job_id}")
        return job.to_dict()

    def delete_job(self, job_id: str) -> bool:
        """Delete a job."""
        job = self._owned(CrmJob, job_id)
        if not job:
            return False
        title = job.title
        self.session.delete(job)
        self.session.flush()

        self._log_event(
            entity_type='job',
            entity_id=job_id,
            event_type='DELETED',
            description=f"Job '{title}' was deleted"
        )
        logger.info(f"Deleted job: {job_id}")
        return True

    # =========================================================================
    # LINE ITEMS & TOTALS
    # =========================================================================

    @staticmethod
    def _build_line_items(items: List[Dict]) -> List[CrmLineItem]:
        line_items = []
        for position, item in enumerate(items or []):
            quantity = float(item.get('quantity', 1) or 0)
            unit_price = float(item.get('unit_price', 0) or 0)
            line_items.append(CrmLineItem(
                description=item.get('description', ''),
                quantity=quantity,
                unit_price=unit_price,
                total_price=round(quantity * unit_price, 2),
                position=position
            ))
        return line_items

    @staticmethod
    def _apply_totals(document):
        """Recompute subtotal, tax and total from line items. tax_rate is a percentage."""
        subtotal = round(sum(item.total_price or 0 for item in document.line_items), 2)
        tax_rate = document.tax_rate or 0
        tax_amount = round(subtotal * tax_rate / 100.0, 2)
        document.subtotal = subtotal
        document.tax_amount = tax_amount
        document.total_amount = round(subtotal + tax_amount, 2)

    # =========================================================================
    # QUOTES
    # =========================================================================

    def list_quotes(self, client_id: str = None, status: str = None) -> List[Dict]:
        """List quotes with optional filters."""
        query = self.session.query(CrmQuote).filter(CrmQuote.contractor_id == self.contractor_id)
        if client_id:
            query = query.filter(CrmQuote.client_id == client_id)
        if status:
            query = query.filter(CrmQuote.status == status)
        quotes = query.order_by(CrmQuote.created_at.desc()).all()
        return [q.to_dict() for q in quotes]

    def get_quote(self, quote_id: str) -> Optional[Dict]:
        """Get a quote by ID."""
        quote = self._owned(CrmQuote, quote_id)
        return quote.to_dict() if quote else None

    def _next_quote_number(self) -> str:
        prefix = "Q-"
        numbers = self.session.query(CrmQuote.quote_number).filter(
            CrmQuote.contractor_id == self.contractor_id,
            CrmQuote.quote_number.like(f"{prefix}%")
        ).all()

        highest = 0
        for (number,) in numbers:
            try:
                highest = max(highest, int(number[len(prefix):]))
            except ValueError:
                continue
        return f"{prefix}{highest + 1:04d}"

    def create_quote(self, data: Dict) -> Dict:
        """Create a new quote; totals are computed from line items."""
        quote = CrmQuote(
            contractor_id=self.contractor_id,
            client_id=data.get('client_id') or None,
            job_id=data.get('job_id') or None,
            quote_number=data.get('quote_number') or self._next_quote_number(),
            title=data.get('title', ''),
            description=data.get('description'),
            status=data.get('status', 'draft'),
            tax_rate=data.get('tax_rate', 0) or 0,
            valid_until=self._parse_date(data.get('valid_until')),
            notes=data.get('notes')
        )
        quote.line_items = self._build_line_items(data.get('line_items'))
        self._apply_totals(quote)
        self.session.add(quote)
        self.session.flush()

        self._log_event(
            entity_type='quote',
            entity_id=quote.id,
            event_type='CREATED',
            description=f"Quote '{quote.title}' was created (${quote.total_amount})",
            metadata={
                'title': quote.title,
                'total_amount': quote.total_amount,
                'client_id': quote.client_id,
                'status': quote.status
            }
        )

        logger.info(f"Created quote: {quote.id}")
        return quote.to_dict()

    def update_quote(self, quote_id: str, data: Dict) -> Optional[Dict]:
        """Update a quote. Sending line_items replaces them all."""
        quote = self._owned(CrmQuote, quote_id)
        if not quote:
            return None

        old_status = quote.status

        for key in ['quote_number', 'title', 'description', 'status', 'tax_rate', 'notes']:
            if key in data:
                setattr(quote, key, data[key])
        if 'client_id' in data:
            quote.client_id = data['client_id'] or None
        if 'job_id' in data:
            quote.job_id = data['job_id'] or None
        if 'valid_until' in data:
            quote.valid_until = self._parse_date(data['valid_until'])
        if 'line_items' in data:
            quote.line_items = self._build_line_items(data['line_items'])

        self._apply_totals(quote)
        quote.updated_at = datetime.utcnow()
        self.session.flush()

        if 'status' in data and old_status != data['status']:
            event_type = 'STATUS_CHANGED'
            if data['status'] == 'sent':
                event_type = 'QUOTE_SENT'
            elif data['status'] == 'accepted':
                event_type = 'QUOTE_ACCEPTED'
            elif data['status'] == 'rejected':
                event_type = 'QUOTE_REJECTED'
            elif data['status'] == 'expired':
                event_type = 'QUOTE_EXPIRED'

            self._log_event(
                entity_type='quote',
                entity_id=quote_id,
                event_type=event_type,
                description=f"Quote '{quote.title}' status changed from '{old_status}' to '{quote.status}'",
                metadata={
                    'old_status': old_status,
                    'new_status': quote.status,
                    'total_amount': quote.total_amount
                }
            )
        else:
            self._log_event(
                entity_type='quote',
                entity_id=quote_id,
                event_type='UPDATED',
                description=f"Quote '{quote.title}' was updated",
                metadata={'updated_fields': list(data.keys())}
            )

        logger.info(f"Updated quote: {quote_id}")
        return quote.to_dict()

    def delete_quote(self, quote_id: str) -> bool:
        """Delete a quote."""
        quote = self._owned(CrmQuote, quote_id)
        if not quote:
            return False
        title = quote.title
        self.session.delete(quote)
        self.session.flush()

        self._log_event(
            entity_type='quote',
            entity_id=quote_id,
            event_type='DELETED',
            description=f"Quote '{title}' was deleted"
        )
        logger.info(f"Deleted quote: {quote_id}")
        return True

    # =========================================================================
    # INVOICES
    # =========================================================================

    def list_invoices(self, client_id: str = None, status: str = None) -> List[Dict]:
        """List invoices with optional filters."""
        query = self.session.query(CrmInvoice).filter(CrmInvoice.contractor_id == self.contractor_id)
        if client_id:
            query = query.filter(CrmInvoice.client_id == client_id)
        if status:
            query = query.filter(CrmInvoice.status == status)
        invoices = query.order_by(CrmInvoice.created_at.desc()).all()
        return [i.to_dict() for i in invoices]

    def get_invoice(self, invoice_id: str) -> Optional[Dict]:
        """Get an invoice by ID."""
        invoice = self._owned(CrmInvoice, invoice_id)
        return invoice.to_dict() if invoice else None

    def next_invoice_number(self, year: int = None) -> str:
        """Next number in this contractor's INV-{year}-{seq} series."""
        year = year or datetime.utcnow().year
        prefix = f"INV-{year}-"
        numbers = self.session.query(CrmInvoice.invoice_number).filter(
            CrmInvoice.contractor_id == self.contractor_id,
            CrmInvoice.invoice_number.like(f"{prefix}%")
        ).all()

        highest = 0
        for (number,) in numbers:
            try:
                highest = max(highest, int(number[len(prefix):]))
            except ValueError:
                continue
        return f"{prefix}{highest + 1:04d}"

    def create_invoice(self, data: Dict) -> Dict:
        """Create a new invoice; numbering and totals are assigned here."""
        issue_date = self._parse_date(data.get('issue_date')) or date.today()
        invoice = CrmInvoice(
            contractor_id=self.contractor_id,
            client_id=data.get('client_id') or None,
            quote_id=data.get('quote_id') or None,
            job_id=data.get('job_id') or None,
            invoice_number=data.get('invoice_number') or self.next_invoice_number(issue_date.year),
            status=data.get('status', 'draft'),
            tax_rate=data.get('tax_rate', 0) or 0,
            issue_date=issue_date,
            due_date=(self._parse_date(data.get('due_date'))
                      or issue_date + timedelta(days=DEFAULT_PAYMENT_TERMS_DAYS)),
            notes=data.get('notes')
        )
        invoice.line_items = self._build_line_items(data.get('line_items'))
        self._apply_totals(invoice)
        self.session.add(invoice)
        self.session.flush()

        self._log_event(
            entity_type='invoice',
            entity_id=invoice.id,
            event_type='CREATED',
            description=f"Invoice {invoice.invoice_number} was created (${invoice.total_amount})",
            metadata={
                'invoice_number': invoice.invoice_number,
                'total_amount': invoice.total_amount,
                'client_id': invoice.client_id
            }
        )

        logger.info(f"Created invoice: {invoice.id} ({invoice.invoice_number})")
        return invoice.to_dict()

    def update_invoice(self, invoice_id: str, data: Dict) -> Optional[Dict]:
        """Update an invoice. Sending line_items replaces them all."""
        invoice = self._owned(CrmInvoice, invoice_id)
        if not invoice:
            return None

        old_status = invoice.status

        for key in ['status', 'tax_rate', 'payment_method', 'notes']:
            if key in data:
                setattr(invoice, key, data[key])
        if 'client_id' in data:
            invoice.client_id = data['client_id'] or None
        for key in ['issue_date', 'due_date', 'paid_date']:
            if key in data:
                setattr(invoice, key, self._parse_date(data[key]))
        if 'line_items' in data:
            invoice.line_items = self._build_line_items(data['line_items'])

        self._apply_totals(invoice)
        invoice.updated_at = datetime.utcnow()
        self.session.flush()

        if 'status' in data and old_status != invoice.status:
            self._log_event(
                entity_type='invoice',
                entity_id=invoice_id,
                event_type='STATUS_CHANGED',
                description=f"Invoice {invoice.invoice_number} status changed from '{old_status}' to '{invoice.status}'",
                metadata={'old_status': old_status, 'new_status': invoice.status}
            )
        else:
            self._log_event(
                entity_type='invoice',
                entity_id=invoice_id,
                event_type='UPDATED',
                description=f"Invoice {invoice.invoice_number} was updated",
                metadata={'updated_fields': list(data.keys())}
            )

        logger.info(f"Updated invoice: {invoice_id}")
        return invoice.to_dict()

    def delete_invoice(self, invoice_id: str) -> bool:
        """Delete an invoice."""
        invoice = self._owned(CrmInvoice, invoice_id)
        if not invoice:
            return False
        number = invoice.invoice_number
        self.session.delete(invoice)
        self.session.flush()

        self._log_event(
            entity_type='invoice',
            entity_id=invoice_id,
            event_type='DELETED',
            description=f"Invoice {number} was deleted"
        )
        logger.info(f"Deleted invoice: {invoice_id}")
        return True

    def mark_invoice_paid(self, invoice_id: str, payment_method: str = None,
                          paid_date=None) -> Optional[Dict]:
        """Record that an invoice was paid. No money moves through here."""
        invoice = self._owned(CrmInvoice, invoice_id)
        if not invoice:
            return None

        old_status = invoice.status
        invoice.status = 'paid'
        invoice.paid_date = self._parse_date(paid_date) or date.today()
        if payment_method:
            invoice.payment_method = payment_method
        invoice.updated_at = datetime.utcnow()
        self.session.flush()

        self._log_event(
            entity_type='invoice',
            entity_id=invoice_id,
            event_type='INVOICE_PAID',
            description=f"Invoice {invoice.invoice_number} marked paid (${invoice.total_amount})",
            metadata={'old_status': old_status, 'payment_method': invoice.payment_method}
        )

        logger.info(f"Marked invoice paid: {invoice_id}")
        return invoice.to_dict()

    def invoice_from_quote(self, quote_id: str, data: Dict = None) -> Optional[Dict]:
        """Create a draft invoice copying a quote's client, tax rate and line items."""
        quote = self._owned(CrmQuote, quote_id)
        if not quote:
            return None

        data = data or {}
        invoice_data = {
            'client_id': quote.client_id,
            'quote_id': quote.id,
            'job_id': quote.job_id,
            'tax_rate': quote.tax_rate,
            'notes': data.get('notes', quote.notes),
            'issue_date': data.get('issue_date'),
            'due_date': data.get('due_date'),
            'line_items': [
                {
                    'description': item.description,
                    'quantity': item.quantity,
                    'unit_price': item.unit_price
                }
                for item in sorted(quote.line_items, key=lambda i: i.position or 0)
            ]
        }
        return self.create_invoice(invoice_data)

    def mark_overdue_invoices(self, today: date = None) -> int:
        """Flag sent invoices past their due date as overdue. Returns how many changed."""
        today = today or date.today()
        overdue = self.session.query(CrmInvoice).filter(
            CrmInvoice.contractor_id == self.contractor_id,
            CrmInvoice.status == 'sent',
            CrmInvoice.due_date < today
        ).all()
        for invoice in overdue:
            invoice.status = 'overdue'
            invoice.updated_at = datetime.utcnow()
            self._log_event(
                entity_type='invoice',
                entity_id=invoice.id,
                event_type='STATUS_CHANGED',
                description=f"Invoice {invoice.invoice_number} is overdue",
                metadata={'old_status': 'sent', 'new_status': 'overdue'}
            )
        self.session.flush()
        return len(overdue)

    # =========================================================================
    # STATS
    # =========================================================================

    def get_stats(self) -> Dict[str, Any]:
        """Dashboard figures for the contractor."""
        leads = self.session.query(CrmLead).filter(CrmLead.contractor_id == self.contractor_id).all()
        leads_by_status: Dict[str, int] = {}
        for lead in leads:
            leads_by_status[lead.status] = leads_by_status.get(lead.status, 0) + 1

        won = leads_by_status.get('won', 0)
        closed = won + leads_by_status.get('lost', 0) + leads_by_status.get('not_interested', 0)
        pipeline_value = sum(
            lead.estimated_value or 0 for lead in leads if lead.status in OPEN_LEAD_STATUSES
        )

        jobs = self.session.query(CrmJob).filter(CrmJob.contractor_id == self.contractor_id).all()
        jobs_by_status: Dict[str, int] = {}
        for job in jobs:
            jobs_by_status[job.status] = jobs_by_status.get(job.status, 0) + 1

        invoices = self.session.query(CrmInvoice).filter(
            CrmInvoice.contractor_id == self.contractor_id
        ).all()
        paid_total = sum(i.total_amount or 0 for i in invoices if i.status == 'paid')
        outstanding_total = sum(
            i.total_amount or 0 for i in invoices if i.status in ('sent', 'overdue')
        )

        accepted_quotes = self.session.query(CrmQuote).filter(
            CrmQuote.contractor_id == self.contractor_id,
            CrmQuote.status == 'accepted'
        ).all()

        active_clients = self.session.query(func.count(CrmClient.id)).filter(
            CrmClient.contractor_id == self.contractor_id,
            CrmClient.is_active == True
        ).scalar() or 0

        return {
            'total_leads': len(leads),
            'leads_by_status': leads_by_status,
            'pipeline_value': round(pipeline_value, 2),
            'conversion_rate': round(won / closed * 100, 1) if closed else 0.0,
            'active_clients': active_clients,
            'jobs_by_status': jobs_by_status,
            'accepted_quote_value': round(sum(q.total_amount or 0 for q in accepted_quotes), 2),
            'revenue_paid': round(paid_total, 2),
            'revenue_outstanding': round(outstanding_total, 2),
        }

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _parse_date(self, value) -> Optional[date]:
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

    def _parse_datetime(self, value) -> Optional[datetime]:
        """Parse a datetime from string or return None."""
        if not value:
            return None
        if isinstance(value, datetime):
            return value
        try:
            return datetime.fromisoformat(value.replace('Z', '+00:00'))
        except (ValueError, AttributeError):
            return None
