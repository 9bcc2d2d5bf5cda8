"""
CRM Routes Blueprint

Contractor-side CRM API handling:
- Leads: CRUD, notes, conversion to clients
- Clients: CRUD (delete deactivates)
- Jobs: CRUD
- Quotes: CRUD with line items, invoice generation
- Invoices: CRUD with line items, payment recording, PDF export
- Events: Activity feed written by every mutation
- Stats: Pipeline and revenue figures

The caller (X-User-Id) is the contractor; every record is scoped to them.
"""

import logging
from datetime import date
from flask import Blueprint, request, jsonify, make_response, g
from werkzeug.utils import secure_filename

from app.utils import get_json_body, db_session
from security import require_user_id, server_error
from services.crm_repository import CRMRepository
from services.invoice_pdf import render_invoice_pdf
from validators import (
    ValidationError,
    validate_lead_request,
    validate_lead_note_request,
    validate_client_request,
    validate_job_request,
    validate_quote_request,
    validate_invoice_request,
    validate_iso_date,
)

logger = logging.getLogger(__name__)

# Create blueprint
crm_bp = Blueprint('crm_bp', __name__)


def _not_found(what):
    return jsonify({'success': False, 'error': f'{what} not found'}), 404


def _invalid(error):
    return jsonify({'success': False, 'error': error}), 400


def _repo(session):
    return CRMRepository(session, g.user_id, user_id=g.user_id)


def _unknown_client(repo, data):
    """True when data names a client_id the contractor doesn't own"""
    client_id = data.get('client_id')
    return bool(client_id) and repo.get_client(client_id) is None


# ============================================================================
# LEADS
# ============================================================================

@crm_bp.route('/api/crm/leads', methods=['GET', 'POST'])
@require_user_id
def handle_leads():
    """List leads (?status=&priority=&search=) or create one"""
    try:
        with db_session() as session:
            repo = _repo(session)
            if request.method == 'GET':
                leads = repo.list_leads(
                    status=request.args.get('status'),
                    priority=request.args.get('priority'),
                    search=request.args.get('search')
                )
                return jsonify({'success': True, 'leads': leads})

            data = get_json_body()
            is_valid, error = validate_lead_request(data)
            if not is_valid:
                return _invalid(error)
            lead = repo.create_lead(data)
            return jsonify({'success': True, 'lead': lead}), 201
    except ValidationError:
        raise
    except Exception as e:
        return server_error(e, "handling leads")


@crm_bp.route('/api/crm/leads/<lead_id>', methods=['GET', 'PATCH', 'PUT', 'DELETE'])
@require_user_id
def handle_lead(lead_id):
    """Get, update or delete a lead"""
    try:
        with db_session() as session:
            repo = _repo(session)

            if request.method == 'GET':
                lead = repo.get_lead(lead_id)
                if not lead:
                    return _not_found('Lead')
                return jsonify({'success': True, 'lead': lead})

            if request.method == 'DELETE':
                if not repo.delete_lead(lead_id):
                    return _not_found('Lead')
                return jsonify({'success': True})

            data = get_json_body()
            is_valid, error = validate_lead_request(data, partial=True)
            if not is_valid:
                return _invalid(error)
            lead = repo.update_lead(lead_id, data)
            if not lead:
                return _not_found('Lead')
            return jsonify({'success': True, 'lead': lead})
    except ValidationError:
        raise
    except Exception as e:
        return server_error(e, f"handling lead {lead_id}")


@crm_bp.route('/api/crm/leads/<lead_id>/notes', methods=['GET', 'POST'])
@require_user_id
def handle_lead_notes(lead_id):
    """List or add notes on a lead"""
    try:
        with db_session() as session:
            repo = _repo(session)

            if request.method == 'GET':
                notes = repo.list_lead_notes(lead_id)
                if notes is None:
                    return _not_found('Lead')
                return jsonify({'success': True, 'notes': notes})

            data = get_json_body()
            is_valid, error = validate_lead_note_request(data)
            if not is_valid:
                return _invalid(error)
            note = repo.add_lead_note(lead_id, data['content'], data.get('note_type', 'note'))
            if not note:
                return _not_found('Lead')
            return jsonify({'success': True, 'note': note}), 201
    except ValidationError:
        raise
    except Exception as e:
        return server_error(e, f"handling notes for lead {lead_id}")


@crm_bp.route('/api/crm/leads/<lead_id>/convert', methods=['POST'])
@require_user_id
def convert_lead(lead_id):
    """Convert a lead into a client"""
    try:
        with db_session() as session:
            result = _repo(session).convert_lead(lead_id)
            if not result:
                return _not_found('Lead')
            return jsonify({'success': True, **result})
    except Exception as e:
        return server_error(e, f"converting lead {lead_id}")


# ============================================================================
# CLIENTS
# ============================================================================

@crm_bp.route('/api/crm/clients', methods=['GET', 'POST'])
@require_user_id
def handle_clients():
    """List clients (?include_inactive=true&search=) or create one"""
    try:
        with db_session() as session:
            repo = _repo(session)
            if request.method == 'GET':
                clients = repo.list_clients(
                    active_only=request.args.get('include_inactive', 'false').lower() != 'true',
                    search=request.args.get('search')
                )
                return jsonify({'success': True, 'clients': clients})

            data = get_json_body()
            is_valid, error = validate_client_request(data)
            if not is_valid:
                return _invalid(error)
            client = repo.create_client(data)
            return jsonify({'success': True, 'client': client}), 201
    except ValidationError:
        raise
    except Exception as e:
        return server_error(e, "handling clients")


@crm_bp.route('/api/crm/clients/<client_id>', methods=['GET', 'PATCH', 'PUT', 'DELETE'])
@require_user_id
def handle_client(client_id):
    """Get, update or deactivate a client"""
    try:
        with db_session() as session:
            repo = _repo(session)

            if request.method == 'GET':
                client = repo.get_client(client_id)
                if not client:
                    return _not_found('Client')
                return jsonify({'success': True, 'client': client})

            if request.method == 'DELETE':
                if not repo.delete_client(client_id):
                    return _not_found('Client')
                return jsonify({'success': True})

            data = get_json_body()
            is_valid, error = validate_client_request(data, partial=True)
            if not is_valid:
                return _invalid(error)
            client = repo.update_client(client_id, data)
            if not client:
                return _not_found('Client')
            return jsonify({'success': True, 'client': client})
    except ValidationError:
        raise
    except Exception as e:
        return server_error(e, f"handling client {client_id}")


# ============================================================================
# JOBS
# ============================================================================

@crm_bp.route('/api/crm/jobs', methods=['GET', 'POST'])
@require_user_id
def handle_jobs():
    """List jobs (?client_id=&status=) or create one"""
    try:
        with db_session() as session:
            repo = _repo(session)
            if request.method == 'GET':
                jobs = repo.list_jobs(
                    client_id=request.args.get('client_id'),
                    status=request.args.get('status')
                )
                return jsonify({'success': True, 'jobs': jobs})

            data = get_json_body()
            is_valid, error = validate_job_request(data)
            if not is_valid:
                return _invalid(error)
            if _unknown_client(repo, data):
                return _not_found('Client')
            job = repo.create_job(data)
            return jsonify({'success': True, 'job': job}), 201
    except ValidationError:
        raise
    except Exception as e:
        return server_error(e, "handling jobs")


@crm_bp.route('/api/crm/jobs/<job_id>', methods=['GET', 'PATCH', 'PUT', 'DELETE'])
@require_user_id
def handle_job(job_id):
    """Get, update or delete a job"""
    try:
        with db_session() as session:
            repo = _repo(session)

            if request.method == 'GET':
                job = repo.get_job(job_id)
                if not job:
                    return _not_found('Job')
                return jsonify({'success': True, 'job': job})

            if request.method == 'DELETE':
                if not repo.delete_job(job_id):
                    return _not_found('Job')
                return jsonify({'success': True})

            data = get_json_body()
            is_valid, error = validate_job_request(data, partial=True)
            if not is_valid:
                return _invalid(error)
            if _unknown_client(repo, data):
                return _not_found('Client')
            job = repo.update_job(job_id, data)
            if not job:
                return _not_found('Job')
            return jsonify({'success': True, 'job': job})
    except ValidationError:
        raise
    except Exception as e:
        return server_error(e, f"handling job {job_id}")


# ============================================================================
# QUOTES
# ============================================================================

@crm_bp.route('/api/crm/quotes', methods=['GET', 'POST'])
@require_user_id
def handle_quotes():
    """List quotes (?client_id=&status=) or create one"""
    try:
        with db_session() as session:
            repo = _repo(session)
            if request.method == 'GET':
                quotes = repo.list_quotes(
                    client_id=request.args.get('client_id'),
                    status=request.args.get('status')
                )
                return jsonify({'success': True, 'quotes': quotes})

            data = get_json_body()
            is_valid, error = validate_quote_request(data)
            if not is_valid:
                return _invalid(error)
            if _unknown_client(repo, data):
                return _not_found('Client')
            quote = repo.create_quote(data)
            return jsonify({'success': True, 'quote': quote}), 201
    except ValidationError:
        raise
    except Exception as e:
        return server_error(e, "handling quotes")


@crm_bp.route('/api/crm/quotes/<quote_id>', methods=['GET', 'PATCH', 'PUT', 'DELETE'])
@require_user_id
def handle_quote(quote_id):
    """Get, update or delete a quote"""
    try:
        with db_session() as session:
            repo = _repo(session)

            if request.method == 'GET':
                quote = repo.get_quote(quote_id)
                if not quote:
                    return _not_found('Quote')
                return jsonify({'success': True, 'quote': quote})

            if request.method == 'DELETE':
                if not repo.delete_quote(quote_id):
                    return _not_found('Quote')
                return jsonify({'success': True})

            data = get_json_body()
            is_valid, error = validate_quote_request(data, partial=True)
            if not is_valid:
                return _invalid(error)
            if _unknown_client(repo, data):
                return _not_found('Client')
            quote = repo.update_quote(quote_id, data)
            if not quote:
                return _not_found('Quote')
            return jsonify({'success': True, 'quote': quote})
    except ValidationError:
        raise
    except Exception as e:
        return server_error(e, f"handling quote {quote_id}")


@crm_bp.route('/api/crm/quotes/<quote_id>/invoice', methods=['POST'])
@require_user_id
def create_invoice_from_quote(quote_id):
    """Create a draft invoice from a quote's line items"""
    try:
        data = request.get_json(silent=True) or {}
        is_valid, error = validate_invoice_request(data, partial=True)
        if not is_valid:
            return _invalid(error)

        with db_session() as session:
            invoice = _repo(session).invoice_from_quote(quote_id, data)
            if not invoice:
                return _not_found('Quote')
            return jsonify({'success': True, 'invoice': invoice}), 201
    except Exception as e:
        return server_error(e, f"invoicing quote {quote_id}")


# ============================================================================
# INVOICES
# ============================================================================

@crm_bp.route('/api/crm/invoices', methods=['GET', 'POST'])
@require_user_id
def handle_invoices():
    """List invoices (?client_id=&status=) or create one"""
    try:
        with db_session() as session:
            repo = _repo(session)
            if request.method == 'GET':
                repo.mark_overdue_invoices()
                invoices = repo.list_invoices(
                    client_id=request.args.get('client_id'),
                    status=request.args.get('status')
                )
                return jsonify({'success': True, 'invoices': invoices})

            data = get_json_body()
            is_valid, error = validate_invoice_request(data)
            if not is_valid:
                return _invalid(error)
            if _unknown_client(repo, data):
                return _not_found('Client')
            invoice = repo.create_invoice(data)
            return jsonify({'success': True, 'invoice': invoice}), 201
    except ValidationError:
        raise
    except Exception as e:
        return server_error(e, "handling invoices")


@crm_bp.route('/api/crm/invoices/<invoice_id>', methods=['GET', 'PATCH', 'PUT', 'DELETE'])
@require_user_id
def handle_invoice(invoice_id):
    """Get, update or delete an invoice"""
    try:
        with db_session() as session:
            repo = _repo(session)

            if request.method == 'GET':
                invoice = repo.get_invoice(invoice_id)
                if not invoice:
                    return _not_found('Invoice')
                return jsonify({'success': True, 'invoice': invoice})

            if request.method == 'DELETE':
                if not repo.delete_invoice(invoice_id):
                    return _not_found('Invoice')
                return jsonify({'success': True})

            data = get_json_body()
            is_valid, error = validate_invoice_request(data, partial=True)
            if not is_valid:
                return _invalid(error)
            if _unknown_client(repo, data):
                return _not_found('Client')
            invoice = repo.update_invoice(invoice_id, data)
            if not invoice:
                return _not_found('Invoice')
            return jsonify({'success': True, 'invoice': invoice})
    except ValidationError:
        raise
    except Exception as e:
        return server_error(e, f"handling invoice {invoice_id}")


@crm_bp.route('/api/crm/invoices/<invoice_id>/pay', methods=['POST'])
@require_user_id
def pay_invoice(invoice_id):
    """Record a payment (body: payment_method, paid_date)"""
    try:
        data = request.get_json(silent=True) or {}
        paid_date = data.get('paid_date')
        if paid_date:
            is_valid, error = validate_iso_date(paid_date)
            if not is_valid:
                return _invalid(f"paid_date: {error}")

        with db_session() as session:
            invoice = _repo(session).mark_invoice_paid(
                invoice_id,
                payment_method=data.get('payment_method'),
                paid_date=paid_date
            )
            if not invoice:
                return _not_found('Invoice')
            return jsonify({'success': True, 'invoice': invoice})
    except Exception as e:
        return server_error(e, f"recording payment for invoice {invoice_id}")


@crm_bp.route('/api/crm/invoices/<invoice_id>/pdf', methods=['GET'])
@require_user_id
def invoice_pdf(invoice_id):
    """Download an invoice as PDF"""
    try:
        with db_session() as session:
            repo = _repo(session)
            invoice = repo.get_invoice(invoice_id)
            if not invoice:
                return _not_found('Invoice')
            client = repo.get_client(invoice['client_id']) if invoice.get('client_id') else None

        pdf_bytes = render_invoice_pdf(invoice, client)
        response = make_response(pdf_bytes)
        response.headers['Content-Type'] = 'application/pdf'
        response.headers['Content-Disposition'] = (
            f"attachment; filename={secure_filename(invoice['invoice_number']) or 'invoice'}.pdf"
        )
        return response
    except Exception as e:
        return server_error(e, f"rendering invoice {invoice_id}")


# ============================================================================
# ACTIVITY
# ============================================================================

@crm_bp.route('/api/crm/events', methods=['GET'])
@require_user_id
def list_events():
    """Recent CRM activity (?entity_type=&entity_id=&limit=)"""
    try:
        limit = max(1, min(int(request.args.get('limit', 50)), 200))
    except ValueError:
        return _invalid('limit must be an integer')

    try:
        with db_session() as session:
            events = _repo(session).list_events(
                entity_type=request.args.get('entity_type'),
                entity_id=request.args.get('entity_id'),
                limit=limit
            )
            return jsonify({'success': True, 'events': events})
    except Exception as e:
        return server_error(e, "listing CRM events")


# ============================================================================
# STATS
# ============================================================================

@crm_bp.route('/api/crm/stats', methods=['GET'])
@require_user_id
def get_stats():
    """Pipeline, job and revenue figures for the contractor"""
    try:
        with db_session() as session:
            repo = _repo(session)
            repo.mark_overdue_invoices()
            stats = repo.get_stats()
            stats['as_of'] = date.today().isoformat()
            return jsonify({'success': True, 'stats': stats})
    except Exception as e:
        return server_error(e, "computing CRM stats")
