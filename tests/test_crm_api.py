"""
Integration tests for the contractor CRM endpoints
"""
from datetime import date

import pytest


def create_lead(client, headers, **overrides):
    data = {'first_name': 'Pat', 'last_name': 'Lee', 'email': 'pat@example.com',
            'estimated_value': 5000, 'source': 'referral'}
    data.update(overrides)
    response = client.post('/api/crm/leads', json=data, headers=headers)
    assert response.status_code == 201
    return response.get_json()['lead']


def create_quote(client, headers, data):
    response = client.post('/api/crm/quotes', json=data, headers=headers)
    assert response.status_code == 201
    return response.get_json()['quote']


@pytest.mark.integration
class TestLeads:
    """Tests for leads, notes and conversion"""

    def test_requires_user_id(self, client):
        assert client.get('/api/crm/leads').status_code == 401

    def test_lead_crud(self, client, contractor_headers):
        """Test create, filter, update and delete"""
        lead = create_lead(client, contractor_headers)
        assert lead['status'] == 'new'
        assert lead['priority'] == 'medium'

        response = client.get('/api/crm/leads?status=new', headers=contractor_headers)
        assert [item['id'] for item in response.get_json()['leads']] == [lead['id']]
        response = client.get('/api/crm/leads?status=won', headers=contractor_headers)
        assert response.get_json()['leads'] == []

        url = f"/api/crm/leads/{lead['id']}"
        response = client.patch(url, json={'status': 'contacted'}, headers=contractor_headers)
        assert response.get_json()['lead']['status'] == 'contacted'

        assert client.delete(url, headers=contractor_headers).status_code == 200
        assert client.get(url, headers=contractor_headers).status_code == 404

    def test_leads_are_scoped_to_contractor(self, client, contractor_headers):
        """Test another contractor cannot read a lead"""
        lead = create_lead(client, contractor_headers)
        other = {'X-User-Id': 'contractor-2'}
        assert client.get(f"/api/crm/leads/{lead['id']}", headers=other).status_code == 404
        assert client.get('/api/crm/leads', headers=other).get_json()['leads'] == []

    def test_invalid_lead(self, client, contractor_headers):
        """Test required names and allowed statuses"""
        response = client.post('/api/crm/leads', json={'first_name': 'Pat'}, headers=contractor_headers)
        assert response.status_code == 400
        response = client.post('/api/crm/leads', json={'first_name': 'Pat', 'last_name': 'Lee',
                                                        'status': 'maybe'}, headers=contractor_headers)
        assert response.status_code == 400

    def test_notes(self, client, contractor_headers):
        """Test adding and listing lead notes"""
        lead = create_lead(client, contractor_headers)
        url = f"/api/crm/leads/{lead['id']}/notes"

        response = client.post(url, json={'content': 'Called, wants a quote', 'note_type': 'call'},
                               headers=contractor_headers)
        assert response.status_code == 201
        assert response.get_json()['note']['note_type'] == 'call'

        notes = client.get(url, headers=contractor_headers).get_json()['notes']
        assert [n['content'] for n in notes] == ['Called, wants a quote']

        assert client.post('/api/crm/leads/missing/notes', json={'content': 'x'},
                           headers=contractor_headers).status_code == 404

    def test_convert(self, client, contractor_headers):
        """Test converting a lead creates a client once"""
        lead = create_lead(client, contractor_headers)
        url = f"/api/crm/leads/{lead['id']}/convert"

        first = client.post(url, headers=contractor_headers).get_json()
        assert first['lead']['status'] == 'won'
        assert first['client']['name'] == 'Pat Lee'
        assert first['lead']['client_id'] == first['client']['id']

        second = client.post(url, headers=contractor_headers).get_json()
        assert second['client']['id'] == first['client']['id']

        clients = client.get('/api/crm/clients', headers=contractor_headers).get_json()['clients']
        assert len(clients) == 1

    def test_convert_missing(self, client, contractor_headers):
        assert client.post('/api/crm/leads/missing/convert', headers=contractor_headers).status_code == 404


@pytest.mark.integration
class TestClientsAndJobs:
    """Tests for clients and jobs"""

    def test_client_soft_delete(self, client, contractor_headers):
        """Test deleting a client deactivates it"""
        response = client.post('/api/crm/clients', json={'name': 'Dana Ortiz'}, headers=contractor_headers)
        assert response.status_code == 201
        client_id = response.get_json()['client']['id']

        assert client.delete(f'/api/crm/clients/{client_id}', headers=contractor_headers).status_code == 200

        active = client.get('/api/crm/clients', headers=contractor_headers).get_json()['clients']
        assert active == []
        everyone = client.get('/api/crm/clients?include_inactive=true',
                              headers=contractor_headers).get_json()['clients']
        assert everyone[0]['is_active'] is False

    def test_job_for_unknown_client(self, client, contractor_headers):
        """Test referencing another contractor's client is a 404"""
        response = client.post('/api/crm/jobs', json={'title': 'Fix furnace', 'client_id': 'missing'},
                               headers=contractor_headers)
        assert response.status_code == 404

    def test_job_lifecycle(self, client, contractor_headers):
        """Test creating and completing a job"""
        response = client.post('/api/crm/jobs', json={'title': 'Fix furnace', 'scheduled_date': '2025-01-10'},
                               headers=contractor_headers)
        assert response.status_code == 201
        job = response.get_json()['job']
        assert job['status'] == 'scheduled'

        response = client.patch(f"/api/crm/jobs/{job['id']}", json={'status': 'completed'},
                                headers=contractor_headers)
        assert response.get_json()['job']['status'] == 'completed'

        response = client.patch(f"/api/crm/jobs/{job['id']}", json={'status': 'done'},
                                headers=contractor_headers)
        assert response.status_code == 400


@pytest.mark.integration
class TestQuotesAndInvoices:
    """Tests for quotes, invoices and payment"""

    def test_quote_totals(self, client, contractor_headers, sample_quote_data):
        """Test totals are computed from line items with tax as a percentage"""
        quote = create_quote(client, contractor_headers, sample_quote_data)
        assert quote['subtotal'] == 4000
        assert quote['tax_amount'] == 400
        assert quote['total_amount'] == 4400
        assert [item['total_price'] for item in quote['line_items']] == [3000, 1000]
        assert quote['quote_number'] == 'Q-0001'

    def test_quote_numbers_not_reused_after_delete(self, client, contractor_headers, sample_quote_data):
        """Test a deleted quote's number does not hand out a number still in use"""
        first = create_quote(client, contractor_headers, sample_quote_data)
        second = create_quote(client, contractor_headers, sample_quote_data)
        response = client.delete(f"/api/crm/quotes/{first['id']}", headers=contractor_headers)
        assert response.status_code == 200

        third = create_quote(client, contractor_headers, sample_quote_data)
        assert second['quote_number'] == 'Q-0002'
        assert third['quote_number'] == 'Q-0003'

    def test_quote_line_items_replaced(self, client, contractor_headers, sample_quote_data):
        """Test updating line items recomputes totals"""
        quote = create_quote(client, contractor_headers, sample_quote_data)
        response = client.patch(f"/api/crm/quotes/{quote['id']}", json={
            'line_items': [{'description': 'Filter', 'quantity': 2, 'unit_price': 25}]
        }, headers=contractor_headers)
        updated = response.get_json()['quote']
        assert updated['subtotal'] == 50
        assert updated['total_amount'] == 55

    def test_invoice_from_quote(self, client, contractor_headers, sample_quote_data):
        """Test invoicing a quote copies line items and numbers the invoice"""
        quote = create_quote(client, contractor_headers, sample_quote_data)

        response = client.post(f"/api/crm/quotes/{quote['id']}/invoice", headers=contractor_headers)
        assert response.status_code == 201
        invoice = response.get_json()['invoice']
        assert invoice['invoice_number'] == f'INV-{date.today().year}-0001'
        assert invoice['status'] == 'draft'
        assert invoice['total_amount'] == 4400
        assert invoice['quote_id'] == quote['id']

        second = client.post(f"/api/crm/quotes/{quote['id']}/invoice", headers=contractor_headers)
        assert second.get_json()['invoice']['invoice_number'] == f'INV-{date.today().year}-0002'

    def test_invoice_from_missing_quote(self, client, contractor_headers):
        assert client.post('/api/crm/quotes/missing/invoice', headers=contractor_headers).status_code == 404

    def test_pay_invoice(self, client, contractor_headers, sample_quote_data):
        """Test recording a payment"""
        quote = create_quote(client, contractor_headers, sample_quote_data)
        invoice = client.post(f"/api/crm/quotes/{quote['id']}/invoice",
                              headers=contractor_headers).get_json()['invoice']

        response = client.post(f"/api/crm/invoices/{invoice['id']}/pay",
                               json={'payment_method': 'check', 'paid_date': '2025-03-01'},
                               headers=contractor_headers)
        paid = response.get_json()['invoice']
        assert paid['status'] == 'paid'
        assert paid['payment_method'] == 'check'
        assert paid['paid_date'].startswith('2025-03-01')

        response = client.post(f"/api/crm/invoices/{invoice['id']}/pay",
                               json={'paid_date': 'yesterday'}, headers=contractor_headers)
        assert response.status_code == 400

    def test_overdue_on_list(self, client, contractor_headers):
        """Test sent invoices past their due date are flagged when listed"""
        response = client.post('/api/crm/invoices', json={
            'status': 'sent',
            'issue_date': '2020-01-01',
            'due_date': '2020-01-31',
            'line_items': [{'description': 'Inspection', 'quantity': 1, 'unit_price': 150}]
        }, headers=contractor_headers)
        assert response.status_code == 201
        assert response.get_json()['invoice']['invoice_number'] == 'INV-2020-0001'

        invoices = client.get('/api/crm/invoices', headers=contractor_headers).get_json()['invoices']
        assert invoices[0]['status'] == 'overdue'

    def test_invoice_pdf(self, client, contractor_headers, sample_quote_data):
        """Test the PDF download"""
        quote = create_quote(client, contractor_headers, sample_quote_data)
        invoice = client.post(f"/api/crm/quotes/{quote['id']}/invoice",
                              headers=contractor_headers).get_json()['invoice']

        response = client.get(f"/api/crm/invoices/{invoice['id']}/pdf", headers=contractor_headers)
        assert response.status_code == 200
        assert response.headers['Content-Type'] == 'application/pdf'
        assert f"{invoice['invoice_number']}.pdf" in response.headers['Content-Disposition']
        assert response.data.startswith(b'%PDF')


@pytest.mark.integration
class TestStats:
    """Tests for /api/crm/stats"""

    def test_stats(self, client, contractor_headers, sample_quote_data):
        """Test pipeline, conversion and revenue figures"""
        create_lead(client, contractor_headers, estimated_value=1000)
        won = create_lead(client, contractor_headers, first_name='Sam', estimated_value=2000)
        client.post(f"/api/crm/leads/{won['id']}/convert", headers=contractor_headers)

        quote = create_quote(client, contractor_headers, sample_quote_data)
        invoice = client.post(f"/api/crm/quotes/{quote['id']}/invoice",
                              headers=contractor_headers).get_json()['invoice']
        client.post(f"/api/crm/invoices/{invoice['id']}/pay", json={}, headers=contractor_headers)

        stats = client.get('/api/crm/stats', headers=contractor_headers).get_json()['stats']
        assert stats['total_leads'] == 2
        assert stats['leads_by_status'] == {'new': 1, 'won': 1}
        assert stats['pipeline_value'] == 1000
        assert stats['conversion_rate'] == 100.0
        assert stats['active_clients'] == 1
        assert stats['revenue_paid'] == 4400
        assert stats['as_of'] == date.today().isoformat()


@pytest.mark.integration
class TestEvents:
    """Tests for /api/crm/events"""

    def test_mutations_are_logged(self, client, contractor_headers):
        """Test lead creation and conversion appear in the activity feed"""
        lead = create_lead(client, contractor_headers)
        client.post(f"/api/crm/leads/{lead['id']}/convert", headers=contractor_headers)

        events = client.get(f"/api/crm/events?entity_type=lead&entity_id={lead['id']}",
                            headers=contractor_headers).get_json()['events']
        assert {e['event_type'] for e in events} == {'CREATED', 'CONVERTED'}
        assert all(e['actor_id'] == 'contractor-1' for e in events)

    def test_events_are_scoped(self, client, contractor_headers):
        create_lead(client, contractor_headers)
        other = client.get('/api/crm/events', headers={'X-User-Id': 'contractor-2'}).get_json()
        assert other['events'] == []
