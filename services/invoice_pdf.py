"""
Invoice PDF rendering with reportlab.
"""

import io
import logging
from typing import Dict, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle

logger = logging.getLogger(__name__)

BRAND_COLOR = colors.HexColor('#2E7D32')
LABEL_COLOR = colors.HexColor('#666666')


def _money(value) -> str:
    return f"${(value or 0):,.2f}"


def _label_table(rows):
    table = Table(rows, colWidths=[2*inch, 4*inch])
    table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTNAME', (1, 0), (1, -1), 'Helvetica'),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('TEXTCOLOR', (0, 0), (0, -1), LABEL_COLOR),
        ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 8),
    ]))
    return table


def render_invoice_pdf(invoice: Dict, client: Optional[Dict] = None) -> bytes:
    """
    Render an invoice dict (CRMRepository.get_invoice) as a one-document PDF.

    Args:
        invoice: Invoice dict with line_items
        client: Client dict for the billing block, if known

    Returns:
        PDF bytes
    """
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=letter,
                            title=f"Invoice {invoice.get('invoice_number', '')}")
    story = []
    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        'InvoiceTitle',
        parent=styles['Heading1'],
        fontSize=24,
        textColor=BRAND_COLOR,
        spaceAfter=30,
        alignment=1
    )
    heading_style = ParagraphStyle(
        'InvoiceHeading',
        parent=styles['Heading2'],
        fontSize=14,
        textColor=BRAND_COLOR,
        spaceAfter=12
    )

    story.append(Paragraph("INVOICE", title_style))
    story.append(Spacer(1, 0.2*inch))

    story.append(_label_table([
        ['Invoice Number:', invoice.get('invoice_number') or 'N/A'],
        ['Issue Date:', invoice.get('issue_date') or 'N/A'],
        ['Due Date:', invoice.get('due_date') or 'N/A'],
        ['Status:', (invoice.get('status') or 'draft').upper()],
    ]))
    story.append(Spacer(1, 0.3*inch))

    if client:
        story.append(Paragraph("Bill To", heading_style))
        story.append(_label_table([
            ['Name:', client.get('name') or 'N/A'],
            ['Company:', client.get('company') or ''],
            ['Email:', client.get('email') or 'N/A'],
            ['Phone:', client.get('phone') or 'N/A'],
            ['Address:', client.get('address') or 'N/A'],
        ]))
        story.append(Spacer(1, 0.3*inch))

    line_items = invoice.get('line_items') or []
    if line_items:
        story.append(Paragraph("Items", heading_style))
        items_data = [['Description', 'Quantity', 'Unit Price', 'Total']]
        for item in line_items:
            items_data.append([
                Paragraph(escape(item.get('description') or ''), styles['Normal']),
                f"{item.get('quantity', 0):g}",
                _money(item.get('unit_price')),
                _money(item.get('total_price')),
            ])

        items_table = Table(items_data, colWidths=[3*inch, 1*inch, 1.2*inch, 1.2*inch])
        items_table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), BRAND_COLOR),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
            ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, 0), 11),
            ('BOTTOMPADDING', (0, 0), (-1, 0), 12),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.grey)
        ]))
        story.append(items_table)
        story.append(Spacer(1, 0.3*inch))

    totals_table = Table([
        ['Subtotal:', _money(invoice.get('subtotal'))],
        [f"Tax ({invoice.get('tax_rate') or 0:g}%):", _money(invoice.get('tax_amount'))],
        ['TOTAL DUE:', _money(invoice.get('total_amount'))],
    ], colWidths=[4*inch, 2*inch])
    totals_table.setStyle(TableStyle([
        ('ALIGN', (0, 0), (-1, -1), 'RIGHT'),
        ('FONTNAME', (0, 0), (-1, -2), 'Helvetica'),
        ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, -1), (-1, -1), 14),
        ('TEXTCOLOR', (0, -1), (-1, -1), BRAND_COLOR),
        ('LINEABOVE', (0, -1), (-1, -1), 2, BRAND_COLOR),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 8),
    ]))
    story.append(totals_table)
    story.append(Spacer(1, 0.5*inch))

    if invoice.get('status') == 'paid':
        paid_on = invoice.get('paid_date') or ''
        story.append(Paragraph(f"<b>Paid</b> {escape(paid_on)}", styles['Normal']))
        story.append(Spacer(1, 0.2*inch))

    if invoice.get('notes'):
        story.append(Paragraph("Notes", heading_style))
        story.append(Paragraph(escape(invoice['notes']), styles['Normal']))

    doc.build(story)
    logger.debug(f"Rendered invoice PDF {invoice.get('invoice_number')}")
    return buffer.getvalue()
