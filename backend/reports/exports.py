"""
Export utilities for report data.
Supports PDF, Excel (.xlsx) and CSV (.csv) formats.
"""
import csv
import io
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable

from django.http import HttpResponse
from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, Border, Side, PatternFill
from openpyxl.utils import get_column_letter
from reportlab.lib import colors
from reportlab.lib.pagesizes import landscape, letter
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from . import services
from .services import AGING_BUCKETS, ReportFilter


class ExportFormat:
    PDF = 'PDF'
    EXCEL = 'EXCEL'
    CSV = 'CSV'

    CHOICES = [PDF, EXCEL, CSV]
    EXTENSIONS = {
        PDF: 'pdf',
        EXCEL: 'xlsx',
        CSV: 'csv',
    }
    CONTENT_TYPES = {
        PDF: 'application/pdf',
        EXCEL: 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
        CSV: 'text/csv',
    }


def format_value(value: Any) -> str:
    """Format a value for export."""
    if value is None:
        return ''
    if isinstance(value, datetime):
        return value.strftime('%Y-%m-%d %H:%M:%S')
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, bool):
        return 'Ya' if value else 'Tidak'
    return str(value)


def export_to_excel(
    data: list[dict],
    columns: list[dict],
    title: str = 'Export',
    sheet_name: str = 'Data',
) -> bytes:
    """
    Export data to Excel format.

    Args:
        data: List of dictionaries containing the data
        columns: List of column definitions with 'key', 'header', and optional 'width'
        title: Title for the export (used in header row)
        sheet_name: Name of the worksheet

    Returns:
        Bytes of the Excel file
    """
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name

    # Styles
    header_font = Font(bold=True, color='FFFFFF')
    header_fill = PatternFill(start_color='4472C4', end_color='4472C4', fill_type='solid')
    header_alignment = Alignment(horizontal='center', vertical='center', wrap_text=True)
    thin_border = Border(
        left=Side(style='thin'),
        right=Side(style='thin'),
        top=Side(style='thin'),
        bottom=Side(style='thin')
    )

    # Title row
    ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=len(columns))
    title_cell = ws.cell(row=1, column=1, value=title)
    title_cell.font = Font(bold=True, size=14)
    title_cell.alignment = Alignment(horizontal='center')

    # Export timestamp
    ws.merge_cells(start_row=2, start_column=1, end_row=2, end_column=len(columns))
    timestamp_cell = ws.cell(row=2, column=1, value=f"Exported: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    timestamp_cell.alignment = Alignment(horizontal='center')
    timestamp_cell.font = Font(italic=True, size=10, color='666666')

    # Header row
    header_row = 4
    for col_idx, col in enumerate(columns, 1):
        cell = ws.cell(row=header_row, column=col_idx, value=col['header'])
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = header_alignment
        cell.border = thin_border
        ws.column_dimensions[get_column_letter(col_idx)].width = col.get('width', 15)

    # Data rows; amounts stay numeric so spreadsheets can sum them
    for row_idx, row_data in enumerate(data, header_row + 1):
        for col_idx, col in enumerate(columns, 1):
            value = row_data.get(col['key'], '')
            if col.get('numeric') and isinstance(value, Decimal):
                cell = ws.cell(row=row_idx, column=col_idx, value=value)
                cell.number_format = '#,##0.00'
            else:
                cell = ws.cell(row=row_idx, column=col_idx, value=format_value(value))
            cell.border = thin_border

            if col.get('numeric'):
                cell.alignment = Alignment(horizontal='right')

    ws.freeze_panes = ws.cell(row=header_row + 1, column=1)

    output = io.BytesIO()
    wb.save(output)
    output.seek(0)
    return output.getvalue()


def export_to_csv(
    data: list[dict],
    columns: list[dict],
    delimiter: str = ',',
) -> str:
    """
    Export data to CSV format.

    Args:
        data: List of dictionaries containing the data
        columns: List of column definitions with 'key' and 'header'
        delimiter: CSV delimiter character

    Returns:
        CSV string
    """
    output = io.StringIO()
    writer = csv.writer(output, delimiter=delimiter, quoting=csv.QUOTE_MINIMAL)

    writer.writerow([col['header'] for col in columns])
    for row_data in data:
        writer.writerow([format_value(row_data.get(col['key'], '')) for col in columns])

    return output.getvalue()


def export_to_pdf(
    data: list[dict],
    columns: list[dict],
    title: str = 'Export',
) -> bytes:
    """
    Export data to a landscape PDF with a single grid table.

    Returns:
        Bytes of the PDF file
    """
    output = io.BytesIO()
    doc = SimpleDocTemplate(output, pagesize=landscape(letter), title=title)
    styles = getSampleStyleSheet()

    story = [
        Paragraph(title, styles['Title']),
        Paragraph(f"Exported: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}", styles['Normal']),
        Spacer(1, 12),
    ]

    rows = [[col['header'] for col in columns]]
    for row_data in data:
        rows.append([format_value(row_data.get(col['key'], '')) for col in columns])

    table = Table(rows, repeatRows=1)
    style = [
        ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
        ('BACKGROUND', (0, 0), (-1, 0), colors.lightblue),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 8),
    ]
    for col_idx, col in enumerate(columns):
        if col.get('numeric'):
            style.append(('ALIGN', (col_idx, 1), (col_idx, -1), 'RIGHT'))
    table.setStyle(TableStyle(style))
    story.append(table)

    doc.build(story)
    return output.getvalue()


def create_export_response(
    data: list[dict],
    columns: list[dict],
    format: str,
    filename: str,
    title: str = 'Export',
) -> HttpResponse:
    """
    Create an HTTP response with the exported file.

    Args:
        data: List of dictionaries containing the data
        columns: List of column definitions
        format: Export format (PDF, EXCEL, CSV)
        filename: Base filename (without extension)
        title: Title for PDF and Excel exports

    Returns:
        HttpResponse with the file content
    """
    if format not in ExportFormat.CHOICES:
        raise ValueError(f"Invalid format: {format}. Must be one of {ExportFormat.CHOICES}")

    content_type = ExportFormat.CONTENT_TYPES[format]
    full_filename = f"{filename}.{ExportFormat.EXTENSIONS[format]}"

    if format == ExportFormat.EXCEL:
        response = HttpResponse(export_to_excel(data, columns, title=title), content_type=content_type)
    elif format == ExportFormat.CSV:
        response = HttpResponse(export_to_csv(data, columns), content_type=content_type)
        response.charset = 'utf-8-sig'  # BOM for Excel compatibility
    else:
        response = HttpResponse(export_to_pdf(data, columns, title=title), content_type=content_type)

    response['Content-Disposition'] = f'attachment; filename="{full_filename}"'
    return response


# =============================================================================
# Report Export Configuration
# =============================================================================

BALANCE_COLUMNS = [
    {'key': 'section', 'header': 'Kelompok', 'width': 14},
    {'key': 'account_code', 'header': 'Kode Akun', 'width': 12},
    {'key': 'account_name', 'header': 'Nama Akun', 'width': 30},
    {'key': 'opening_balance', 'header': 'Saldo Awal', 'width': 16, 'numeric': True},
    {'key': 'debit', 'header': 'Debit', 'width': 16, 'numeric': True},
    {'key': 'credit', 'header': 'Kredit', 'width': 16, 'numeric': True},
    {'key': 'closing_balance', 'header': 'Saldo Akhir', 'width': 16, 'numeric': True},
]

AMOUNT_COLUMNS = [
    {'key': 'section', 'header': 'Kelompok', 'width': 14},
    {'key': 'account_code', 'header': 'Kode Akun', 'width': 12},
    {'key': 'account_name', 'header': 'Nama Akun', 'width': 30},
    {'key': 'amount', 'header': 'Jumlah', 'width': 16, 'numeric': True},
]

CASH_FLOW_COLUMNS = [
    {'key': 'section', 'header': 'Aktivitas', 'width': 14},
    {'key': 'date', 'header': 'Tanggal', 'width': 12},
    {'key': 'number', 'header': 'Nomor', 'width': 24},
    {'key': 'description', 'header': 'Keterangan', 'width': 30},
    {'key': 'account_code', 'header': 'Akun Lawan', 'width': 12},
    {'key': 'amount', 'header': 'Jumlah', 'width': 16, 'numeric': True},
]

JOURNAL_COLUMNS = [
    {'key': 'date', 'header': 'Tanggal', 'width': 12},
    {'key': 'number', 'header': 'Nomor', 'width': 24},
    {'key': 'is_posted', 'header': 'Posted', 'width': 8},
    {'key': 'account_code', 'header': 'Kode Akun', 'width': 12},
    {'key': 'account_name', 'header': 'Nama Akun', 'width': 30},
    {'key': 'description', 'header': 'Keterangan', 'width': 30},
    {'key': 'debit', 'header': 'Debit', 'width': 16, 'numeric': True},
    {'key': 'credit', 'header': 'Kredit', 'width': 16, 'numeric': True},
]

LEDGER_COLUMNS = [
    {'key': 'account_code', 'header': 'Kode Akun', 'width': 12},
    {'key': 'date', 'header': 'Tanggal', 'width': 12},
    {'key': 'number', 'header': 'Nomor', 'width': 24},
    {'key': 'description', 'header': 'Keterangan', 'width': 30},
    {'key': 'debit', 'header': 'Debit', 'width': 16, 'numeric': True},
    {'key': 'credit', 'header': 'Kredit', 'width': 16, 'numeric': True},
    {'key': 'balance', 'header': 'Saldo', 'width': 16, 'numeric': True},
]

SUBLEDGER_COLUMNS = [
    {'key': 'relation_code', 'header': 'Kode Relasi', 'width': 12},
    {'key': 'relation_name', 'header': 'Nama Relasi', 'width': 30},
    {'key': 'opening_balance', 'header': 'Saldo Awal', 'width': 16, 'numeric': True},
    {'key': 'debit', 'header': 'Debit', 'width': 16, 'numeric': True},
    {'key': 'credit', 'header': 'Kredit', 'width': 16, 'numeric': True},
    {'key': 'closing_balance', 'header': 'Saldo Akhir', 'width': 16, 'numeric': True},
]

AGING_COLUMNS = [
    {'key': 'relation_code', 'header': 'Kode Relasi', 'width': 12},
    {'key': 'relation_name', 'header': 'Nama Relasi', 'width': 30},
    *[{'key': name, 'header': f'{name} hari', 'width': 14, 'numeric': True} for name in AGING_BUCKETS],
    {'key': 'unapplied', 'header': 'Belum Teralokasi', 'width': 16, 'numeric': True},
    {'key': 'total', 'header': 'Total', 'width': 16, 'numeric': True},
]

BY_TYPE_COLUMNS = [
    {'key': 'transaction_type', 'header': 'Jenis', 'width': 20},
    {'key': 'date', 'header': 'Tanggal', 'width': 12},
    {'key': 'number', 'header': 'Nomor', 'width': 24},
    {'key': 'description', 'header': 'Keterangan', 'width': 30},
    {'key': 'is_posted', 'header': 'Posted', 'width': 8},
    {'key': 'total_debit', 'header': 'Total Debit', 'width': 16, 'numeric': True},
]

BY_ACCOUNT_COLUMNS = [
    {'key': 'account_code', 'header': 'Kode Akun', 'width': 12},
    {'key': 'account_name', 'header': 'Nama Akun', 'width': 30},
    {'key': 'date', 'header': 'Tanggal', 'width': 12},
    {'key': 'number', 'header': 'Nomor', 'width': 24},
    {'key': 'debit', 'header': 'Debit', 'width': 16, 'numeric': True},
    {'key': 'credit', 'header': 'Kredit', 'width': 16, 'numeric': True},
]


def prepare_financial_position_data(report_filter: ReportFilter) -> list[dict]:
    report = services.financial_position(report_filter)
    data = []
    for section in ('assets', 'liabilities', 'equity'):
        for row in report[section]['accounts']:
            data.append({'section': section, **row})
    data.append({'section': 'earnings', 'account_name': 'Laba periode berjalan',
                 'closing_balance': report['current_earnings']})
    return data


def prepare_income_statement_data(report_filter: ReportFilter) -> list[dict]:
    report = services.income_statement(report_filter)
    data = [{'section': 'revenue', **row} for row in report['revenue']['accounts']]
    data += [{'section': 'expenses', **row} for row in report['expenses']['accounts']]
    data.append({'section': 'net', 'account_name': 'Laba bersih', 'amount': report['net_income']})
    return data


def prepare_equity_changes_data(report_filter: ReportFilter) -> list[dict]:
    report = services.equity_changes(report_filter)
    data = [{'section': 'equity', **row} for row in report['accounts']]
    data.append({'section': 'net', 'account_name': 'Laba bersih', 'closing_balance': report['net_income']})
    return data


def prepare_cash_flow_data(report_filter: ReportFilter) -> list[dict]:
    report = services.cash_flow(report_filter)
    data = []
    for section in ('operating', 'investing', 'financing'):
        data += [{'section': section, **item} for item in report[section]]
    data.append({'section': 'net', 'description': 'Arus kas bersih', 'amount': report['net_cash_flow']})
    return data


def prepare_journal_data(report_filter: ReportFilter) -> list[dict]:
    """Journal at detail level: one row per detail line."""
    data = []
    for header in services.journal(report_filter)['transactions']:
        for line in header['details']:
            data.append({
                'date': header['date'],
                'number': header['number'],
                'is_posted': header['is_posted'],
                **line,
            })
    return data


def prepare_general_ledger_data(report_filter: ReportFilter) -> list[dict]:
    data = []
    for ledger in services.general_ledger(report_filter)['accounts']:
        data.append({'account_code': ledger['account_code'], 'description': 'Saldo awal',
                     'balance': ledger['opening_balance']})
        data += [{'account_code': ledger['account_code'], **entry} for entry in ledger['entries']]
    return data


def prepare_subledger_data(kind: str) -> Callable[[ReportFilter], list[dict]]:
    def prepare(report_filter: ReportFilter) -> list[dict]:
        return services.subledger(kind, report_filter)['relations']
    return prepare


def prepare_aging_data(kind: str) -> Callable[[ReportFilter], list[dict]]:
    def prepare(report_filter: ReportFilter) -> list[dict]:
        report = services.aging(kind, report_filter.end, report_filter.relation_id)
        return [{**row, **row['buckets']} for row in report['relations']]
    return prepare


def prepare_by_type_data(report_filter: ReportFilter) -> list[dict]:
    data = []
    for group in services.transactions_by_type(report_filter)['types']:
        data += [{'transaction_type': group['transaction_type'], **t} for t in group['transactions']]
    return data


def prepare_by_account_data(report_filter: ReportFilter) -> list[dict]:
    data = []
    for group in services.transactions_by_account(report_filter)['accounts']:
        for line in group['lines']:
            data.append({'account_code': group['account_code'], 'account_name': group['account_name'], **line})
    return data


# report name -> (title, columns, row builder)
REPORT_EXPORTS = {
    'financial-position': ('Laporan Posisi Keuangan', BALANCE_COLUMNS, prepare_financial_position_data),
    'income-statement': ('Laporan Laba Rugi', AMOUNT_COLUMNS, prepare_income_statement_data),
    'equity-changes': ('Laporan Perubahan Ekuitas', BALANCE_COLUMNS, prepare_equity_changes_data),
    'cash-flow': ('Laporan Arus Kas', CASH_FLOW_COLUMNS, prepare_cash_flow_data),
    'journal': ('Jurnal', JOURNAL_COLUMNS, prepare_journal_data),
    'general-ledger': ('Buku Besar', LEDGER_COLUMNS, prepare_general_ledger_data),
    'receivables': ('Saldo Piutang', SUBLEDGER_COLUMNS, prepare_subledger_data('receivable')),
    'payables': ('Saldo Hutang', SUBLEDGER_COLUMNS, prepare_subledger_data('payable')),
    'aging-receivables': ('Umur Piutang', AGING_COLUMNS, prepare_aging_data('receivable')),
    'aging-payables': ('Umur Hutang', AGING_COLUMNS, prepare_aging_data('payable')),
    'transactions-by-type': ('Transaksi per Jenis', BY_TYPE_COLUMNS, prepare_by_type_data),
    'transactions-by-account': ('Transaksi per Akun', BY_ACCOUNT_COLUMNS, prepare_by_account_data),
}


def export_report(report: str, report_filter: ReportFilter, format: str) -> HttpResponse:
    """Build the rows of a named report and wrap them in a file response."""
    title, columns, prepare = REPORT_EXPORTS[report]
    data = prepare(report_filter)
    filename = f"{report}_{report_filter.end:%Y%m%d}"
    return create_export_response(data, columns, format, filename, title=title)
