"""Utilities for generating the fleet report PDF."""

from io import BytesIO

from django.conf import settings
from reportlab.lib import colors
from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas
from reportlab.platypus import Table, TableStyle

ACCENT_COLOR = HexColor("#1f4e79")
SUBTITLE_COLOR = HexColor("#666666")
SIDE_MARGIN = 50
TOP_MARGIN = 60
BOTTOM_MARGIN = 60


def fmt_date(value):
    return value.strftime("%d/%m/%Y") if value else "-"


def fmt_num(value, places=2):
    if value is None:
        return "-"
    return f"{float(value):,.{places}f}"


def _table_style():
    return TableStyle(
        [
            ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
            ("BACKGROUND", (0, 0), (-1, 0), ACCENT_COLOR),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
            ("FONT", (0, 0), (-1, 0), "Helvetica-Bold", 9),
            ("FONT", (0, 1), (-1, -1), "Helvetica", 8),
            ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.whitesmoke]),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ]
    )


def generate_report_pdf(report):
    """Render a ReportData into an A4 portrait PDF and return the bytes.

    Layout: company title, period line, optional vehicle line, summary
    block, then the routes table and the refuels table. Tables continue
    on the next page when they do not fit.
    """
    buffer = BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    width, height = A4
    content_width = width - 2 * SIDE_MARGIN
    company = getattr(settings, "FLEET_COMPANY_NAME", "Fleet")

    def draw_footer():
        c.setStrokeColor(ACCENT_COLOR)
        c.line(SIDE_MARGIN, 40, width - SIDE_MARGIN, 40)
        c.setFillColor(colors.black)
        c.setFont("Helvetica", 8)
        c.drawString(SIDE_MARGIN, 30, company)
        c.drawRightString(width - SIDE_MARGIN, 30, f"Page {c.getPageNumber()}")

    def new_page():
        draw_footer()
        c.showPage()
        return height - TOP_MARGIN

    def draw_heading(y, text):
        if y - 30 < BOTTOM_MARGIN:
            y = new_page()
        c.setFont("Helvetica-Bold", 12)
        c.setFillColor(ACCENT_COLOR)
        c.drawString(SIDE_MARGIN, y, text)
        c.setFillColor(colors.black)
        return y - 8

    def draw_table(y, data, col_widths):
        table = Table(data, colWidths=col_widths, repeatRows=1)
        table.setStyle(_table_style())
        pending = [table]
        while pending:
            part = pending.pop(0)
            _w, h = part.wrap(content_width, y - BOTTOM_MARGIN)
            if h <= y - BOTTOM_MARGIN:
                part.drawOn(c, SIDE_MARGIN, y - h)
                y -= h
                continue
            pieces = part.split(content_width, y - BOTTOM_MARGIN)
            if len(pieces) < 2:
                if y >= height - TOP_MARGIN:
                    # a single row taller than a page; draw it clipped
                    part.drawOn(c, SIDE_MARGIN, y - h)
                    y = new_page()
                    continue
                y = new_page()
                pending.insert(0, part)
                continue
            first = pieces[0]
            _w, h = first.wrap(content_width, y - BOTTOM_MARGIN)
            first.drawOn(c, SIDE_MARGIN, y - h)
            y = new_page()
            pending = list(pieces[1:]) + pending
        return y - 20

    # Header
    y = height - TOP_MARGIN
    c.setFont("Helvetica-Bold", 18)
    c.drawCentredString(width / 2, y, f"{company} - Fleet Report")
    y -= 22
    c.setFont("Helvetica", 11)
    c.setFillColor(SUBTITLE_COLOR)
    c.drawCentredString(width / 2, y, f"Period: {fmt_date(report.start)} to {fmt_date(report.end)}")
    if report.vehicle is not None:
        y -= 16
        c.drawCentredString(width / 2, y, f"Vehicle: {report.vehicle.label}")
    c.setFillColor(colors.black)
    y -= 14
    c.setStrokeColor(ACCENT_COLOR)
    c.line(SIDE_MARGIN, y, width - SIDE_MARGIN, y)
    y -= 24

    # Summary
    y = draw_heading(y, "Summary")
    summary = [
        ["Indicator", "Value"],
        ["Routes", str(report.route_count)],
        ["Total distance", f"{fmt_num(report.total_distance)} km"],
        ["Total liters", f"{fmt_num(report.total_liters)} L"],
        ["Total cost", fmt_num(report.total_cost)],
        ["Average consumption", report.avg_consumption_display],
    ]
    y = draw_table(y, summary, [200, content_width - 200])

    # Routes
    y = draw_heading(y, "Routes")
    route_rows = [["Date", "Vehicle", "Driver", "Route", "Distance (km)"]]
    for route in report.routes:
        route_rows.append([
            fmt_date(route.date),
            route.vehicle.label,
            route.driver.name,
            route.name,
            fmt_num(route.distance) if route.distance is not None else "-",
        ])
    if len(route_rows) == 1:
        route_rows.append(["-", "No routes in this period", "", "", ""])
    y = draw_table(y, route_rows, [65, 120, 95, 135, content_width - 415])

    # Refuels
    y = draw_heading(y, "Refuels")
    refuel_rows = [["Date", "Vehicle", "Station", "Store", "Liters", "Total"]]
    for refuel in report.refuels:
        refuel_rows.append([
            fmt_date(refuel.date),
            refuel.vehicle.label,
            refuel.station,
            refuel.store,
            fmt_num(refuel.liters),
            fmt_num(refuel.total_price),
        ])
    if len(refuel_rows) == 1:
        refuel_rows.append(["-", "No refuels in this period", "", "", "", ""])
    draw_table(y, refuel_rows, [65, 115, 100, 95, 55, content_width - 430])

    draw_footer()
    c.showPage()
    c.save()
    pdf = buffer.getvalue()
    buffer.close()
    return pdf
