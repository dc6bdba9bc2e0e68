from datetime import date
from decimal import Decimal
from io import BytesIO

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from PyPDF2 import PdfReader

from fleet.exceptions import ValidationFailure
from fleet.models import Vehicle
from fleet.pdf_utils import generate_report_pdf
from fleet.services.refuels import register_refuel
from fleet.services.reports import current_month_range, filter_report
from fleet.services.routes import register_route


def pdf_text(data):
    reader = PdfReader(BytesIO(data))
    return "\n".join(page.extract_text() for page in reader.pages)


class ReportFilterTests(TestCase):
    def setUp(self):
        self.fiorino = Vehicle.objects.create(model="Fiorino", plate="PSA-1A23")
        self.strada = Vehicle.objects.create(model="Strada", plate="ROE-4B56")
        register_route(self.fiorino, "Carlos", "Cedral -> Mirinzal", 0, 120, date(2026, 3, 5))
        register_route(self.strada, "Marcos", "Sao Luis -> Pinheiro", 0, 80, date(2026, 3, 31))
        register_route(self.strada, "Marcos", "Outside", 80, 200, date(2026, 4, 1))
        register_refuel(self.fiorino, 120, "6", "60", "Posto Ipiranga", "Renova", date(2026, 3, 6))

    def test_range_is_inclusive(self):
        report = filter_report(date(2026, 3, 5), date(2026, 3, 31))
        self.assertEqual(report.route_count, 2)
        self.assertEqual(report.total_distance, Decimal("200.00"))
        self.assertEqual(report.total_liters, Decimal("10.00"))
        self.assertEqual(report.total_cost, Decimal("60.00"))
        self.assertEqual(report.avg_consumption, Decimal("20.00"))

    def test_vehicle_filter(self):
        report = filter_report(date(2026, 3, 1), date(2026, 3, 31), self.strada)
        self.assertEqual(report.route_count, 1)
        self.assertEqual(report.refuels, [])
        self.assertIsNone(report.avg_consumption)
        self.assertEqual(report.avg_consumption_display, "-")

    def test_inverted_range_is_rejected(self):
        with self.assertRaises(ValidationFailure):
            filter_report(date(2026, 4, 1), date(2026, 3, 1))

    def test_default_range_is_current_month(self):
        report = filter_report()
        start, end = current_month_range()
        self.assertEqual((report.start, report.end), (start, end))
        self.assertEqual(start.day, 1)

    def test_filename(self):
        report = filter_report(date(2026, 3, 1), date(2026, 3, 31))
        self.assertEqual(report.filename, "fleet_report_2026-03-01_2026-03-31.pdf")


class ReportPdfTests(TestCase):
    def setUp(self):
        self.vehicle = Vehicle.objects.create(model="Fiorino", plate="PSA-1A23")
        register_route(self.vehicle, "Carlos Souza", "Cedral -> Mirinzal", 0, 120, date(2026, 3, 5))
        register_refuel(self.vehicle, 120, "6", "60", "Posto Ipiranga", "Renova", date(2026, 3, 6))

    def test_pdf_contains_header_summary_and_tables(self):
        report = filter_report(date(2026, 3, 1), date(2026, 3, 31), self.vehicle)
        text = pdf_text(generate_report_pdf(report))
        self.assertIn("Test Fleet - Fleet Report", text)
        self.assertIn("Period: 01/03/2026 to 31/03/2026", text)
        self.assertIn("Vehicle: Fiorino - PSA-1A23", text)
        self.assertIn("Average consumption", text)
        self.assertIn("Carlos Souza", text)
        self.assertIn("Posto Ipiranga", text)
        self.assertIn("Renova", text)

    def test_long_reports_continue_on_next_page(self):
        for day in range(1, 29):
            register_route(self.vehicle, "Carlos Souza", f"Trip {day}", 1000 + day * 10, 1005 + day * 10, date(2026, 2, day))
            register_route(self.vehicle, "Carlos Souza", f"Return {day}", 2000 + day * 10, 2005 + day * 10, date(2026, 2, day))
        report = filter_report(date(2026, 2, 1), date(2026, 2, 28))
        reader = PdfReader(BytesIO(generate_report_pdf(report)))
        self.assertGreater(len(reader.pages), 1)
        self.assertIn("Return 28", pdf_text(generate_report_pdf(report)))

    def test_empty_period(self):
        report = filter_report(date(2025, 1, 1), date(2025, 1, 31))
        text = pdf_text(generate_report_pdf(report))
        self.assertIn("No routes in this period", text)
        self.assertIn("No refuels in this period", text)


class ReportViewTests(TestCase):
    def setUp(self):
        User = get_user_model()
        self.user = User.objects.create_user(username="rep", email="rep@example.com", password="pass")
        profile = self.user.fleet_profile
        profile.generate_reports = True
        profile.save()
        self.vehicle = Vehicle.objects.create(model="Fiorino", plate="PSA-1A23")
        register_route(self.vehicle, "Carlos Souza", "Cedral -> Mirinzal", 0, 120, date(2026, 3, 5))
        self.client.force_login(self.user)

    def test_report_page(self):
        response = self.client.get(reverse("report-index"), {"start": "2026-03-01", "end": "2026-03-31"})
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Cedral -&gt; Mirinzal")
        self.assertEqual(response.context["report"].route_count, 1)

    def test_pdf_download(self):
        response = self.client.get(reverse("report-pdf"), {"start": "2026-03-01", "end": "2026-03-31"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response["Content-Type"], "application/pdf")
        self.assertIn('filename="fleet_report_2026-03-01_2026-03-31.pdf"', response["Content-Disposition"])
        self.assertIn("Cedral -> Mirinzal", pdf_text(response.content))

    def test_invalid_filter_redirects(self):
        response = self.client.get(reverse("report-pdf"), {"start": "2026-04-01", "end": "2026-03-01"})
        self.assertRedirects(response, reverse("report-index"))

    def test_only_future_start_shows_error(self):
        response = self.client.get(reverse("report-index"), {"start": "2099-01-01"})
        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.context["report"])
        self.assertContains(response, "Start date cannot be after the end date")

        response = self.client.get(reverse("report-pdf"), {"start": "2099-01-01"})
        self.assertRedirects(response, reverse("report-index"))

    def test_only_start_runs_to_end_of_current_month(self):
        response = self.client.get(reverse("report-index"), {"start": "2026-03-01"})
        self.assertEqual(response.status_code, 200)
        report = response.context["report"]
        self.assertEqual(report.end, current_month_range()[1])
        self.assertEqual(report.route_count, 1)

    def test_requires_generate_reports(self):
        User = get_user_model()
        other = User.objects.create_user(username="nope", email="nope@example.com", password="pass")
        self.client.force_login(other)
        response = self.client.get(reverse("report-pdf"))
        self.assertRedirects(response, reverse("dashboard"))
