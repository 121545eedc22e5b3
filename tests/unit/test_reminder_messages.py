from datetime import UTC, datetime

from app.models.domain.reminder_domain import BookingCandidate, ReminderClass
from app.services.reminder_messages import (
    Branding,
    format_contract_renewal_message,
    format_long_date,
    format_payment_reminder_message,
    format_reminder_message,
    format_rupiah,
    format_short_date,
)


def make_candidate() -> BookingCandidate:
    return BookingCandidate(
        booking_id="bk_1",
        status="APPROVED",
        end_date=datetime(2025, 12, 31, tzinfo=UTC),
        phone_number="628111",
        customer_name="Budi",
        room_type="Deluxe",
        order_type="MONTHLY",
    )


def test_date_and_currency_formatting():
    assert format_short_date(datetime(2025, 12, 31)) == "31/12/2025"
    assert format_long_date(datetime(2025, 12, 31)) == "31 Desember 2025"
    assert format_rupiah(1500000) == "Rp 1.500.000"


def test_h15_reminder_content():
    message = format_reminder_message(make_candidate(), ReminderClass.H15)

    assert "H-15" in message
    assert "15 hari" in message
    assert "Halo Budi" in message
    assert "Kamar: Deluxe" in message
    assert "Periode: Bulanan" in message
    assert "Berakhir: 31/12/2025" in message
    assert "URGENT" not in message


def test_h1_reminder_is_urgent():
    message = format_reminder_message(make_candidate(), ReminderClass.H1)

    assert "1 hari" in message
    assert "URGENT" in message


def test_branding_is_applied():
    branding = Branding(property_name="Kos Melati", admin_whatsapp="62800", admin_email="a@b.c")

    message = format_reminder_message(make_candidate(), ReminderClass.H15, branding)

    assert "Kos Melati" in message
    assert "62800" in message


def test_webhook_templates():
    renewal = format_contract_renewal_message("Siti", "R-12", datetime(2025, 3, 25), 1500000)
    payment = format_payment_reminder_message("Siti", "R-12", datetime(2025, 3, 25), 1500000)

    assert "KONFIRMASI PERPANJANGAN KONTRAK" in renewal
    assert "25 Maret 2025" in renewal
    assert "Rp 1.500.000" in renewal
    assert "BESOK" in payment
    assert "Room ID: R-12" in payment
