"""
WhatsApp message templates for tenant reminders (Indonesian).
"""

from dataclasses import dataclass
from datetime import datetime

from app.models.domain.reminder_domain import BookingCandidate, ReminderClass

ORDER_TYPE_LABELS = {
    "WEEKLY": "Mingguan",
    "MONTHLY": "Bulanan",
    "SEMESTER": "Semester",
    "YEARLY": "Tahunan",
}

MONTH_NAMES = [
    "Januari",
    "Februari",
    "Maret",
    "April",
    "Mei",
    "Juni",
    "Juli",
    "Agustus",
    "September",
    "Oktober",
    "November",
    "Desember",
]


@dataclass(frozen=True, slots=True)
class Branding:
    property_name: str = "Suman Residence"
    admin_whatsapp: str = "6281234567890"
    admin_email: str = "admin@sumanresidence.com"


def format_short_date(value: datetime) -> str:
    """31/12/2025"""
    return f"{value.day}/{value.month}/{value.year}"


def format_long_date(value: datetime) -> str:
    """31 Desember 2025"""
    return f"{value.day} {MONTH_NAMES[value.month - 1]} {value.year}"


def format_rupiah(amount: float) -> str:
    """Rp 1.500.000"""
    return "Rp " + f"{amount:,.0f}".replace(",", ".")


def order_type_label(order_type: str) -> str:
    return ORDER_TYPE_LABELS.get(order_type.upper(), order_type)


def format_reminder_message(
    booking: BookingCandidate,
    reminder_class: ReminderClass | None = None,
    branding: Branding = Branding(),
) -> str:
    """Expiry reminder for the scheduled H-15 / H-1 checks. ``None`` gives a generic reminder."""
    label = reminder_class.label if reminder_class else "Pengingat"
    days_ahead = reminder_class.days_ahead if reminder_class else 15

    if reminder_class is ReminderClass.H1:
        call_to_action = (
            "⚠️ *URGENT*: Sewa berakhir besok! Segera hubungi kami untuk perpanjangan atau check-out."
        )
    else:
        call_to_action = "⏰ Untuk memperpanjang sewa atau mengatur check-out, silakan hubungi kami segera."

    return f"""🏠 *{label} Pengingat Sewa Kamar - {branding.property_name}*

Halo {booking.customer_name}! 👋

Kami ingin mengingatkan bahwa masa sewa kamar Anda akan berakhir dalam *{days_ahead} hari*.

📋 *Detail Sewa:*
• Kamar: {booking.room_type}
• Periode: {order_type_label(booking.order_type)}
• Berakhir: {format_short_date(booking.end_date)}

{call_to_action}

📞 Kontak:
• WhatsApp: {branding.admin_whatsapp}
• Email: {branding.admin_email}

Terima kasih atas kepercayaan Anda! 🙏

_Pesan otomatis - {branding.property_name}_"""


def format_contract_renewal_message(
    tenant_name: str,
    room_id: str,
    check_out: datetime,
    monthly_amount: float,
    branding: Branding = Branding(),
) -> str:
    """Webhook reminder ``contract_renewal_h15``: asks the tenant whether they will extend."""
    check_out_date = format_long_date(check_out)

    return f"""🏠 *{branding.property_name.upper()}* 🏠

Halo {tenant_name}!

⏰ *KONFIRMASI PERPANJANGAN KONTRAK*

Kontrak sewa Anda akan berakhir dalam *15 hari* pada tanggal *{check_out_date}*.

📋 *Detail Kontrak:*
• Room ID: {room_id}
• Biaya Bulanan: {format_rupiah(monthly_amount)}
• Berakhir: {check_out_date}

❓ *Apakah Anda ingin memperpanjang sewa?*

✅ *Jika YA:* reply pesan ini dengan "YA PERPANJANG", tim kami akan kirimkan invoice pembayaran.

❌ *Jika TIDAK:* reply dengan "TIDAK PERPANJANG" dan siapkan untuk check-out.

📞 Hubungi admin: wa.me/{branding.admin_whatsapp}

Terima kasih! 🙏"""


def format_payment_reminder_message(
    tenant_name: str,
    room_id: str,
    check_out: datetime,
    monthly_amount: float,
    branding: Branding = Branding(),
) -> str:
    """Webhook reminder ``payment_reminder_h1``: contract ends tomorrow."""
    check_out_date = format_long_date(check_out)

    return f"""🏠 *{branding.property_name.upper()}* 🏠

Halo {tenant_name}!

⚠️ *REMINDER PEMBAYARAN URGENT* ⚠️

Kontrak sewa Anda akan berakhir *BESOK* tanggal *{check_out_date}*.

💳 *Detail Pembayaran:*
• Room ID: {room_id}
• Jumlah: {format_rupiah(monthly_amount)}
• Deadline: {check_out_date}

📤 Setelah transfer, kirim bukti ke admin: wa.me/{branding.admin_whatsapp} dan cantumkan Room ID: {room_id}

⏰ Jika tidak ada konfirmasi pembayaran sampai {check_out_date}, kontrak akan berakhir otomatis."""
