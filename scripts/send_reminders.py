#!/usr/bin/env python3
"""
Ejecuta el despacho de recordatorios sin pasar por HTTP (cron local).

Uso:
    python scripts/send_reminders.py              # recordatorios de citas
    python scripts/send_reminders.py --admin      # avisos de reservas nuevas a los admins
"""
import argparse
import logging
import sys

from gilt_backend.database import SessionLocal, create_tables
from gilt_backend.services.email_client import build_email_client
from gilt_backend.services.reminder_service import ReminderDispatcher

logging.basicConfig(level=logging.INFO)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Despacho de recordatorios de reservas")
    parser.add_argument("--admin", action="store_true", help="Enviar avisos de reservas nuevas a los admins")
    args = parser.parse_args(argv)

    create_tables()
    db = SessionLocal()
    try:
        dispatcher = ReminderDispatcher(db, build_email_client())
        if args.admin:
            result = dispatcher.send_admin_notifications()
            print(f"Sent {result.sent} admin notifications, {result.failed} failed")
        else:
            result = dispatcher.send_appointment_reminders()
            print(f"Sent {result.sent} reminders, {result.failed} failed")
    finally:
        db.close()

    return 1 if result.failed else 0


if __name__ == "__main__":
    sys.exit(main())
