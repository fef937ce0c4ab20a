from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from healthfirst.core import config


connect_args = {"check_same_thread": False} if config.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(config.DATABASE_URL, connect_args=connect_args)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_scheduling_schema_checked = False

SCHEDULING_INDEXES = {
    'provider_availability': [
        'CREATE INDEX IF NOT EXISTS idx_availability_provider_date '
        'ON provider_availability(provider_id, availability_date)',
        'CREATE INDEX IF NOT EXISTS idx_availability_type_date '
        'ON provider_availability(appointment_type, availability_date)',
    ],
    'appointment_slots': [
        'CREATE INDEX IF NOT EXISTS idx_slots_provider_start '
        'ON appointment_slots(provider_id, start_date_time)',
        'CREATE INDEX IF NOT EXISTS idx_slots_booked_start '
        'ON appointment_slots(is_booked, is_active, start_date_time)',
        'CREATE INDEX IF NOT EXISTS idx_slots_patient '
        'ON appointment_slots(patient_id)',
    ],
}


def ensure_scheduling_schema() -> None:
    global _scheduling_schema_checked

    if _scheduling_schema_checked:
        return

    with _schema_lock:
        if _scheduling_schema_checked:
            return

        existing_tables = set(inspect(engine).get_table_names())

        with engine.begin() as connection:
            for table_name, statements in SCHEDULING_INDEXES.items():
                if table_name not in existing_tables:
                    continue
                for statement in statements:
                    connection.execute(text(statement))

        _scheduling_schema_checked = True
