import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from healthfirst.core import config
from healthfirst.database import Base, engine, ensure_scheduling_schema
from healthfirst.models import appointment, availability, patient, provider  # noqa: F401
from healthfirst.routes import (
    appointment_routes,
    auth_routes,
    availability_routes,
    directory_routes,
    search_routes,
)

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
)

config.validate_runtime_config()

app = FastAPI(title='HealthFirst Scheduling API', debug=config.DEBUG)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_scheduling_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'HealthFirst API Running', 'environment': config.APP_ENV}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(availability_routes.router, prefix='/provider')
app.include_router(search_routes.router, prefix='/availability')
app.include_router(appointment_routes.router, prefix='/appointments')
app.include_router(directory_routes.router)
