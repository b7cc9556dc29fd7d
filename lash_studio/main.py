from fastapi import FastAPI

from lash_studio.database import create_db_and_tables
from lash_studio.logging_setup import setup_logging
from lash_studio.models import record
from lash_studio.routers import appointments, clients, finance, signatures

logger = setup_logging()

app = FastAPI(title="Lash Studio CRM")
app.include_router(appointments.router)
app.include_router(clients.router)
app.include_router(finance.router)
app.include_router(signatures.router)


@app.on_event("startup")
def on_startup():
    create_db_and_tables()
    logger.info("Banco pronto (%s)", record.StoredRecord.__tablename__)


@app.get("/")
def root():
    return {"message": "API lash_studio funcionando 🚀"}
