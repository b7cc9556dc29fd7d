import os

from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./lash_studio.db")
SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() == "true"

# sql | memory (memory perde tudo ao reiniciar, útil para demo/testes)
RECORD_STORE_BACKEND = os.getenv("RECORD_STORE_BACKEND", "sql").lower()

# "hoje" do estúdio é sempre a data local, nunca a data UTC
STUDIO_TIMEZONE = os.getenv("STUDIO_TIMEZONE", "America/Sao_Paulo")

# estúdio single-tenant: todo registro salvo recebe esse dono
STUDIO_OWNER_ID = os.getenv("STUDIO_OWNER_ID", "master-user-local")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
