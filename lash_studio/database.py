from sqlmodel import Session, SQLModel, create_engine

from lash_studio.config import DATABASE_URL, SQL_ECHO


# sqlite + FastAPI: a sessão pode ser usada fora da thread que abriu a conexão
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, echo=SQL_ECHO, connect_args=connect_args)


def create_db_and_tables():
    SQLModel.metadata.create_all(engine)


def get_session():
    with Session(engine) as session:
        yield session
