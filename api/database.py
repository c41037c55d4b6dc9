from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
import os
from dotenv import load_dotenv
load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./marketing_workflows.db")

if DATABASE_URL.startswith("sqlite"):
    # SQLite connections are used from FastAPI's threadpool
    engine = create_engine(DATABASE_URL, connect_args={"check_same_thread": False})
else:
    engine = create_engine(
        DATABASE_URL,
        pool_size=10,           # Base connections kept open
        max_overflow=20,        # Additional connections when pool is full
        pool_timeout=60,        # Wait up to 60s for a connection
        pool_pre_ping=True,     # Check connections are alive before using
    )
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()
