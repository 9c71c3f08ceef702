"""
Database models for Better Unsubscribe.

The database holds the host side of the system: configured accounts and
their sender identities, and an append-only log of executed unsubscribe
actions.
"""

from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text,
    create_engine
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker
from sqlalchemy.sql import func

Base = declarative_base()


class Account(Base):
    """Mail account used to receive messages and send unsubscribe replies."""
    __tablename__ = 'accounts'

    id = Column(Integer, primary_key=True)
    email_address = Column(String(255), unique=True, nullable=False)
    provider = Column(String(50), nullable=False)  # gmail, outlook, custom, ...
    imap_server = Column(String(255))
    imap_port = Column(Integer, default=993)
    smtp_server = Column(String(255))
    smtp_port = Column(Integer, default=587)
    use_ssl = Column(Boolean, default=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    identities = relationship(
        "AccountIdentity", back_populates="account",
        cascade="all, delete-orphan", order_by="AccountIdentity.position"
    )

    def __repr__(self):
        return f"<Account(email='{self.email_address}', provider='{self.provider}')>"


class AccountIdentity(Base):
    """Sender identity belonging to an account; position 0 is the default."""
    __tablename__ = 'identities'

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey('accounts.id'), nullable=False)
    email_address = Column(String(255), nullable=False)
    name = Column(String(255), default='')
    position = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=func.now())

    account = relationship("Account", back_populates="identities")

    __table_args__ = (
        Index('idx_identity_account_position', 'account_id', 'position'),
        Index('idx_identity_email', 'email_address'),
    )

    def __repr__(self):
        return f"<AccountIdentity(email='{self.email_address}', account_id={self.account_id})>"


class UnsubscribeAttempt(Base):
    """Append-only record of executed unsubscribe actions."""
    __tablename__ = 'unsubscribe_attempts'

    id = Column(Integer, primary_key=True)
    message_id = Column(String(255), nullable=False)
    attempted_at = Column(DateTime, default=func.now())
    method_used = Column(String(50), nullable=False)  # Post, Email, Browser
    target_address = Column(Text)
    status = Column(String(50), nullable=False)  # success, failed
    response_code = Column(Integer)
    error_message = Column(Text)

    __table_args__ = (
        Index('idx_attempt_message', 'message_id'),
        Index('idx_attempt_status', 'status'),
    )

    def __repr__(self):
        return f"<UnsubscribeAttempt(message_id='{self.message_id}', status='{self.status}')>"


def create_database_engine(database_url: str = "sqlite:///unsubscriber.db"):
    """Create and return a database engine."""
    return create_engine(
        database_url,
        echo=False,
        pool_pre_ping=True,
        connect_args={"check_same_thread": False} if database_url.startswith("sqlite") else {}
    )


def create_tables(engine):
    """Create all tables in the database."""
    Base.metadata.create_all(engine)


def get_session_maker(engine):
    """Get a session maker for the database."""
    return sessionmaker(bind=engine)
