from sqlalchemy import (
    Column, Integer, String, Date, DateTime, Boolean, Text, Float,
    ForeignKey, Table, CheckConstraint
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func
from typing import List

Base = declarative_base()

# Contest eligibility filters (many-to-many)
contest_categories = Table(
    'contest_categories', Base.metadata,
    Column('contest_id', Integer, ForeignKey('contests.id', ondelete='CASCADE'), primary_key=True),
    Column('category_id', Integer, ForeignKey('categories.id', ondelete='CASCADE'), primary_key=True),
)

contest_regions = Table(
    'contest_regions', Base.metadata,
    Column('contest_id', Integer, ForeignKey('contests.id', ondelete='CASCADE'), primary_key=True),
    Column('region_id', Integer, ForeignKey('regions.id', ondelete='CASCADE'), primary_key=True),
)

contest_brigades = Table(
    'contest_brigades', Base.metadata,
    Column('contest_id', Integer, ForeignKey('contests.id', ondelete='CASCADE'), primary_key=True),
    Column('brigade_id', Integer, ForeignKey('brigades.id', ondelete='CASCADE'), primary_key=True),
)

class Region(Base):
    __tablename__ = 'regions'

    id = Column(Integer, primary_key=True)
    region_code = Column(String(10), nullable=False, unique=True)
    name = Column(String(100))

    def __repr__(self):
        return f"<Region(code='{self.region_code}')>"

class Category(Base):
    """Organization type a participant belongs to (school, office, ...)."""
    __tablename__ = 'categories'

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False, unique=True)

    def __repr__(self):
        return f"<Category(name='{self.name}')>"

class Brigade(Base):
    """Collection program that shipments are collected under."""
    __tablename__ = 'brigades'

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    is_active = Column(Boolean, default=True)

    collections = relationship("Collection", back_populates="brigade")

    def __repr__(self):
        return f"<Brigade(name='{self.name}')>"

class User(Base):
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True)
    first_name = Column(String(100))
    last_name = Column(String(100))
    email = Column(String(255), unique=True)
    created_at = Column(DateTime, default=func.now())

    participants = relationship("Participant", back_populates="user")

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    def __repr__(self):
        return f"<User(id={self.id}, name='{self.full_name}')>"

class Participant(Base):
    """Organization profile competing in contests."""
    __tablename__ = 'participants'

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    organization_name = Column(String(200))
    city = Column(String(100))
    region_id = Column(Integer, ForeignKey('regions.id'), nullable=True, index=True)
    zipcode = Column(String(20))
    category_id = Column(Integer, ForeignKey('categories.id'), nullable=True, index=True)

    # Metadata
    created_at = Column(DateTime, default=func.now())

    user = relationship("User", back_populates="participants")
    region = relationship("Region")
    category = relationship("Category")
    collections = relationship("Collection", back_populates="participant")

    def __repr__(self):
        return f"<Participant(id={self.id}, organization='{self.organization_name}', city='{self.city}')>"

class Contest(Base):
    __tablename__ = 'contests'

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False, unique=True)
    first_day = Column(Date, nullable=False)
    last_day = Column(Date, nullable=False)

    # Scoring weights
    credits_by_vote = Column(Float, nullable=False, default=0)
    credits_by_shipment = Column(Float, nullable=False, default=0)
    credits_by_unit = Column(Float, nullable=False, default=0)

    # Eligibility: True = whitelist, False = blacklist
    users_list_white = Column(Boolean, nullable=False, default=False)
    users_list_ids = Column(Text, nullable=True)  # Comma-separated user IDs, e.g. "12345, 67890"

    # Display flags
    voting_enabled = Column(Boolean, default=True)
    leaderboard_enabled = Column(Boolean, default=True)
    show_credits = Column(Boolean, default=True)
    hide_card = Column(Boolean, default=False)

    # Metadata
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    categories = relationship("Category", secondary=contest_categories)
    regions = relationship("Region", secondary=contest_regions)
    brigades = relationship("Brigade", secondary=contest_brigades)
    votes = relationship("ContestVote", back_populates="contest", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint('credits_by_vote >= 0', name='ck_contest_credits_by_vote'),
        CheckConstraint('credits_by_shipment >= 0', name='ck_contest_credits_by_shipment'),
        CheckConstraint('credits_by_unit >= 0', name='ck_contest_credits_by_unit'),
    )

    @property
    def list_ids(self) -> List[str]:
        """Raw tokens of the eligibility list, spaces removed."""
        if not self.users_list_ids:
            return []
        return [token for token in self.users_list_ids.replace(' ', '').split(',') if token]

    def __repr__(self):
        return f"<Contest(id={self.id}, name='{self.name}', {self.first_day}..{self.last_day})>"

class ContestVote(Base):
    __tablename__ = 'contest_votes'

    id = Column(Integer, primary_key=True)
    contest_id = Column(Integer, ForeignKey('contests.id', ondelete='CASCADE'), nullable=False, index=True)
    participant_id = Column(Integer, ForeignKey('participants.id'), nullable=False, index=True)
    email = Column(String(255))
    verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=func.now(), index=True)

    contest = relationship("Contest", back_populates="votes")
    participant = relationship("Participant")

    def __repr__(self):
        return f"<ContestVote(contest={self.contest_id}, participant={self.participant_id}, verified={self.verified})>"

class Collection(Base):
    """A participant's enrollment in a brigade; shipments hang off it."""
    __tablename__ = 'collections'

    id = Column(Integer, primary_key=True)
    participant_id = Column(Integer, ForeignKey('participants.id'), nullable=False, index=True)
    brigade_id = Column(Integer, ForeignKey('brigades.id'), nullable=False, index=True)
    is_active = Column(Boolean, default=True)

    participant = relationship("Participant", back_populates="collections")
    brigade = relationship("Brigade", back_populates="collections")
    shipments = relationship("Shipment", back_populates="collection")

    def __repr__(self):
        return f"<Collection(participant={self.participant_id}, brigade={self.brigade_id})>"

class Shipment(Base):
    __tablename__ = 'shipments'

    id = Column(Integer, primary_key=True)
    collection_id = Column(Integer, ForeignKey('collections.id'), nullable=False, index=True)
    units_collected = Column(Float, nullable=True)  # Derived externally from shipped weight
    created_at = Column(DateTime, default=func.now(), index=True)

    collection = relationship("Collection", back_populates="shipments")

    def __repr__(self):
        return f"<Shipment(collection={self.collection_id}, units={self.units_collected})>"

class Configuration(Base):
    __tablename__ = 'configurations'

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=False)  # JSON-encoded
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Configuration(key='{self.key}')>"

class AuditLog(Base):
    __tablename__ = 'audit_logs'

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, nullable=False)
    action = Column(String(50), nullable=False)
    details = Column(Text)  # JSON-encoded
    created_at = Column(DateTime, default=func.now())

    def __repr__(self):
        return f"<AuditLog(action='{self.action}', user={self.user_id})>"
