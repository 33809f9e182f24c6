"""
Wedding and party member models - the records a timeline hangs off
"""
from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from wedding_timeline.database import Base


class Wedding(Base):
    __tablename__ = "weddings"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    wedding_date = Column(Date, nullable=False)
    coordinator_email = Column(String, nullable=True)

    # Rolled up from the task list
    completion_percentage = Column(Integer, nullable=False, default=0)
    current_phase = Column(String, nullable=False, default="planning")

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    members = relationship("PartyMember", back_populates="wedding", order_by="PartyMember.id")
    tasks = relationship("TimelineTask", back_populates="wedding")


class PartyMember(Base):
    __tablename__ = "party_members"

    id = Column(Integer, primary_key=True, index=True)
    wedding_id = Column(Integer, ForeignKey("weddings.id"), nullable=False, index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=True)
    email = Column(String, nullable=True)
    role = Column(String, nullable=True)  # groomsman, best_man, father_of_groom...

    measurements_status = Column(String, nullable=False, default="pending")
    outfit_status = Column(String, nullable=False, default="pending")
    payment_status = Column(String, nullable=False, default="pending")

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    wedding = relationship("Wedding", back_populates="members")

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)
