import uuid

from sqlalchemy import Column, Integer, String, Boolean, Text, DateTime, JSON, Uuid
from database import Base, utcnow


class BlogPost(Base):
    __tablename__ = "blogs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(Text, nullable=False)
    summary = Column(Text, nullable=True)
    content = Column(Text, nullable=False)
    published_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    source_name = Column(String(255), nullable=True)
    source_url = Column(Text, nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    region = Column(JSON, nullable=False, default=list)
    companies = Column(JSON, nullable=False, default=list)
    sector = Column(String(100), nullable=True)
    financial_impact = Column(Text, nullable=True)
    key_numbers = Column(JSON, nullable=False, default=dict)
    image_url = Column(Text, nullable=True)
    image_source = Column(String(255), nullable=True)
    image_attribution = Column(Text, nullable=True)
    image_license = Column(String(100), nullable=True)
    image_alt_text = Column(Text, nullable=True)
    views = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
