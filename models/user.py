import uuid

from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text, Uuid
from sqlalchemy.orm import relationship
from database import Base, utcnow

class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=True)  # OTP-only users have no password
    mobile_number = Column(String(10), unique=True, index=True, nullable=False)
    role = Column(String(20), default="user", nullable=False)
    is_influencer = Column(Boolean, default=False, nullable=False)
    influencer_url = Column(Text, nullable=True)
    avatar = Column(Text, nullable=True)
    verified = Column(Boolean, default=True, nullable=False)
    is_waitlisted = Column(Boolean, default=False, nullable=False)
    waitlist_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    posts = relationship("Post", back_populates="author", cascade="all, delete-orphan")
    comments = relationship("Comment", back_populates="author", cascade="all, delete-orphan")
    likes = relationship("Like", back_populates="user", cascade="all, delete-orphan")
    bookmarks = relationship("Bookmark", back_populates="user", cascade="all, delete-orphan")
    reels = relationship("Reel", back_populates="author", cascade="all, delete-orphan")
    reel_comments = relationship("ReelComment", back_populates="author", cascade="all, delete-orphan")
    reel_likes = relationship("ReelLike", back_populates="user", cascade="all, delete-orphan")
    purchases = relationship("CoursePurchase", back_populates="user", cascade="all, delete-orphan")

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
