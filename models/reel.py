import uuid

from sqlalchemy import Column, Integer, Text, ForeignKey, DateTime, JSON, Uuid, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from database import Base, utcnow


class Reel(Base):
    __tablename__ = "reels"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    video_url = Column(Text, nullable=False)
    content = Column(Text, nullable=True)
    likes = Column(Integer, default=0, nullable=False)
    shares = Column(Integer, default=0, nullable=False)
    duration = Column(Integer, nullable=False)  # seconds, 1-300
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    author = relationship("User", back_populates="reels")
    comments = relationship("ReelComment", back_populates="reel", cascade="all, delete-orphan")
    reel_likes = relationship("ReelLike", back_populates="reel", cascade="all, delete-orphan")


class ReelComment(Base):
    __tablename__ = "reel_comments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    reel_id = Column(Uuid, ForeignKey("reels.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=True)
    images = Column(JSON, nullable=False, default=list)
    likes = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    author = relationship("User", back_populates="reel_comments")
    reel = relationship("Reel", back_populates="comments")
    comment_likes = relationship("ReelLike", back_populates="reel_comment", cascade="all, delete-orphan")


class ReelLike(Base):
    __tablename__ = "reel_likes"
    __table_args__ = (
        UniqueConstraint("user_id", "reel_id", name="uq_reel_likes_user_reel"),
        UniqueConstraint("user_id", "reel_comment_id", name="uq_reel_likes_user_comment"),
        CheckConstraint(
            "(reel_id IS NOT NULL AND reel_comment_id IS NULL) OR (reel_id IS NULL AND reel_comment_id IS NOT NULL)",
            name="ck_reel_likes_single_target"
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    reel_id = Column(Uuid, ForeignKey("reels.id", ondelete="CASCADE"), nullable=True, index=True)
    reel_comment_id = Column(Uuid, ForeignKey("reel_comments.id", ondelete="CASCADE"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    user = relationship("User", back_populates="reel_likes")
    reel = relationship("Reel", back_populates="reel_likes")
    reel_comment = relationship("ReelComment", back_populates="comment_likes")
