"""SQLAlchemy ORM models."""
from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from script_registry.infrastructure.database.base import Base


class Script(Base):
    __tablename__ = "scripts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    current_version_id = Column(
        Integer,
        ForeignKey(
            "script_versions.id",
            use_alter=True,
            name="fk_scripts_current_version_id",
            ondelete="SET NULL",
        ),
        nullable=True,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    versions = relationship(
        "ScriptVersion",
        back_populates="script",
        foreign_keys="ScriptVersion.script_id",
        cascade="all, delete-orphan",
        order_by="ScriptVersion.id",
    )
    current_version = relationship(
        "ScriptVersion",
        foreign_keys=[current_version_id],
        post_update=True,
    )


class ScriptVersion(Base):
    __tablename__ = "script_versions"
    __table_args__ = (
        Index("ix_script_versions_script_created", "script_id", "created_at", "id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    script_id = Column(
        Integer,
        ForeignKey("scripts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title = Column(String(255), nullable=False, index=True)
    language = Column(String(20), nullable=False)
    code = Column(Text, nullable=False)
    description = Column(Text)
    key = Column(String(255), index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    script = relationship("Script", back_populates="versions", foreign_keys=[script_id])
