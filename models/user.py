from models.base_model import Base, BaseModel
from sqlalchemy import Column, String, Text, Table, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func


watch_history_table = Table(
    "watch_history",
    Base.metadata,
    Column("user_id", String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("video_id", String(36), ForeignKey("videos.id", ondelete="CASCADE"), primary_key=True),
    Column("watched_at", DateTime(timezone=True), server_default=func.now(), nullable=False),
)


class User(BaseModel, Base):
    __tablename__ = "users"
    username = Column(String(64), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    full_name = Column(String(255), nullable=False, index=True)
    avatar = Column(String(512), nullable=False)
    cover_image = Column(String(512), nullable=False, default="")
    password_hash = Column(String(128), nullable=False)
    # single live refresh token; replaced on login / rotation, cleared on logout
    refresh_token = Column(Text, nullable=True)

    videos = relationship(
        "Video",
        back_populates="owner",
        passive_deletes=True
    )

    watch_history = relationship(
        "Video",
        secondary=watch_history_table,
        order_by=watch_history_table.c.watched_at.desc()
    )

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")
