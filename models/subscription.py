"""
Subscription model: a user (subscriber) following a channel (another user).
Fields:
- subscriber_id (String(36)) - FK to users.id
- channel_id (String(36)) - FK to users.id
- unique on (subscriber_id, channel_id)
"""
from sqlalchemy import Column, String, ForeignKey, UniqueConstraint
from models.base_model import BaseModel, Base


class Subscription(BaseModel, Base):
    __tablename__ = "subscriptions"
    __table_args__ = (
        UniqueConstraint("subscriber_id", "channel_id", name="uq_subscriber_channel"),
    )

    subscriber_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    channel_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    def __repr__(self):
        return f"<Subscription {self.subscriber_id} -> {self.channel_id}>"
