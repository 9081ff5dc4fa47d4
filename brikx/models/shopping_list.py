from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, String, UniqueConstraint

from brikx.database import Base, utc_now


class ShoppingList(Base):
    __tablename__ = "shopping_lists"

    __table_args__ = (
        UniqueConstraint("user_id", "week_start", name="uq_shopping_lists_user_week"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    week_start = Column(Date, nullable=False)

    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)


class ShoppingListCheckedItem(Base):
    __tablename__ = "shopping_list_checked_items"

    __table_args__ = (
        UniqueConstraint("shopping_list_id", "item_key", name="uq_checked_items_list_key"),
    )

    id = Column(Integer, primary_key=True, index=True)
    shopping_list_id = Column(
        Integer, ForeignKey("shopping_lists.id", ondelete="CASCADE"), nullable=False, index=True
    )
    item_key = Column(String, nullable=False)


class ShoppingListManualItem(Base):
    __tablename__ = "shopping_list_manual_items"

    id = Column(Integer, primary_key=True, index=True)
    shopping_list_id = Column(
        Integer, ForeignKey("shopping_lists.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String, nullable=False)
    category = Column(String, nullable=False, default="other")
    checked = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utc_now)


class FrequentItem(Base):
    __tablename__ = "shopping_list_frequent_items"

    __table_args__ = (
        UniqueConstraint("user_id", "item_name", name="uq_frequent_items_user_name"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    item_name = Column(String, nullable=False)
    frequency = Column(Integer, nullable=False, default=1)
    last_used = Column(DateTime, nullable=False, default=utc_now)
