from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text

from brikx.database import Base, utc_now


class MealPlan(Base):
    __tablename__ = "meal_plans"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)

    date = Column(Date, nullable=False, index=True)
    meal_type = Column(String, nullable=False, default="dinner")

    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="SET NULL"), nullable=True)
    servings = Column(Integer, nullable=False, default=2)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utc_now)
