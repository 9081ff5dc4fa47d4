from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String

from brikx.database import Base, utc_now

INGREDIENT_CATEGORIES = ("produce", "meat", "dairy", "pantry", "spices", "frozen", "other")


class Recipe(Base):
    __tablename__ = "recipes"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    default_servings = Column(Integer, nullable=False, default=2)
    created_at = Column(DateTime, nullable=False, default=utc_now)


class RecipeIngredient(Base):
    __tablename__ = "recipe_ingredients"

    id = Column(Integer, primary_key=True, index=True)
    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String, nullable=False)
    quantity = Column(Float, nullable=True)
    unit = Column(String, nullable=True)
    category = Column(String, nullable=False, default="other")

    is_optional = Column(Boolean, nullable=False, default=False)
    sort_order = Column(Integer, nullable=False, default=0)
