from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Integer, String, Text

from mise_recipes.app.db.base import Base


class Recipe(Base):
    __tablename__ = "recipes"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text)
    source_url = Column(String)
    image_url = Column(String)
    video_url = Column(String)
    servings = Column(Integer)
    prep_time_minutes = Column(Integer)
    cook_time_minutes = Column(Integer)
    tags = Column(JSON, nullable=False, default=list)
    ingredients = Column(JSON, nullable=False, default=list)
    instructions = Column(JSON, nullable=False, default=list)
    notes = Column(JSON, nullable=False, default=list)
    # [{title, items, stepIndex?, sourceGroup?}]
    prep_groups = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
