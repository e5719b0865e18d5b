# Overview: Service-layer operations for product categories.

from __future__ import annotations

from ..extensions import db
from ..models import Category
from ..schemas import CreateCategoryInput
from .concurrency import UnitOfWork


def create_category(data: CreateCategoryInput) -> Category:
    with UnitOfWork() as uow:
        category = Category(name=data.name, description=data.description)
        uow.session.add(category)
        uow.commit()
        return category


def list_categories() -> list[Category]:
    return db.session.query(Category).order_by(Category.name.asc(), Category.id.asc()).all()
