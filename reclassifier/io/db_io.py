# reclassifier/io/db_io.py
from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import Column, DateTime, Integer, String, Text, create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from reclassifier.config import config
from reclassifier.data_models import Category


logger = logging.getLogger(__name__)

engine = create_engine(config.storage.database_url, echo=False, future=True)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

Base = declarative_base()


class CategoryDB(Base):
    __tablename__ = "categories"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=True)  # пустое имя = битая категория
    slug = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    parent_id = Column(String, nullable=True, index=True)
    level = Column(Integer, nullable=True)
    type = Column(String, nullable=True)


class ProductDB(Base):
    __tablename__ = "products"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=True)
    sku = Column(String, nullable=True, index=True)
    description = Column(Text, nullable=True)
    brand = Column(String, nullable=True)
    attributes_json = Column(Text, nullable=True)  # [{"name": ..., "value": ...}]
    category_id = Column(String, nullable=True, index=True)
    updated_at = Column(DateTime, nullable=True)


@contextmanager
def get_session() -> Iterator[Session]:
    session: Session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def category_db_to_domain(cat_db: CategoryDB) -> Category:
    """
    Маппит ORM-модель CategoryDB в доменный класс Category.
    """
    return Category(
        id=str(cat_db.id),
        name=cat_db.name or None,
        slug=cat_db.slug or "",
        parent=cat_db.parent_id or None,
        level=cat_db.level or 0,
    )


def _parse_attributes(product_id: str, raw: Optional[str]) -> List[Dict[str, Any]]:
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Product %s: attributes_json is not valid JSON, ignored", product_id)
        return []
    return data if isinstance(data, list) else []


def product_db_to_record(pl: ProductDB) -> Dict[str, Any]:
    """
    Строит запись в формате выгрузки (как products-*.json).

    Запись остаётся словарём: валидация имени и атрибутов происходит
    в BatchRunner, где ошибка одной записи не обрывает прогон.
    """
    return {
        "_id": str(pl.id),
        "name": pl.name,
        "sku": pl.sku or "",
        "description": pl.description or "",
        "brand": pl.brand or "",
        "attributes": _parse_attributes(str(pl.id), pl.attributes_json),
        "currentCategory": pl.category_id or None,
    }


def category_to_record(cat: Category) -> Dict[str, Any]:
    return {
        "_id": cat.id,
        "name": cat.name,
        "slug": cat.slug,
        "parent": cat.parent,
        "level": cat.level,
    }


def get_all_categories(session: Session) -> List[Category]:
    """
    Все категории в порядке id: порядок фиксирован, чтобы повторные
    прогоны по одной базе давали одинаковые ничьи в скорере.
    """
    cats_db = session.query(CategoryDB).order_by(CategoryDB.id).all()
    return [category_db_to_domain(c) for c in cats_db if c is not None]


def get_all_products(session: Session, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    query = session.query(ProductDB).order_by(ProductDB.id)
    if limit is not None:
        query = query.limit(limit)
    return [product_db_to_record(p) for p in query.all()]
