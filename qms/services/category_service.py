"""
Product Category Service
Category hierarchy maintenance
"""
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from qms.core.exceptions import ConflictError, NotFoundError, ValidationError
from qms.core.logging import get_logger
from qms.core.pagination import CursorPage, CursorParams, paginate
from qms.models.auth import User
from qms.models.product import Product, ProductCategory

logger = get_logger("business")

SORTABLE = {
    "created_at": ProductCategory.created_at,
    "name": ProductCategory.name,
}


class ProductCategoryService:
    def __init__(self, db: Session, current_user: Optional[User] = None):
        self.db = db
        self.current_user = current_user

    def get(self, category_id: int) -> ProductCategory:
        category = self.db.get(ProductCategory, category_id)
        if not category:
            raise NotFoundError("Product category", category_id)
        return category

    def list(
        self,
        params: CursorParams,
        search: Optional[str] = None,
        parent_id: Optional[int] = None,
        include_inactive: bool = False,
    ) -> CursorPage:
        query = self.db.query(ProductCategory)
        if not include_inactive:
            query = query.filter(ProductCategory.is_active.is_(True))
        if search:
            query = query.filter(ProductCategory.name.ilike(f"%{search}%"))
        if parent_id:
            query = query.filter(ProductCategory.parent_id == parent_id)
        return paginate(query, ProductCategory, params, SORTABLE)

    def _check_name(self, name: str, parent_id: Optional[int], exclude_id: Optional[int] = None) -> None:
        query = self.db.query(ProductCategory.id).filter(
            ProductCategory.name == name,
            ProductCategory.parent_id.is_(None) if parent_id is None else ProductCategory.parent_id == parent_id,
        )
        if exclude_id:
            query = query.filter(ProductCategory.id != exclude_id)
        if query.first():
            raise ConflictError(f"Category '{name}' already exists at this level")

    def _check_parent(self, parent_id: Optional[int], category_id: Optional[int] = None) -> None:
        """The parent must exist and must not be the category itself or one of its descendants"""
        if parent_id is None:
            return
        parent = self.get(parent_id)
        while parent is not None and category_id is not None:
            if parent.id == category_id:
                raise ValidationError("A category cannot be placed under itself or one of its subcategories")
            parent = parent.parent

    def create(self, category_in) -> ProductCategory:
        self._check_parent(category_in.parent_id)
        self._check_name(category_in.name, category_in.parent_id)

        category = ProductCategory(**category_in.model_dump())
        self.db.add(category)
        self.db.commit()
        self.db.refresh(category)

        logger.info(f"Product category '{category.name}' created")
        return category

    def update(self, category_id: int, category_in) -> ProductCategory:
        category = self.get(category_id)
        changes = category_in.model_dump(exclude_unset=True)
        if "parent_id" in changes:
            self._check_parent(changes["parent_id"], category.id)
        if "name" in changes or "parent_id" in changes:
            self._check_name(
                changes.get("name", category.name),
                changes.get("parent_id", category.parent_id),
                exclude_id=category.id,
            )

        for key, value in changes.items():
            setattr(category, key, value)
        self.db.commit()
        self.db.refresh(category)
        return category

    def delete(self, category_id: int) -> None:
        category = self.get(category_id)
        if self.db.query(Product.id).filter(Product.category_id == category_id).first():
            raise ConflictError(f"Category '{category.name}' has products and cannot be deleted")
        if self.db.query(ProductCategory.id).filter(ProductCategory.parent_id == category_id).first():
            raise ConflictError(f"Category '{category.name}' has subcategories and cannot be deleted")

        self.db.delete(category)
        self.db.commit()
        logger.info(f"Product category '{category.name}' deleted")

    def tree(self) -> List[Dict]:
        """
        Active categories as nested nodes.

        A category whose parent is inactive is dropped together with its
        branch.
        """
        categories = (
            self.db.query(ProductCategory)
            .filter(ProductCategory.is_active.is_(True))
            .order_by(ProductCategory.name, ProductCategory.id)
            .all()
        )
        by_parent: Dict[Optional[int], List[ProductCategory]] = {}
        for category in categories:
            by_parent.setdefault(category.parent_id, []).append(category)

        def build(parent_id: Optional[int]) -> List[Dict]:
            return [
                {
                    "id": category.id,
                    "name": category.name,
                    "description": category.description,
                    "parent_id": category.parent_id,
                    "children": build(category.id),
                }
                for category in by_parent.get(parent_id, [])
            ]

        return build(None)
