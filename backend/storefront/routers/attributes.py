from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from storefront.database import get_db
from storefront.models import Attribute, Category
from storefront.schemas.attribute import Attribute as AttributeSchema, AttributeCreate

router = APIRouter(prefix="/attributes", tags=["attributes"])


@router.get("/", response_model=list[AttributeSchema])
def list_attributes(
    category_id: int | None = None,
    db: Session = Depends(get_db)
):
    """List attributes, optionally those usable in one category (global ones included)."""
    query = db.query(Attribute)

    if category_id:
        query = query.filter(
            (Attribute.category_id == category_id) | (Attribute.category_id.is_(None))
        )

    return query.order_by(Attribute.display_order, Attribute.name).all()


@router.get("/{attribute_id}", response_model=AttributeSchema)
def get_attribute(attribute_id: int, db: Session = Depends(get_db)):
    attribute = db.query(Attribute).filter(Attribute.id == attribute_id).first()
    if not attribute:
        raise HTTPException(status_code=404, detail="Attribute not found")
    return attribute


@router.post("/", response_model=AttributeSchema, status_code=201)
def create_attribute(data: AttributeCreate, db: Session = Depends(get_db)):
    """Create an attribute definition."""
    if data.category_id and not db.query(Category).filter(Category.id == data.category_id).first():
        raise HTTPException(status_code=404, detail="Category not found")

    values = [v.strip() for v in data.values if v.strip()]
    if len(values) != len(set(values)):
        raise HTTPException(status_code=400, detail="Attribute values must be unique")

    attribute = Attribute(
        name=data.name.strip(),
        display_name=data.display_name,
        type=data.type.value,
        values=values,
        category_id=data.category_id,
        is_required=data.is_required,
        display_order=data.display_order,
    )
    db.add(attribute)
    db.commit()
    db.refresh(attribute)
    return attribute
