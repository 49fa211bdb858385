from fastapi import APIRouter, HTTPException

from ayuda.core.categories import CATEGORIES, find_category, guidance_for

router = APIRouter()


@router.get("")
async def list_categories():
    """Top-level categories with their subcategories."""
    return [c.model_dump() for c in CATEGORIES]


@router.get("/{category_id}")
async def get_category(category_id: str):
    """One category (or subcategory) plus its first-aid guidance."""
    category = find_category(category_id)
    if category is None:
        raise HTTPException(status_code=404, detail=f"Unknown category: {category_id}")
    guidance = guidance_for(category)
    return {
        "category": category.model_dump(),
        "guidance": guidance.to_wire() if guidance else None,
    }
